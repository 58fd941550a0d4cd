"""
Build 命令实现

按平台与架构开关构建目录、归档与安装器目标。
"""

import traceback
from pathlib import Path
from typing import Any, Dict, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ...build.build_context import BuildError, TaskGroupError
from ...config import ConfigError, ConfigValidationError, config_loader
from ...download import DownloadError
from ...utils.logging import set_log_level, set_log_file, OutputLevel


console = Console()


def build_command(
    project_dir: str = typer.Argument(".", help="项目目录"),
    win: Optional[bool] = typer.Option(None, "--win", help="构建 Windows 版本"),
    mac: Optional[bool] = typer.Option(None, "--mac", help="构建 macOS 版本"),
    linux: Optional[bool] = typer.Option(None, "--linux", help="构建 Linux 版本"),
    x86: Optional[bool] = typer.Option(None, "--x86", help="构建 x86 架构"),
    x64: Optional[bool] = typer.Option(None, "--x64", help="构建 x64 架构"),
    chrome_app: Optional[bool] = typer.Option(None, "--chrome-app", help="使用 manifest.json 作为清单"),
    mirror: Optional[str] = typer.Option(None, "--mirror", help="运行时下载镜像"),
    concurrent: Optional[bool] = typer.Option(None, "--concurrent", help="并发执行构建任务"),
    quiet: Optional[bool] = typer.Option(None, "--quiet", help="不输出构建进度"),
    options_file: Optional[str] = typer.Option(None, "--options-file", help="YAML 选项文件"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="日志输出文件"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="输出详细调试日志 (DEBUG 级别)"),
) -> None:
    """构建应用

    示例:
        nwpack build ./app --win --x64
        nwpack build ./app --win --mac --linux --x86 --x64 --concurrent
    """
    from ...build.builder import Builder

    set_log_level(OutputLevel.DEBUG if verbose else OutputLevel.INFO)

    if log_file:
        try:
            set_log_file(log_file)
        except OSError:
            console.print(f"[yellow]无法写入日志文件: {log_file}[/yellow]")

    flags = {
        "win": win, "mac": mac, "linux": linux,
        "x86": x86, "x64": x64,
        "chrome_app": chrome_app,
        "mirror": mirror,
        "concurrent": concurrent,
        "quiet": quiet,
    }
    overrides: Dict[str, Any] = {k: v for k, v in flags.items() if v is not None}

    try:
        if options_file:
            options = config_loader.load_options(options_file, overrides)
        else:
            options = config_loader.make_options(overrides)

        builder = Builder(options, Path(project_dir))
        results = builder.build()

    except ConfigValidationError as e:
        console.print("[red]配置验证失败:[/red]")
        console.print(escape(e.format_errors()))
        raise typer.Exit(1)
    except ConfigError as e:
        console.print(f"[red]配置错误[/red]: {escape(str(e))}")
        raise typer.Exit(1)
    except TaskGroupError as e:
        console.print(f"[red]✗ {escape(str(e))}[/red]")
        for task, exc in e.failures.items():
            console.print(f"  [red]{task}[/red]: {escape(str(exc))}")
        raise typer.Exit(1)
    except (BuildError, DownloadError, OSError) as e:
        console.print(f"[red]✗ 构建失败[/red]: {escape(str(e))}")
        if log_file:
            console.print(f"[yellow]详细错误信息:[/yellow]\n{traceback.format_exc()}")
        raise typer.Exit(1)

    table = Table(title="构建结果")
    table.add_column("任务", style="cyan", no_wrap=True)
    table.add_column("目标目录", style="green")
    table.add_column("产物", style="yellow")
    table.add_column("耗时", style="blue")

    for result in results:
        artifacts = "\n".join(p.name for p in result.artifacts) or "-"
        table.add_row(str(result.task), str(result.target_dir), artifacts, f"{result.build_time:.2f}s")

    console.print(table)
    console.print("[green]✓ 构建完成[/green]")
