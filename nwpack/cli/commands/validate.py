"""
Validate 命令实现

读取项目清单，输出解析后的构建配置或验证错误。
"""

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ...config import ConfigError, ConfigValidationError, load_project


console = Console()


def validate_command(
    project_dir: str = typer.Argument(".", help="项目目录"),
    chrome_app: bool = typer.Option(False, "--chrome-app", help="使用 manifest.json 作为清单"),
    json_output: bool = typer.Option(False, "--json", help="以 JSON 格式输出"),
) -> None:
    """验证构建配置

    示例:
        nwpack validate ./app
        nwpack validate ./app --json
    """
    manifest_name = "manifest.json" if chrome_app else "package.json"
    manifest_path = Path(project_dir) / manifest_name

    try:
        _, config = load_project(project_dir, manifest_name)
    except ConfigValidationError as e:
        if json_output:
            error_data = {
                "file": str(manifest_path),
                "errors": e.errors,
                "error_count": len(e.errors),
            }
            typer.echo(json.dumps(error_data, ensure_ascii=False, indent=2, default=str))
        else:
            console.print(f"[red]构建配置验证失败 ({len(e.errors)} 个错误):[/red]")
            console.print()

            table = Table(title="验证错误")
            table.add_column("位置", style="cyan", no_wrap=True)
            table.add_column("错误信息", style="red")
            table.add_column("输入值", style="yellow")

            for error in e.errors:
                location = " -> ".join(str(item) for item in error.get('loc', []))
                message = error.get('msg', '未知错误')
                input_value = str(error.get('input', ''))
                if len(input_value) > 47:
                    input_value = input_value[:47] + "..."

                table.add_row(escape(location) or "根级别", escape(message), escape(input_value) or "-")

            console.print(table)
        raise typer.Exit(1)
    except ConfigError as e:
        if json_output:
            error_data = {
                "file": str(manifest_path),
                "error": str(e),
                "error_type": "config_error",
            }
            typer.echo(json.dumps(error_data, ensure_ascii=False, indent=2))
        else:
            console.print(f"[red]配置错误: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    resolved = config.model_dump(mode="json", by_alias=True)
    if json_output:
        typer.echo(json.dumps(resolved, ensure_ascii=False, indent=2))
        return

    console.print(f"[green]✓ 构建配置验证通过[/green]: {manifest_path}")
    table = Table(title="构建配置")
    table.add_column("键", style="cyan", no_wrap=True)
    table.add_column("值", style="green")
    for key, value in resolved.items():
        text = json.dumps(value, ensure_ascii=False) if isinstance(value, (dict, list)) else str(value)
        table.add_row(key, escape(text))
    console.print(table)
