"""
nwpack CLI 主入口

提供 build / validate 命令。
"""

from typing import Optional

import typer
from rich.console import Console

from .. import __version__
from ..utils import configure_logging
from .commands import build, validate


app = typer.Typer(
    name="nwpack",
    help="nwpack - NW.js 桌面应用打包工具",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

console = Console()


def version_callback(value: bool) -> None:
    """显示版本信息"""
    if value:
        console.print(f"nwpack v{__version__}")
        raise typer.Exit()


def verbose_callback(verbose: bool) -> None:
    """配置详细输出"""
    configure_logging(level="DEBUG" if verbose else "INFO")


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="显示版本信息"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        callback=verbose_callback,
        help="启用详细输出"
    )
) -> None:
    """nwpack - NW.js 桌面应用打包工具

    使用 --help 查看可用命令的详细信息。
    """
    pass


app.command("build", help="构建应用")(build.build_command)
app.command("validate", help="验证项目清单中的构建配置")(validate.validate_command)


if __name__ == "__main__":
    app()
