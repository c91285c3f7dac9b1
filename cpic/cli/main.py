"""
cpic CLI 主入口

提供命令行接口，支持 build/inspect/validate/example 等命令。
"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from .. import __version__
from ..config import ConfigError, CpicConfig, save_config
from ..utils import configure_logging, OutputLevel
from .commands import build, inspect, validate


# 创建主应用
app = typer.Typer(
    name="cpic",
    help="cpic - 向 CoreOS PXE 镜像注入 cloud-config，生成 OEM 镜像",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# 控制台输出
console = Console()


def version_callback(value: bool) -> None:
    """显示版本信息"""
    if value:
        console.print(f"cpic v{__version__}")
        raise typer.Exit()


def verbose_callback(verbose: bool) -> None:
    """配置详细输出"""
    configure_logging(level=OutputLevel.DEBUG if verbose else OutputLevel.INFO)


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
    """cpic - 向 CoreOS PXE 镜像注入 cloud-config，生成 OEM 镜像

    使用 --help 查看可用命令的详细信息。
    """
    pass


# 注册子命令
app.command("build", help="创建 OEM PXE 镜像")(build.build_command)
app.command("inspect", help="列出镜像条目")(inspect.inspect_command)
app.command("validate", help="验证构建描述文件")(validate.validate_command)


@app.command("example")
def example_command(
    output: str = typer.Option(
        "cpic.yaml",
        "--output", "-o",
        help="输出描述文件路径"
    )
) -> None:
    """生成示例构建描述文件"""
    config = CpicConfig(
        source=Path("coreos_production_pxe_image.cpio.gz"),
        output=Path("coreos_production_pxe_image_oem.cpio.gz"),
    )

    try:
        save_config(config, output)
    except ConfigError as e:
        console.print(f"[red]生成示例配置失败: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"✓ 示例描述文件已生成: [green]{output}[/green]")
    console.print("请根据需要修改描述文件，然后运行:")
    console.print(f"  [cyan]cpic build -p {output}[/cyan]")


if __name__ == "__main__":
    app()
