"""
Build 命令实现

重打包 PXE 镜像并注入 cloud-config 的核心命令。
"""

import traceback
from typing import Any, Dict, Optional

import typer
from rich.console import Console

from ...config import (
    CompressionFormat,
    ConfigError,
    ConfigValidationError,
    CpicConfig,
    DEFAULT_CONFIG_PATH,
    config_loader,
    load_config,
)
from ...utils import expand_path, format_size
from ...utils.logging import set_log_level, set_log_file, OutputLevel


console = Console()


def build_command(
    image: Optional[str] = typer.Argument(None, help="源 PXE 镜像，例如 coreos_production_pxe_image.cpio.gz"),
    cloud_config: Optional[str] = typer.Option(
        None, "--cloud-config", "-c", help=f"cloud-config 文件路径 [默认: {DEFAULT_CONFIG_PATH}]"
    ),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="输出文件路径"),
    temp_dir: Optional[str] = typer.Option(None, "--temp-dir", help="临时文件目录 [默认: 输出文件所在目录]"),
    fmt: Optional[CompressionFormat] = typer.Option(None, "--format", help="输出压缩格式 [默认: gzip]"),
    level: Optional[int] = typer.Option(None, "--level", help="压缩级别"),
    keep_temp: bool = typer.Option(False, "--keep-temp", help="构建失败时保留临时文件"),
    profile: Optional[str] = typer.Option(None, "--profile", "-p", help="YAML 构建描述文件"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="日志输出文件"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="输出详细调试日志 (DEBUG 级别)"),
) -> None:
    """创建 OEM PXE 镜像

    复制源 PXE 镜像的全部条目，并把 cloud-config 文件注入为
    usr/share/oem/cloud-config.yml，生成新的 PXE 镜像。

    -o 指定输出文件名。未指定时使用源镜像的文件名（写入当前目录），
    因此如果源镜像就在当前目录，它会被覆盖。

    -c 指定 cloud-config 文件名，未指定时为 "cloud-config.yml"。
    cloud-config 文件必须存在。

    示例:
        cpic build coreos_production_pxe_image.cpio.gz
        cpic build -c my-config.yml -o oem.cpio.gz coreos_production_pxe_image.cpio.gz
    """
    from ...build.builder import Builder

    # 未指定时沿用根命令的 -v 设置
    if verbose:
        set_log_level(OutputLevel.DEBUG)

    if log_file:
        try:
            set_log_file(log_file)
        except OSError:
            console.print(f"[yellow]无法写入日志文件: {log_file}[/yellow]")

    overrides: Dict[str, Any] = {
        'source': image,
        'output': output,
        'cloud_config': cloud_config,
        'temp_dir': temp_dir,
    }
    overrides = {k: str(expand_path(v)) for k, v in overrides.items() if v is not None}
    if keep_temp:
        overrides['keep_temp_on_failure'] = True

    try:
        config_obj = _resolve_config(profile, overrides, fmt, level)
    except ConfigValidationError as e:
        console.print("[red]配置验证失败:[/red]")
        console.print(e.format_errors())
        raise typer.Exit(1)
    except ConfigError as e:
        console.print(f"[red]配置错误[/red]: {e}")
        raise typer.Exit(1)

    # 提前检查输入文件，避免在复制完整个镜像后才失败
    if not config_obj.source.is_file():
        console.print(f"[red]源镜像不存在: {config_obj.source}[/red]")
        raise typer.Exit(1)
    if not config_obj.cloud_config.is_file():
        console.print(f"[red]cloud-config 文件不存在: {config_obj.cloud_config}[/red]")
        raise typer.Exit(1)

    def progress_callback(stage: str, current: int, total: int, message: str = "") -> None:
        """进度回调函数，显示进度"""
        if total > 0:
            percentage = (current / total) * 100
            if message:
                console.print(f"[blue]{stage}[/blue]: {message} ({percentage:.0f}%)")
            else:
                console.print(f"[blue]{stage}[/blue]: {percentage:.0f}%")

    console.print(f"[cyan]开始重打包镜像[/cyan]: {config_obj.source}")

    try:
        result = Builder().build(config_obj, progress_callback=progress_callback)
    except Exception as e:
        console.print(f"[red]✗ 构建过程中发生意外错误[/red]: {e}")
        if log_file:
            console.print(f"[yellow]详细错误信息:[/yellow]\n{traceback.format_exc()}")
        raise typer.Exit(1)

    if not result.success:
        console.print(f"[red]✗ 构建失败[/red]: {result.error}")
        if log_file:
            console.print(f"[yellow]请检查日志文件 {log_file} 获取详细信息。[/yellow]")
        raise typer.Exit(1)

    console.print(f"[green]✓ OEM 镜像构建完成[/green]: {result.output_path}")
    console.print(f"[blue]复制条目[/blue]: {result.entries_copied}")
    console.print(f"[blue]注入条目[/blue]: {result.entries_appended}")
    if result.output_size is not None:
        console.print(f"[blue]文件大小[/blue]: {format_size(result.output_size)}")


def _resolve_config(
    profile: Optional[str],
    overrides: Dict[str, Any],
    fmt: Optional[CompressionFormat],
    level: Optional[int],
) -> CpicConfig:
    """合并构建描述文件与命令行参数，命令行参数优先"""
    data: Dict[str, Any] = load_config(profile).to_dict() if profile else {}
    data.update(overrides)

    if fmt is not None or level is not None:
        compression = dict(data.get('compression') or {})
        if fmt is not None:
            compression['format'] = fmt.value
        if level is not None:
            compression['level'] = level
        data['compression'] = compression

    if 'source' not in data:
        raise ConfigError("未提供源 PXE 镜像")

    return config_loader.load_from_dict(data)
