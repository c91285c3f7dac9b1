"""
Inspect 命令实现

列出镜像中的全部条目。
"""

import json
import stat
from datetime import datetime
from pathlib import Path
from typing import List

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ...image import ArchiveReader, CpioError, DecompressionError, Header
from ...utils import expand_path, format_size
from ...utils.logging import debug, LogStage


console = Console()


def inspect_command(
    image: str = typer.Argument(..., help="PXE 镜像文件路径"),
    json_output: bool = typer.Option(False, "--json", help="输出 JSON 格式"),
) -> None:
    """列出镜像条目

    显示镜像中每个条目的类型、权限、大小、修改时间和路径。

    示例:
        cpic inspect coreos_production_pxe_image.cpio.gz
        cpic inspect oem.cpio.gz --json
    """
    image_path = expand_path(image)

    if not image_path.exists():
        console.print(f"[red]镜像文件不存在: {image_path}[/red]")
        raise typer.Exit(1)

    debug(f"读取镜像: {image_path}", stage=LogStage.INSPECT)
    try:
        fmt, entries = read_entries(image_path)
    except (DecompressionError, CpioError, OSError) as e:
        console.print(f"[red]读取镜像失败: {e}[/red]")
        raise typer.Exit(1)

    if json_output:
        data = {
            'image': str(image_path),
            'compression': fmt,
            'entries': [_entry_to_dict(h) for h in entries],
        }
        console.print_json(json.dumps(data, ensure_ascii=False))
    else:
        _display_entries(image_path, fmt, entries)


def read_entries(image_path: Path) -> tuple[str, List[Header]]:
    """读取镜像的全部条目头（不包括结束标记）"""
    entries = []
    with open(image_path, 'rb') as f, ArchiveReader.open(f) as reader:
        while True:
            header = reader.next_entry()
            if header.is_trailer():
                break
            entries.append(header)
        debug(f"共 {len(entries)} 个条目 ({reader.format.value})", stage=LogStage.INSPECT)
        return reader.format.value, entries


def _entry_to_dict(header: Header) -> dict:
    return {
        'name': header.display_name,
        'type': header.type.name.lower(),
        'mode': f"{header.mode:04o}",
        'size': header.size,
        'mtime': header.mtime,
        'uid': header.uid,
        'gid': header.gid,
    }


def _display_entries(image_path: Path, fmt: str, entries: List[Header]) -> None:
    """显示条目列表（人类可读格式）"""
    total_size = sum(h.size for h in entries)

    table = Table(title=f"{image_path.name} ({fmt}, {len(entries)} 个条目, {format_size(total_size)})")
    table.add_column("权限", style="cyan")
    table.add_column("大小", style="green", justify="right")
    table.add_column("修改时间", style="yellow")
    table.add_column("路径")

    for header in entries:
        table.add_row(
            stat.filemode(int(header.type) | header.mode),
            format_size(header.size),
            datetime.fromtimestamp(header.mtime).strftime("%Y-%m-%d %H:%M:%S"),
            escape(header.display_name),
        )

    console.print(table)
