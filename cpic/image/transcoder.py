"""
归档转录

把源归档的条目按顺序复制到目标归档，丢弃根目录标记 "."。
一次只处理一个条目，内存占用与归档大小无关。
"""

from dataclasses import dataclass
from typing import Callable, Optional

from .archive import ArchiveReader, ArchiveWriter
from .cpio import CpioDecodeError, CpioEncodeError, Header

COPY_CHUNK_SIZE = 64 * 1024

ROOT_MARKER = "."

# 条目回调: (条目头, 是否被跳过)
EntryCallback = Callable[[Header, bool], None]


@dataclass
class TranscodeStats:
    """转录统计"""
    entries_copied: int = 0
    entries_skipped: int = 0
    bytes_copied: int = 0


def copy_body(dst: ArchiveWriter, read: Callable[[int], bytes], size: int, name: str) -> int:
    """从 read 复制恰好 size 字节到 dst

    Raises:
        CpioDecodeError: 数据源提前结束
        CpioEncodeError: 目标写入不足
    """
    remaining = size
    while remaining > 0:
        chunk = read(min(COPY_CHUNK_SIZE, remaining))
        if not chunk:
            raise CpioDecodeError(f"条目 {name} 数据读取不足: 期望 {size} 字节，缺少 {remaining} 字节")
        written = dst.write(chunk)
        if written != len(chunk):
            raise CpioEncodeError(f"条目 {name} 数据写入不足: 写入 {written}/{len(chunk)} 字节")
        remaining -= written
    return size


def copy_archive(
    dst: ArchiveWriter,
    src: ArchiveReader,
    on_entry: Optional[EntryCallback] = None,
) -> TranscodeStats:
    """把 src 的所有条目复制到 dst

    - 遇到结束标记时停止
    - 名为 "." 的目录条目被跳过
    - 其他目录只写入条目头
    - 其他类型写入条目头后复制恰好 header.size 字节的数据

    解码错误直接向上传播，不会被当作归档结束。

    Args:
        dst: 目标归档写入器
        src: 源归档读取器
        on_entry: 每处理一个条目调用一次的回调

    Returns:
        TranscodeStats: 转录统计
    """
    stats = TranscodeStats()

    while True:
        header = src.next_entry()
        if header.is_trailer():
            break

        if header.is_dir():
            if header.name == ROOT_MARKER:
                stats.entries_skipped += 1
                if on_entry:
                    on_entry(header, True)
                continue
            dst.write_header(header)
        else:
            dst.write_header(header)
            stats.bytes_copied += copy_body(dst, src.read, header.size, header.display_name)

        stats.entries_copied += 1
        if on_entry:
            on_entry(header, False)

    return stats
