"""
追加条目

向归档写入器追加目录条目和文件条目。目录顺序由调用方保证，
这里不检查路径嵌套关系。
"""

import os
import time
from pathlib import Path
from typing import Iterable, Union

from .archive import ArchiveWriter
from .cpio import EntryType, Header
from .transcoder import copy_body

DIR_MODE = 0o755
FILE_MODE = 0o644


def write_dir(dst: ArchiveWriter, name: str) -> Header:
    """写入目录条目（0755，mtime 为当前时间）"""
    header = Header(
        name=name,
        mode=DIR_MODE,
        mtime=int(time.time()),
        size=0,
        type=EntryType.DIRECTORY,
        nlink=2,
    )
    dst.write_header(header)
    return header


def write_file(dst: ArchiveWriter, path: Union[str, Path], name: str) -> Header:
    """把本地文件作为普通文件条目写入（0644，mtime 为当前时间）

    文件长度以打开后的 fstat 为准，只复制这么多字节。

    Raises:
        FileNotFoundError: 文件不存在
        PermissionError: 文件不可读
    """
    with open(path, "rb") as f:
        size = os.fstat(f.fileno()).st_size
        header = Header(
            name=name,
            mode=FILE_MODE,
            mtime=int(time.time()),
            size=size,
            type=EntryType.REGULAR,
        )
        dst.write_header(header)
        copy_body(dst, f.read, size, header.display_name)
    return header


def append_entries(
    dst: ArchiveWriter,
    directories: Iterable[str],
    file_path: Union[str, Path],
    target_name: str,
) -> list[Header]:
    """按顺序写入目录条目，然后写入文件条目

    Args:
        dst: 目标归档写入器
        directories: 目录条目名列表（父目录在前）
        file_path: 本地文件路径
        target_name: 文件在归档中的条目名

    Returns:
        list[Header]: 写入的条目头
    """
    headers = [write_dir(dst, name) for name in directories]
    headers.append(write_file(dst, file_path, target_name))
    return headers
