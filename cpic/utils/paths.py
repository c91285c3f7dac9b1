"""
路径工具

提供路径处理相关的工具函数。
"""

import os
from pathlib import Path, PurePosixPath
from typing import Union


def expand_path(path: Union[str, Path]) -> Path:
    """扩展路径（处理环境变量和用户目录）

    Args:
        path: 原始路径

    Returns:
        Path: 扩展后的路径
    """
    if isinstance(path, str):
        path = os.path.expandvars(path)
        path = os.path.expanduser(path)

    return Path(path)


def is_safe_entry_name(name: str) -> bool:
    """检查归档条目名是否安全

    条目名必须是相对路径，不能为空、不能是 "."，也不能包含 ".." 段。

    Args:
        name: 条目名（使用 / 分隔）

    Returns:
        bool: 是否安全
    """
    if not name or name == ".":
        return False

    path = PurePosixPath(name)
    if path.is_absolute():
        return False

    return not any(part == ".." for part in path.parts)


def format_size(size_bytes: int) -> str:
    """格式化文件大小

    Args:
        size_bytes: 字节数

    Returns:
        str: 格式化的大小字符串
    """
    if size_bytes == 0:
        return "0 B"

    units = ["B", "KB", "MB", "GB", "TB"]
    unit_index = 0
    size = float(size_bytes)

    while size >= 1024.0 and unit_index < len(units) - 1:
        size /= 1024.0
        unit_index += 1

    if unit_index == 0:
        return f"{int(size)} {units[unit_index]}"
    else:
        return f"{size:.1f} {units[unit_index]}"
