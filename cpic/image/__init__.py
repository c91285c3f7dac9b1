"""镜像模块

提供压缩 cpio 归档的读写、转录和条目追加功能。
"""

from .cpio import (
    CpioError,
    CpioDecodeError,
    CpioEncodeError,
    CpioReader,
    CpioWriter,
    EntryType,
    Header,
)
from .compression import (
    CompressionAdapter,
    CompressionError,
    CompressorFactory,
    DecompressionError,
    GzipAdapter,
    ZstdAdapter,
    detect_format,
)
from .archive import ArchiveReader, ArchiveWriter
from .transcoder import TranscodeStats, copy_archive
from .appender import append_entries, write_dir, write_file

__all__ = [
    # cpio 编解码
    "CpioError",
    "CpioDecodeError",
    "CpioEncodeError",
    "CpioReader",
    "CpioWriter",
    "EntryType",
    "Header",

    # 压缩层
    "CompressionAdapter",
    "CompressionError",
    "CompressorFactory",
    "DecompressionError",
    "GzipAdapter",
    "ZstdAdapter",
    "detect_format",

    # 读写器
    "ArchiveReader",
    "ArchiveWriter",

    # 转录与追加
    "TranscodeStats",
    "copy_archive",
    "append_entries",
    "write_dir",
    "write_file",
]
