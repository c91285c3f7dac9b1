"""
压缩适配器

为归档读写提供流式解压/压缩层，支持 gzip 和 Zstd。
适配器返回的流在关闭时只会刷新自身缓冲，不会关闭调用方传入的底层流。
"""

import gzip
import zlib
from abc import ABC, abstractmethod
from typing import BinaryIO, Optional, Tuple, Type

import zstandard as zstd

from ..config.schema import CompressionFormat

GZIP_MAGIC = b"\x1f\x8b"
ZSTD_MAGIC = b"\x28\xb5\x2f\xfd"
ZSTD_FRAME_HEADER_MAX = 18


class CompressionError(Exception):
    """压缩相关错误"""
    pass


class DecompressionError(Exception):
    """解压相关错误"""
    pass


class CompressionAdapter(ABC):
    """压缩适配器抽象基类"""

    #: 底层库在数据损坏时抛出的异常类型
    errors: Tuple[Type[BaseException], ...] = ()

    def __init__(self, level: int):
        self.level = level

    @abstractmethod
    def get_format(self) -> CompressionFormat:
        """获取压缩格式"""
        pass

    @abstractmethod
    def open_reader(self, source: BinaryIO) -> BinaryIO:
        """在 source 之上打开解压流"""
        pass

    @abstractmethod
    def open_writer(self, sink: BinaryIO) -> BinaryIO:
        """在 sink 之上打开压缩流"""
        pass


class GzipAdapter(CompressionAdapter):
    """gzip 适配器"""

    errors = (gzip.BadGzipFile, EOFError, zlib.error)

    def __init__(self, level: int = 6):
        super().__init__(level)

    def get_format(self) -> CompressionFormat:
        return CompressionFormat.GZIP

    def open_reader(self, source: BinaryIO) -> BinaryIO:
        stream = gzip.GzipFile(filename="", mode="rb", fileobj=source)
        try:
            # GzipFile 构造时不读取数据，预读一个字节以校验 gzip 头
            stream.peek(1)
        except self.errors:
            stream.close()
            raise
        return stream

    def open_writer(self, sink: BinaryIO) -> BinaryIO:
        # filename="" 避免把临时文件名写入 gzip 头
        return gzip.GzipFile(filename="", mode="wb", compresslevel=self.level, fileobj=sink)


class ZstdAdapter(CompressionAdapter):
    """Zstd 适配器"""

    errors = (zstd.ZstdError,)

    def __init__(self, level: int = 10):
        super().__init__(level)

    def get_format(self) -> CompressionFormat:
        return CompressionFormat.ZSTD

    def open_reader(self, source: BinaryIO) -> BinaryIO:
        if source.seekable():
            # 校验帧头，不消耗数据
            position = source.tell()
            frame_header = source.read(ZSTD_FRAME_HEADER_MAX)
            source.seek(position)
            zstd.get_frame_parameters(frame_header)
        dctx = zstd.ZstdDecompressor()
        return dctx.stream_reader(source, read_across_frames=True, closefd=False)

    def open_writer(self, sink: BinaryIO) -> BinaryIO:
        cctx = zstd.ZstdCompressor(level=self.level)
        return cctx.stream_writer(sink, write_return_read=True, closefd=False)


def detect_format(source: BinaryIO) -> CompressionFormat:
    """根据 magic 字节识别压缩格式

    读取后会把 source 的位置恢复到原处，因此 source 必须可 seek。
    不可 seek 的流（如管道）需要调用方显式指定格式。

    Raises:
        DecompressionError: source 不可 seek，或无法识别的压缩格式
    """
    if not source.seekable():
        raise DecompressionError("源镜像流不支持定位，无法识别压缩格式，请显式指定格式")
    position = source.tell()
    magic = source.read(4)
    source.seek(position)

    if magic.startswith(GZIP_MAGIC):
        return CompressionFormat.GZIP
    if magic.startswith(ZSTD_MAGIC):
        return CompressionFormat.ZSTD

    if not magic:
        raise DecompressionError("源镜像为空")
    raise DecompressionError(f"无法识别的压缩格式 (magic: {magic.hex()})")


class CompressorFactory:
    """压缩适配器工厂"""

    @staticmethod
    def create(fmt: CompressionFormat, level: Optional[int] = None) -> CompressionAdapter:
        """创建压缩适配器

        Args:
            fmt: 压缩格式
            level: 压缩级别，None 表示使用该格式的默认级别

        Returns:
            CompressionAdapter: 适配器实例

        Raises:
            CompressionError: 不支持的压缩格式
        """
        if fmt == CompressionFormat.GZIP:
            return GzipAdapter() if level is None else GzipAdapter(level)
        elif fmt == CompressionFormat.ZSTD:
            return ZstdAdapter() if level is None else ZstdAdapter(level)
        else:
            raise CompressionError(f"不支持的压缩格式: {fmt}")

    @staticmethod
    def get_available_formats() -> list[CompressionFormat]:
        """获取可用的压缩格式列表"""
        return [CompressionFormat.GZIP, CompressionFormat.ZSTD]
