"""
压缩归档读写器

ArchiveReader 组合 解压层 + cpio 解码层，ArchiveWriter 组合 cpio 编码层 + 压缩层。
两个子层都是私有的，只能通过组合对象整体关闭。

ArchiveWriter.close() 的顺序是固定的：先结束 cpio 层（写入 TRAILER!!!），
再关闭压缩层（刷新压缩缓冲）。顺序颠倒时结束标记会丢失，输出归档不完整。
"""

from contextlib import contextmanager
from typing import BinaryIO, Iterator, Optional

from ..config.schema import CompressionFormat
from .compression import (
    CompressionAdapter,
    CompressionError,
    CompressorFactory,
    DecompressionError,
    detect_format,
)
from .cpio import CpioReader, CpioWriter, Header


class ArchiveReader:
    """压缩 cpio 归档读取器

    只负责关闭自己创建的解压层，调用方传入的 source 由调用方关闭。
    读取是单向的，重新读取需要重新打开 source。
    """

    def __init__(self, adapter: CompressionAdapter, stream: BinaryIO):
        self._adapter = adapter
        self._z = stream
        self._c = CpioReader(stream)
        self._closed = False

    @classmethod
    def open(cls, source: BinaryIO, fmt: Optional[CompressionFormat] = None) -> "ArchiveReader":
        """在 source 之上打开归档读取器

        Args:
            source: 压缩归档字节流
            fmt: 压缩格式，None 表示根据 magic 自动识别

        Raises:
            DecompressionError: 压缩头无效
        """
        if fmt is None:
            fmt = detect_format(source)
        adapter = CompressorFactory.create(fmt)
        try:
            stream = adapter.open_reader(source)
        except adapter.errors as e:
            raise DecompressionError(f"无法打开 {fmt.value} 解压流: {e}") from e
        return cls(adapter, stream)

    @property
    def format(self) -> CompressionFormat:
        return self._adapter.get_format()

    @property
    def closed(self) -> bool:
        return self._closed

    def next_entry(self) -> Header:
        """读取下一个条目头

        Returns:
            Header: 条目头；归档结束时返回结束标记（is_trailer() 为真）

        Raises:
            CpioDecodeError: 归档格式损坏或截断
            DecompressionError: 压缩数据损坏
        """
        with self._translate_errors():
            return self._c.next()

    def read(self, size: int = -1) -> bytes:
        """读取当前条目的数据，读完时返回空串"""
        with self._translate_errors():
            return self._c.read(size)

    def close(self) -> None:
        """关闭解压层"""
        if self._closed:
            return
        self._closed = True
        self._z.close()

    @contextmanager
    def _translate_errors(self) -> Iterator[None]:
        try:
            yield
        except self._adapter.errors as e:
            raise DecompressionError(f"{self._adapter.get_format().value} 数据损坏: {e}") from e

    def __enter__(self) -> "ArchiveReader":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class ArchiveWriter:
    """压缩 cpio 归档写入器

    调用方传入的 sink 不会被关闭。未调用 close() 的写入器产生的归档是截断的。
    """

    def __init__(self, adapter: CompressionAdapter, stream: BinaryIO):
        self._adapter = adapter
        self._z = stream
        self._c = CpioWriter(stream)
        self._closed = False

    @classmethod
    def open(
        cls,
        sink: BinaryIO,
        fmt: CompressionFormat = CompressionFormat.GZIP,
        level: Optional[int] = None,
    ) -> "ArchiveWriter":
        """在 sink 之上打开归档写入器

        Args:
            sink: 输出字节流
            fmt: 压缩格式
            level: 压缩级别，None 表示默认级别
        """
        adapter = CompressorFactory.create(fmt, level)
        try:
            stream = adapter.open_writer(sink)
        except adapter.errors as e:
            raise CompressionError(f"无法打开 {fmt.value} 压缩流: {e}") from e
        return cls(adapter, stream)

    @property
    def format(self) -> CompressionFormat:
        return self._adapter.get_format()

    @property
    def closed(self) -> bool:
        return self._closed

    def write_header(self, header: Header) -> None:
        """写入条目头"""
        with self._translate_errors():
            self._c.write_header(header)

    def write(self, data: bytes) -> int:
        """写入当前条目的数据，返回写入的字节数"""
        with self._translate_errors():
            return self._c.write(data)

    def close(self) -> None:
        """结束归档

        先写入 cpio 结束标记，再刷新并关闭压缩层。
        即使结束标记写入失败，压缩层也会被关闭以释放资源。
        """
        if self._closed:
            return
        self._closed = True
        with self._translate_errors():
            try:
                self._c.close()
            finally:
                self._z.close()

    def abort(self) -> None:
        """放弃归档：不写结束标记，只释放压缩层"""
        if self._closed:
            return
        self._closed = True
        with self._translate_errors():
            self._z.close()

    @contextmanager
    def _translate_errors(self) -> Iterator[None]:
        try:
            yield
        except self._adapter.errors as e:
            raise CompressionError(f"{self._adapter.get_format().value} 压缩失败: {e}") from e

    def __enter__(self) -> "ArchiveWriter":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is None:
            self.close()
        else:
            self.abort()
