"""
归档读写器单元测试

重点覆盖写入器的关闭顺序：必须先结束 cpio 层，再关闭压缩层。
"""

import gzip
import io

import pytest

from cpic.config.schema import CompressionFormat
from cpic.image import (
    ArchiveReader,
    ArchiveWriter,
    CpioDecodeError,
    CpioWriter,
    DecompressionError,
    EntryType,
    Header,
)

from image_builders import build_cpio, read_image


def _write_sample(writer) -> None:
    writer.write_header(Header(name="etc", mode=0o755, type=EntryType.DIRECTORY))
    writer.write_header(Header(name="etc/foo", size=4))
    writer.write(b"test")


class TestArchiveWriter:
    """ArchiveWriter 测试"""

    @pytest.mark.parametrize("fmt", [CompressionFormat.GZIP, CompressionFormat.ZSTD])
    def test_roundtrip(self, fmt):
        """测试写入后可以读回"""
        sink = io.BytesIO()
        writer = ArchiveWriter.open(sink, fmt)
        _write_sample(writer)
        writer.close()

        assert writer.closed
        assert not sink.closed
        assert read_image(sink.getvalue()) == [
            (EntryType.DIRECTORY, "etc", b""),
            (EntryType.REGULAR, "etc/foo", b"test"),
        ]

    def test_close_order_required(self):
        """测试关闭顺序：先关闭压缩层会丢失结束标记，输出无法解码"""
        sink = io.BytesIO()
        compressed = gzip.GzipFile(filename="", mode="wb", fileobj=sink)
        codec = CpioWriter(compressed)
        _write_sample(codec)

        # 错误的顺序：压缩层先关闭
        compressed.close()
        with pytest.raises(ValueError):
            codec.close()

        with pytest.raises(CpioDecodeError):
            read_image(sink.getvalue())

        # 正确的顺序：ArchiveWriter.close() 先结束 cpio 层
        sink = io.BytesIO()
        writer = ArchiveWriter.open(sink)
        _write_sample(writer)
        writer.close()

        assert len(read_image(sink.getvalue())) == 2

    def test_unclosed_writer_is_truncated(self):
        """测试未关闭的写入器产生截断的镜像"""
        sink = io.BytesIO()
        writer = ArchiveWriter.open(sink)
        _write_sample(writer)

        with pytest.raises(DecompressionError):
            read_image(sink.getvalue())

    def test_abort_skips_trailer(self):
        """测试 abort 只释放压缩层，不写结束标记"""
        sink = io.BytesIO()
        writer = ArchiveWriter.open(sink)
        _write_sample(writer)
        writer.abort()

        assert writer.closed
        with pytest.raises(CpioDecodeError):
            read_image(sink.getvalue())

    def test_close_is_idempotent(self):
        sink = io.BytesIO()
        writer = ArchiveWriter.open(sink)
        writer.close()
        size = len(sink.getvalue())
        writer.close()
        writer.abort()

        assert len(sink.getvalue()) == size
        assert read_image(sink.getvalue()) == []

    def test_context_manager(self):
        """测试正常退出时关闭，异常退出时放弃"""
        sink = io.BytesIO()
        with ArchiveWriter.open(sink) as writer:
            _write_sample(writer)
        assert len(read_image(sink.getvalue())) == 2

        sink = io.BytesIO()
        with pytest.raises(RuntimeError):
            with ArchiveWriter.open(sink) as writer:
                _write_sample(writer)
                raise RuntimeError("boom")
        assert writer.closed
        with pytest.raises(CpioDecodeError):
            read_image(sink.getvalue())

    def test_incomplete_entry_on_close(self):
        """测试最后一个条目不完整时 close 报错，但压缩层仍被关闭"""
        sink = io.BytesIO()
        writer = ArchiveWriter.open(sink)
        writer.write_header(Header(name="a", size=10))
        writer.write(b"123")

        with pytest.raises(Exception) as exc_info:
            writer.close()
        assert "数据不完整" in str(exc_info.value)
        assert writer.closed


class TestArchiveReader:
    """ArchiveReader 测试"""

    def test_open_detects_format(self):
        sink = io.BytesIO()
        with ArchiveWriter.open(sink, CompressionFormat.ZSTD) as writer:
            _write_sample(writer)

        with ArchiveReader.open(io.BytesIO(sink.getvalue())) as reader:
            assert reader.format == CompressionFormat.ZSTD
            assert reader.next_entry().name == "etc"

    def test_invalid_compression_header(self):
        """测试打开时识别无效的压缩头"""
        with pytest.raises(DecompressionError):
            ArchiveReader.open(io.BytesIO(build_cpio([])))

    def test_corrupt_gzip_header(self):
        """测试 gzip magic 正确但头部损坏时在打开阶段报错"""
        # 压缩方法 7 不存在
        data = b"\x1f\x8b\x07\x00" + b"\x00" * 60

        with pytest.raises(DecompressionError) as exc_info:
            ArchiveReader.open(io.BytesIO(data))
        assert "gzip" in str(exc_info.value)

    def test_corrupt_zstd_frame_header(self):
        """测试 zstd 帧头的保留位被置位时在打开阶段报错"""
        data = b"\x28\xb5\x2f\xfd" + b"\xff" * 20

        with pytest.raises(DecompressionError):
            ArchiveReader.open(io.BytesIO(data))

    def test_open_does_not_consume_entries(self):
        """测试打开时的头部校验不影响后续读取"""
        source = io.BytesIO(gzip.compress(build_cpio([(EntryType.REGULAR, "a", b"1")])))
        with ArchiveReader.open(source) as reader:
            assert reader.next_entry().name == "a"
            assert reader.read() == b"1"

    def test_corrupt_gzip_data(self):
        """测试压缩数据损坏"""
        data = bytearray(gzip.compress(build_cpio([(EntryType.REGULAR, "a", b"x" * 1000)])))
        # 无效的 deflate 块类型
        data[10] = 0xFF

        with pytest.raises(DecompressionError):
            read_image(bytes(data))

    def test_truncated_gzip(self):
        """测试截断的 gzip 数据"""
        data = gzip.compress(build_cpio([(EntryType.REGULAR, "a", bytes(range(256)) * 8)]))

        with pytest.raises(DecompressionError):
            read_image(data[:len(data) // 2])

    def test_close_keeps_source_open(self):
        """测试关闭读取器不会关闭调用方的源流"""
        source = io.BytesIO(gzip.compress(build_cpio([])))
        reader = ArchiveReader.open(source)
        assert reader.next_entry().is_trailer()
        reader.close()
        reader.close()

        assert reader.closed
        assert not source.closed
