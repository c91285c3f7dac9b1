"""
测试镜像构造工具

提供构造 / 读取测试镜像的辅助函数。
"""

import gzip
import io
from typing import List, Tuple

from cpic.image import ArchiveReader, CpioWriter, EntryType, Header

# (类型, 条目名, 数据)
Entry = Tuple[EntryType, str, bytes]

SAMPLE_ENTRIES: List[Entry] = [
    (EntryType.DIRECTORY, ".", b""),
    (EntryType.DIRECTORY, "etc", b""),
    (EntryType.REGULAR, "etc/foo", b"test"),
]


def build_cpio(entries: List[Entry]) -> bytes:
    """构造未压缩的 cpio 归档"""
    buffer = io.BytesIO()
    writer = CpioWriter(buffer)
    for entry_type, name, body in entries:
        writer.write_header(Header(
            name=name,
            mode=0o755 if entry_type == EntryType.DIRECTORY else 0o644,
            mtime=1234567890,
            size=len(body),
            type=entry_type,
        ))
        if body:
            writer.write(body)
    writer.close()
    return buffer.getvalue()


def build_image(entries: List[Entry]) -> bytes:
    """构造 gzip 压缩的 cpio 镜像"""
    return gzip.compress(build_cpio(entries))


def read_image(data: bytes) -> List[Entry]:
    """读取镜像的全部条目（不含结束标记）"""
    entries = []
    with ArchiveReader.open(io.BytesIO(data)) as reader:
        while True:
            header = reader.next_entry()
            if header.is_trailer():
                break
            body = b"".join(iter(lambda: reader.read(65536), b""))
            assert len(body) == header.size
            entries.append((header.type, header.name, body))
    return entries
