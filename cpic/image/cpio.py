"""
cpio 容器编解码器

实现 SVR4 "newc" 格式（magic 070701）的顺序读写。

条目布局：
    [110 字节 ASCII 头][文件名 + NUL][填充到 4 字节][数据][填充到 4 字节]

归档以名为 TRAILER!!! 的条目结束。
"""

from dataclasses import dataclass, replace
from enum import IntEnum
from typing import BinaryIO, Optional

NEWC_MAGIC = b"070701"
CRC_MAGIC = b"070702"
HEADER_SIZE = 110
TRAILER_NAME = "TRAILER!!!"

# 头部中 magic 之后的 13 个 8 位十六进制字段
_FIELDS = (
    "inode", "mode", "uid", "gid", "nlink", "mtime", "size",
    "dev_major", "dev_minor", "rdev_major", "rdev_minor", "namesize", "check",
)

_TYPE_MASK = 0o170000
_PERM_MASK = 0o7777
_MAX_FIELD = 0xFFFFFFFF


class CpioError(Exception):
    """cpio 编解码错误基类"""
    pass


class CpioDecodeError(CpioError):
    """cpio 解码错误（格式损坏或数据截断）"""
    pass


class CpioEncodeError(CpioError):
    """cpio 编码错误（条目长度不符等）"""
    pass


class EntryType(IntEnum):
    """条目类型，取值即 POSIX S_IF* 类型位"""
    FIFO = 0o010000
    CHAR_DEVICE = 0o020000
    DIRECTORY = 0o040000
    BLOCK_DEVICE = 0o060000
    REGULAR = 0o100000
    SYMLINK = 0o120000
    SOCKET = 0o140000


@dataclass
class Header:
    """条目头信息

    mode 只保存权限位，文件类型保存在 type 中。
    """
    name: str
    mode: int = 0o644
    mtime: int = 0
    size: int = 0
    type: EntryType = EntryType.REGULAR
    inode: int = 0
    uid: int = 0
    gid: int = 0
    nlink: int = 1
    dev_major: int = 0
    dev_minor: int = 0
    rdev_major: int = 0
    rdev_minor: int = 0

    def is_trailer(self) -> bool:
        """是否为结束标记"""
        return self.name == TRAILER_NAME

    def is_dir(self) -> bool:
        return self.type == EntryType.DIRECTORY

    @property
    def display_name(self) -> str:
        """可打印的条目名，非 UTF-8 字节显示为 \\xNN"""
        return self.name.encode("utf-8", "surrogateescape").decode("utf-8", "backslashreplace")

    @classmethod
    def trailer(cls) -> "Header":
        """创建结束标记头"""
        return cls(name=TRAILER_NAME, mode=0, nlink=1)


def _pad(length: int) -> int:
    """对齐到 4 字节所需的填充长度"""
    return (4 - length % 4) % 4


def encode_header(header: Header) -> bytes:
    """编码条目头（含文件名与填充）"""
    name_bytes = header.name.encode("utf-8", errors="surrogateescape") + b"\x00"
    values = {
        "inode": header.inode,
        "mode": 0 if header.is_trailer() else int(header.type) | (header.mode & _PERM_MASK),
        "uid": header.uid,
        "gid": header.gid,
        "nlink": header.nlink,
        "mtime": header.mtime,
        "size": header.size,
        "dev_major": header.dev_major,
        "dev_minor": header.dev_minor,
        "rdev_major": header.rdev_major,
        "rdev_minor": header.rdev_minor,
        "namesize": len(name_bytes),
        "check": 0,
    }

    fields = []
    for field in _FIELDS:
        value = values[field]
        if not 0 <= value <= _MAX_FIELD:
            raise CpioEncodeError(f"字段 {field} 超出范围: {value} ({header.display_name})")
        fields.append(b"%08X" % value)

    raw = NEWC_MAGIC + b"".join(fields) + name_bytes
    return raw + b"\x00" * _pad(len(raw))


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    """读取恰好 size 字节，遇到流结束时返回已读部分"""
    chunks = []
    remaining = size
    while remaining > 0:
        chunk = stream.read(remaining)
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def decode_header(stream: BinaryIO) -> Header:
    """从流中解码下一个条目头（含文件名与填充）

    Raises:
        CpioDecodeError: 头部损坏，或在结束标记之前遇到流结束
    """
    raw = _read_exact(stream, HEADER_SIZE)
    if not raw:
        raise CpioDecodeError("归档在结束标记 TRAILER!!! 之前意外结束")
    if len(raw) != HEADER_SIZE:
        raise CpioDecodeError(f"条目头被截断: 期望 {HEADER_SIZE} 字节，实际 {len(raw)} 字节")

    magic = raw[:6]
    if magic not in (NEWC_MAGIC, CRC_MAGIC):
        raise CpioDecodeError(f"无效的 cpio magic: {magic!r}")

    values = {}
    for index, field in enumerate(_FIELDS):
        start = 6 + index * 8
        text = raw[start:start + 8]
        try:
            values[field] = int(text.decode("ascii"), 16)
        except (UnicodeDecodeError, ValueError):
            raise CpioDecodeError(f"字段 {field} 不是合法的十六进制数: {text!r}")

    namesize = values["namesize"]
    if namesize == 0:
        raise CpioDecodeError("文件名长度为 0")

    name_raw = _read_exact(stream, namesize)
    if len(name_raw) != namesize:
        raise CpioDecodeError("文件名被截断")
    padding = _pad(HEADER_SIZE + namesize)
    if len(_read_exact(stream, padding)) != padding:
        raise CpioDecodeError("文件名填充被截断")

    name = name_raw.rstrip(b"\x00").decode("utf-8", errors="surrogateescape")
    mode = values["mode"]
    file_type = mode & _TYPE_MASK

    if name == TRAILER_NAME:
        return Header.trailer()

    try:
        entry_type = EntryType(file_type)
    except ValueError:
        printable = name_raw.rstrip(b"\x00").decode("utf-8", "backslashreplace")
        raise CpioDecodeError(f"未知的条目类型 {file_type:o}: {printable}")

    return Header(
        name=name,
        mode=mode & _PERM_MASK,
        mtime=values["mtime"],
        size=values["size"],
        type=entry_type,
        inode=values["inode"],
        uid=values["uid"],
        gid=values["gid"],
        nlink=values["nlink"],
        dev_major=values["dev_major"],
        dev_minor=values["dev_minor"],
        rdev_major=values["rdev_major"],
        rdev_minor=values["rdev_minor"],
    )


class CpioReader:
    """cpio 顺序读取器

    next() 返回下一个条目头，read() 读取当前条目的数据，
    读取量永远不会越过 header.size。
    """

    def __init__(self, stream: BinaryIO):
        self._stream = stream
        self._remaining = 0
        self._padding = 0
        self._done = False

    def next(self) -> Header:
        """前进到下一个条目

        未读完的当前条目数据会被跳过。

        Returns:
            Header: 条目头；遇到结束标记时返回 is_trailer() 为真的头

        Raises:
            CpioDecodeError: 格式损坏或数据截断
        """
        if self._done:
            return Header.trailer()

        self._skip_rest()
        header = decode_header(self._stream)

        if header.is_trailer():
            self._done = True
            return header

        self._remaining = header.size
        self._padding = _pad(header.size)
        return header

    def read(self, size: int = -1) -> bytes:
        """读取当前条目的数据

        Args:
            size: 最多读取的字节数，-1 表示读取剩余全部

        Returns:
            bytes: 数据；当前条目读完时返回空串

        Raises:
            CpioDecodeError: 流在条目数据中途结束
        """
        if self._remaining == 0:
            return b""
        if size < 0 or size > self._remaining:
            size = self._remaining

        data = self._stream.read(size)
        if not data:
            raise CpioDecodeError(f"条目数据被截断: 仍缺少 {self._remaining} 字节")

        self._remaining -= len(data)
        return data

    def _skip_rest(self) -> None:
        """跳过当前条目剩余数据与填充"""
        to_skip = self._remaining + self._padding
        while to_skip > 0:
            chunk = self._stream.read(min(to_skip, 64 * 1024))
            if not chunk:
                raise CpioDecodeError("跳过条目数据时归档意外结束")
            to_skip -= len(chunk)
        self._remaining = 0
        self._padding = 0


class CpioWriter:
    """cpio 顺序写入器

    每个条目必须恰好写入 header.size 字节的数据，
    close() 写入结束标记但不关闭底层流。
    """

    def __init__(self, stream: BinaryIO):
        self._stream = stream
        self._remaining = 0
        self._padding = 0
        self._current: Optional[str] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def write_header(self, header: Header) -> None:
        """写入条目头

        Raises:
            CpioEncodeError: 上一个条目数据不完整、写入器已关闭或试图写入结束标记
        """
        if self._closed:
            raise CpioEncodeError("写入器已关闭")
        if header.is_trailer():
            raise CpioEncodeError("结束标记只能由 close() 写入")
        self._check_complete()

        if header.is_dir() and header.size != 0:
            header = replace(header, size=0)

        self._stream.write(encode_header(header))
        self._current = header.display_name
        self._remaining = header.size
        self._padding = _pad(header.size)
        self._finish_entry()

    def write(self, data: bytes) -> int:
        """写入当前条目的数据

        Returns:
            int: 写入的字节数

        Raises:
            CpioEncodeError: 数据超过头部声明的长度
        """
        if self._closed:
            raise CpioEncodeError("写入器已关闭")
        if len(data) > self._remaining:
            raise CpioEncodeError(
                f"条目 {self._current} 数据过长: 剩余 {self._remaining} 字节，试图写入 {len(data)} 字节"
            )

        self._stream.write(data)
        self._remaining -= len(data)
        self._finish_entry()
        return len(data)

    def close(self) -> None:
        """写入结束标记

        Raises:
            CpioEncodeError: 最后一个条目数据不完整
        """
        if self._closed:
            return
        self._check_complete()
        self._stream.write(encode_header(Header.trailer()))
        self._closed = True

    def _finish_entry(self) -> None:
        if self._remaining == 0 and self._padding:
            self._stream.write(b"\x00" * self._padding)
            self._padding = 0

    def _check_complete(self) -> None:
        if self._remaining:
            raise CpioEncodeError(f"条目 {self._current} 数据不完整: 仍缺少 {self._remaining} 字节")
