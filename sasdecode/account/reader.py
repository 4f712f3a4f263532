"""Forward-only byte cursor and field readers for SAS account data."""
from __future__ import annotations

import struct

from sasdecode.account.constants import IDENTIFIER_SIZE, LENGTH_PREFIX_SIZE
from sasdecode.account.records import Identifier, InvalidUtf8, OutOfBounds


# Struct formats (little-endian)
_UINT8 = struct.Struct("<B")
_UINT32 = struct.Struct("<I")
_INT64 = struct.Struct("<q")


class ByteCursor:
    """Sequential reader over an immutable buffer.

    Every primitive read either returns the requested bytes and advances the offset,
    or raises OutOfBounds and leaves the offset untouched. There is no way
    to move backwards.
    """

    __slots__ = ("_data", "_pos")

    def __init__(self, data: bytes, offset: int = 0):
        if offset < 0 or offset > len(data):
            raise ValueError(f"Start offset {offset} outside buffer of {len(data)} bytes")
        self._data = memoryview(data).toreadonly()
        self._pos = offset

    @property
    def offset(self) -> int:
        return self._pos

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    def read_fixed(self, n: int) -> bytes:
        if n < 0 or n > self.remaining:
            raise OutOfBounds(self._pos, n, self.remaining)
        chunk = self._data[self._pos:self._pos + n].tobytes()
        self._pos += n
        return chunk

    def _unpack(self, fmt: struct.Struct) -> int:
        if fmt.size > self.remaining:
            raise OutOfBounds(self._pos, fmt.size, self.remaining)
        value = fmt.unpack_from(self._data, self._pos)[0]
        self._pos += fmt.size
        return value

    def read_u8(self) -> int:
        return self._unpack(_UINT8)

    def read_u32_le(self) -> int:
        return self._unpack(_UINT32)

    def read_i64_le(self) -> int:
        return self._unpack(_INT64)

    def read_length_prefixed_bytes(self) -> bytes:
        """u32 LE length followed by that many bytes."""
        return self.read_fixed(self.read_u32_le())


def read_identifier(cursor: ByteCursor) -> Identifier:
    return Identifier(cursor.read_fixed(IDENTIFIER_SIZE))


def read_string(cursor: ByteCursor, strict: bool = False) -> str:
    """Read a length-prefixed UTF-8 string.

    Invalid UTF-8 is replaced with U+FFFD unless strict is set, in which
    case InvalidUtf8 is raised with the offset of the string bytes.
    """
    start = cursor.offset
    raw = cursor.read_length_prefixed_bytes()
    if strict:
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidUtf8(start + LENGTH_PREFIX_SIZE) from e
    return raw.decode("utf-8", errors="replace")


def read_identifier_vec(cursor: ByteCursor) -> tuple[Identifier, ...]:
    """u32 LE count followed by count identifiers, in stored order."""
    count = cursor.read_u32_le()
    return tuple(read_identifier(cursor) for _ in range(count))


def read_flag(cursor: ByteCursor) -> bool:
    """Single byte, true only when it equals 1."""
    return cursor.read_u8() == 1
