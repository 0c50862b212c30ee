"""Bounds-checked big-endian byte cursor over a single record."""
from __future__ import annotations

import struct

from mobiread.errors import MagicMismatch, TruncatedInput


_U16 = struct.Struct(">H")
_U32 = struct.Struct(">I")


class ByteCursor:
    """Sequential reader over an immutable byte buffer.

    Positions are absolute within ``data``. When ``data`` is one record's
    bytes, every seek is therefore relative to the record start.
    """

    __slots__ = ("data", "pos")

    def __init__(self, data: bytes, pos: int = 0):
        self.data = data
        self.pos = 0
        self.seek(pos)

    def __len__(self) -> int:
        return len(self.data)

    @property
    def remaining(self) -> int:
        return len(self.data) - self.pos

    def tell(self) -> int:
        return self.pos

    def seek(self, offset: int) -> None:
        if offset < 0 or offset > len(self.data):
            raise TruncatedInput(
                f"seek to {offset} outside buffer of {len(self.data)} bytes", offset
            )
        self.pos = offset

    def skip(self, n: int) -> None:
        """Advance up to ``n`` bytes, stopping at the end of the buffer."""
        self.pos = min(self.pos + n, len(self.data))

    def peek(self, n: int) -> bytes:
        """Return up to ``n`` bytes without advancing."""
        return bytes(self.data[self.pos:self.pos + n])

    def read_exact(self, n: int) -> bytes:
        if n > self.remaining:
            raise TruncatedInput(
                f"need {n} bytes, only {self.remaining} left", self.pos
            )
        chunk = bytes(self.data[self.pos:self.pos + n])
        self.pos += n
        return chunk

    def read_u8(self) -> int:
        return self.read_exact(1)[0]

    def read_u16(self) -> int:
        return _U16.unpack(self.read_exact(2))[0]

    def read_u32(self) -> int:
        return _U32.unpack(self.read_exact(4))[0]

    def expect_magic(self, magic: bytes) -> None:
        """Consume ``magic`` or raise MagicMismatch without advancing."""
        found = self.peek(len(magic))
        if found != magic:
            raise MagicMismatch(magic, found, self.pos)
        self.pos += len(magic)
