"""Variable-width integers used by INDX records.

Each byte carries 7 payload bits, most significant group first. Bit 0x80
marks the terminating byte: the last byte when reading forward, the first
byte when reading backward from the end of a buffer.
"""
from __future__ import annotations

from mobiread.errors import IntegerOverflow, TruncatedInput
from mobiread.mobi.constants import VWI_FLAG, VWI_MASK, VWI_MAX


def decode_vwi(data: bytes, offset: int = 0, forward: bool = True) -> tuple[int, int]:
    """Decode one integer and return ``(value, bytes_consumed)``.

    Forward decoding starts at ``offset``. Backward decoding reads the
    integer that ends at ``len(data) - offset``.
    """
    if forward:
        groups = []
        for b in data[offset:]:
            groups.append(b & VWI_MASK)
            if b & VWI_FLAG:
                break
        else:
            raise TruncatedInput("variable-width integer has no terminating byte", offset)
    else:
        groups = []
        for b in reversed(data[:len(data) - offset]):
            groups.append(b & VWI_MASK)
            if b & VWI_FLAG:
                break
        else:
            raise TruncatedInput("variable-width integer has no terminating byte", offset)
        groups.reverse()

    value = 0
    for g in groups:
        value = (value << 7) | g
        if value > VWI_MAX:
            raise IntegerOverflow(f"variable-width integer exceeds {VWI_MAX:#x}", offset)
    return value, len(groups)


def encode_vwi(value: int, forward: bool = True) -> bytes:
    if value < 0 or value > VWI_MAX:
        raise IntegerOverflow(f"cannot encode {value} as an unsigned 32-bit varint")
    groups = bytearray()
    while True:
        groups.append(value & VWI_MASK)
        value >>= 7
        if value == 0:
            break
    # groups are least-significant first here
    groups[0 if forward else -1] |= VWI_FLAG
    groups.reverse()
    return bytes(groups)
