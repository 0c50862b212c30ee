"""IDXT offset table: one big-endian u16 per index entry, record-relative."""
from __future__ import annotations

import struct

from mobiread.mobi.constants import MAGIC_IDXT
from mobiread.pdb.cursor import ByteCursor


def parse_idxt(cur: ByteCursor, count: int) -> tuple[int, ...]:
    """Read ``count`` entry offsets; the count comes from the INDX header."""
    cur.expect_magic(MAGIC_IDXT)
    raw = cur.read_exact(count * 2)
    offsets = struct.unpack(f">{count}H", raw)
    # Section is padded to a multiple of 4
    cur.skip(2)
    return offsets
