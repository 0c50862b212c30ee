"""CNCX label blob that follows the tag table in an INDX record.

Layout: length(2) + label bytes + NUL(1) + ncx_count(4).
"""
from __future__ import annotations

from mobiread.mobi.records import AuxTable
from mobiread.pdb.cursor import ByteCursor


def parse_cncx(cur: ByteCursor) -> AuxTable:
    length = cur.read_u16()
    data = cur.read_exact(length)
    cur.read_exact(1)  # NUL terminator
    ncx_count = cur.read_u32()
    return AuxTable(length=length, data=data, ncx_count=ncx_count)


def split_labels(table: AuxTable, encoding: str = "utf-8") -> list[str]:
    """Split the blob into its NUL-separated labels."""
    return [
        part.decode(encoding, errors="replace")
        for part in table.data.split(b"\x00")
        if part
    ]
