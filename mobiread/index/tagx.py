"""TAGX tag table: describes how an entry's control bytes map to tags.

Layout: b"TAGX" + header_length(4) + control_byte_count(4), then
(header_length - 12) / 4 rows of tag(1) + values_per_entry(1) + bitmask(1)
+ control_flag(1).
"""
from __future__ import annotations

from mobiread.errors import HeaderTooShort
from mobiread.mobi.constants import MAGIC_TAGX, TAGX_DESCRIPTOR_SIZE, TAGX_MIN_HEADER_SIZE
from mobiread.mobi.records import TagDescriptor, TagTable
from mobiread.pdb.cursor import ByteCursor


def parse_tagx(cur: ByteCursor) -> TagTable:
    """Decode a TAGX section at the cursor.

    Leaves the cursor at the end of the section as declared by its header
    length.
    """
    start = cur.tell()
    cur.expect_magic(MAGIC_TAGX)
    header_length = cur.read_u32()
    if header_length < TAGX_MIN_HEADER_SIZE:
        raise HeaderTooShort(
            f"TAGX header length {header_length} below {TAGX_MIN_HEADER_SIZE}", start + 4
        )
    control_byte_count = cur.read_u32()

    tag_count = (header_length - TAGX_MIN_HEADER_SIZE) // TAGX_DESCRIPTOR_SIZE
    tags = []
    for _ in range(tag_count):
        tag, values_per_entry, bitmask, control = cur.read_exact(TAGX_DESCRIPTOR_SIZE)
        tags.append(TagDescriptor(
            tag=tag,
            values_per_entry=values_per_entry,
            bitmask=bitmask,
            control_flag=control == 1,
        ))

    cur.seek(start + header_length)
    return TagTable(control_byte_count=control_byte_count, tags=tuple(tags))
