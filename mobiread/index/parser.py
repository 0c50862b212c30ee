"""INDX record parser and index chain walker.

INDX header (big-endian u32 fields, offsets from the b"INDX" magic; 8..16
and 56..164 are unknown):
   4 header_length      16 index_type (0 normal, 2 inflection)
  20 idxt_offset        24 idxt_count          28 encoding
  32 language           36 total_entries_count 40 ordt_offset
  44 ligt_offset        48 ligt_entries_count  52 cncx_records_count
 164 ordt_type         168 ordt_entries_count  (when header_length >= 172)
 180 tagx_offset                               (when header_length >= 184)

The TAGX section normally starts right after the header, so a non-zero
tagx_offset equals header_length.

All section offsets are relative to the start of the record.
"""
from __future__ import annotations

from typing import Optional

from mobiread.config import DEFAULT_MAX_CHAIN_DEPTH
from mobiread.errors import (
    DecodeError,
    MissingTagTable,
    RecursionLimitExceeded,
    TruncatedInput,
    UnsupportedFieldKind,
)
from mobiread.index.cncx import parse_cncx
from mobiread.index.idxt import parse_idxt
from mobiread.index.ptagx import parse_ptagx
from mobiread.index.tagx import parse_tagx
from mobiread.mobi.constants import (
    ENC_UTF16,
    INDX_MIN_HEADER_SIZE,
    INDX_ORDT_FIELDS_END,
    INDX_ORDT_TYPE_OFFSET,
    INDX_TAGX_FIELD_END,
    INDX_TAGX_OFFSET_FIELD,
    MAGIC_INDX,
)
from mobiread.mobi.records import (
    AuxTable,
    IndexEntry,
    IndexHeader,
    IndexItem,
    IndexRecord,
    TagTable,
)
from mobiread.pdb.cursor import ByteCursor
from mobiread.pdb.store import RecordStore


def parse_index_header(cur: ByteCursor) -> IndexHeader:
    """Decode the INDX header at the start of the cursor's record."""
    cur.seek(0)
    cur.expect_magic(MAGIC_INDX)
    if len(cur) < INDX_MIN_HEADER_SIZE:
        raise TruncatedInput(
            f"INDX header needs {INDX_MIN_HEADER_SIZE} bytes, record has {len(cur)}", 0
        )
    header_length = cur.read_u32()
    cur.skip(8)  # unknown
    index_type = cur.read_u32()
    idxt_offset = cur.read_u32()
    idxt_count = cur.read_u32()
    encoding = cur.read_u32()
    language = cur.read_u32()
    total_entries_count = cur.read_u32()
    ordt_offset = cur.read_u32()
    ligt_offset = cur.read_u32()
    ligt_entries_count = cur.read_u32()
    cncx_records_count = cur.read_u32()

    ordt_type = ordt_entries_count = 0
    if header_length >= INDX_ORDT_FIELDS_END:
        cur.seek(INDX_ORDT_TYPE_OFFSET)
        ordt_type = cur.read_u32()
        ordt_entries_count = cur.read_u32()

    tagx_offset = 0
    if header_length >= INDX_TAGX_FIELD_END:
        cur.seek(INDX_TAGX_OFFSET_FIELD)
        tagx_offset = cur.read_u32()

    return IndexHeader(
        header_length=header_length,
        index_type=index_type,
        tagx_offset=tagx_offset,
        idxt_offset=idxt_offset,
        idxt_count=idxt_count,
        encoding=encoding,
        language=language,
        total_entries_count=total_entries_count,
        ordt_offset=ordt_offset,
        ligt_offset=ligt_offset,
        ligt_entries_count=ligt_entries_count,
        cncx_records_count=cncx_records_count,
        ordt_type=ordt_type,
        ordt_entries_count=ordt_entries_count,
    )


def _entry_bounds(offsets: tuple[int, ...], idxt_offset: int, record_len: int) -> list[tuple[int, int]]:
    """(start, end) of each entry; the last one ends where the IDXT begins."""
    bounds = []
    for i, start in enumerate(offsets):
        if i + 1 < len(offsets):
            end = offsets[i + 1]
        elif idxt_offset > start:
            end = idxt_offset
        else:
            end = record_len
        if end < start or end > record_len:
            raise TruncatedInput(f"entry {i} spans {start}..{end} outside record", start)
        bounds.append((start, end))
    return bounds


def _parse_items(
    cur: ByteCursor, header: IndexHeader, offsets: tuple[int, ...], table: TagTable
) -> tuple[IndexItem, ...]:
    items = []
    for start, end in _entry_bounds(offsets, header.idxt_offset, len(cur)):
        cur.seek(start)
        label_len = cur.read_u8()
        label = cur.read_exact(label_len)
        body_start = cur.tell()
        if body_start > end:
            raise TruncatedInput(f"label of entry at {start} overruns the entry", start)
        try:
            entries = parse_ptagx(cur.read_exact(end - body_start), table)
        except DecodeError as e:
            # Resolver offsets are payload-relative; control byte errors carry none
            if e.offset is None:
                e.offset = body_start
            else:
                e.offset += body_start + table.control_byte_count
            raise
        items.append(IndexItem(label=label, entries=entries))
    return tuple(items)


def parse_index_record(
    data: bytes, record_index: int = 0, inherited_tagx: Optional[TagTable] = None
) -> IndexRecord:
    """Decode one INDX record.

    ``inherited_tagx`` is used when the record carries no TAGX of its own
    (tagx_offset 0), as happens for continuation records in a chain.
    """
    cur = ByteCursor(data)
    try:
        header = parse_index_header(cur)

        if header.ordt_entries_count > 0 or header.encoding == ENC_UTF16:
            raise UnsupportedFieldKind("ORDT", INDX_ORDT_TYPE_OFFSET)
        if header.ligt_entries_count > 0:
            raise UnsupportedFieldKind("LIGT", 48)

        tag_table = inherited_tagx
        cncx: Optional[AuxTable] = None
        if header.tagx_offset != 0:
            cur.seek(header.tagx_offset)
            tag_table = parse_tagx(cur)
            # CNCX sits directly after the tag table
            if header.cncx_records_count > 0:
                cncx = parse_cncx(cur)

        offsets: tuple[int, ...] = ()
        if header.idxt_count > 0:
            cur.seek(header.idxt_offset)
            offsets = parse_idxt(cur, header.idxt_count)

        items: tuple[IndexItem, ...] = ()
        if header.is_normal and offsets:
            if tag_table is None:
                raise MissingTagTable(
                    "index entries present but no TAGX available", INDX_TAGX_OFFSET_FIELD
                )
            items = _parse_items(cur, header, offsets, tag_table)
    except DecodeError as e:
        if e.record_index is None:
            e.record_index = record_index
        raise

    return IndexRecord(
        record_index=record_index,
        header=header,
        tag_table=tag_table,
        cncx=cncx,
        offsets=offsets,
        items=items,
    )


def parse_index_records(
    store: RecordStore, start_record: int, max_depth: Optional[int] = None
) -> tuple[IndexRecord, ...]:
    """Decode the index starting at ``start_record``, following inflection chains.

    An inflection-type record is followed by the next physical record, so a
    chain only moves forward and ends at the last record at the latest. The
    walk stops with RecursionLimitExceeded after ``max_depth`` records
    (bounded by the store's record count).
    """
    limit = min(max_depth or DEFAULT_MAX_CHAIN_DEPTH, store.record_count)
    records: list[IndexRecord] = []
    tagx: Optional[TagTable] = None
    n = start_record

    while True:
        if len(records) >= limit:
            raise RecursionLimitExceeded(
                f"index chain from record {start_record} longer than {limit} records"
            )

        try:
            data = store.record(n)
        except DecodeError as e:
            e.record_index = n
            raise

        record = parse_index_record(data, n, inherited_tagx=tagx)
        records.append(record)
        tagx = record.tag_table

        if not record.header.is_inflection:
            break
        n += 1

    return tuple(records)


def parse_index_chain(
    store: RecordStore, start_record: int, max_depth: Optional[int] = None
) -> tuple[IndexEntry, ...]:
    """Decode an index chain into one ordered sequence of (tag, value) entries."""
    records = parse_index_records(store, start_record, max_depth)
    return tuple(e for r in records for e in r.entries)
