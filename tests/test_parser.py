"""Tests for mobiread.index.parser: INDX records and index chains."""
from __future__ import annotations

import struct

import pytest

from builders import NCX_TAGS, build_indx, build_tagx, ncx_entry
from mobiread.errors import (
    HeaderTooShort,
    MagicMismatch,
    MissingTagTable,
    OutOfRange,
    RecursionLimitExceeded,
    TruncatedInput,
    UnsupportedFieldKind,
)
from mobiread.index.parser import (
    parse_index_chain,
    parse_index_header,
    parse_index_record,
    parse_index_records,
)
from mobiread.mobi.records import IndexEntry
from mobiread.pdb.cursor import ByteCursor
from mobiread.pdb.store import RecordStore


def store_of(*records: bytes) -> RecordStore:
    data = b""
    offsets = []
    for rec in records:
        offsets.append(len(data))
        data += rec
    return RecordStore(data, offsets)


def ncx_record(index_type: int = 0, with_tagx: bool = True, base: int = 0) -> bytes:
    return build_indx(
        entries=[ncx_entry(b"%03d" % (base + i), base + i * 100, 100, i, 0) for i in range(2)],
        tagx=build_tagx(1, NCX_TAGS) if with_tagx else None,
        index_type=index_type,
    )


def written_indx(header_length: int = 192) -> bytes:
    """An INDX record laid out field by field, without build_indx."""
    tagx = build_tagx(1, NCX_TAGS)
    entry = ncx_entry(b"A", 0, 500, 0, 1)
    entry_offset = header_length + len(tagx)
    idxt_offset = entry_offset + len(entry)

    header = bytearray(header_length)
    header[0:4] = b"INDX"
    struct.pack_into(">IIII", header, 4, header_length, 0, 1, 0)
    struct.pack_into(">IIIII", header, 20, idxt_offset, 1, 65001, 9, 1)
    if header_length >= 184:
        struct.pack_into(">I", header, 180, header_length)
    idxt = b"IDXT" + struct.pack(">H", entry_offset) + b"\x00\x00"
    return bytes(header) + tagx + entry + idxt


class TestParseIndexRecord:
    def test_header_fields(self, ncx_index_record: bytes) -> None:
        rec = parse_index_record(ncx_index_record, record_index=3)
        assert rec.record_index == 3
        assert rec.header.header_length == 192
        assert rec.header.is_normal
        assert rec.header.tagx_offset == 192
        assert rec.header.idxt_count == 2
        assert rec.header.encoding == 65001

    def test_written_layout(self) -> None:
        data = written_indx()
        assert data[12:16] == b"\x00\x00\x00\x01"
        rec = parse_index_record(data)
        assert rec.header.index_type == 0
        assert rec.header.tagx_offset == 192
        assert rec.tag_table.control_byte_count == 1
        assert [item.label for item in rec.items] == [b"A"]
        assert rec.items[0].as_dict() == {1: [0], 2: [500], 3: [0], 4: [1]}

    def test_inflection_type_at_byte_16(self) -> None:
        data = bytearray(written_indx())
        struct.pack_into(">I", data, 16, 2)
        rec = parse_index_record(bytes(data))
        assert rec.header.is_inflection
        assert rec.items == ()

    def test_short_header_has_no_tagx_field(self) -> None:
        header = parse_index_header(ByteCursor(written_indx(header_length=172)))
        assert header.tagx_offset == 0
        assert header.idxt_count == 1
        with pytest.raises(MissingTagTable):
            parse_index_record(written_indx(header_length=172))

    def test_short_header_inherits_tag_table(self) -> None:
        tagx = parse_index_record(written_indx()).tag_table
        rec = parse_index_record(written_indx(header_length=172), inherited_tagx=tagx)
        assert rec.items[0].values(2) == [500]

    def test_items_and_labels(self, ncx_index_record: bytes) -> None:
        rec = parse_index_record(ncx_index_record)
        assert [item.label for item in rec.items] == [b"000", b"001"]
        assert rec.items[1].as_dict() == {1: [1200], 2: [800], 3: [10], 4: [1]}

    def test_flat_entries(self, ncx_index_record: bytes) -> None:
        rec = parse_index_record(ncx_index_record)
        assert rec.entries[:4] == (
            IndexEntry(1, 0), IndexEntry(2, 1200), IndexEntry(3, 0), IndexEntry(4, 0),
        )
        assert len(rec.entries) == 8

    def test_cncx_after_tagx(self, ncx_index_record: bytes) -> None:
        rec = parse_index_record(ncx_index_record)
        assert rec.cncx is not None
        assert rec.cncx.data == b"Chapter 1\x00Chapter 2"
        assert rec.cncx.ncx_count == 2

    def test_offsets_are_record_relative(self, ncx_index_record: bytes) -> None:
        rec = parse_index_record(ncx_index_record)
        assert all(o >= 192 for o in rec.offsets)
        assert ncx_index_record[rec.offsets[0]] == 3  # label length

    def test_record_without_entries(self) -> None:
        rec = parse_index_record(build_indx(tagx=build_tagx(1, NCX_TAGS)))
        assert rec.items == ()
        assert rec.tag_table is not None

    def test_inflection_record_resolves_no_entries(self) -> None:
        rec = parse_index_record(ncx_record(index_type=2))
        assert rec.offsets
        assert rec.items == ()

    def test_bad_indx_magic(self, ncx_index_record: bytes) -> None:
        with pytest.raises(MagicMismatch) as exc:
            parse_index_record(b"XNDX" + ncx_index_record[4:], record_index=4)
        assert exc.value.record_index == 4
        assert exc.value.offset == 0

    def test_bad_tagx_magic(self, ncx_index_record: bytes) -> None:
        data = ncx_index_record[:192] + b"TAGZ" + ncx_index_record[196:]
        with pytest.raises(MagicMismatch):
            parse_index_record(data)

    def test_bad_idxt_magic(self) -> None:
        data = build_indx(
            entries=[ncx_entry(b"a", 0, 1, 0, 0)],
            tagx=build_tagx(1, NCX_TAGS),
            idxt_magic=b"IDXQ",
        )
        with pytest.raises(MagicMismatch):
            parse_index_record(data)

    def test_tagx_header_too_short(self) -> None:
        data = build_indx(tagx=b"TAGX" + (4).to_bytes(4, "big") + bytes(4))
        with pytest.raises(HeaderTooShort):
            parse_index_record(data)

    def test_truncated_header(self) -> None:
        with pytest.raises(TruncatedInput):
            parse_index_record(b"INDX" + bytes(20))

    @pytest.mark.parametrize("kwargs,kind", [
        ({"ordt_entries": 3}, "ORDT"),
        ({"encoding": 65002}, "ORDT"),
        ({"ligt_entries": 1}, "LIGT"),
    ])
    def test_unsupported_field_kinds(self, kwargs: dict, kind: str) -> None:
        data = build_indx(
            entries=[ncx_entry(b"a", 0, 1, 0, 0)], tagx=build_tagx(1, NCX_TAGS), **kwargs
        )
        with pytest.raises(UnsupportedFieldKind) as exc:
            parse_index_record(data)
        assert exc.value.kind == kind

    @pytest.mark.parametrize("kwargs", [{"ordt_entries": 3}, {"ligt_entries": 1}])
    def test_unsupported_field_kind_before_tag_table(self, kwargs: dict) -> None:
        data = build_indx(
            entries=[ncx_entry(b"a", 0, 1, 0, 0)], tagx=build_tagx(1, NCX_TAGS), **kwargs
        )
        data = data[:192] + b"TAGZ" + data[196:]
        with pytest.raises(UnsupportedFieldKind):
            parse_index_record(data)

    def test_missing_tag_table(self) -> None:
        with pytest.raises(MissingTagTable) as exc:
            parse_index_record(ncx_record(with_tagx=False))
        assert exc.value.offset == 180

    def test_inherited_tag_table(self) -> None:
        tagx = parse_index_record(ncx_record()).tag_table
        rec = parse_index_record(ncx_record(with_tagx=False), inherited_tagx=tagx)
        assert len(rec.items) == 2
        assert rec.tag_table is tagx

    def test_error_offset_points_into_record(self) -> None:
        # Entry declares a value but has no payload
        entry = bytes([1]) + b"a" + b"\x01"
        data = build_indx(entries=[entry], tagx=build_tagx(1, NCX_TAGS))
        with pytest.raises(TruncatedInput) as exc:
            parse_index_record(data)
        assert exc.value.offset is not None
        assert exc.value.offset >= 192


class TestParseIndexChain:
    def test_normal_record_only_itself(self) -> None:
        store = store_of(b"record0", ncx_record(base=0), ncx_record(base=10))
        records = parse_index_records(store, 1)
        assert [r.record_index for r in records] == [1]
        assert parse_index_chain(store, 1) == records[0].entries

    def test_inflection_continues_to_next_record(self) -> None:
        store = store_of(
            b"record0",
            ncx_record(index_type=2),
            ncx_record(index_type=2, with_tagx=False, base=10),
            ncx_record(with_tagx=False, base=20),
        )
        records = parse_index_records(store, 1)
        assert [r.record_index for r in records] == [1, 2, 3]
        expected = records[0].entries + records[1].entries + records[2].entries
        assert parse_index_chain(store, 1) == expected
        assert [item.label for item in records[2].items] == [b"020", b"021"]

    def test_chain_running_off_the_store(self) -> None:
        store = store_of(b"record0", ncx_record(index_type=2))
        with pytest.raises(OutOfRange) as exc:
            parse_index_chain(store, 1)
        assert exc.value.record_index == 2

    def test_depth_limit(self) -> None:
        store = store_of(
            b"record0",
            ncx_record(index_type=2),
            ncx_record(index_type=2, with_tagx=False),
            ncx_record(with_tagx=False),
        )
        with pytest.raises(RecursionLimitExceeded):
            parse_index_chain(store, 1, max_depth=2)
        assert len(parse_index_chain(store, 1, max_depth=3)) == 8

    def test_start_out_of_range(self) -> None:
        with pytest.raises(OutOfRange):
            parse_index_chain(store_of(b"record0"), 5)

    def test_failure_in_chain_returns_nothing(self) -> None:
        bad = build_indx(
            entries=[ncx_entry(b"a", 0, 1, 0, 0)], tagx=build_tagx(1, NCX_TAGS), ligt_entries=1
        )
        store = store_of(b"record0", ncx_record(index_type=2), bad)
        with pytest.raises(UnsupportedFieldKind) as exc:
            parse_index_chain(store, 1)
        assert exc.value.record_index == 2
