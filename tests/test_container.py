"""Tests for the PDB record store, record 0 headers and MobiReader."""
from __future__ import annotations

from pathlib import Path

import pytest

from builders import build_pdb, build_record0
from mobiread.errors import DecodeError, EncryptedBook, MagicMismatch, OutOfRange, TruncatedInput
from mobiread.mobi.header import parse_book_header, parse_mobi_header
from mobiread.mobi.reader import MobiReader
from mobiread.pdb.store import RecordStore, parse_pdb_header


class TestRecordStore:
    def test_lengths_from_offsets(self) -> None:
        store = RecordStore(bytes(300), [0, 100, 250])
        assert store.span(0).length == 100
        assert store.span(1).length == 150
        assert store.span(2).length == 50
        assert store.span(2).end == 300

    def test_out_of_range(self) -> None:
        store = RecordStore(bytes(300), [0, 100, 250])
        with pytest.raises(OutOfRange):
            store.span(3)
        with pytest.raises(OutOfRange):
            store.span(-1)

    def test_record_bytes(self) -> None:
        store = RecordStore(b"aaabbbbcc", [0, 3, 7])
        assert store.record(1) == b"bbbb"
        assert store.record(2) == b"cc"

    def test_offsets_must_increase(self) -> None:
        with pytest.raises(DecodeError):
            RecordStore(bytes(300), [0, 100, 100])

    def test_needs_a_record(self) -> None:
        with pytest.raises(DecodeError):
            RecordStore(bytes(10), [])

    def test_offset_past_end(self) -> None:
        with pytest.raises(TruncatedInput):
            RecordStore(bytes(10), [0, 20])


class TestPdbHeader:
    def test_parses_header_and_entries(self) -> None:
        data = build_pdb([b"first", b"second"], name="My_Book")
        header = parse_pdb_header(data)
        assert header.name == "My_Book"
        assert header.type == b"BOOK"
        assert header.creator == b"MOBI"
        assert header.record_count == 2
        assert header.entries[1].unique_id == 2
        assert data[header.offsets[1]:header.offsets[1] + 6] == b"second"

    def test_from_bytes(self) -> None:
        header, store = RecordStore.from_bytes(build_pdb([b"first", b"second"]))
        assert store.record_count == header.record_count == 2
        assert store.record(0) == b"first"
        assert store.record(1) == b"second"

    def test_from_path(self, tmp_path: Path) -> None:
        path = tmp_path / "x.pdb"
        path.write_bytes(build_pdb([b"only"]))
        _, store = RecordStore.from_path(path)
        assert store.record(0) == b"only"

    def test_too_short(self) -> None:
        with pytest.raises(TruncatedInput):
            parse_pdb_header(bytes(40))

    def test_zero_records(self) -> None:
        data = bytearray(build_pdb([b"x"]))
        data[76:78] = b"\x00\x00"
        with pytest.raises(DecodeError):
            parse_pdb_header(bytes(data))


class TestBookHeader:
    def test_full_name_and_fields(self) -> None:
        header = parse_book_header(build_record0(title="Ünïcode Title", text_length=1234))
        assert header.full_name == "Ünïcode Title"
        assert header.palmdoc.text_length == 1234
        assert header.mobi.header_length == 232
        assert header.encoding == 65001
        assert header.exth == ()

    def test_exth_values(self) -> None:
        header = parse_book_header(build_record0(exth=[
            (100, b"Jane Author"),
            (201, (7).to_bytes(4, "big")),
            (4242, b"\xde\xad"),
        ]))
        assert [r.type for r in header.exth] == [100, 201, 4242]
        assert header.get_exth("author").value() == "Jane Author"
        assert header.get_exth("cover_offset").value() == 7
        assert header.exth[2].value() == b"\xde\xad"
        assert header.full_name == "Test Book"

    def test_index_record_offset(self) -> None:
        assert parse_book_header(build_record0(indx_record=5)).index_record_offset == 5
        assert parse_book_header(build_record0()).index_record_offset is None
        assert parse_book_header(build_record0(indx_record=0)).index_record_offset is None

    def test_encrypted(self) -> None:
        with pytest.raises(EncryptedBook):
            parse_book_header(build_record0(encryption=2))

    def test_missing_mobi_magic(self) -> None:
        data = bytearray(build_record0())
        data[16:20] = b"XXXX"
        with pytest.raises(MagicMismatch):
            parse_mobi_header(bytes(data))

    def test_short_header_fields_absent(self) -> None:
        data = bytearray(build_record0(indx_record=5))
        data[20:24] = (116).to_bytes(4, "big")
        mobi = parse_mobi_header(bytes(data))
        assert mobi.exth_flags == 0
        assert mobi.indx_record_offset == 0xFFFFFFFF


class TestMobiReader:
    def test_open_book(self, book_path: Path) -> None:
        reader = MobiReader(book_path)
        assert reader.store.record_count == 3
        assert reader.header.full_name == "Test Book"
        assert reader.has_index

    def test_index_entries(self, book_bytes: bytes) -> None:
        reader = MobiReader.from_bytes(book_bytes)
        records = reader.index_records()
        assert len(records) == 1
        assert len(records[0].items) == 2
        assert reader.index_entries() == records[0].entries

    def test_no_index(self) -> None:
        reader = MobiReader.from_bytes(build_pdb([build_record0()]))
        assert not reader.has_index
        assert reader.index_records() == ()
        assert reader.index_entries() == ()
