"""Record 0 decoding: PalmDOC header, MOBI header, EXTH metadata and full name.

Layout of record 0:
  PalmDOC header (16 bytes): compression(2) + unused(2) + text_length(4) +
      text_record_count(2) + text_record_size(2) + encryption(2) + unknown(2)
  MOBI header (header_length bytes, starts with b"MOBI")
  EXTH block (only when MOBI exth_flags has bit 0x40 set)
  Full name at record-relative full_name_offset
"""
from __future__ import annotations

import struct

from mobiread.errors import DecodeError, EncryptedBook, TruncatedInput
from mobiread.mobi.constants import (
    EXTH_FLAG,
    MAGIC_EXTH,
    MAGIC_MOBI,
    NULL_INDEX,
    PALMDOC_HEADER_SIZE,
)
from mobiread.mobi.enums import TEXT_ENCODING, exth_tag
from mobiread.mobi.records import BookHeader, ExthRecord, MobiHeader, PalmDocHeader
from mobiread.pdb.cursor import ByteCursor


_PALMDOC = struct.Struct(">HHIHHHH")
_U32 = struct.Struct(">I")

# MOBI header field -> byte offset from the b"MOBI" magic
_MOBI_FIELDS = {
    "header_length": 4,
    "mobi_type": 8,
    "text_encoding": 12,
    "unique_id": 16,
    "file_version": 20,
    "first_non_book_index": 64,
    "full_name_offset": 68,
    "full_name_length": 72,
    "locale": 76,
    "first_image_index": 92,
    "exth_flags": 112,
    "extra_record_data_flags": 224,
    "indx_record_offset": 228,
}

# Fields that mean "none" when missing from a short header
_NULL_DEFAULTS = {"first_non_book_index", "first_image_index", "indx_record_offset"}


def parse_palmdoc_header(record0: bytes) -> PalmDocHeader:
    if len(record0) < PALMDOC_HEADER_SIZE:
        raise TruncatedInput("record 0 too short for PalmDOC header", 0)
    compression, _, text_length, record_count, record_size, encryption, _ = \
        _PALMDOC.unpack_from(record0, 0)
    if encryption != 0:
        raise EncryptedBook(f"text records are encrypted (scheme {encryption})", 12)
    return PalmDocHeader(
        compression=compression,
        text_length=text_length,
        text_record_count=record_count,
        text_record_size=record_size,
        encryption=encryption,
    )


def parse_mobi_header(record0: bytes) -> MobiHeader:
    """Decode the MOBI header following the PalmDOC header.

    Fields beyond the declared header length are treated as absent.
    """
    cur = ByteCursor(record0, PALMDOC_HEADER_SIZE)
    cur.expect_magic(MAGIC_MOBI)
    header_length = cur.read_u32()

    values: dict[str, int] = {}
    for name, rel in _MOBI_FIELDS.items():
        pos = PALMDOC_HEADER_SIZE + rel
        if rel + 4 <= header_length and pos + 4 <= len(record0):
            values[name] = _U32.unpack_from(record0, pos)[0]
        else:
            values[name] = NULL_INDEX if name in _NULL_DEFAULTS else 0
    values["header_length"] = header_length
    return MobiHeader(**values)


def parse_exth(record0: bytes, offset: int) -> tuple[ExthRecord, ...]:
    """Decode the EXTH block starting at ``offset`` within record 0."""
    cur = ByteCursor(record0, offset)
    cur.expect_magic(MAGIC_EXTH)
    cur.read_u32()  # header length, includes padding
    count = cur.read_u32()

    records = []
    for _ in range(count):
        rec_start = cur.tell()
        rec_type = cur.read_u32()
        rec_len = cur.read_u32()
        if rec_len < 8:
            raise DecodeError(f"EXTH record {rec_type} length {rec_len} below 8", rec_start)
        data = cur.read_exact(rec_len - 8)
        name, kind = exth_tag(rec_type)
        records.append(ExthRecord(type=rec_type, name=name, kind=kind, data=data))
    return tuple(records)


def text_codec(encoding: int) -> str:
    """Python codec name for a MOBI text encoding value."""
    return TEXT_ENCODING.get(encoding, "cp1252")


def parse_book_header(record0: bytes) -> BookHeader:
    """Decode all of record 0."""
    palmdoc = parse_palmdoc_header(record0)
    mobi = parse_mobi_header(record0)

    exth: tuple[ExthRecord, ...] = ()
    if mobi.exth_flags & EXTH_FLAG:
        exth = parse_exth(record0, PALMDOC_HEADER_SIZE + mobi.header_length)

    full_name = ""
    if mobi.full_name_length and mobi.full_name_offset + mobi.full_name_length <= len(record0):
        raw = record0[mobi.full_name_offset:mobi.full_name_offset + mobi.full_name_length]
        full_name = raw.decode(text_codec(mobi.text_encoding), errors="replace")

    return BookHeader(palmdoc=palmdoc, mobi=mobi, full_name=full_name, exth=exth)
