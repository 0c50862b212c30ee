"""Plain data records produced by the PDB, MOBI header and index decoders."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from mobiread.mobi.constants import INDX_TYPE_INFLECTION, INDX_TYPE_NORMAL, NULL_INDEX
from mobiread.mobi.enums import EXTH_NUMERIC, EXTH_STRING, INDEX_TAG, lookup_enum


# ---------------------------------------------------------------------------
# Container
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class RecordSpan:
    """Byte span of one physical record in the backing file."""
    start: int
    length: int

    @property
    def end(self) -> int:
        return self.start + self.length


@dataclass(frozen=True, slots=True)
class PdbRecordEntry:
    """One row of the PDB record list."""
    offset: int
    attributes: int
    unique_id: int


@dataclass(frozen=True, slots=True)
class PdbHeader:
    """Palm database header (78 bytes) plus its record list."""
    name: str
    attributes: int
    version: int
    created: int
    modified: int
    backed_up: int
    modification_number: int
    app_info_id: int
    sort_info_id: int
    type: bytes         # b"BOOK" for MOBI books
    creator: bytes      # b"MOBI"
    unique_id_seed: int
    next_record_list_id: int
    entries: tuple[PdbRecordEntry, ...] = ()

    @property
    def record_count(self) -> int:
        return len(self.entries)

    @property
    def offsets(self) -> tuple[int, ...]:
        return tuple(e.offset for e in self.entries)


@dataclass(frozen=True, slots=True)
class PalmDocHeader:
    """First 16 bytes of record 0."""
    compression: int
    text_length: int
    text_record_count: int
    text_record_size: int
    encryption: int


@dataclass(frozen=True, slots=True)
class MobiHeader:
    """Fields of the MOBI header that drive further decoding."""
    header_length: int
    mobi_type: int
    text_encoding: int
    unique_id: int
    file_version: int
    full_name_offset: int
    full_name_length: int
    locale: int
    first_non_book_index: int
    first_image_index: int
    exth_flags: int
    extra_record_data_flags: int
    indx_record_offset: int


@dataclass(frozen=True, slots=True)
class ExthRecord:
    """A single EXTH metadata record."""
    type: int
    name: str
    kind: str           # string / numeric / binary
    data: bytes

    def value(self, encoding: str = "utf-8") -> str | int | bytes:
        """Interpret the payload according to the record's kind."""
        if self.kind == EXTH_STRING:
            return self.data.decode(encoding, errors="replace")
        if self.kind == EXTH_NUMERIC and self.data:
            return int.from_bytes(self.data, "big")
        return self.data


@dataclass(frozen=True, slots=True)
class BookHeader:
    """Everything decoded from record 0."""
    palmdoc: PalmDocHeader
    mobi: MobiHeader
    full_name: str
    exth: tuple[ExthRecord, ...] = ()

    @property
    def encoding(self) -> int:
        return self.mobi.text_encoding

    @property
    def index_record_offset(self) -> Optional[int]:
        """Record number of the first INDX record, or None."""
        n = self.mobi.indx_record_offset
        if n == 0 or n == NULL_INDEX:
            return None
        return n

    def get_exth(self, name: str) -> Optional[ExthRecord]:
        for rec in self.exth:
            if rec.name == name:
                return rec
        return None


# ---------------------------------------------------------------------------
# Index
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class IndexHeader:
    """Fixed header at the start of an INDX record."""
    header_length: int
    index_type: int             # 0 normal, 2 inflection
    tagx_offset: int            # 0 when the record carries no TAGX
    idxt_offset: int
    idxt_count: int
    encoding: int
    language: int
    total_entries_count: int
    ordt_offset: int
    ligt_offset: int
    ligt_entries_count: int
    cncx_records_count: int
    ordt_type: int = 0
    ordt_entries_count: int = 0

    @property
    def is_normal(self) -> bool:
        return self.index_type == INDX_TYPE_NORMAL

    @property
    def is_inflection(self) -> bool:
        return self.index_type == INDX_TYPE_INFLECTION


@dataclass(frozen=True, slots=True)
class TagDescriptor:
    """One TAGX row."""
    tag: int
    values_per_entry: int
    bitmask: int
    control_flag: bool          # end-of-control-byte sentinel row


@dataclass(frozen=True, slots=True)
class TagTable:
    """Decoded TAGX section."""
    control_byte_count: int
    tags: tuple[TagDescriptor, ...] = ()


@dataclass(frozen=True, slots=True)
class AuxTable:
    """CNCX blob following the tag table."""
    length: int
    data: bytes
    ncx_count: int


@dataclass(frozen=True, slots=True)
class ResolvedField:
    """A tag present in an entry, with how many values to read for it.

    value_count is zero when the values are length-prefixed (value_bytes).
    """
    tag: int
    values_per_entry: int
    value_count: int = 0
    value_bytes: int = 0


@dataclass(frozen=True, slots=True)
class IndexEntry:
    """A decoded (tag, value) pair."""
    tag: int
    value: int

    @property
    def tag_name(self) -> str:
        return lookup_enum(INDEX_TAG, self.tag)


@dataclass(frozen=True, slots=True)
class IndexItem:
    """One IDXT slot: its label and the values decoded from its control bytes."""
    label: bytes
    entries: tuple[IndexEntry, ...] = ()

    def values(self, tag: int) -> list[int]:
        return [e.value for e in self.entries if e.tag == tag]

    def as_dict(self) -> dict[int, list[int]]:
        """Group values by tag, in first-seen order."""
        grouped: dict[int, list[int]] = {}
        for e in self.entries:
            grouped.setdefault(e.tag, []).append(e.value)
        return grouped


@dataclass(frozen=True, slots=True)
class IndexRecord:
    """A fully decoded INDX record."""
    record_index: int
    header: IndexHeader
    tag_table: Optional[TagTable] = None
    cncx: Optional[AuxTable] = None
    offsets: tuple[int, ...] = ()
    items: tuple[IndexItem, ...] = ()

    @property
    def entries(self) -> tuple[IndexEntry, ...]:
        return tuple(e for item in self.items for e in item.entries)
