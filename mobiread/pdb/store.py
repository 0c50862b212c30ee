"""Palm database (PDB) container: header, record list and record spans."""
from __future__ import annotations

import struct
from pathlib import Path

from mobiread.errors import DecodeError, OutOfRange, TruncatedInput
from mobiread.mobi.constants import PDB_HEADER_SIZE, PDB_RECORD_ENTRY_SIZE
from mobiread.mobi.records import PdbHeader, PdbRecordEntry, RecordSpan


# name(32) + attrs(2) + version(2) + created(4) + modified(4) + backed_up(4) + mod_num(4)
# + app_info(4) + sort_info(4) + type(4) + creator(4) + uid_seed(4) + next_list(4) + count(2)
_HEADER = struct.Struct(">32sHHIIIIII4s4sIIH")
_ENTRY = struct.Struct(">IB3s")  # offset(4) + attributes(1) + unique id(3)


def parse_pdb_header(data: bytes) -> PdbHeader:
    """Decode the PDB header and record list from the start of ``data``."""
    if len(data) < PDB_HEADER_SIZE:
        raise TruncatedInput(
            f"PDB header needs {PDB_HEADER_SIZE} bytes, file has {len(data)}", 0
        )

    (name, attributes, version, created, modified, backed_up, mod_num,
     app_info, sort_info, db_type, creator, uid_seed, next_list, count) = \
        _HEADER.unpack_from(data, 0)

    if count < 1:
        raise DecodeError("PDB declares no records", 76)

    table_end = PDB_HEADER_SIZE + count * PDB_RECORD_ENTRY_SIZE
    if table_end > len(data):
        raise TruncatedInput(
            f"record list of {count} entries runs past end of file", PDB_HEADER_SIZE
        )

    entries = []
    for i in range(count):
        offset, attrs, uid = _ENTRY.unpack_from(data, PDB_HEADER_SIZE + i * PDB_RECORD_ENTRY_SIZE)
        entries.append(PdbRecordEntry(
            offset=offset,
            attributes=attrs,
            unique_id=int.from_bytes(uid, "big"),
        ))

    return PdbHeader(
        name=name.split(b"\x00", 1)[0].decode("latin-1"),
        attributes=attributes,
        version=version,
        created=created,
        modified=modified,
        backed_up=backed_up,
        modification_number=mod_num,
        app_info_id=app_info,
        sort_info_id=sort_info,
        type=db_type,
        creator=creator,
        unique_id_seed=uid_seed,
        next_record_list_id=next_list,
        entries=tuple(entries),
    )


class RecordStore:
    """Maps a record number to its bytes in an in-memory PDB file.

    Record n spans offset(n) .. offset(n+1); the last record runs to the
    end of the file.
    """

    def __init__(self, data: bytes, offsets: tuple[int, ...] | list[int]):
        if not offsets:
            raise DecodeError("record store needs at least one record")
        for i in range(1, len(offsets)):
            if offsets[i] <= offsets[i - 1]:
                raise DecodeError(
                    f"record offsets not strictly increasing at record {i}", offsets[i]
                )
        if offsets[-1] > len(data):
            raise TruncatedInput(
                f"record {len(offsets) - 1} starts past end of file", offsets[-1]
            )
        self.data = data
        self.offsets = tuple(offsets)

    @classmethod
    def from_bytes(cls, data: bytes) -> tuple[PdbHeader, "RecordStore"]:
        header = parse_pdb_header(data)
        return header, cls(data, header.offsets)

    @classmethod
    def from_path(cls, path: Path) -> tuple[PdbHeader, "RecordStore"]:
        with open(path, "rb") as f:
            data = f.read()
        return cls.from_bytes(data)

    @property
    def record_count(self) -> int:
        return len(self.offsets)

    @property
    def file_size(self) -> int:
        return len(self.data)

    def span(self, n: int) -> RecordSpan:
        if n < 0 or n >= len(self.offsets):
            raise OutOfRange(
                f"record {n} requested, store holds {len(self.offsets)} records"
            )
        start = self.offsets[n]
        end = self.offsets[n + 1] if n + 1 < len(self.offsets) else len(self.data)
        return RecordSpan(start=start, length=end - start)

    def record(self, n: int) -> bytes:
        """Return the raw bytes of record ``n``."""
        span = self.span(n)
        return self.data[span.start:span.end]

    def spans(self) -> list[RecordSpan]:
        return [self.span(i) for i in range(len(self.offsets))]
