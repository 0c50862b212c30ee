"""MOBI file reader: PDB container, record 0 headers and the INDX chain."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

from mobiread.index.parser import parse_index_chain, parse_index_records
from mobiread.mobi.records import BookHeader, IndexEntry, IndexRecord, PdbHeader
from mobiread.mobi.header import parse_book_header
from mobiread.pdb.store import RecordStore


class MobiReader:
    """Reader for MOBI / AZW / PRC books.

    The whole file is loaded into memory; records are sliced on demand.
    """

    def __init__(self, path: Optional[Path], max_chain_depth: Optional[int] = None,
                 data: Optional[bytes] = None):
        self.path = path
        self.max_chain_depth = max_chain_depth
        if data is None:
            with open(path, "rb") as f:
                data = f.read()
        self.pdb: PdbHeader
        self.store: RecordStore
        self.pdb, self.store = RecordStore.from_bytes(data)
        self.header: BookHeader = parse_book_header(self.store.record(0))

    @classmethod
    def from_bytes(cls, data: bytes, max_chain_depth: Optional[int] = None) -> "MobiReader":
        return cls(None, max_chain_depth=max_chain_depth, data=data)

    @property
    def has_index(self) -> bool:
        return self.header.index_record_offset is not None

    def index_records(self, start: Optional[int] = None) -> tuple[IndexRecord, ...]:
        """Decode the index chain (from the MOBI header unless ``start`` is given)."""
        n = start if start is not None else self.header.index_record_offset
        if n is None:
            return ()
        return parse_index_records(self.store, n, self.max_chain_depth)

    def index_entries(self, start: Optional[int] = None) -> tuple[IndexEntry, ...]:
        n = start if start is not None else self.header.index_record_offset
        if n is None:
            return ()
        return parse_index_chain(self.store, n, self.max_chain_depth)


def main():
    """Quick test: open a book and print its headers and index size."""
    import sys
    import time
    if len(sys.argv) < 2:
        print("Usage: python -m mobiread.mobi.reader <path/to/book.mobi>")
        sys.exit(1)

    path = Path(sys.argv[1])
    print(f"Reading {path} ({path.stat().st_size / 1024:.0f} KB)...")

    start = time.perf_counter()
    reader = MobiReader(path)
    records = reader.index_records()
    elapsed = time.perf_counter() - start

    print(f"\nTitle:   {reader.header.full_name}")
    print(f"Records: {reader.store.record_count:,}")
    print(f"EXTH:    {len(reader.header.exth)} entries")
    for rec in reader.header.exth[:10]:
        print(f"  {rec.name:<24} {rec.value()!r}")

    total = sum(len(r.items) for r in records)
    print(f"\nDecoded {len(records)} index records, {total:,} items in {elapsed:.2f}s")


if __name__ == "__main__":
    main()
