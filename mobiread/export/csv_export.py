"""Export decoded index entries as CSV."""
from __future__ import annotations

import csv
import io

from mobiread.mobi.records import IndexRecord


def export_csv(records: tuple[IndexRecord, ...] | list[IndexRecord], encoding: str = "utf-8") -> str:
    """Export one row per (tag, value) pair."""
    output = io.StringIO()
    writer = csv.writer(output)

    writer.writerow(["record", "item", "label", "tag", "tag_name", "value"])

    for rec in records:
        for i, item in enumerate(rec.items):
            label = item.label.decode(encoding, errors="replace")
            for e in item.entries:
                writer.writerow([rec.record_index, i, label, e.tag, e.tag_name, e.value])

    return output.getvalue()
