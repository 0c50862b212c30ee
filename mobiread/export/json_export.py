"""Export decoded index records as JSON."""
from __future__ import annotations

import json
from typing import Optional

from mobiread.index.cncx import split_labels
from mobiread.mobi.enums import INDX_TYPE, INDEX_TAG, lookup_enum
from mobiread.mobi.records import IndexRecord


def export_json(records: tuple[IndexRecord, ...] | list[IndexRecord],
                title: Optional[str] = None, encoding: str = "utf-8") -> str:
    """Export index records as JSON string."""
    data = []
    for rec in records:
        entry = {
            "record": rec.record_index,
            "type": lookup_enum(INDX_TYPE, rec.header.index_type),
            "total_entries": rec.header.total_entries_count,
            "items": [
                {
                    "label": item.label.decode(encoding, errors="replace"),
                    "fields": {
                        lookup_enum(INDEX_TAG, tag): values
                        for tag, values in item.as_dict().items()
                    },
                }
                for item in rec.items
            ],
        }

        if rec.tag_table is not None:
            entry["tags"] = [
                {
                    "tag": t.tag,
                    "values_per_entry": t.values_per_entry,
                    "bitmask": f"0x{t.bitmask:02X}",
                    "control_flag": t.control_flag,
                }
                for t in rec.tag_table.tags
            ]

        if rec.cncx is not None:
            entry["cncx"] = split_labels(rec.cncx, encoding)

        data.append(entry)

    return json.dumps({"title": title, "records": data}, indent=2)
