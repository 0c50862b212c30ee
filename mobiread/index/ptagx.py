"""Resolve an index entry's control bytes against the TAGX table.

An entry is ``control_byte_count`` control bytes followed by a payload of
variable-width integers. Each tag's bitmask selects bits of the current
control byte:

* masked value 0: tag absent.
* all mask bits set and the mask has more than one bit: a varint in the
  payload gives the number of payload *bytes* holding this tag's values.
* otherwise: the masked value, shifted down to the mask's lowest bit, is
  the number of value groups; each group is ``values_per_entry`` varints.

Rows with the control flag set move on to the next control byte.

Error offsets are positions within the payload.
"""
from __future__ import annotations

from mobiread.errors import LengthMismatch, TruncatedInput
from mobiread.index.varint import decode_vwi
from mobiread.mobi.records import IndexEntry, ResolvedField, TagTable


def _lowest_bit_shift(mask: int) -> int:
    return (mask & -mask).bit_length() - 1


def resolve_fields(
    control_bytes: bytes, payload: bytes, table: TagTable
) -> tuple[list[ResolvedField], int]:
    """Work out which tags are present and how their values are sized.

    Returns the fields in table order and the number of payload bytes
    consumed by length prefixes.
    """
    fields: list[ResolvedField] = []
    ci = 0
    pos = 0

    for desc in table.tags:
        if desc.control_flag:
            ci += 1
            continue

        if ci >= len(control_bytes):
            raise TruncatedInput(f"tag {desc.tag} needs control byte {ci}")

        masked = control_bytes[ci] & desc.bitmask
        if masked == 0:
            continue

        if masked == desc.bitmask and desc.bitmask.bit_count() > 1:
            value_bytes, consumed = decode_vwi(payload, pos)
            pos += consumed
            fields.append(ResolvedField(
                tag=desc.tag,
                values_per_entry=desc.values_per_entry,
                value_bytes=value_bytes,
            ))
        else:
            fields.append(ResolvedField(
                tag=desc.tag,
                values_per_entry=desc.values_per_entry,
                value_count=masked >> _lowest_bit_shift(desc.bitmask),
            ))

    return fields, pos


def decode_values(
    fields: list[ResolvedField], payload: bytes, pos: int = 0
) -> tuple[IndexEntry, ...]:
    """Read each field's varints from ``payload`` starting at ``pos``."""
    entries: list[IndexEntry] = []

    for f in fields:
        if f.value_count:
            for _ in range(f.value_count * f.values_per_entry):
                value, consumed = decode_vwi(payload, pos)
                pos += consumed
                entries.append(IndexEntry(tag=f.tag, value=value))
            continue

        total = 0
        while total < f.value_bytes:
            if pos >= len(payload):
                raise LengthMismatch(
                    f"tag {f.tag}: payload ended after {total} of {f.value_bytes} bytes", pos
                )
            value, consumed = decode_vwi(payload, pos)
            pos += consumed
            total += consumed
            entries.append(IndexEntry(tag=f.tag, value=value))
        if total != f.value_bytes:
            raise LengthMismatch(
                f"tag {f.tag}: consumed {total} bytes, declared {f.value_bytes}", pos
            )

    return tuple(entries)


def parse_ptagx(data: bytes, table: TagTable) -> tuple[IndexEntry, ...]:
    """Decode one entry (label already stripped) into (tag, value) pairs."""
    n = table.control_byte_count
    if len(data) < n:
        raise TruncatedInput(
            f"entry of {len(data)} bytes shorter than {n} control bytes"
        )
    control_bytes, payload = data[:n], data[n:]
    fields, pos = resolve_fields(control_bytes, payload, table)
    return decode_values(fields, payload, pos)
