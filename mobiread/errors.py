"""Typed decode errors raised while reading MOBI containers and index records."""
from __future__ import annotations

from typing import Optional


class DecodeError(ValueError):
    """Base class for every format violation found while decoding.

    ``offset`` is relative to the start of the record being decoded (or the
    file, for container-level errors). ``record_index`` is filled in by the
    index parser when the error escapes a record.
    """

    def __init__(self, message: str, offset: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.offset = offset
        self.record_index: Optional[int] = None

    def __str__(self) -> str:
        parts = [self.message]
        if self.record_index is not None:
            parts.append(f"record {self.record_index}")
        if self.offset is not None:
            parts.append(f"offset {self.offset}")
        if len(parts) == 1:
            return self.message
        return f"{parts[0]} ({', '.join(parts[1:])})"


class MagicMismatch(DecodeError):
    """Expected marker not found at the cursor."""

    def __init__(self, expected: bytes, found: bytes, offset: Optional[int] = None):
        super().__init__(f"expected {expected!r}, found {found!r}", offset)
        self.expected = expected
        self.found = found


class TruncatedInput(DecodeError):
    """Fewer bytes available than a field requires."""


class HeaderTooShort(DecodeError):
    """TAGX header length below the 12-byte minimum."""


class UnsupportedFieldKind(DecodeError):
    """ORDT or LIGT data declared in an index header."""

    def __init__(self, kind: str, offset: Optional[int] = None):
        super().__init__(f"{kind} tables are not supported", offset)
        self.kind = kind


class LengthMismatch(DecodeError):
    """Variable-width values did not fill their declared byte length exactly."""


class IntegerOverflow(DecodeError):
    """Variable-width integer outside the unsigned 32-bit range."""


class OutOfRange(DecodeError):
    """Record index beyond the record store."""


class RecursionLimitExceeded(DecodeError):
    """Chained index records exceeded the depth guard or looped."""


class MissingTagTable(DecodeError):
    """Index entries present but no TAGX table to resolve them with."""


class EncryptedBook(DecodeError):
    """PalmDOC header declares encrypted text records."""
