"""Default paths and constants for MOBI decoding."""
from pathlib import Path


def derive_export_path(book: Path, fmt: str) -> Path:
    """Default export file: sibling of the book named <stem>.index.<fmt>."""
    return book.with_name(f"{book.stem}.index.{fmt}")


# Index chain guard: maximum INDX records followed from one start record
DEFAULT_MAX_CHAIN_DEPTH = 4096

# File extensions treated as MOBI containers by `mobiread init`
BOOK_SUFFIXES = frozenset({".mobi", ".azw", ".azw3", ".prc", ".pdb"})
