from __future__ import annotations

from pathlib import Path

import pytest

from builders import (
    NCX_TAGS,
    build_cncx,
    build_indx,
    build_pdb,
    build_record0,
    build_tagx,
    ncx_entry,
)


@pytest.fixture
def ncx_index_record() -> bytes:
    return build_indx(
        entries=[
            ncx_entry(b"000", 0, 1200, 0, 0),
            ncx_entry(b"001", 1200, 800, 10, 1),
        ],
        tagx=build_tagx(1, NCX_TAGS),
        cncx=build_cncx(b"Chapter 1\x00Chapter 2", 2),
    )


@pytest.fixture
def book_bytes(ncx_index_record: bytes) -> bytes:
    record0 = build_record0(
        title="Test Book",
        exth=[(100, b"Jane Author"), (201, (7).to_bytes(4, "big")), (999, b"\x01\x02")],
        indx_record=2,
        text_length=2000,
    )
    return build_pdb([record0, b"plain text record", ncx_index_record])


@pytest.fixture
def book_path(tmp_path: Path, book_bytes: bytes) -> Path:
    path = tmp_path / "test.mobi"
    path.write_bytes(book_bytes)
    return path


@pytest.fixture
def config_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    path = tmp_path / "config" / "config.toml"
    monkeypatch.setattr("mobiread.profiles.get_config_path", lambda: path)
    return path
