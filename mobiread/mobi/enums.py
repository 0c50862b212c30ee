"""Enum lookup dicts for integer-coded fields in MOBI headers and index entries."""
from __future__ import annotations


def lookup_enum(table: dict[int, str], value: int) -> str:
    """Return human-readable name for an enum value, or str(value) for unknowns."""
    return table.get(value, str(value))


# INDX entry tags (NCX navigation index)
INDEX_TAG: dict[int, str] = {
    1: "offset",
    2: "length",
    3: "label",
    4: "depth",
    5: "class",
    6: "pos_fid",
    21: "parent",
    22: "first_child",
    23: "last_child",
    69: "image",
    70: "description",
    71: "author",
    72: "caption",
    73: "attribution",
}

# MOBI header mobi_type
MOBI_TYPE: dict[int, str] = {
    2: "book",
    3: "palmdoc",
    4: "audio",
    232: "kindlegen_1.2",
    248: "kf8",
    257: "news",
    258: "news_feed",
    259: "news_magazine",
    513: "pics",
    514: "word",
    515: "xls",
    516: "ppt",
    517: "text",
    518: "html",
}

# PalmDOC compression
COMPRESSION: dict[int, str] = {
    1: "none",
    2: "palmdoc",
    17480: "huff_cdic",
}

# Text encoding
TEXT_ENCODING: dict[int, str] = {
    1252: "cp1252",
    65001: "utf-8",
    65002: "utf-16",
}

# Index header type
INDX_TYPE: dict[int, str] = {
    0: "normal",
    2: "inflection",
}

# EXTH value interpretation
EXTH_STRING = "string"
EXTH_NUMERIC = "numeric"
EXTH_BINARY = "binary"

# EXTH record type -> (name, kind)
EXTH_TAG: dict[int, tuple[str, str]] = {
    1: ("drm_server_id", EXTH_STRING),
    2: ("drm_commerce_id", EXTH_STRING),
    3: ("drm_ebookbase_book_id", EXTH_STRING),
    100: ("author", EXTH_STRING),
    101: ("publisher", EXTH_STRING),
    102: ("imprint", EXTH_STRING),
    103: ("description", EXTH_STRING),
    104: ("isbn", EXTH_STRING),
    105: ("subject", EXTH_STRING),
    106: ("publishing_date", EXTH_STRING),
    107: ("review", EXTH_STRING),
    108: ("contributor", EXTH_STRING),
    109: ("rights", EXTH_STRING),
    110: ("subject_code", EXTH_STRING),
    111: ("type", EXTH_STRING),
    112: ("source", EXTH_STRING),
    113: ("asin", EXTH_STRING),
    114: ("version_number", EXTH_STRING),
    115: ("sample", EXTH_NUMERIC),
    116: ("start_reading", EXTH_NUMERIC),
    117: ("adult", EXTH_STRING),
    118: ("retail_price", EXTH_STRING),
    119: ("retail_price_currency", EXTH_STRING),
    121: ("kf8_boundary_offset", EXTH_NUMERIC),
    125: ("resource_count", EXTH_NUMERIC),
    129: ("kf8_cover_uri", EXTH_STRING),
    200: ("dict_short_name", EXTH_STRING),
    201: ("cover_offset", EXTH_NUMERIC),
    202: ("thumb_offset", EXTH_NUMERIC),
    203: ("has_fake_cover", EXTH_NUMERIC),
    204: ("creator_software", EXTH_NUMERIC),
    205: ("creator_major_version", EXTH_NUMERIC),
    206: ("creator_minor_version", EXTH_NUMERIC),
    207: ("creator_build_number", EXTH_NUMERIC),
    208: ("watermark", EXTH_BINARY),
    209: ("tamper_proof_keys", EXTH_BINARY),
    300: ("font_signature", EXTH_BINARY),
    401: ("clipping_limit", EXTH_NUMERIC),
    402: ("publisher_limit", EXTH_NUMERIC),
    404: ("tts_flag", EXTH_NUMERIC),
    501: ("cde_type", EXTH_STRING),
    502: ("last_update_time", EXTH_STRING),
    503: ("updated_title", EXTH_STRING),
    524: ("language", EXTH_STRING),
}


def exth_tag(record_type: int) -> tuple[str, str]:
    """Name and value kind for an EXTH record type; unknown types are binary."""
    return EXTH_TAG.get(record_type, (f"exth_{record_type}", EXTH_BINARY))
