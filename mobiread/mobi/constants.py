"""MOBI/PDB format constants, flags, and magic numbers."""

# Palm database
PDB_HEADER_SIZE = 78        # Fixed header before the record entry list
PDB_RECORD_ENTRY_SIZE = 8   # offset(4) + attributes(1) + unique id(3)
PDB_TYPE_BOOK = b"BOOK"
PDB_CREATOR_MOBI = b"MOBI"

# Record 0 sub-headers
PALMDOC_HEADER_SIZE = 16
MAGIC_MOBI = b"MOBI"
MAGIC_EXTH = b"EXTH"
EXTH_FLAG = 0x40            # MOBI header EXTH flags: bit 6 set when EXTH follows

# PalmDOC compression
COMPRESSION_NONE = 1
COMPRESSION_PALMDOC = 2
COMPRESSION_HUFFCDIC = 17480

# Text encodings
ENC_CP1252 = 1252
ENC_UTF8 = 65001
ENC_UTF16 = 65002

# Marker for "no such record" in MOBI header index fields
NULL_INDEX = 0xFFFFFFFF

# Index records
MAGIC_INDX = b"INDX"
MAGIC_TAGX = b"TAGX"
MAGIC_IDXT = b"IDXT"

INDX_TYPE_NORMAL = 0
INDX_TYPE_INFLECTION = 2

INDX_MIN_HEADER_SIZE = 56   # Through cncx_records_count
INDX_ORDT_TYPE_OFFSET = 164
INDX_ORDT_FIELDS_END = 172  # ordt_type + ordt_entries_count present past this
INDX_TAGX_OFFSET_FIELD = 180
INDX_TAGX_FIELD_END = 184   # tagx_offset present past this
TAGX_MIN_HEADER_SIZE = 12   # magic(4) + header length(4) + control byte count(4)
TAGX_DESCRIPTOR_SIZE = 4

# Variable-width integers
VWI_FLAG = 0x80
VWI_MASK = 0x7F
VWI_MAX = 0xFFFFFFFF
