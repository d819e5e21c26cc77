from __future__ import annotations

LENGTH_FORMAT = "<i"  # signed int32, little-endian
LENGTH_SIZE = 4
TERMINATOR = 0x00

# int32 length field + 0x00 terminator
MIN_DOC_LENGTH = 5

DEFAULT_MAX_DOC_LENGTH = 16 * 1024 * 1024
PROTOCOL_MAX_DOC_LENGTH = 2**31 - 1

DEFAULT_CHUNK_SIZE = 64 * 1024
