"""Read BSON documents from a chunked byte stream.

Chunks can be any size and split documents anywhere. Each complete document
is emitted either decoded or as its raw bytes. The main pieces are:
- BSONStream: the incremental framer (write chunks, end the stream)
- StreamOptions: validated limits and output mode
- iter_documents / read_documents: pull-style helpers over chunk sources
"""
from __future__ import annotations

from .config import StreamOptions, validate_options
from .errors import (
    BSONStreamError,
    ConfigError,
    FramingError,
    InvalidLength,
    InvalidTermination,
    LimitExceeded,
    StreamClosed,
)
from .framer import Accumulator, BSONStream
from .sources import iter_documents, iter_file_chunks, iter_socket_chunks, read_documents

__all__ = [
    "Accumulator",
    "BSONStream",
    "BSONStreamError",
    "ConfigError",
    "FramingError",
    "InvalidLength",
    "InvalidTermination",
    "LimitExceeded",
    "StreamClosed",
    "StreamOptions",
    "iter_documents",
    "iter_file_chunks",
    "iter_socket_chunks",
    "read_documents",
    "validate_options",
]
