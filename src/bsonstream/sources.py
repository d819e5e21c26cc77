from __future__ import annotations

import logging
import socket
from collections.abc import Iterable, Iterator
from typing import Any, BinaryIO

import bson

from .config import OptionsLike
from .constants import DEFAULT_CHUNK_SIZE
from .framer import BSONStream, BytesLike, Decoder

logger = logging.getLogger(__name__)


def iter_file_chunks(fileobj: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    for chunk in iter(lambda: fileobj.read(chunk_size), b""):
        yield chunk


def iter_socket_chunks(sock: socket.socket, bufsize: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
    while True:
        data = sock.recv(bufsize)
        if not data:
            break
        yield data


def iter_documents(
    chunks: Iterable[BytesLike],
    options: OptionsLike = None,
    *,
    decode: Decoder = bson.decode,
    skip_errors: bool = False,
) -> Iterator[Any]:
    """Yield every document framed from chunks, in stream order.

    Errors are raised to the caller once the documents completed before them
    have been yielded, which ends the iteration. With skip_errors they are
    logged instead and reading goes on with the next chunk; documents
    buffered at the time of the error are lost. Exceeding max_buffered_bytes
    is raised even with skip_errors.
    """
    docs: list[Any] = []
    errors: list[Exception] = []
    stream = BSONStream(options, on_record=docs.append, on_error=errors.append, decode=decode)
    for chunk in chunks:
        stream.write(chunk)
        yield from docs
        docs.clear()
        for err in errors:
            if not skip_errors or stream.closed:
                raise err
            logger.warning("skipping corrupt input: %s", err)
        errors.clear()
    stream.end()


def read_documents(
    fileobj: BinaryIO,
    options: OptionsLike = None,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    decode: Decoder = bson.decode,
    skip_errors: bool = False,
) -> Iterator[Any]:
    return iter_documents(
        iter_file_chunks(fileobj, chunk_size),
        options,
        decode=decode,
        skip_errors=skip_errors,
    )
