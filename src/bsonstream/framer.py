"""Incremental framing of BSON documents from a chunked byte stream.

Every document starts with its total length as a signed little-endian int32
and ends with a 0x00 byte. Chunks may split documents anywhere, so bytes are
kept in an Accumulator until a whole document is available.

On any framing or decoding error the whole accumulator is discarded, not
just the offending document. Documents that were buffered behind a corrupt
one are lost and have to be resent.
"""
from __future__ import annotations

import logging
import struct
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Union

import bson

from .config import OptionsLike, validate_options
from .constants import LENGTH_FORMAT, LENGTH_SIZE, MIN_DOC_LENGTH, TERMINATOR
from .errors import InvalidLength, InvalidTermination, LimitExceeded, StreamClosed

logger = logging.getLogger(__name__)

_LENGTH = struct.Struct(LENGTH_FORMAT)

BytesLike = Union[bytes, bytearray, memoryview]
Decoder = Callable[[bytes], Any]
RecordHandler = Callable[[Any], None]
ErrorHandler = Callable[[Exception], None]


@dataclass(slots=True)
class Accumulator:
    buffer: bytearray = field(default_factory=bytearray)
    # length prefix of the document at the front of buffer, once read
    pending_length: int | None = None

    def __len__(self) -> int:
        return len(self.buffer)

    def append(self, chunk: BytesLike) -> None:
        self.buffer.extend(chunk)

    def declared_length(self) -> int:
        return _LENGTH.unpack_from(self.buffer, 0)[0]

    def byte_at(self, offset: int) -> int:
        return self.buffer[offset]

    def peek(self, n: int) -> bytes:
        return bytes(self.buffer[:n])

    def drop(self, n: int) -> None:
        del self.buffer[:n]
        self.pending_length = None

    def reset(self) -> int:
        discarded = len(self.buffer)
        self.buffer = bytearray()
        self.pending_length = None
        return discarded


class BSONStream:
    """Turn a stream of byte chunks into BSON documents.

    Feed chunks with write() and finish with end(). Each complete document is
    passed to on_record, either decoded or as its raw bytes when the stream
    was built with emit_raw. Framing and codec errors are passed to on_error.
    Without on_error they are raised from write(); if that call already
    completed documents, write() returns them and the error is raised by the
    next write() or end() instead, before that call touches its chunk. Either
    way the stream keeps accepting chunks afterwards, except after
    max_buffered_bytes was exceeded.
    """

    def __init__(
        self,
        options: OptionsLike = None,
        *,
        on_record: RecordHandler | None = None,
        on_error: ErrorHandler | None = None,
        decode: Decoder = bson.decode,
    ) -> None:
        self.options = validate_options(options)
        self._on_record = on_record
        self._on_error = on_error
        self._decode = decode
        self._acc = Accumulator()
        self._ended = False
        self._failed = False
        self._pending_error: Exception | None = None

    @property
    def buffered(self) -> int:
        return len(self._acc)

    @property
    def pending_length(self) -> int | None:
        return self._acc.pending_length

    @property
    def closed(self) -> bool:
        return self._ended or self._failed

    def write(self, chunk: BytesLike) -> list[Any]:
        """Accept one chunk and return the documents it completed, in order."""
        if self._ended:
            raise StreamClosed("write after end")
        if self._failed:
            raise StreamClosed("stream failed; no further writes accepted")
        if not isinstance(chunk, (bytes, bytearray, memoryview)):
            raise TypeError(f"chunk must be bytes-like, got {type(chunk).__name__}")
        self._raise_pending()
        if isinstance(chunk, memoryview):
            chunk = chunk.tobytes()

        new_length = len(self._acc) + len(chunk)
        limit = self.options.max_buffered_bytes
        if limit is not None and new_length > limit:
            self._failed = True
            self._fail(LimitExceeded("more than max_buffered_bytes received"))
            return []

        self._acc.append(chunk)
        return self._parse_docs()

    def end(self, chunk: BytesLike | None = None) -> int:
        """Signal end of stream, optionally writing a last chunk first.

        Returns the number of trailing bytes that never formed a complete
        document. They are dropped without an error.
        """
        if self._ended:
            if chunk is not None:
                raise StreamClosed("write after end")
            return 0
        try:
            if chunk is not None:
                self.write(chunk)
            self._raise_pending()
        finally:
            self._ended = True
            discarded = self._acc.reset()
            if discarded:
                logger.debug("end of stream; dropping %d trailing bytes", discarded)
        return discarded

    def _parse_docs(self) -> list[Any]:
        acc = self._acc
        emitted: list[Any] = []

        while True:
            if acc.pending_length is None:
                if len(acc) < LENGTH_SIZE:
                    break

                doclen = acc.declared_length()
                if doclen < MIN_DOC_LENGTH:
                    self._reset_and_fail(InvalidLength("invalid document length"), emitted)
                    break
                if doclen > self.options.max_record_length:
                    self._reset_and_fail(
                        LimitExceeded("document exceeds configured maximum length"), emitted
                    )
                    break
                acc.pending_length = doclen

            doclen = acc.pending_length
            if len(acc) < doclen:
                break

            if acc.byte_at(doclen - 1) != TERMINATOR:
                self._reset_and_fail(InvalidTermination("invalid document termination"), emitted)
                break

            raw = acc.peek(doclen)
            try:
                doc = self._decode(raw)
            except Exception as err:
                self._reset_and_fail(err, emitted)
                break

            acc.drop(doclen)
            record = raw if self.options.emit_raw else doc
            logger.debug("document of %d bytes; %d bytes buffered", doclen, len(acc))
            emitted.append(record)
            if self._on_record is not None:
                self._on_record(record)

            # a length prefix alone never completes a document
            if len(acc) <= LENGTH_SIZE:
                break

        return emitted

    def _reset_and_fail(self, err: Exception, emitted: list[Any]) -> None:
        discarded = self._acc.reset()
        logger.debug("%s; discarded %d buffered bytes", err, discarded)
        self._fail(err, emitted)

    def _fail(self, err: Exception, emitted: list[Any] | None = None) -> None:
        if self._on_error is not None:
            self._on_error(err)
        elif emitted:
            # raising now would lose the documents this call already completed
            self._pending_error = err
        else:
            raise err

    def _raise_pending(self) -> None:
        err, self._pending_error = self._pending_error, None
        if err is not None:
            raise err
