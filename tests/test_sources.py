from __future__ import annotations

import io
import logging
import socket
import threading

import bson
import pytest

from bsonstream import (
    InvalidTermination,
    LimitExceeded,
    iter_documents,
    iter_file_chunks,
    iter_socket_chunks,
    read_documents,
)

DOCS = [{"i": i, "name": f"doc-{i}"} for i in range(10)]
DATA = b"".join(bson.encode(d) for d in DOCS)
BAD = bytes([0x05, 0x00, 0x00, 0x00, 0x01])


def test_iter_file_chunks():
    chunks = list(iter_file_chunks(io.BytesIO(b"abcdefg"), 3))
    assert chunks == [b"abc", b"def", b"g"]


def test_iter_file_chunks_rejects_bad_size():
    with pytest.raises(ValueError):
        list(iter_file_chunks(io.BytesIO(b"abc"), 0))


@pytest.mark.parametrize("chunk_size", [1, 5, 17, 1024])
def test_read_documents(chunk_size):
    assert list(read_documents(io.BytesIO(DATA), chunk_size=chunk_size)) == DOCS


def test_read_raw_documents():
    raw = list(read_documents(io.BytesIO(DATA), {"emit_raw": True}, chunk_size=7))
    assert raw == [bson.encode(d) for d in DOCS]


def test_error_raised_after_earlier_documents():
    it = iter_documents([bson.encode(DOCS[0]) + BAD, bson.encode(DOCS[1])])
    assert next(it) == DOCS[0]
    with pytest.raises(InvalidTermination):
        next(it)


def test_skip_errors(caplog):
    chunks = [bson.encode(DOCS[0]) + BAD + bson.encode(DOCS[1]), bson.encode(DOCS[2])]
    with caplog.at_level(logging.WARNING, logger="bsonstream.sources"):
        docs = list(iter_documents(chunks, skip_errors=True))
    # DOCS[1] shared the chunk with the corrupt document
    assert docs == [DOCS[0], DOCS[2]]
    assert "invalid document termination" in caplog.text


def test_buffer_limit_is_raised_even_when_skipping():
    with pytest.raises(LimitExceeded):
        list(iter_documents([DATA], {"max_buffered_bytes": 10}, skip_errors=True))


def test_iter_socket_chunks():
    a, b = socket.socketpair()

    def send():
        with a:
            a.sendall(DATA)

    t = threading.Thread(target=send)
    t.start()
    with b:
        docs = list(iter_documents(iter_socket_chunks(b, 16)))
    t.join()
    assert docs == DOCS
