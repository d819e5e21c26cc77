from __future__ import annotations

import json

import bson
import pytest

from bsonstream.bench import run_benchmark
from bsonstream.cli import main

DOCS = [{"foo": "bar"}, {"foo": "baz", "bar": 42, "baz": False, "qux": None}]


@pytest.fixture
def bson_file(tmp_path):
    path = tmp_path / "docs.bson"
    path.write_bytes(b"".join(bson.encode(d) for d in DOCS))
    return path


def test_cat_prints_json_lines(bson_file, capsys):
    assert main(["cat", str(bson_file), "--chunk-size", "3"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert [json.loads(line) for line in lines] == DOCS


def test_cat_raw_prints_hex(bson_file, capsys):
    assert main(["cat", str(bson_file), "--raw"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert [bytes.fromhex(line) for line in lines] == [bson.encode(d) for d in DOCS]


def test_cat_reports_framing_error(tmp_path, capsys):
    path = tmp_path / "bad.bson"
    path.write_bytes(bson.encode(DOCS[0]) + b"\x04\x00\x00\x00\x00")
    assert main(["cat", str(path)]) == 1
    captured = capsys.readouterr()
    assert json.loads(captured.out) == DOCS[0]
    assert "invalid document length" in captured.err


def test_cat_keep_going(tmp_path, capsys):
    path = tmp_path / "bad.bson"
    path.write_bytes(b"\x05\x00\x00\x00\x01" + bson.encode(DOCS[1]))
    # one byte per chunk so the corrupt document is reset before DOCS[1] arrives
    assert main(["cat", str(path), "--keep-going", "--chunk-size", "1"]) == 0
    assert json.loads(capsys.readouterr().out) == DOCS[1]


def test_cat_max_doc_length(bson_file, capsys):
    assert main(["cat", str(bson_file), "--max-doc-length", "10"]) == 1
    assert "exceeds configured maximum length" in capsys.readouterr().err


def test_cat_rejects_max_doc_length_above_limit(bson_file, capsys):
    assert main(["cat", str(bson_file), "--max-doc-length", "2147483648"]) == 2
    assert "protocol limit" in capsys.readouterr().err


def test_bench_json(capsys):
    assert main(["bench", "--count", "50", "--chunk-size", "100", "--json"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["role"] == "bench"
    assert out["documents"] == 50
    assert out["chunk_size"] == 100


def test_run_benchmark_raw():
    r = run_benchmark(count=20, chunk_size=1, emit_raw=True)
    assert r.documents == 20
    assert r.bytes_processed > 20 * 5
    assert r.throughput_mbps > 0
