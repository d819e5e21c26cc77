from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any

import bson

from .config import StreamOptions
from .constants import DEFAULT_CHUNK_SIZE
from .framer import BSONStream


@dataclass(frozen=True, slots=True)
class BenchmarkResult:
    documents: int
    bytes_processed: int
    duration_s: float
    throughput_mbps: float


def sample_document(i: int) -> dict[str, Any]:
    return {
        "seq": i,
        "name": f"doc-{i}",
        "ok": i % 2 == 0,
        "score": i / 7,
        "tags": ["a", "b", str(i)],
        "nested": {"x": i, "y": None},
    }


def run_benchmark(
    *,
    count: int,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    emit_raw: bool = False,
) -> BenchmarkResult:
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")

    payload = b"".join(bson.encode(sample_document(i)) for i in range(count))
    chunks = [payload[i : i + chunk_size] for i in range(0, len(payload), chunk_size)]

    received = 0

    def on_record(_: Any) -> None:
        nonlocal received
        received += 1

    stream = BSONStream(StreamOptions(emit_raw=emit_raw), on_record=on_record)
    start = time.perf_counter()
    for chunk in chunks:
        stream.write(chunk)
    stream.end()
    elapsed = time.perf_counter() - start

    if received != count:
        raise RuntimeError(f"expected {count} documents, framed {received}")

    duration_s = max(0.001, elapsed)
    return BenchmarkResult(
        documents=received,
        bytes_processed=len(payload),
        duration_s=duration_s,
        throughput_mbps=(len(payload) * 8 / 1_000_000) / duration_s,
    )
