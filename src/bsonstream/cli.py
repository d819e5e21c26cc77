from __future__ import annotations

import argparse
import json
import logging
import socket
import sys
from collections.abc import Iterator
from dataclasses import asdict

from bson import json_util
from bson.errors import InvalidBSON

from .bench import run_benchmark
from .config import validate_options
from .constants import DEFAULT_CHUNK_SIZE
from .errors import ConfigError, FramingError
from .sources import iter_documents, iter_file_chunks, iter_socket_chunks

logger = logging.getLogger(__name__)


def _parse_addr(value: str) -> tuple[str, int]:
    host, sep, port = value.rpartition(":")
    if not sep or not host or not port.isdigit():
        raise argparse.ArgumentTypeError(f"expected HOST:PORT, got {value!r}")
    return host, int(port)


def _chunks(args: argparse.Namespace) -> Iterator[bytes]:
    if args.connect is not None:
        with socket.create_connection(args.connect) as sock:
            logger.info("reading from %s:%d", *args.connect)
            yield from iter_socket_chunks(sock, args.chunk_size)
    elif args.file in (None, "-"):
        yield from iter_file_chunks(sys.stdin.buffer, args.chunk_size)
    else:
        with open(args.file, "rb") as f:
            yield from iter_file_chunks(f, args.chunk_size)


def cmd_cat(args: argparse.Namespace) -> int:
    try:
        options = validate_options(
            {
                "emit_raw": args.raw,
                "max_record_length": args.max_doc_length,
                "max_buffered_bytes": args.max_bytes,
            }
        )
    except ConfigError as err:
        print(f"bsonstream: {err}", file=sys.stderr)
        return 2

    count = 0
    try:
        for doc in iter_documents(_chunks(args), options, skip_errors=args.keep_going):
            if options.emit_raw:
                print(doc.hex())
            else:
                print(json_util.dumps(doc, json_options=json_util.RELAXED_JSON_OPTIONS))
            count += 1
    except (FramingError, InvalidBSON) as err:
        print(f"bsonstream: {err}", file=sys.stderr)
        return 1

    logger.info("%d documents", count)
    return 0


def cmd_bench(args: argparse.Namespace) -> int:
    r = run_benchmark(count=args.count, chunk_size=args.chunk_size, emit_raw=args.raw)
    payload = {"role": "bench", "chunk_size": args.chunk_size, **asdict(r)}
    print(json.dumps(payload, indent=2) if args.json else payload)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="bsonstream", description="Read BSON documents from a byte stream.")
    p.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    cat = sub.add_parser("cat", help="print each document as relaxed Extended JSON")
    src = cat.add_mutually_exclusive_group()
    src.add_argument("file", nargs="?", default=None, help="input file, stdin when omitted or '-'")
    src.add_argument("--connect", type=_parse_addr, default=None, metavar="HOST:PORT")
    cat.add_argument("--raw", action="store_true", help="print raw documents as hex")
    cat.add_argument("--max-doc-length", type=int, default=None)
    cat.add_argument("--max-bytes", type=int, default=None, help="cap on buffered bytes")
    cat.add_argument("--chunk-size", type=int, default=DEFAULT_CHUNK_SIZE)
    cat.add_argument("--keep-going", action="store_true", help="log framing errors and continue")
    cat.set_defaults(func=cmd_cat)

    bench = sub.add_parser("bench", help="frame generated documents in memory")
    bench.add_argument("--count", type=int, default=10_000)
    bench.add_argument("--chunk-size", type=int, default=DEFAULT_CHUNK_SIZE)
    bench.add_argument("--raw", action="store_true")
    bench.add_argument("--json", action="store_true")
    bench.set_defaults(func=cmd_bench)

    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(asctime)s [%(levelname)s] %(message)s")
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
