#!/usr/bin/env python3
"""Decode raw sentence-diagram model responses into canonical documents.

Usage:
    python3 scripts/decode_response.py responses/page_01.txt responses/page_02.txt \\
      --source-text ocr/page_01.txt --output decoded/page_01.json -v

    cat response.txt | python3 scripts/decode_response.py - --jsonl

Structured JSON output goes to stdout (or --output); human messages go to
stderr. Exit status is 1 when any input fails to decode.
"""
from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any

import orjson

from diagram.config import DEFAULT_CONFIG, DecoderConfig, load_config
from diagram.decoder import DecodeError, MalformedDocument, decode, document_to_dict
from diagram.io_utils import dumps_json, read_response_text, save_json, save_jsonl

log = logging.getLogger("decode_response")

STDIN_MARKER = "-"


def decode_one(
    name: str,
    raw: str,
    *,
    source_text: str | None,
    config: DecoderConfig,
) -> dict[str, Any]:
    """Decode one response into a result row; errors become a status, not a crash."""
    try:
        document = decode(raw, source_text, config=config)
    except DecodeError as exc:
        log.warning("%s: %s", name, exc)
        row: dict[str, Any] = {
            "input": name,
            "status": type(exc).__name__,
            "error": str(exc),
        }
        if isinstance(exc, MalformedDocument):
            row["excerpt"] = exc.excerpt
        return row

    log.info("%s: %d sentences", name, len(document.sentences))
    return {
        "input": name,
        "status": "ok",
        "document": document_to_dict(document),
    }


def _read_input(name: str) -> str:
    if name == STDIN_MARKER:
        return sys.stdin.buffer.read().decode("utf-8", errors="replace")
    return read_response_text(Path(name))


def build_config(args: argparse.Namespace) -> DecoderConfig:
    config = load_config(args.config) if args.config else DEFAULT_CONFIG
    if args.balanced_braces:
        config = replace(config, brace_scan="balanced")
    if args.strip_comments:
        config = replace(config, strip_comments=True)
    return config


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "inputs",
        nargs="+",
        help="Raw response files ('-' reads stdin)",
    )
    parser.add_argument(
        "--source-text",
        type=Path,
        default=None,
        help="OCR text used as original_text when a sentence omits it",
    )
    parser.add_argument("--config", type=Path, default=None, help="DecoderConfig JSON file")
    parser.add_argument(
        "--balanced-braces",
        action="store_true",
        help="Slice the document with a depth-aware brace scan",
    )
    parser.add_argument(
        "--strip-comments",
        action="store_true",
        help="Retry parsing with // and /* */ comments removed",
    )
    parser.add_argument("--jsonl", action="store_true", help="Emit one result per line")
    parser.add_argument("--output", type=Path, default=None, help="Write results to a file")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )

    try:
        config = build_config(args)
    except (OSError, ValueError, orjson.JSONDecodeError) as exc:
        log.error("Invalid decoder config: %s", exc)
        return 2

    source_text = read_response_text(args.source_text) if args.source_text else None

    results: list[dict[str, Any]] = []
    for name in args.inputs:
        try:
            raw = _read_input(name)
        except OSError as exc:
            log.error("%s: cannot read input: %s", name, exc)
            results.append({"input": name, "status": "unreadable", "error": str(exc)})
            continue
        results.append(decode_one(name, raw, source_text=source_text, config=config))

    if args.output is not None:
        if args.jsonl:
            save_jsonl(results, args.output)
        else:
            save_json(results, args.output)
        log.info("Wrote %d results to %s", len(results), args.output)
    elif args.jsonl:
        for row in results:
            sys.stdout.buffer.write(orjson.dumps(row, option=orjson.OPT_SORT_KEYS))
            sys.stdout.buffer.write(b"\n")
    else:
        sys.stdout.buffer.write(dumps_json(results))
        sys.stdout.buffer.write(b"\n")

    failed = sum(1 for row in results if row["status"] != "ok")
    if failed:
        log.warning("%d of %d inputs failed to decode", failed, len(results))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
