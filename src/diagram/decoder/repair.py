"""Text repair: coerce a raw model response into a structured value.

Steps, each applied only while the previous ones have not produced a value:

1. Reject empty / whitespace-only input.
2. Strip fenced-code markers (with optional language tag) and a leading BOM.
3. Slice to the outermost object: first ``{`` .. last ``}`` by default, or the
   brace that balances the first ``{`` when ``brace_scan="balanced"``.
4. Drop trailing commas before ``]`` / ``}``.
5. Parse the cleaned text; fall back to the unfenced text before slicing
   (first as is, then with trailing commas dropped), then to the untouched
   original; optionally retry with comments stripped.
6. Unwrap a top-level array to its first element.
"""

from __future__ import annotations

import logging
import re
from typing import Any

import orjson

from diagram.config import DEFAULT_CONFIG, DecoderConfig
from diagram.decoder.errors import EmptyInput, MalformedDocument, UnexpectedShape

log = logging.getLogger(__name__)

_BOM = "\ufeff"
_FENCE_RE = re.compile(r"```[A-Za-z0-9_+.-]*")
_TRAILING_COMMA_RE = re.compile(r",\s*([\]}])")


def strip_fences(text: str) -> str:
    """Remove every fenced-code marker and a leading byte-order mark."""
    text = _FENCE_RE.sub("", text)
    return text.strip().removeprefix(_BOM).strip()


def slice_first_last(text: str) -> str:
    """Slice ``text`` to span the first ``{`` through the last ``}``.

    Not depth aware: braces in commentary before the document will
    mis-slice. Returns ``text`` unchanged when no such span exists.
    """
    start = text.find("{")
    end = text.rfind("}")
    if start < 0 or end < start:
        return text
    return text[start:end + 1]


def slice_balanced(text: str) -> str:
    """Slice ``text`` from the first ``{`` to the brace that closes it.

    Braces inside JSON string literals are ignored. Falls back to
    ``slice_first_last`` when the first object never closes.
    """
    start = text.find("{")
    if start < 0:
        return text
    depth = 0
    in_string = False
    escaped = False
    for idx in range(start, len(text)):
        ch = text[idx]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:idx + 1]
    return slice_first_last(text)


def drop_trailing_commas(text: str) -> str:
    return _TRAILING_COMMA_RE.sub(r"\1", text)


def strip_comments(text: str) -> str:
    """Remove ``/* */`` blocks and ``//`` line comments outside string literals.

    Comment markers inside JSON strings (``"http://x"``, ``"a // b"``) are
    kept. An unterminated block comment runs to the end of the text.
    """
    out: list[str] = []
    idx = 0
    in_string = False
    escaped = False
    while idx < len(text):
        ch = text[idx]
        if in_string:
            out.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            idx += 1
            continue
        if text.startswith("//", idx):
            end = text.find("\n", idx)
            idx = len(text) if end < 0 else end
            continue
        if text.startswith("/*", idx):
            end = text.find("*/", idx + 2)
            idx = len(text) if end < 0 else end + 2
            continue
        if ch == '"':
            in_string = True
        out.append(ch)
        idx += 1
    return "".join(out)


def _try_parse(candidate: str) -> tuple[bool, Any]:
    try:
        return True, orjson.loads(candidate)
    except orjson.JSONDecodeError:
        return False, None


def parse_structured(raw: str, *, config: DecoderConfig | None = None) -> Any:
    """Run repair steps 1–5 and return the parsed value as-is.

    Raises:
        EmptyInput: ``raw`` is empty or whitespace-only.
        MalformedDocument: no candidate parses.
    """
    cfg = config or DEFAULT_CONFIG
    if not raw or not raw.strip():
        raise EmptyInput()

    unfenced = strip_fences(raw)
    sliced = slice_balanced(unfenced) if cfg.brace_scan == "balanced" else slice_first_last(unfenced)
    cleaned = drop_trailing_commas(sliced)

    candidates: list[tuple[str, str]] = [
        ("cleaned", cleaned),
        ("unfenced", unfenced),
        ("unsliced", drop_trailing_commas(unfenced)),
        ("original", raw.strip()),
    ]
    if cfg.strip_comments:
        candidates.append(("uncommented", drop_trailing_commas(strip_comments(sliced))))

    for label, candidate in candidates:
        ok, value = _try_parse(candidate)
        if ok:
            if label != "cleaned":
                log.debug("Recovered response via %s candidate", label)
            return value

    log.debug("All repair candidates failed (%d chars)", len(raw))
    raise MalformedDocument(raw, limit=cfg.excerpt_limit)


def unwrap_value(value: Any) -> dict[str, Any]:
    """Unwrap a single-element array wrapper; require a map-like result."""
    if isinstance(value, list):
        if not value:
            raise UnexpectedShape(value)
        value = value[0]
    if not isinstance(value, dict):
        raise UnexpectedShape(value)
    return value


def repair_text(raw: str, *, config: DecoderConfig | None = None) -> dict[str, Any]:
    """Recover a map-like value from an unreliable model response.

    Raises:
        EmptyInput: ``raw`` is empty or whitespace-only.
        MalformedDocument: no structured value is recoverable.
        UnexpectedShape: the value is not an object, even after array unwrap.
    """
    return unwrap_value(parse_structured(raw, config=config))
