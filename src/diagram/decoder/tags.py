"""Inline tag tokenizer for marked text.

Marked text interleaves literal spans with tags that annotate the span
immediately before them::

    [The news]<{S:名詞句:その知らせは}> was<{V}> false<{C}>.

A tag is ``<{role}>``, ``<{role:attribute}>`` or ``<{role:attribute:meaning}>``;
``_`` in any field means "absent". Text after the last tag becomes one
unannotated (``NONE``) chunk. Tokenizing is purely lexical: there is no
escape syntax, so an unterminated ``<{`` or an empty ``<{}>`` is kept as
literal text.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from diagram.decoder.canonical import canon_role, make_chunk
from diagram.decoder.types import Chunk, Role

TAG_RE = re.compile(r"<\{([^}]+)\}>")

ABSENT_PLACEHOLDER = "_"


def _tag_field(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if not value or value == ABSENT_PLACEHOLDER:
        return None
    return value


def parse_tag(content: str) -> tuple[Role, str | None, str | None]:
    """Split tag content into ``(role, attribute, meaning)``.

    Colons past the second stay inside ``meaning``. An absent role field
    marks the span as unannotated.
    """

    parts = content.split(":", 2)
    parts += [""] * (3 - len(parts))
    role_field, attribute, meaning = (_tag_field(p) for p in parts)
    role = canon_role(role_field) if role_field is not None else Role.NONE
    return role, attribute, meaning


def _unannotated(text: str) -> Chunk:
    return make_chunk(text, Role.NONE)


def tokenize_marked_text(text: str | None) -> tuple[Chunk, ...]:
    """Emit chunks for ``text`` in scan order.

    Untagged input yields a single ``NONE`` chunk of the trimmed string;
    empty input yields no chunks.
    """

    if not text:
        return ()

    chunks: list[Chunk] = []
    last_end = 0
    tagged = False
    for match in TAG_RE.finditer(text):
        tagged = True
        span = text[last_end:match.start()].strip()
        last_end = match.end()
        if not span:
            continue
        role, attribute, meaning = parse_tag(match.group(1))
        chunks.append(make_chunk(span, role, attribute=attribute, meaning=meaning))

    if not tagged:
        whole = text.strip()
        return (_unannotated(whole),) if whole else ()

    trailing = text[last_end:].strip()
    if trailing:
        chunks.append(_unannotated(trailing))
    return tuple(chunks)


def strip_tags(text: str | None) -> str:
    """Remove every tag, leaving the plain sentence text."""
    if not text:
        return ""
    return TAG_RE.sub("", text).strip()


def _render_tag(chunk: Chunk) -> str:
    fields = [
        chunk.role.value if chunk.role is not Role.NONE else ABSENT_PLACEHOLDER,
        chunk.attribute or ABSENT_PLACEHOLDER,
        chunk.meaning or ABSENT_PLACEHOLDER,
    ]
    while len(fields) > 1 and fields[-1] == ABSENT_PLACEHOLDER:
        fields.pop()
    return "<{" + ":".join(fields) + "}>"


def render_marked_text(chunks: Iterable[Chunk]) -> str:
    """Write chunks back into marked-text form.

    Unannotated chunks are written bare only in final position; elsewhere
    they get a ``<{_}>`` tag so they do not merge into the next span.
    """

    items = [c for c in chunks if c.text.strip()]
    pieces: list[str] = []
    for position, chunk in enumerate(items):
        is_last = position == len(items) - 1
        bare = (
            chunk.role is Role.NONE
            and chunk.attribute is None
            and chunk.meaning is None
            and is_last
        )
        pieces.append(chunk.text.strip() if bare else chunk.text.strip() + _render_tag(chunk))
    return " ".join(pieces)
