"""Structure assembler: compose repair, shape, canonicalization and tag
tokenizing into one immutable ``Document``.

``assemble`` is pure and does no I/O: equal inputs give equal documents.
Once the top-level object is accepted, a broken sentence degrades to an
empty ``Sentence`` instead of failing the document.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from diagram.config import DEFAULT_CONFIG, DecoderConfig
from diagram.decoder.canonical import canonicalize_chunks, optional_field, text_field
from diagram.decoder.errors import UnexpectedShape
from diagram.decoder.repair import repair_text
from diagram.decoder.shape import (
    SentenceRecord,
    finalize_details,
    normalize_shape,
    teacher_comment,
)
from diagram.decoder.tags import strip_tags, tokenize_marked_text
from diagram.decoder.types import Document, Sentence, SubStructure, VocabEntry

log = logging.getLogger(__name__)

_TARGET_KEYS: tuple[str, ...] = ("target_text", "target_chunk", "target_span")
_ANALYZED_KEYS: tuple[str, ...] = ("analyzed_text", "marked_text")


def _first_str(raw: Mapping[str, Any], keys: tuple[str, ...]) -> str:
    for key in keys:
        value = raw.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


# ---------------------------------------------------------------------------
# Sub-structures
# ---------------------------------------------------------------------------

def build_sub_structure(
    raw: Mapping[str, Any],
    *,
    depth: int,
    max_depth: int,
) -> SubStructure:
    """Normalize one zoom-in record at ``depth`` (1 = directly under a sentence)."""
    analyzed = _first_str(raw, _ANALYZED_KEYS)
    chunks = canonicalize_chunks(raw.get("chunks"))
    if not chunks:
        chunks = tokenize_marked_text(analyzed)
    return SubStructure(
        target_span=_first_str(raw, _TARGET_KEYS),
        analyzed_text=analyzed,
        explanation=optional_field(raw.get("explanation")),
        chunks=chunks,
        sub_structures=build_sub_structures(
            raw.get("sub_structures"), depth=depth + 1, max_depth=max_depth,
        ),
    )


def build_sub_structures(
    raw: Any,
    *,
    depth: int,
    max_depth: int,
) -> tuple[SubStructure, ...]:
    if not isinstance(raw, (list, tuple)) or not raw:
        return ()
    if depth > max_depth:
        log.debug("Dropping %d sub-structures beyond depth %d", len(raw), max_depth)
        return ()
    return tuple(
        build_sub_structure(item, depth=depth, max_depth=max_depth)
        for item in raw
        if isinstance(item, Mapping)
    )


# ---------------------------------------------------------------------------
# Vocabulary
# ---------------------------------------------------------------------------

def build_vocab_entry(raw: Any) -> VocabEntry | None:
    """Normalize one vocabulary record; entries without a term are dropped."""
    if isinstance(raw, str):
        return VocabEntry(term=raw.strip(), meaning="") if raw.strip() else None
    if not isinstance(raw, Mapping):
        return None
    term = text_field(raw.get("term") or raw.get("word")).strip()
    if not term:
        return None
    return VocabEntry(
        term=term,
        meaning=text_field(raw.get("meaning") or raw.get("translation")).strip(),
        is_idiom=raw.get("is_idiom", raw.get("isIdiom")) is True,
        explanation=optional_field(raw.get("explanation")),
    )


def build_vocab(raw: tuple[Any, ...]) -> tuple[VocabEntry, ...]:
    entries = (build_vocab_entry(item) for item in raw)
    return tuple(entry for entry in entries if entry is not None)


# ---------------------------------------------------------------------------
# Sentences
# ---------------------------------------------------------------------------

def build_sentence(record: SentenceRecord, *, config: DecoderConfig) -> Sentence:
    """Turn a sentence record into a fully normalized ``Sentence``."""
    chunks = canonicalize_chunks(list(record.raw_chunks))
    tagged = tokenize_marked_text(record.marked_text)
    original_text = record.original_text or strip_tags(record.marked_text)
    display = chunks or tagged
    details, synthesized = finalize_details(replace(record, original_text=original_text), display)
    return Sentence(
        index=record.index,
        original_text=original_text,
        translation=record.translation,
        chunks=chunks,
        vocab=build_vocab(record.raw_vocab),
        details=details,
        sub_structures=build_sub_structures(
            list(record.raw_sub_structures),
            depth=1,
            max_depth=config.max_sub_structure_depth,
        ),
        marked_text=record.marked_text,
        tagged_chunks=tagged,
        grammar_note=record.grammar_note,
        details_synthesized=synthesized,
    )


def _degraded(record: SentenceRecord) -> Sentence:
    return Sentence(index=record.index, original_text=record.original_text, translation="")


def assemble(
    value: Any,
    source_text: str | None = None,
    *,
    config: DecoderConfig | None = None,
) -> Document:
    """Assemble a ``Document`` from a recovered top-level object.

    Raises:
        UnexpectedShape: ``value`` is not map-like.
    """
    if not isinstance(value, Mapping):
        raise UnexpectedShape(value)
    cfg = config or DEFAULT_CONFIG

    sentences: list[Sentence] = []
    for record in normalize_shape(value, source_text):
        if record.malformed:
            sentences.append(_degraded(record))
            continue
        try:
            sentences.append(build_sentence(record, config=cfg))
        except (TypeError, ValueError, AttributeError) as exc:
            log.warning("Sentence %d could not be normalized: %s", record.index, exc)
            sentences.append(_degraded(record))

    return Document(sentences=tuple(sentences), teacher_comment=teacher_comment(value))


def decode(
    raw: str,
    source_text: str | None = None,
    *,
    config: DecoderConfig | None = None,
) -> Document:
    """Decode a raw model response into a ``Document``.

    Raises:
        EmptyInput, MalformedDocument, UnexpectedShape: see ``repair_text``.
    """
    value = repair_text(raw, config=config)
    document = assemble(value, source_text, config=config)
    log.debug("Decoded %d sentences from %d chars", len(document.sentences), len(raw))
    return document
