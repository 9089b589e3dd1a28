"""Shape normalization: turn whatever top-level object the model produced
into an ordered list of sentence records with field aliases resolved.

Field aliases live in one table (``SENTENCE_ALIASES``) and are resolved once
per record here; nothing downstream looks at alternative spellings.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, replace
from typing import Any

import orjson

from diagram.decoder.types import Chunk, Role

log = logging.getLogger(__name__)


SENTENCE_ALIASES: dict[str, tuple[str, ...]] = {
    "chunks": ("chunks", "main_structure"),
    "translation": ("translation", "full_translation", "japanese_translation", "translatedText"),
    "original_text": ("original_text", "originalText", "original", "text"),
    "marked_text": ("marked_text",),
    "vocab": ("vocab", "vocab_list", "vocabulary"),
    "details": ("details",),
    "structure_explanations": ("structure_explanations",),
    "advanced_note": ("advanced_grammar_explanation",),
    "sub_structures": ("sub_structures", "zoom_in"),
    "grammar_note": ("grammar_note",),
}

DOCUMENT_ALIASES: dict[str, tuple[str, ...]] = {
    "sentences": ("sentences",),
    "teacher_comment": ("teacher_comment", "teacherComment"),
}

_SUBJECT_ROLES: frozenset[Role] = frozenset({Role.S, Role.S_PRIME})
_VERB_ROLES: frozenset[Role] = frozenset({Role.V, Role.V_PRIME})
_OBJECT_ROLES: frozenset[Role] = frozenset({Role.O, Role.O_PRIME, Role.C, Role.C_PRIME})
_MODIFIER_ROLES: frozenset[Role] = frozenset({Role.M, Role.M_PRIME})


@dataclass(frozen=True, slots=True)
class SentenceRecord:
    """Semi-normalized sentence: aliases resolved, chunks still raw."""

    index: int
    original_text: str
    translation: str
    raw_chunks: tuple[Any, ...] = ()
    marked_text: str | None = None
    raw_vocab: tuple[Any, ...] = ()
    details: tuple[str, ...] = ()
    details_synthesized: bool = False
    raw_sub_structures: tuple[Any, ...] = ()
    grammar_note: str | None = None
    malformed: bool = False

    @classmethod
    def empty(cls, index: int) -> SentenceRecord:
        """Placeholder for a sentence whose record could not be read."""
        return cls(index=index, original_text="", translation="", malformed=True)


# ---------------------------------------------------------------------------
# Alias resolution
# ---------------------------------------------------------------------------

def _is_nonempty_str(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _is_nonempty_list(value: Any) -> bool:
    return isinstance(value, list) and bool(value)


def resolve_alias(
    record: Mapping[str, Any],
    name: str,
    accept: Callable[[Any], bool],
    *,
    table: Mapping[str, tuple[str, ...]] = SENTENCE_ALIASES,
) -> Any:
    """Return the value of the first alias of ``name`` that ``accept`` admits."""
    for key in table[name]:
        value = record.get(key)
        if accept(value):
            return value
    return None


def _text_alias(record: Mapping[str, Any], name: str) -> str | None:
    value = resolve_alias(record, name, _is_nonempty_str)
    return value.strip() if value is not None else None


def _list_alias(record: Mapping[str, Any], name: str) -> tuple[Any, ...]:
    value = resolve_alias(record, name, _is_nonempty_list)
    return tuple(value) if value is not None else ()


# ---------------------------------------------------------------------------
# Details
# ---------------------------------------------------------------------------

def display_string(value: Any) -> str:
    """Coerce a detail element to display text (non-strings serialized)."""
    if isinstance(value, str):
        return value.strip()
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        try:
            return orjson.dumps(value).decode("utf-8")
        except orjson.JSONEncodeError:
            # e.g. integers beyond 64 bits
            return str(value).strip()
    return str(value).strip()


def coerce_details(raw: Any) -> tuple[str, ...]:
    """Normalize a details field into non-empty display strings."""
    if raw is None:
        return ()
    items = raw if isinstance(raw, list) else [raw]
    out = [display_string(item) for item in items]
    return tuple(text for text in out if text)


def _structure_explanation(entry: Any) -> str:
    if not isinstance(entry, Mapping):
        return display_string(entry)
    target = display_string(entry.get("target_text") or entry.get("target_chunk"))
    explanation = display_string(entry.get("explanation"))
    if target and explanation:
        return f"{target}: {explanation}"
    return explanation or target


def _collect_details(record: Mapping[str, Any]) -> tuple[str, ...]:
    details = coerce_details(resolve_alias(record, "details", lambda v: v is not None))
    if not details:
        entries = _list_alias(record, "structure_explanations")
        details = tuple(
            text for text in (_structure_explanation(e) for e in entries) if text
        )
    advanced = _text_alias(record, "advanced_note")
    if advanced and advanced not in details:
        details += (advanced,)
    return details


def _first_text(chunks: Sequence[Chunk], roles: frozenset[Role]) -> str:
    return next((c.text for c in chunks if c.role in roles), "")


def synthesize_details(original_text: str, chunks: Sequence[Chunk], translation: str) -> str:
    """Build the fallback explanation paragraph for a sentence with no details.

    Deterministic: the same sentence text, chunks and translation always give
    the same paragraph.
    """
    structure = " | ".join(f"{c.text}({c.role.value})" for c in chunks)
    modifiers = " ".join(c.text for c in chunks if c.role in _MODIFIER_ROLES)
    lines = [
        f"Sentence: {original_text}",
        f"Structure: {structure}",
        f"Subject: {_first_text(chunks, _SUBJECT_ROLES)}",
        f"Verb: {_first_text(chunks, _VERB_ROLES)}",
        f"Object/Complement: {_first_text(chunks, _OBJECT_ROLES)}",
        f"Modifiers: {modifiers}",
        f"Translation: {translation}",
    ]
    return "\n".join(line.rstrip() for line in lines)


def finalize_details(
    record: SentenceRecord,
    chunks: Sequence[Chunk],
) -> tuple[tuple[str, ...], bool]:
    """Return ``(details, synthesized)`` for a record once its chunks are known."""
    if record.details:
        return record.details, record.details_synthesized
    if not chunks:
        return (), False
    paragraph = synthesize_details(record.original_text, chunks, record.translation)
    return (paragraph,), True


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

def _record_index(record: Mapping[str, Any], position: int) -> int:
    value = record.get("index")
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value
    return position


def normalize_sentence(
    record: Mapping[str, Any],
    *,
    position: int,
    source_text: str | None = None,
) -> SentenceRecord:
    """Resolve aliases for a single sentence record."""
    details = _collect_details(record)
    return SentenceRecord(
        index=_record_index(record, position),
        original_text=_text_alias(record, "original_text") or (source_text or "").strip(),
        translation=_text_alias(record, "translation") or "",
        raw_chunks=_list_alias(record, "chunks"),
        marked_text=_text_alias(record, "marked_text"),
        raw_vocab=_list_alias(record, "vocab"),
        details=details,
        details_synthesized=bool(details) and record.get("details_synthesized") is True,
        raw_sub_structures=_list_alias(record, "sub_structures"),
        grammar_note=_text_alias(record, "grammar_note"),
    )


def sentence_entries(value: Mapping[str, Any]) -> tuple[list[Any], bool]:
    """Return ``(entries, implicit)`` for a recovered top-level object."""
    sentences = resolve_alias(
        value, "sentences", lambda v: isinstance(v, list), table=DOCUMENT_ALIASES,
    )
    if sentences is not None:
        return list(sentences), False
    return [value], True


def _normalize_or_placeholder(
    record: Mapping[str, Any],
    *,
    position: int,
    source_text: str | None,
) -> SentenceRecord:
    try:
        return normalize_sentence(record, position=position, source_text=source_text)
    except (TypeError, ValueError, AttributeError) as exc:
        log.warning("Sentence %d could not be read: %s; emitting empty sentence", position, exc)
        return SentenceRecord.empty(position)


def normalize_shape(
    value: Mapping[str, Any],
    source_text: str | None = None,
) -> list[SentenceRecord]:
    """Produce ordered sentence records from a recovered top-level object.

    A non-object or unreadable entry in ``sentences`` yields an empty
    placeholder record rather than failing the batch.
    """
    entries, implicit = sentence_entries(value)
    if implicit:
        record = _normalize_or_placeholder(value, position=1, source_text=source_text)
        return [replace(record, index=1)]

    records: list[SentenceRecord] = []
    for position, entry in enumerate(entries, start=1):
        if not isinstance(entry, Mapping):
            log.warning(
                "Sentence %d is %s, not an object; emitting empty sentence",
                position,
                type(entry).__name__,
            )
            records.append(SentenceRecord.empty(position))
            continue
        records.append(
            _normalize_or_placeholder(entry, position=position, source_text=source_text),
        )
    return records


def teacher_comment(value: Mapping[str, Any]) -> str | None:
    comment = resolve_alias(value, "teacher_comment", _is_nonempty_str, table=DOCUMENT_ALIASES)
    return comment.strip() if comment is not None else None
