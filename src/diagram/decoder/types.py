"""Core types for the sentence-diagram decoder."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class Role(StrEnum):
    """Grammatical role of a chunk. Primed roles sit inside a nested clause."""

    S = "S"
    V = "V"
    O = "O"
    C = "C"
    M = "M"
    S_PRIME = "S'"
    V_PRIME = "V'"
    O_PRIME = "O'"
    C_PRIME = "C'"
    M_PRIME = "M'"
    CONN = "CONN"
    NONE = "NONE"


class Kind(StrEnum):
    """Part-of-speech bucket, always derived from the role."""

    NOUN = "noun"
    MODIFIER = "modifier"
    VERB = "verb"
    CONNECTOR = "connector"


@dataclass(frozen=True, slots=True)
class Chunk:
    """One annotated span of sentence text."""

    text: str
    role: Role
    kind: Kind
    translation: str = ""
    attribute: str | None = None
    meaning: str | None = None
    explanation: str | None = None
    modifies: str | None = None
    note: str | None = None

    @property
    def is_annotated(self) -> bool:
        return self.role is not Role.NONE


@dataclass(frozen=True, slots=True)
class SubStructure:
    """Zoom-in analysis of one parent chunk.

    ``target_span`` refers back to the parent sentence by text only; the
    sub-structure owns its own chunks and nested sub-structures.
    """

    target_span: str
    analyzed_text: str
    explanation: str | None = None
    chunks: tuple[Chunk, ...] = ()
    sub_structures: tuple[SubStructure, ...] = ()


@dataclass(frozen=True, slots=True)
class VocabEntry:
    """Vocabulary callout attached to a sentence."""

    term: str
    meaning: str
    is_idiom: bool = False
    explanation: str | None = None


@dataclass(frozen=True, slots=True)
class Sentence:
    """One fully normalized sentence."""

    index: int
    original_text: str
    translation: str
    chunks: tuple[Chunk, ...] = ()
    vocab: tuple[VocabEntry, ...] = ()
    details: tuple[str, ...] = ()
    sub_structures: tuple[SubStructure, ...] = ()
    marked_text: str | None = None
    tagged_chunks: tuple[Chunk, ...] = ()
    grammar_note: str | None = None
    details_synthesized: bool = False

    def __post_init__(self) -> None:
        if self.index < 0:
            raise ValueError(f"index must be >= 0, got {self.index}")
        if self.details_synthesized and not self.details:
            raise ValueError("details_synthesized requires non-empty details")

    @property
    def display_chunks(self) -> tuple[Chunk, ...]:
        """Explicit chunks when present, tag-derived chunks otherwise."""
        return self.chunks if self.chunks else self.tagged_chunks


@dataclass(frozen=True, slots=True)
class Document:
    """Decoded upstream response. One per accepted response, never mutated."""

    sentences: tuple[Sentence, ...] = field(default_factory=tuple)
    teacher_comment: str | None = None

    def __len__(self) -> int:
        return len(self.sentences)


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------

_OPTIONAL_CHUNK_FIELDS: tuple[str, ...] = (
    "attribute",
    "meaning",
    "explanation",
    "modifies",
    "note",
)


def chunk_to_dict(chunk: Chunk) -> dict[str, object]:
    """Serialize one chunk; absent annotations are omitted, not nulled."""

    out: dict[str, object] = {
        "text": chunk.text,
        "role": chunk.role.value,
        "type": chunk.kind.value,
        "translation": chunk.translation,
    }
    for name in _OPTIONAL_CHUNK_FIELDS:
        value = getattr(chunk, name)
        if value is not None:
            out[name] = value
    return out


def sub_structure_to_dict(sub: SubStructure) -> dict[str, object]:
    out: dict[str, object] = {
        "target_text": sub.target_span,
        "analyzed_text": sub.analyzed_text,
        "chunks": [chunk_to_dict(c) for c in sub.chunks],
    }
    if sub.explanation is not None:
        out["explanation"] = sub.explanation
    if sub.sub_structures:
        out["sub_structures"] = [sub_structure_to_dict(s) for s in sub.sub_structures]
    return out


def sentence_to_dict(sentence: Sentence) -> dict[str, object]:
    out: dict[str, object] = {
        "index": sentence.index,
        "original_text": sentence.original_text,
        "translation": sentence.translation,
        "chunks": [chunk_to_dict(c) for c in sentence.chunks],
        "vocab": [
            {
                "term": v.term,
                "meaning": v.meaning,
                "is_idiom": v.is_idiom,
                **({"explanation": v.explanation} if v.explanation is not None else {}),
            }
            for v in sentence.vocab
        ],
        "details": list(sentence.details),
        "details_synthesized": sentence.details_synthesized,
        "sub_structures": [sub_structure_to_dict(s) for s in sentence.sub_structures],
    }
    if sentence.marked_text is not None:
        out["marked_text"] = sentence.marked_text
    if sentence.grammar_note is not None:
        out["grammar_note"] = sentence.grammar_note
    return out


def document_to_dict(document: Document) -> dict[str, object]:
    """Serialize a document using the canonical field vocabulary.

    The output is itself a valid decoder input: assembling it again yields
    an equal document.
    """

    out: dict[str, object] = {
        "sentences": [sentence_to_dict(s) for s in document.sentences],
    }
    if document.teacher_comment is not None:
        out["teacher_comment"] = document.teacher_comment
    return out
