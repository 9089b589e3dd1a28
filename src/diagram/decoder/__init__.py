"""Decoder for model-generated sentence-diagram responses.

Stages, leaves first: text repair, shape normalization, chunk
canonicalization, inline tag tokenizing, structure assembly.
"""

from diagram.decoder.assembler import assemble, decode
from diagram.decoder.canonical import canon_kind, canon_role, canonicalize_chunk
from diagram.decoder.errors import (
    DecodeError,
    EmptyInput,
    MalformedDocument,
    UnexpectedShape,
)
from diagram.decoder.repair import parse_structured, repair_text
from diagram.decoder.shape import (
    SENTENCE_ALIASES,
    SentenceRecord,
    normalize_shape,
    synthesize_details,
)
from diagram.decoder.tags import render_marked_text, strip_tags, tokenize_marked_text
from diagram.decoder.types import (
    Chunk,
    Document,
    Kind,
    Role,
    Sentence,
    SubStructure,
    VocabEntry,
    document_to_dict,
)

__all__ = [
    "Chunk",
    "DecodeError",
    "Document",
    "EmptyInput",
    "Kind",
    "MalformedDocument",
    "Role",
    "SENTENCE_ALIASES",
    "Sentence",
    "SentenceRecord",
    "SubStructure",
    "UnexpectedShape",
    "VocabEntry",
    "assemble",
    "canon_kind",
    "canon_role",
    "canonicalize_chunk",
    "decode",
    "document_to_dict",
    "normalize_shape",
    "parse_structured",
    "render_marked_text",
    "repair_text",
    "strip_tags",
    "synthesize_details",
    "tokenize_marked_text",
]
