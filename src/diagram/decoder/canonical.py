"""Role/kind canonicalization for decoder chunks.

Model output spells roles loosely (``o''``, ``s’``, ``Connect``) and often
sends a ``type`` that disagrees with the role. Everything funnels through
``canon_role`` and ``canon_kind`` so the role/kind pair on a ``Chunk`` is
always consistent.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any

from diagram.decoder.types import Chunk, Kind, Role

log = logging.getLogger(__name__)

_APOSTROPHE_VARIANTS = str.maketrans({"’": "'", "‘": "'", "′": "'"})
_APOSTROPHE_RUN_RE = re.compile(r"'{2,}")

_ROLE_BY_LABEL: dict[str, Role] = {role.value: role for role in Role}
_ROLE_ALIASES: dict[str, Role] = {
    "CONNECT": Role.CONN,
    "CONJ": Role.CONN,
}

_KIND_BY_ROLE: dict[Role, Kind] = {
    Role.V: Kind.VERB,
    Role.V_PRIME: Kind.VERB,
    Role.CONN: Kind.CONNECTOR,
    Role.M: Kind.MODIFIER,
    Role.M_PRIME: Kind.MODIFIER,
}

_KIND_LITERALS: frozenset[str] = frozenset(kind.value for kind in Kind)

OPTIONAL_CHUNK_FIELDS: tuple[str, ...] = (
    "attribute",
    "meaning",
    "explanation",
    "modifies",
    "note",
)


def canon_role(raw: object) -> Role:
    """Map any role spelling onto the closed ``Role`` set; unknown → ``M``."""

    if isinstance(raw, Role):
        return raw
    if raw is None:
        return Role.M
    label = str(raw).strip().translate(_APOSTROPHE_VARIANTS)
    label = _APOSTROPHE_RUN_RE.sub("'", label).upper()
    role = _ROLE_BY_LABEL.get(label) or _ROLE_ALIASES.get(label)
    return role if role is not None else Role.M


def canon_kind(role: Role, declared: object = None) -> Kind:
    """Kind for ``role`` per the fixed table.

    ``declared`` is the upstream ``type`` value. A canonical literal that
    contradicts the table is dropped in favour of the derived kind.
    """

    derived = _KIND_BY_ROLE.get(role, Kind.NOUN)
    if isinstance(declared, str) and declared in _KIND_LITERALS and declared != derived.value:
        log.debug("Declared kind %r contradicts role %s; using %s", declared, role, derived)
    return derived


def text_field(value: object) -> str:
    """Coerce an optional scalar into a display string ("" when absent)."""
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def optional_field(value: object) -> str | None:
    """Present-and-non-empty → string, anything else → ``None``."""
    if value is None:
        return None
    text = value if isinstance(value, str) else str(value)
    return text if text.strip() else None


def _first_present(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None and value != "":
            return value
    return None


def _raw_role(raw: Mapping[str, Any]) -> Any:
    role = raw.get("role")
    if role is not None and str(role).strip():
        return role
    declared = raw.get("type")
    # older payloads put the role letter in "type"
    if isinstance(declared, str) and declared.strip() and declared not in _KIND_LITERALS:
        return declared
    return role


def make_chunk(
    text: str,
    role: Role,
    *,
    declared_kind: object = None,
    translation: str = "",
    **annotations: str | None,
) -> Chunk:
    """Build a chunk whose kind is derived from its (already canonical) role."""
    return Chunk(
        text=text,
        role=role,
        kind=canon_kind(role, declared_kind),
        translation=translation,
        **annotations,
    )


def canonicalize_chunk(raw: Mapping[str, Any] | str) -> Chunk:
    """Normalize one upstream chunk record.

    A bare string is treated as ``{"text": raw}``.
    """

    if isinstance(raw, str):
        raw = {"text": raw}
    role = canon_role(_raw_role(raw))
    annotations = {name: optional_field(raw.get(name)) for name in OPTIONAL_CHUNK_FIELDS}
    return make_chunk(
        text_field(_first_present(raw, "text", "chunk_text")),
        role,
        declared_kind=raw.get("type", raw.get("kind")),
        translation=text_field(_first_present(raw, "translation", "chunk_translation")),
        **annotations,
    )


def canonicalize_chunks(raw: object) -> tuple[Chunk, ...]:
    """Canonicalize a list of chunk records, skipping entries that are not records."""

    if not isinstance(raw, list):
        return ()
    out: list[Chunk] = []
    for position, item in enumerate(raw):
        if isinstance(item, (Mapping, str)):
            out.append(canonicalize_chunk(item))
        else:
            log.debug("Skipping chunk %d of type %s", position, type(item).__name__)
    return tuple(out)
