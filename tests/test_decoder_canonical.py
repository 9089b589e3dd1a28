"""Tests for diagram.decoder.canonical: role/kind canonicalization."""
from __future__ import annotations

import pytest

from diagram.decoder.canonical import (
    canon_kind,
    canon_role,
    canonicalize_chunk,
    canonicalize_chunks,
)
from diagram.decoder.types import Kind, Role

ROLE_SPELLINGS = [
    "S", "s", " v ", "o''", "O'''", "c’", "m'", "CONN", "conn", "Connect",
    "NONE", "none", "", "   ", "xyz", "S''V", "'", "S'  ", "s‘", "M′",
]


class TestCanonRole:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("S", Role.S),
            ("s", Role.S),
            (" v ", Role.V),
            ("o''", Role.O_PRIME),
            ("O'''", Role.O_PRIME),
            ("c’", Role.C_PRIME),
            ("s‘", Role.S_PRIME),
            ("M′", Role.M_PRIME),
            ("conn", Role.CONN),
            ("Connect", Role.CONN),
            ("NONE", Role.NONE),
            ("xyz", Role.M),
            ("", Role.M),
            (None, Role.M),
        ],
    )
    def test_known_spellings(self, raw: object, expected: Role) -> None:
        assert canon_role(raw) is expected

    @pytest.mark.parametrize("raw", ROLE_SPELLINGS)
    def test_always_member_of_role_set(self, raw: str) -> None:
        assert canon_role(raw) in set(Role)

    @pytest.mark.parametrize("raw", ROLE_SPELLINGS)
    def test_idempotent(self, raw: str) -> None:
        once = canon_role(raw)
        assert canon_role(once) is once
        assert canon_role(once.value) is once

    def test_non_string_input(self) -> None:
        assert canon_role(7) is Role.M


class TestCanonKind:
    @pytest.mark.parametrize(
        ("role", "kind"),
        [
            (Role.V, Kind.VERB),
            (Role.V_PRIME, Kind.VERB),
            (Role.CONN, Kind.CONNECTOR),
            (Role.M, Kind.MODIFIER),
            (Role.M_PRIME, Kind.MODIFIER),
            (Role.S, Kind.NOUN),
            (Role.S_PRIME, Kind.NOUN),
            (Role.O, Kind.NOUN),
            (Role.O_PRIME, Kind.NOUN),
            (Role.C, Kind.NOUN),
            (Role.C_PRIME, Kind.NOUN),
            (Role.NONE, Kind.NOUN),
        ],
    )
    def test_table(self, role: Role, kind: Kind) -> None:
        assert canon_kind(role) is kind

    def test_declared_literal_cannot_contradict_role(self) -> None:
        assert canon_kind(Role.S, "verb") is Kind.NOUN
        assert canon_kind(Role.V, "verb") is Kind.VERB

    def test_pure(self) -> None:
        assert [canon_kind(r) for r in Role] == [canon_kind(r) for r in Role]


class TestCanonicalizeChunk:
    def test_bogus_type_with_doubled_prime(self) -> None:
        chunk = canonicalize_chunk({"role": "o''", "type": "bogus"})
        assert chunk.role is Role.O_PRIME
        assert chunk.kind is Kind.NOUN

    def test_text_and_translation_default_to_empty(self) -> None:
        chunk = canonicalize_chunk({"role": "S"})
        assert chunk.text == ""
        assert chunk.translation == ""

    def test_chunk_text_aliases(self) -> None:
        chunk = canonicalize_chunk(
            {"chunk_text": "The news", "chunk_translation": "その知らせは", "role": "S"},
        )
        assert chunk.text == "The news"
        assert chunk.translation == "その知らせは"

    def test_role_letter_in_type(self) -> None:
        chunk = canonicalize_chunk({"text": "was", "type": "V"})
        assert chunk.role is Role.V
        assert chunk.kind is Kind.VERB

    def test_missing_role_defaults_to_modifier(self) -> None:
        chunk = canonicalize_chunk({"text": "quickly", "type": "modifier"})
        assert chunk.role is Role.M
        assert chunk.kind is Kind.MODIFIER

    def test_optional_annotations_present_only_when_non_empty(self) -> None:
        chunk = canonicalize_chunk(
            {
                "text": "in the park",
                "role": "M",
                "attribute": "",
                "meaning": "公園で",
                "explanation": "   ",
                "modifies": "run",
                "note": None,
            },
        )
        assert chunk.attribute is None
        assert chunk.meaning == "公園で"
        assert chunk.explanation is None
        assert chunk.modifies == "run"
        assert chunk.note is None

    def test_bare_string_chunk(self) -> None:
        chunk = canonicalize_chunk("hello")
        assert chunk.text == "hello"
        assert chunk.role is Role.M

    def test_canonicalize_chunks_skips_non_records(self) -> None:
        chunks = canonicalize_chunks([{"text": "I", "role": "S"}, 3, None, "run"])
        assert [c.text for c in chunks] == ["I", "run"]

    def test_canonicalize_chunks_non_list(self) -> None:
        assert canonicalize_chunks({"text": "I"}) == ()
        assert canonicalize_chunks(None) == ()
