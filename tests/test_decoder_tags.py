"""Tests for diagram.decoder.tags: the inline <{role:attribute:meaning}> tokenizer."""
from __future__ import annotations

from diagram.decoder.tags import (
    parse_tag,
    render_marked_text,
    strip_tags,
    tokenize_marked_text,
)
from diagram.decoder.types import Kind, Role

NEWS = (
    "[The news]<{S:名詞句:その知らせは}> (that he died)<{M:同格のthat節:彼が亡くなったという}>"
    " was<{V}> false<{C:形容詞:誤り}>."
)


class TestParseTag:
    def test_role_only(self) -> None:
        assert parse_tag("S") == (Role.S, None, None)

    def test_three_fields(self) -> None:
        assert parse_tag("O:名詞:本を") == (Role.O, "名詞", "本を")

    def test_underscore_means_absent(self) -> None:
        assert parse_tag("V:_:走る") == (Role.V, None, "走る")

    def test_absent_role_is_unannotated(self) -> None:
        assert parse_tag("_:note") == (Role.NONE, "note", None)

    def test_extra_colons_stay_in_meaning(self) -> None:
        assert parse_tag("M:time:at 10:30") == (Role.M, "time", "at 10:30")


class TestTokenizeMarkedText:
    def test_three_chunk_example(self) -> None:
        chunks = tokenize_marked_text("A<{S}>B<{V}>C")
        assert [(c.text, c.role) for c in chunks] == [
            ("A", Role.S),
            ("B", Role.V),
            ("C", Role.NONE),
        ]

    def test_untagged_text_is_one_unannotated_chunk(self) -> None:
        chunks = tokenize_marked_text("  Just plain text.  ")
        assert len(chunks) == 1
        assert chunks[0].text == "Just plain text."
        assert chunks[0].role is Role.NONE
        assert not chunks[0].is_annotated

    def test_empty_input(self) -> None:
        assert tokenize_marked_text("") == ()
        assert tokenize_marked_text(None) == ()
        assert tokenize_marked_text("   ") == ()

    def test_full_sentence(self) -> None:
        chunks = tokenize_marked_text(NEWS)
        assert [c.text for c in chunks] == [
            "[The news]",
            "(that he died)",
            "was",
            "false",
            ".",
        ]
        assert [c.role for c in chunks] == [Role.S, Role.M, Role.V, Role.C, Role.NONE]
        assert chunks[0].attribute == "名詞句"
        assert chunks[0].meaning == "その知らせは"
        assert chunks[2].attribute is None
        assert chunks[2].meaning is None

    def test_kinds_follow_roles(self) -> None:
        chunks = tokenize_marked_text("that<{CONN}> he<{s'}> died<{v''}> quietly<{m'}>")
        assert [c.role for c in chunks] == [Role.CONN, Role.S_PRIME, Role.V_PRIME, Role.M_PRIME]
        assert [c.kind for c in chunks] == [
            Kind.CONNECTOR,
            Kind.NOUN,
            Kind.VERB,
            Kind.MODIFIER,
        ]

    def test_adjacent_unannotated_chunks_are_not_merged(self) -> None:
        chunks = tokenize_marked_text("A<{_}> B<{_}> C")
        assert [(c.text, c.role) for c in chunks] == [
            ("A", Role.NONE),
            ("B", Role.NONE),
            ("C", Role.NONE),
        ]

    def test_empty_spans_are_skipped(self) -> None:
        chunks = tokenize_marked_text("<{S}>run<{V}> <{O}>")
        assert [(c.text, c.role) for c in chunks] == [("run", Role.V)]

    def test_unterminated_delimiter_stays_literal(self) -> None:
        chunks = tokenize_marked_text("a <{ b")
        assert [(c.text, c.role) for c in chunks] == [("a <{ b", Role.NONE)]

    def test_empty_tag_stays_literal(self) -> None:
        chunks = tokenize_marked_text("x<{}>y<{S}>")
        assert [(c.text, c.role) for c in chunks] == [("x<{}>y", Role.S)]

    def test_unknown_role_becomes_modifier(self) -> None:
        chunks = tokenize_marked_text("very<{ADV}>")
        assert chunks[0].role is Role.M


class TestStripAndRender:
    def test_strip_tags(self) -> None:
        assert strip_tags("I<{S}> run<{V}>.") == "I run."
        assert strip_tags(None) == ""

    def test_render_round_trip(self) -> None:
        chunks = tokenize_marked_text(NEWS)
        assert tokenize_marked_text(render_marked_text(chunks)) == chunks

    def test_render_keeps_inner_unannotated_chunks_separate(self) -> None:
        chunks = tokenize_marked_text("and<{_}> I<{S}>")
        rendered = render_marked_text(chunks)
        assert rendered == "and<{_}> I<{S}>"
        assert tokenize_marked_text(rendered) == chunks

    def test_render_trims_absent_trailing_fields(self) -> None:
        chunks = tokenize_marked_text("run<{V:_:走る}>")
        assert render_marked_text(chunks) == "run<{V:_:走る}>"
