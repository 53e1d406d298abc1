"""Tests for the pattern compiler -- placeholders, escapes and errors."""

from __future__ import annotations

import pytest

from trackimport.core.pattern_compiler import CompiledPattern, PatternError, compile_pattern
from trackimport.models.fields import FieldType


def _captures(pattern: CompiledPattern, text: str) -> dict[str, str]:
    match = pattern.regex.search(text)
    assert match is not None
    return {str(g.field_id): match.group(g.group) for g in pattern.fields}


class TestCompile:
    def test_title_round_trip(self):
        pattern = compile_pattern(r"Title: %{title}(.+)")
        assert _captures(pattern, "Title: Bleed For Ancient Gods") == {
            "title": "Bleed For Ancient Gods"
        }

    def test_fields_in_pattern_order(self):
        pattern = compile_pattern(r"%{track}(\d+)\t%{title}([^\t]*)\t%{duration-mm-ss}(\d+:\d+)")
        assert [g.field_id.type for g in pattern.fields] == [
            FieldType.TRACK, FieldType.TITLE, FieldType.DURATION,
        ]
        assert pattern.fields[2].placeholder == "duration-mm-ss"
        assert pattern.has_field(FieldType.TRACK)
        assert not pattern.has_field(FieldType.ALBUM)

    def test_same_field_twice(self):
        pattern = compile_pattern(r"%{artist}(\w+) and %{artist}(\w+)")
        match = pattern.regex.search("Alice and Bob")
        assert [match.group(g.group) for g in pattern.fields] == ["Alice", "Bob"]

    def test_percent_brace_inside_class_is_literal(self):
        pattern = compile_pattern(r"[%{]%{title}(.+)")
        assert [g.field_id.type for g in pattern.fields] == [FieldType.TITLE]
        assert _captures(pattern, "{Odin") == {"title": "Odin"}
        assert _captures(pattern, "%Odin") == {"title": "Odin"}

    def test_short_code_inside_class_is_literal(self):
        pattern = compile_pattern(r"[%s(]+%{title}(\w+)")
        assert _captures(pattern, "s(%Intro") == {"title": "Intro"}

    def test_unterminated_class(self):
        with pytest.raises(PatternError):
            compile_pattern(r"[%{title}(.+)")

    def test_user_groups_do_not_shift_placeholders(self):
        pattern = compile_pattern(r"(?:CD\s*)?(\d+)-%{track}(\d+) %{title}(.+)")
        assert _captures(pattern, "CD 1-07 Song") == {"track number": "07", "title": "Song"}

    def test_nested_groups_in_sub_pattern(self):
        pattern = compile_pattern(r"%{title}((?:[^()]|\([^)]*\))+)$")
        assert _captures(pattern, "Song (Live)") == {"title": "Song (Live)"}

    def test_escaped_paren_and_class_in_sub_pattern(self):
        pattern = compile_pattern(r"%{comment}(\)[)]x)")
        assert _captures(pattern, "a))x") == {"comment": "))x"}

    def test_short_codes(self):
        pattern = compile_pattern(r"%a(.+) - %s(.+)")
        assert _captures(pattern, "Band - Song") == {"artist": "Band", "title": "Song"}

    def test_percent_escape(self):
        pattern = compile_pattern(r"%{title}(\w+) 100%%")
        assert _captures(pattern, "Song 100%") == {"title": "Song"}

    def test_short_code_without_group_is_literal(self):
        pattern = compile_pattern(r"%{title}(\w+) 50%a")
        assert _captures(pattern, "Song 50%a") == {"title": "Song"}

    def test_unknown_placeholder_is_custom_field(self):
        pattern = compile_pattern(r"%{catalog}([A-Z]+\d+)")
        assert pattern.fields[0].field_id.type is FieldType.OTHER
        assert _captures(pattern, "x MB123") == {"catalog": "MB123"}

    def test_empty_pattern(self):
        pattern = compile_pattern("")
        assert pattern.is_empty
        assert pattern.fields == ()

    def test_compiled_pattern_is_immutable(self):
        pattern = compile_pattern(r"%{title}(.+)")
        with pytest.raises(AttributeError):
            pattern.source = "other"  # type: ignore[misc]


class TestPatternError:
    def test_placeholder_without_sub_pattern(self):
        with pytest.raises(PatternError) as exc_info:
            compile_pattern("%{title}")
        assert exc_info.value.pattern == "%{title}"
        assert "sub-pattern" in exc_info.value.reason

    def test_placeholder_followed_by_text(self):
        with pytest.raises(PatternError):
            compile_pattern(r"%{title} (.+)")

    def test_unclosed_sub_pattern(self):
        with pytest.raises(PatternError) as exc_info:
            compile_pattern(r"%{title}(.+")
        assert "not closed" in exc_info.value.reason

    def test_invalid_embedded_expression(self):
        with pytest.raises(PatternError):
            compile_pattern(r"%{title}(.+)[a-")

    def test_invalid_quantifier(self):
        with pytest.raises(PatternError):
            compile_pattern(r"%{track}(*\d)")

    def test_is_value_error(self):
        with pytest.raises(ValueError):
            compile_pattern("%{artist}")
