"""
Unit tests for {{key}} placeholder substitution.
"""
import pytest

from ai_dev_team.core.template_resolver import (
    TemplateResolver, Resolved, Unresolved, find_placeholders, substitute, to_display_text,
)


class TestSubstitute:
    """Test substitute() over strings and structures."""

    def test_string_placeholder_replaced(self):
        assert substitute("Build {{project_description}}", {"project_description": "a todo app"}) == "Build a todo app"

    def test_missing_key_left_verbatim(self):
        assert substitute("Use {{requirements}} now", {}) == "Use {{requirements}} now"

    def test_present_falsy_values_are_substituted(self):
        """Empty strings and zero are values, not absences."""
        context = {"empty": "", "zero": 0, "flag": False}

        assert substitute("[{{empty}}]", context) == "[]"
        assert substitute("n={{zero}}", context) == "n=0"
        assert substitute("{{flag}}", context) == "False"

    def test_none_value_is_substituted(self):
        assert substitute("v={{x}}", {"x": None}) == "v=None"

    def test_structured_value_rendered_as_json(self):
        result = substitute("Plan: {{req}}", {"req": {"title": "Todo"}})

        assert result == 'Plan: {\n  "title": "Todo"\n}'

    def test_mapping_keys_preserved_values_substituted(self):
        value = {"requirements": "{{requirements}}", "{{key}}": "static"}

        result = substitute(value, {"requirements": "R", "key": "K"})

        assert result == {"requirements": "R", "{{key}}": "static"}

    def test_nested_lists_and_tuples_keep_their_type(self):
        value = {"items": ["{{a}}", ("{{b}}", 3)], "n": 7}

        result = substitute(value, {"a": "A", "b": "B"})

        assert result == {"items": ["A", ("B", 3)], "n": 7}
        assert isinstance(result["items"][1], tuple)

    def test_non_text_leaves_pass_through(self):
        assert substitute(42, {"x": 1}) == 42
        assert substitute(None, {}) is None

    def test_input_is_not_mutated(self):
        value = {"a": ["{{x}}"]}

        substitute(value, {"x": "done"})

        assert value == {"a": ["{{x}}"]}

    def test_idempotent_without_placeholders(self):
        value = {"a": "plain", "b": [1, "two"]}

        assert substitute(substitute(value, {"a": 1}), {"a": 1}) == value

    def test_only_word_identifiers_match(self):
        assert substitute("{{not a key}} {{a-b}}", {"not a key": 1, "a-b": 2}) == "{{not a key}} {{a-b}}"

    def test_repeated_placeholder_replaced_everywhere(self):
        assert substitute("{{x}}+{{x}}", {"x": "1"}) == "1+1"


class TestTemplateResolver:
    """Test the tagged resolution API."""

    def test_resolve_placeholder_tags_result(self):
        resolver = TemplateResolver({"name": "Todo"})

        assert resolver.resolve_placeholder("name") == Resolved("name", "Todo")
        assert resolver.resolve_placeholder("missing") == Unresolved("missing", "{{missing}}")

    def test_unresolved_keys(self):
        resolver = TemplateResolver({"a": 1})

        assert resolver.unresolved_keys({"x": "{{a}} {{b}}", "y": ["{{c}}"]}) == ["b", "c"]


class TestHelpers:

    def test_find_placeholders_in_order_without_duplicates(self):
        assert find_placeholders(["{{b}} {{a}}", {"k": "{{b}}"}]) == ["b", "a"]

    def test_to_display_text(self):
        assert to_display_text("text") == "text"
        assert to_display_text([1, 2]) == "[\n  1,\n  2\n]"
        assert to_display_text(3.5) == "3.5"
