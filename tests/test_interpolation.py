"""Tests for template parameter interpolation."""

import pytest

from toolforge.tools.interpolation import (
    MAX_PARAM_LENGTH,
    InterpolationError,
    MissingParameterError,
    UnsafeValueError,
    ValueTooLongError,
    interpolate,
    placeholders,
)


class TestInterpolate:
    """Substitution of {{name}} placeholders."""

    def test_replaces_all_placeholders(self):
        assert interpolate("git log {{ref}} -n {{count}}", {"ref": "main", "count": 5}) == "git log main -n 5"

    def test_template_without_placeholders_is_unchanged(self):
        assert interpolate("plain text", {}) == "plain text"

    def test_same_placeholder_twice(self):
        assert interpolate("{{a}}-{{a}}", {"a": "x"}) == "x-x"

    def test_booleans_render_like_json(self):
        assert interpolate("{{flag}}", {"flag": True}) == "true"
        assert interpolate("{{flag}}", {"flag": False}) == "false"

    def test_zero_and_empty_string_are_not_missing(self):
        assert interpolate("[{{n}}]", {"n": 0}) == "[0]"
        assert interpolate("[{{s}}]", {"s": ""}) == "[]"

    def test_encode_percent_encodes_values(self):
        url = interpolate("https://x.test/items/{{id}}", {"id": "a b/c?d"}, encode=True)
        assert url == "https://x.test/items/a%20b%2Fc%3Fd"

    def test_placeholders_lists_names(self):
        assert placeholders("https://x/{{id}}/{{sub}}?q={{id}}") == {"id", "sub"}


class TestValueRules:
    """Validation applied to every substituted value."""

    @pytest.mark.parametrize("args", [{}, {"name": None}, {"other": "x"}])
    def test_missing_parameter(self, args):
        with pytest.raises(MissingParameterError) as exc_info:
            interpolate("hello {{name}}", args)
        assert exc_info.value.param_name == "name"
        assert "Missing required parameter: name" in str(exc_info.value)

    def test_null_byte_rejected(self):
        with pytest.raises(UnsafeValueError, match="null bytes"):
            interpolate("{{v}}", {"v": "abc\0def"})

    def test_value_at_limit_accepted(self):
        value = "x" * MAX_PARAM_LENGTH
        assert interpolate("{{v}}", {"v": value}) == value

    def test_value_over_limit_rejected(self):
        with pytest.raises(ValueTooLongError, match="exceeds maximum length of 10000"):
            interpolate("{{v}}", {"v": "x" * (MAX_PARAM_LENGTH + 1)})

    def test_errors_share_a_base_class(self):
        for error_cls in (MissingParameterError, UnsafeValueError, ValueTooLongError):
            assert issubclass(error_cls, InterpolationError)
            assert issubclass(error_cls, ValueError)

    def test_validation_runs_before_encoding(self):
        with pytest.raises(UnsafeValueError):
            interpolate("https://x/{{v}}", {"v": "\0"}, encode=True)
