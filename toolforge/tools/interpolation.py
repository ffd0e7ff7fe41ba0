"""
Parameter interpolation for handler templates.

Replaces `{{name}}` placeholders with caller-supplied argument values.
Every substituted value is validated first: it must be present, must not
contain null bytes and must stay under a fixed length ceiling. The shell
strategy interpolates token by token; the HTTP strategy asks for the
value to be percent-encoded before it is spliced into the URL.
"""

from __future__ import annotations

import re
from typing import Any, Mapping, Set
from urllib.parse import quote

MAX_PARAM_LENGTH = 10000

PLACEHOLDER_RE = re.compile(r"\{\{(\w+)\}\}")


class InterpolationError(ValueError):
    """Base class for argument values that cannot be substituted."""

    def __init__(self, param_name: str, message: str) -> None:
        super().__init__(message)
        self.param_name = param_name


class MissingParameterError(InterpolationError):
    def __init__(self, param_name: str) -> None:
        super().__init__(param_name, f"Missing required parameter: {param_name}")


class UnsafeValueError(InterpolationError):
    def __init__(self, param_name: str) -> None:
        super().__init__(
            param_name,
            f"Parameter '{param_name}' contains null bytes - potential security risk",
        )


class ValueTooLongError(InterpolationError):
    def __init__(self, param_name: str) -> None:
        super().__init__(
            param_name,
            f"Parameter '{param_name}' exceeds maximum length of {MAX_PARAM_LENGTH} characters",
        )


def stringify(value: Any) -> str:
    # JSON booleans arrive as Python bools; render them as the caller wrote them.
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def validate_value(value: str, param_name: str) -> None:
    if "\0" in value:
        raise UnsafeValueError(param_name)
    if len(value) > MAX_PARAM_LENGTH:
        raise ValueTooLongError(param_name)


def placeholders(template: str) -> Set[str]:
    """Return the set of parameter names referenced by `template`."""
    return set(PLACEHOLDER_RE.findall(template))


def interpolate(template: str, args: Mapping[str, Any], encode: bool = False) -> str:
    """
    Substitute every `{{name}}` in `template` with the matching argument.

    Args:
        template: Template text containing zero or more placeholders.
        args: Argument mapping supplied by the caller.
        encode: Percent-encode each value (for URLs) after validation.

    Returns:
        The interpolated string.

    Raises:
        MissingParameterError: A referenced argument is absent or None.
        UnsafeValueError: A value contains a null byte.
        ValueTooLongError: A value exceeds MAX_PARAM_LENGTH characters.
    """

    def _replace(match: "re.Match[str]") -> str:
        name = match.group(1)
        value = args.get(name)
        if value is None:
            raise MissingParameterError(name)
        text = stringify(value)
        validate_value(text, name)
        return quote(text, safe="") if encode else text

    return PLACEHOLDER_RE.sub(_replace, template)
