"""Pattern compiler -- turns the ``%{field}(sub-pattern)`` DSL into a regex.

The DSL is deliberately thin: everything outside a placeholder is passed to
``re`` as-is, so users can put quantifiers, alternations and character
classes between placeholders. A placeholder is ``%{name}`` (or one of the
short codes ``%s %l %a %c %y %t %g %d``) immediately followed by a
parenthesized sub-pattern whose match becomes the field value::

    %{track}(\\d+)\\t%{title}([^\\t]*)\\t%{duration-mm-ss}(\\d+:\\d+)

``%%`` stands for a literal percent sign.

Each placeholder group is emitted as a synthetic named group ``_f<n>``
numbered by position, so one field may be captured several times and
capturing groups written by the user do not shift the numbering.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from trackimport.models.fields import FieldId, FieldType
from trackimport.utils.constants import SHORT_PLACEHOLDER_CODES
from trackimport.utils.logger import get_logger

logger = get_logger("core.pattern_compiler")

_GROUP_PREFIX = "_f"


class PatternError(ValueError):
    """A pattern could not be compiled.

    Attributes:
        pattern: The offending pattern text.
        reason: Human-readable description of the problem.
    """

    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(f"Invalid import pattern {pattern!r}: {reason}")
        self.pattern = pattern
        self.reason = reason


@dataclass(frozen=True)
class PlaceholderGroup:
    """Binding between a regex group and a field.

    Attributes:
        group: Synthetic group name in the compiled regex.
        field_id: Field receiving the captured text.
        placeholder: Placeholder name as written in the pattern, which
            decides how the capture is normalized (e.g. ``duration-seconds``).
    """

    group: str
    field_id: FieldId
    placeholder: str


@dataclass(frozen=True)
class CompiledPattern:
    """Immutable, executable form of a DSL pattern.

    Attributes:
        source: The DSL text the pattern was compiled from.
        regex: Compiled expression, None for an empty pattern.
        fields: Placeholder groups in pattern order.
    """

    source: str
    regex: re.Pattern | None
    fields: tuple[PlaceholderGroup, ...] = ()

    @property
    def is_empty(self) -> bool:
        """True for an empty pattern, which never matches."""
        return self.regex is None

    def has_field(self, field_type: FieldType) -> bool:
        """Check if any placeholder captures the given field type."""
        return any(group.field_id.type is field_type for group in self.fields)


def _find_class_end(text: str, open_pos: int) -> int:
    """Return the index of the ``]`` closing the class at ``open_pos``.

    Returns ``len(text)`` for an unterminated class; ``re`` reports that.
    """
    pos = open_pos + 1
    length = len(text)
    if pos < length and text[pos] == "^":
        pos += 1
    # A ']' right after '[' or '[^' is a literal member
    if pos < length and text[pos] == "]":
        pos += 1
    while pos < length and text[pos] != "]":
        pos += 2 if text[pos] == "\\" else 1
    return min(pos, length)


def _find_group_end(text: str, open_pos: int) -> int:
    """Return the index of the parenthesis closing the group at ``open_pos``.

    Escaped characters and character classes are skipped, so ``\\)`` and
    ``[)]`` do not close the group.

    Returns:
        Index of the matching ``)``, or -1 if the group is never closed.
    """
    depth = 0
    pos = open_pos
    length = len(text)
    while pos < length:
        char = text[pos]
        if char == "\\":
            pos += 2
            continue
        if char == "[":
            pos = _find_class_end(text, pos)
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return pos
        pos += 1
    return -1


def _read_placeholder(text: str, pos: int) -> tuple[str, int] | None:
    """Read the placeholder starting at ``text[pos] == '%'``.

    Returns:
        (placeholder name, index after the placeholder token), or None if
        the ``%`` does not start a placeholder.
    """
    if text.startswith("%{", pos):
        close = text.find("}", pos + 2)
        if close > pos + 2:
            return text[pos + 2:close].strip(), close + 1
        return None
    code = text[pos + 1:pos + 2]
    # Short codes only count when a sub-pattern follows, so that literal
    # text such as "100%a" keeps working.
    if code in SHORT_PLACEHOLDER_CODES and text.startswith("(", pos + 2):
        return SHORT_PLACEHOLDER_CODES[code], pos + 2
    return None


def compile_pattern(text: str) -> CompiledPattern:
    """Compile a DSL pattern.

    Args:
        text: Pattern text, e.g. ``"%{title}(.+)"``. An empty string yields
            a pattern that never matches.

    Returns:
        The compiled pattern.

    Raises:
        PatternError: If a placeholder has no sub-pattern, a sub-pattern is
            not closed, or the resulting expression is not valid.
    """
    if not text:
        return CompiledPattern(source=text, regex=None)

    parts: list[str] = []
    groups: list[PlaceholderGroup] = []
    pos = 0
    length = len(text)
    while pos < length:
        char = text[pos]
        if char == "\\":
            parts.append(text[pos:pos + 2])
            pos += 2
            continue
        if char == "[":
            # Placeholders are not recognized inside a character class
            end = _find_class_end(text, pos)
            parts.append(text[pos:end + 1].replace("%%", "%"))
            pos = end + 1
            continue
        if char != "%":
            parts.append(char)
            pos += 1
            continue
        if text.startswith("%%", pos):
            parts.append("%")
            pos += 2
            continue

        placeholder = _read_placeholder(text, pos)
        if placeholder is None:
            parts.append(char)
            pos += 1
            continue

        name, after = placeholder
        if not text.startswith("(", after):
            raise PatternError(text, f"placeholder %{{{name}}} has no following sub-pattern")
        close = _find_group_end(text, after)
        if close < 0:
            raise PatternError(text, f"sub-pattern of %{{{name}}} is not closed")

        group = f"{_GROUP_PREFIX}{len(groups)}"
        groups.append(PlaceholderGroup(group, FieldId.from_name(name), name.lower()))
        parts.append(f"(?P<{group}>{text[after + 1:close]})")
        pos = close + 1

    expression = "".join(parts)
    try:
        regex = re.compile(expression)
    except re.error as exc:
        raise PatternError(text, str(exc)) from exc

    logger.debug("Compiled pattern %r with %d placeholder(s)", text, len(groups))
    return CompiledPattern(source=text, regex=regex, fields=tuple(groups))
