"""Recovery of type expressions from raw comment text.

Some type syntaxes (function types with arrows, for instance) make the host's
tag parser give up, leaving doclets without usable `type` data. The helpers
here re-read the raw comment line by line and pull out the balanced `{...}`
expression, the parameter name and the description. They are deliberately
line-oriented: a type that spans several comment lines is not recovered.
"""

from __future__ import annotations

import re
from typing import Collection, List, Optional, Tuple

from .models import TypeExpression

PARAM_TITLES = frozenset({"param", "arg", "argument"})
RETURN_TITLES = frozenset({"return", "returns"})
TYPE_TITLES = frozenset({"type"})

_TAG_TITLE = re.compile(r"^@(\w+)")


def find_type_span(text: str) -> Optional[Tuple[int, int]]:
    """Return `(start, end)` indices of the first balanced brace expression.

    `start` is the index of the opening `{` (one not directly preceded by
    `@`) and `end` the index of its matching `}`. A backslash escapes the
    following character, braces included.
    """
    start = _first_open_brace(text)
    if start == -1:
        return None
    depth = 0
    index = start
    while index < len(text):
        char = text[index]
        if char == "\\":
            index += 2
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return start, index
        index += 1
    return None


def extract_type_expression(text: str) -> Optional[str]:
    """Return the content of the first balanced `{...}` in `text`, or None."""
    span = find_type_span(text)
    if span is None:
        return None
    start, end = span
    return text[start + 1 : end].strip()


def parse_tag_line(line: str) -> Optional[TypeExpression]:
    """Split a `@param`, `@returns` or `@type` line into type, name and description."""
    stripped = line.strip()
    span = find_type_span(stripped)
    if span is None:
        return None
    start, end = span
    expression = stripped[start + 1 : end].strip()
    rest = stripped[end + 1 :].lstrip()

    name: Optional[str] = None
    if tag_title(stripped) in PARAM_TITLES:
        if not rest:
            return TypeExpression(type=expression)
        space = _first_whitespace(rest)
        if space == -1:
            return TypeExpression(type=expression, name=rest)
        name, rest = rest[:space], rest[space:].lstrip()

    if rest.startswith("- "):
        rest = rest[2:]
    return TypeExpression(type=expression, name=name, description=rest.strip())


def tag_title(line: str) -> Optional[str]:
    match = _TAG_TITLE.match(line.strip())
    return match.group(1) if match else None


def comment_lines(comment: str) -> List[str]:
    """Return the comment body lines without `/**`, `*/` and leading `*` decoration."""
    lines: List[str] = []
    for raw in comment.splitlines():
        line = raw.strip()
        if line.startswith("/**"):
            line = line[3:]
        if line.endswith("*/"):
            line = line[:-2]
        line = line.strip()
        if line.startswith("*"):
            line = line[1:]
        lines.append(line.strip())
    return lines


def comment_tag_lines(comment: str, titles: Collection[str]) -> List[str]:
    """Return the comment lines that start with one of the given tag titles."""
    return [line for line in comment_lines(comment) if tag_title(line) in titles]


def _first_open_brace(text: str) -> int:
    index = text.find("{")
    while index != -1:
        if index == 0 or text[index - 1] != "@":
            return index
        index = text.find("{", index + 1)
    return -1


def _first_whitespace(text: str) -> int:
    for index, char in enumerate(text):
        if char.isspace():
            return index
    return -1


__all__ = [
    "PARAM_TITLES",
    "RETURN_TITLES",
    "TYPE_TITLES",
    "comment_lines",
    "comment_tag_lines",
    "extract_type_expression",
    "find_type_span",
    "parse_tag_line",
    "tag_title",
]
