"""Restricted wildcard dialect used by include/exclude filters.

Only four pattern shapes are understood. This is deliberately not shell
globbing: there are no character classes, no brace expansion and no `**`.

    *.ext      suffix     path ends with ".ext", at any depth
    dir/*      directory  path lies strictly inside "dir/"
    a*b        single     path starts with "a" and ends with "b"
    name       literal    path is "name" or lies under "name/"

A residual pattern with more than one `*` never matches.
"""

from __future__ import annotations

from enum import StrEnum, auto
from functools import lru_cache
from typing import TYPE_CHECKING, NamedTuple

if TYPE_CHECKING:
    from collections.abc import Iterable


class PatternKind(StrEnum):
    SUFFIX = auto()
    DIRECTORY = auto()
    SINGLE_WILDCARD = auto()
    LITERAL = auto()
    UNMATCHABLE = auto()


class ClassifiedPattern(NamedTuple):
    kind: PatternKind
    head: str
    tail: str = ""


@lru_cache(maxsize=1024)
def classify_pattern(pattern: str) -> ClassifiedPattern:
    """Classify a filter pattern into one of the recognized shapes.

    Args:
        pattern (str): the user pattern

    Returns:
        ClassifiedPattern: the shape plus the literal parts needed to match it.
            For SUFFIX, `head` is the required suffix; for DIRECTORY, the required
            prefix (including the trailing slash); for SINGLE_WILDCARD, the prefix
            and suffix around the star; for LITERAL, the pattern itself.
    """
    if pattern.startswith("*."):
        return ClassifiedPattern(PatternKind.SUFFIX, pattern[1:])
    if pattern.endswith("/*"):
        return ClassifiedPattern(PatternKind.DIRECTORY, pattern[:-1])
    if "*" in pattern:
        parts = pattern.split("*")
        if len(parts) == 2:  # noqa: PLR2004
            return ClassifiedPattern(PatternKind.SINGLE_WILDCARD, parts[0], parts[1])
        return ClassifiedPattern(PatternKind.UNMATCHABLE, pattern)
    return ClassifiedPattern(PatternKind.LITERAL, pattern)


def matches(pattern: str, path: str) -> bool:
    """Evaluate one filter pattern against one slash-normalized relative path.

    Args:
        pattern (str): the filter pattern
        path (str): the candidate path, relative to the repository root

    Returns:
        bool: True if the pattern selects the path
    """
    shape = classify_pattern(pattern)
    match shape.kind:
        case PatternKind.SUFFIX:
            return path.endswith(shape.head)
        case PatternKind.DIRECTORY:
            return path.startswith(shape.head) and len(path) > len(shape.head)
        case PatternKind.SINGLE_WILDCARD:
            return path.startswith(shape.head) and path.endswith(shape.tail)
        case PatternKind.LITERAL:
            return path == shape.head or path.startswith(shape.head + "/")
        case _:
            return False


def first_match(patterns: Iterable[str], path: str) -> str | None:
    """Return the first pattern that matches `path`, or None."""
    for pattern in patterns:
        if matches(pattern, path):
            return pattern
    return None


def matches_any(patterns: Iterable[str], path: str) -> bool:
    """Check if a path matches any of the provided patterns.

    Args:
        patterns (Iterable[str]): the patterns to try, in order
        path (str): the candidate path

    Returns:
        bool: True if at least one pattern matches
    """
    return first_match(patterns, path) is not None
