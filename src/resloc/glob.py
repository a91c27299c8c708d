# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Translate path-aware glob patterns into anchored regular expressions.

Supported syntax:

* ``/`` matches the segment separator literally.
* ``*`` matches any run of characters within a single segment.
* ``**`` matches any run of characters, crossing segment boundaries. A
  ``**/`` starting a segment also matches no directory at all, so ``a/**/z``
  matches ``a/z``.
* ``?`` matches exactly one character within a segment.
* ``{a,b}`` matches any of the comma separated alternatives. Groups do not nest.
* ``\\x`` matches ``x`` literally.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Final

from .errors import PatternSyntaxError

_REGEX_META: Final[frozenset[str]] = frozenset(".^$+{[]|()")
_SEPARATOR: Final[str] = "/"
_COMPILED_CACHE_SIZE: Final[int] = 512


@dataclass(frozen=True, slots=True)
class CompiledPattern:
    """Matcher produced by :func:`compile_glob`.

    Attributes:
        glob: Original glob pattern.
        regex: Anchored regular expression derived from ``glob``.
    """

    glob: str
    regex: str
    _compiled: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        """Compile ``regex`` once for repeated matching."""

        object.__setattr__(self, "_compiled", re.compile(self.regex, re.DOTALL))

    def matches(self, name: str) -> bool:
        """Return ``True`` when ``name`` matches the whole pattern.

        Args:
            name: Slash separated resource name.

        Returns:
            bool: ``True`` if the entire name matches.
        """

        return self._compiled.fullmatch(name) is not None

    def __call__(self, name: str) -> bool:
        """Allow compiled patterns to be used as name predicates."""

        return self.matches(name)


def glob_to_regex(pattern: str) -> str:
    """Return the anchored regular expression equivalent to ``pattern``.

    Args:
        pattern: Glob pattern to translate.

    Returns:
        str: Regular expression source anchored with ``^`` and ``$``.

    Raises:
        PatternSyntaxError: If ``pattern`` contains a dangling escape, a nested
            group or an unterminated group.
    """

    parts: list[str] = ["^"]
    in_group = False
    length = len(pattern)
    index = 0
    while index < length:
        char = pattern[index]
        index += 1
        if char == "\\":
            if index == length:
                raise PatternSyntaxError("No character to escape", pattern, index - 1)
            escaped = pattern[index]
            index += 1
            parts.append(re.escape(escaped))
        elif char == _SEPARATOR:
            parts.append(char)
        elif char == "{":
            if in_group:
                raise PatternSyntaxError("Cannot nest groups", pattern, index - 1)
            parts.append("(?:(?:")
            in_group = True
        elif char == "}":
            if in_group:
                parts.append("))")
                in_group = False
            else:
                parts.append(r"\}")
        elif char == ",":
            parts.append(")|(?:" if in_group else ",")
        elif char == "*":
            if index < length and pattern[index] == "*":
                index += 1
                segment_start = index == 2 or pattern[index - 3] == _SEPARATOR
                if segment_start and index < length and pattern[index] == _SEPARATOR:
                    # "**/" also matches zero directories
                    parts.append("(?:.*/)?")
                    index += 1
                else:
                    parts.append(".*")
            else:
                parts.append("[^/]*")
        elif char == "?":
            parts.append("[^/]")
        elif char in _REGEX_META or not (char.isalnum() or char in "_-"):
            parts.append(re.escape(char))
        else:
            parts.append(char)
    if in_group:
        raise PatternSyntaxError("Missing '}'", pattern, length - 1)
    parts.append("$")
    return "".join(parts)


def compile_glob(pattern: str) -> CompiledPattern:
    """Compile ``pattern`` into a :class:`CompiledPattern`.

    Args:
        pattern: Glob pattern to compile.

    Returns:
        CompiledPattern: Anchored matcher for ``pattern``.

    Raises:
        PatternSyntaxError: If ``pattern`` is malformed.
    """

    return CompiledPattern(glob=pattern, regex=glob_to_regex(pattern))


@lru_cache(maxsize=_COMPILED_CACHE_SIZE)
def cached_compile_glob(pattern: str) -> CompiledPattern:
    """Return a memoized :func:`compile_glob` result for ``pattern``."""

    return compile_glob(pattern)


__all__ = ["CompiledPattern", "cached_compile_glob", "compile_glob", "glob_to_regex"]
