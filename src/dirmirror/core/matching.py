"""Path matching for include/exclude lists and wildcards.

This module provides:
- substring_match: Case-insensitive containment test
- check_wildcard: Three-way evaluation of a limited wildcard pattern
- wildcard_match: Boolean wildcard test (grammar errors never match)

Wildcard grammar:
    abc     literal characters, compared case-insensitively
    ?       exactly one character
    *       zero or more characters (at most one per pattern)
    [a-c]   one character in the inclusive range
    [xyz]   one character from the set
    / \\    either separator matches either separator

The ``*`` token does not backtrack. It skips one character (unless the
current character already equals the character after ``*``), then jumps to
the LAST occurrence of that character in the rest of the text. The character
after ``*`` is always taken literally, so ``"*[0-9]"`` looks for a ``[``.
``"*.txt"`` therefore matches ``"report.txt"`` but not ``"report.txt.bak"``.
"""

from __future__ import annotations

from collections.abc import Callable

from dirmirror.core.types import MatchResult

SEPARATORS = "/\\"

# Single-character predicate produced by parsing one pattern token
CharTest = Callable[[str], bool]


def substring_match(needle: str, haystack: str) -> bool:
    """Check whether ``needle`` occurs anywhere in ``haystack``.

    Comparison is case-insensitive. An empty needle never matches.

    Args:
        needle: Substring to look for.
        haystack: Text to search (usually an absolute path).

    Returns:
        True if the needle was found.
    """
    if not needle or len(needle) > len(haystack):
        return False
    return needle.lower() in haystack.lower()


def _parse_bracket(pattern: str, r: int) -> tuple[CharTest, int] | None:
    """Parse a ``[...]`` group starting at ``pattern[r] == "["``.

    Returns:
        (predicate, index after the closing bracket), or None if the
        group is not terminated.
    """
    r += 1
    ranges: list[tuple[str, str]] = []
    members: set[str] = set()
    while r < len(pattern) and pattern[r] != "]":
        if r + 1 < len(pattern) and pattern[r + 1] == "-":
            if r + 2 >= len(pattern):
                return None
            ranges.append((pattern[r].lower(), pattern[r + 2].lower()))
            r += 3
        else:
            members.add(pattern[r].lower())
            r += 1
    if r >= len(pattern):
        return None

    def test(c: str) -> bool:
        c = c.lower()
        return c in members or any(low <= c <= high for low, high in ranges)

    return test, r + 1


def _parse_single(pattern: str, r: int) -> tuple[CharTest, int] | None:
    """Parse the single-character token at ``pattern[r]``.

    Handles bracket groups, separators and literals. ``?`` and ``*`` are
    handled by the caller.
    """
    token = pattern[r]
    if token == "[":
        return _parse_bracket(pattern, r)
    if token in SEPARATORS:
        return (lambda c: c in SEPARATORS), r + 1
    literal = token.lower()
    return (lambda c: c.lower() == literal), r + 1


def _count_stars(pattern: str) -> int:
    """Count ``*`` tokens outside of bracket groups."""
    count = 0
    in_group = False
    for c in pattern:
        if in_group:
            in_group = c != "]"
        elif c == "[":
            in_group = True
        elif c == "*":
            count += 1
    return count


def check_wildcard(pattern: str, text: str) -> MatchResult:
    """Evaluate ``pattern`` against the whole of ``text``.

    Args:
        pattern: Wildcard pattern in the grammar described above.
        text: Text to test.

    Returns:
        MatchResult.MATCH, MatchResult.NO_MATCH, or MatchResult.ERROR when
        the pattern is malformed (unterminated bracket, more than one ``*``,
        ``*`` followed by another wildcard).
    """
    if _count_stars(pattern) > 1:
        return MatchResult.ERROR

    s = 0
    r = 0
    while s < len(text) or r < len(pattern):
        if r >= len(pattern):
            # Text left over after the pattern ran out
            return MatchResult.NO_MATCH

        token = pattern[r]
        if token == "?":
            if s >= len(text):
                return MatchResult.NO_MATCH
            s += 1
            r += 1
            continue

        if token == "*":
            r += 1
            if r >= len(pattern):
                return MatchResult.MATCH
            if pattern[r] in "*?":
                return MatchResult.ERROR
            anchor = pattern[r].lower()
            r += 1

            if s < len(text) and text[s].lower() != anchor:
                s += 1
            last = -1
            for i in range(s, len(text)):
                if text[i].lower() == anchor:
                    last = i
            if last != -1:
                s = last
            if s >= len(text) or text[s].lower() != anchor:
                return MatchResult.NO_MATCH
            s += 1
            continue

        parsed = _parse_single(pattern, r)
        if parsed is None:
            return MatchResult.ERROR
        test, r = parsed
        if s >= len(text) or not test(text[s]):
            return MatchResult.NO_MATCH
        s += 1

    return MatchResult.MATCH


def wildcard_match(pattern: str, text: str) -> bool:
    """Check whether ``text`` matches ``pattern``.

    Grammar errors are reported as a non-match.
    """
    return check_wildcard(pattern, text) == MatchResult.MATCH
