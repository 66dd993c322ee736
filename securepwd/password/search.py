"""
Search and Comparison
=====================

Read-only algorithms over unit sequences.

Substring search uses the prefix function (Knuth-Morris-Pratt), so
both directions run in linear time even for patterns with repeated
prefixes. The prefix table only stores match lengths, never units.

None of these functions mutate their inputs.
"""

from __future__ import annotations

from typing import Optional

from securepwd.password.units import NPOS, UnitSequence


def three_way_compare(lhs: UnitSequence, rhs: UnitSequence) -> int:
    """
    Lexicographic three-way comparison.

    Compares the overlapping prefix unit by unit; when it is equal,
    the shorter sequence is less.

    Returns:
        -1, 0 or 1
    """
    lhs_len = len(lhs)
    rhs_len = len(rhs)
    for i in range(min(lhs_len, rhs_len)):
        a = lhs[i]
        b = rhs[i]
        if a != b:
            return -1 if a < b else 1
    return (lhs_len > rhs_len) - (lhs_len < rhs_len)


def prefix_function(pattern: UnitSequence, reverse: bool = False) -> list[int]:
    """
    Compute the prefix function of ``pattern``.

    ``table[i]`` is the length of the longest proper prefix of
    ``pattern[:i + 1]`` that is also its suffix. With ``reverse``,
    the table is computed for the pattern read back to front.
    """
    length = len(pattern)
    last = length - 1
    table = [0] * length
    k = 0
    for i in range(1, length):
        unit = pattern[last - i] if reverse else pattern[i]
        while k and unit != (pattern[last - k] if reverse else pattern[k]):
            k = table[k - 1]
        if unit == (pattern[last - k] if reverse else pattern[k]):
            k += 1
        table[i] = k
    return table


def find_units(haystack: UnitSequence, pattern: UnitSequence, pos: int = 0) -> int:
    """
    Find the first occurrence of ``pattern`` starting at or after ``pos``.

    Returns NPOS when ``pos`` is at or past the end, even for an empty
    pattern; an empty pattern otherwise matches at ``pos``.
    """
    size = len(haystack)
    count = len(pattern)

    if pos >= size:
        return NPOS
    if not count:
        return pos

    table = prefix_function(pattern)
    matched = 0
    for i in range(pos, size):
        unit = haystack[i]
        while matched and unit != pattern[matched]:
            matched = table[matched - 1]
        if unit == pattern[matched]:
            matched += 1
            if matched == count:
                return i + 1 - count

    return NPOS


def rfind_units(haystack: UnitSequence, pattern: UnitSequence, pos: Optional[int] = None) -> int:
    """
    Find the right-most occurrence of ``pattern`` lying within ``[0, pos]``.

    ``pos`` is clamped to the last unit. An empty pattern matches at
    ``min(pos, size)``. An empty haystack never matches.
    """
    size = len(haystack)
    count = len(pattern)

    if not size:
        return NPOS
    if not count:
        return size if pos is None or pos >= size else pos
    if pos is None or pos >= size:
        pos = size - 1

    # Scan backward matching the pattern from its last unit
    table = prefix_function(pattern, reverse=True)
    last = count - 1
    matched = 0
    for i in range(pos, -1, -1):
        unit = haystack[i]
        while matched and unit != pattern[last - matched]:
            matched = table[matched - 1]
        if unit == pattern[last - matched]:
            matched += 1
            if matched == count:
                return i

    return NPOS


def starts_with_units(haystack: UnitSequence, pattern: UnitSequence) -> bool:
    """Return True if ``haystack`` begins with ``pattern``."""
    length = len(pattern)
    if len(haystack) < length:
        return False
    for i in range(length):
        if haystack[i] != pattern[i]:
            return False
    return True


def ends_with_units(haystack: UnitSequence, pattern: UnitSequence) -> bool:
    """Return True if ``haystack`` ends with ``pattern``."""
    size = len(haystack)
    length = len(pattern)
    if size < length:
        return False
    for i in range(1, length + 1):
        if haystack[size - i] != pattern[length - i]:
            return False
    return True
