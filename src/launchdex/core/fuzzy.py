"""
Launchdex Fuzzy Matching Utilities

Pure, stateless helpers shared by the providers: wildcard pattern
construction for index backends that only understand ``*`` globs,
alphanumeric tokenization for whole-word bonuses, and a bounded
edit-distance gate.
"""

import re
from typing import List

_NON_ALNUM = re.compile(r"[\W_]+")


def wildcard_pattern(query: str) -> str:
    """
    Interleave ``*`` between the characters of *query*.

    ``"abc"`` becomes ``"*a*b*c*"`` so a glob-only index performs a
    subsequence match.  An empty query matches everything (``"*"``).
    """
    if not query:
        return "*"
    return "*" + "*".join(query) + "*"


def tokens(text: str) -> List[str]:
    """Split *text* on non-alphanumeric runs into lowercase, non-empty tokens."""
    parts = _NON_ALNUM.split(text.lower())
    return [p for p in parts if p]


def is_edit_distance_le_one(a: str, b: str) -> bool:
    """
    True if *a* and *b* are identical or differ by exactly one
    substitution, insertion or deletion.

    Single pass over both strings; pairs whose lengths differ by more than
    one are rejected without comparing characters.  Transpositions count
    as two edits (``"warp"`` vs ``"wrap"`` is rejected).
    """
    len_a, len_b = len(a), len(b)
    if abs(len_a - len_b) > 1:
        return False

    i = j = 0
    edits = 0
    while i < len_a and j < len_b:
        if a[i] == b[j]:
            i += 1
            j += 1
            continue
        edits += 1
        if edits > 1:
            return False
        if len_a > len_b:
            i += 1
        elif len_b > len_a:
            j += 1
        else:
            i += 1
            j += 1

    # A trailing unmatched character on the longer side is one more edit.
    if i < len_a or j < len_b:
        edits += 1
    return edits <= 1


def wildcard_match(pattern: str, text: str) -> bool:
    """
    Case-insensitive match of *text* against a ``*``-only glob *pattern*.

    Segments between stars are located left to right with ``str.find``;
    the leftmost placement of each segment never rules out a later one,
    so a single pass decides the match without backtracking.
    """
    parts = pattern.casefold().split("*")
    text = text.casefold()
    if len(parts) == 1:
        return text == parts[0]

    head, *middle, tail = parts
    if not text.startswith(head):
        return False
    pos = len(head)
    for part in middle:
        found = text.find(part, pos)
        if found < 0:
            return False
        pos = found + len(part)
    return len(text) - pos >= len(tail) and text.endswith(tail)
