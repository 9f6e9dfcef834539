"""Line-oriented search helpers shared by the field extractors.

Amounts and dates are usually printed on, just above, or just below the
line carrying their label. These helpers express that search as ordered
strategies where the first non-``None`` result wins.
"""

import re
from collections.abc import Callable, Iterable, Sequence
from typing import TypeVar

T = TypeVar("T")

LineFinder = Callable[[Sequence[str], str], int | None]


def first_success(strategies: Iterable[Callable[[], T | None]]) -> T | None:
    """Run strategies in order and return the first non-``None`` result."""
    for strategy in strategies:
        value = strategy()
        if value is not None:
            return value
    return None


def radius_scan(
    lines: Sequence[str],
    index: int,
    extract: Callable[[str], T | None],
    before: int = 3,
    after: int = 1,
) -> T | None:
    """Extract from a line, then from its neighbours.

    The line at ``index`` is tried first, then up to ``before`` preceding
    lines (nearest first), then up to ``after`` following lines.
    """
    order = [index]
    order += [index - i for i in range(1, before + 1) if index - i >= 0]
    order += [index + i for i in range(1, after + 1) if index + i < len(lines)]
    return first_success(lambda i=i: extract(lines[i]) for i in order)


def find_line_containing(lines: Sequence[str], keyword: str) -> int | None:
    """Index of the first line containing ``keyword`` (case-insensitive)."""
    keyword = keyword.lower()
    for i, line in enumerate(lines):
        if keyword in line.lower():
            return i
    return None


def find_line_with_word(lines: Sequence[str], keyword: str) -> int | None:
    """Index of the first line where ``keyword`` starts a word.

    Only the start is anchored, so ``"Subtotal"`` does not match ``"total"``
    but an OCR-squashed ``"TOTAL15.50"`` does.
    """
    words = r"\s+".join(re.escape(word) for word in keyword.split())
    pattern = re.compile(rf"(?<![a-z]){words}", re.IGNORECASE)
    for i, line in enumerate(lines):
        if pattern.search(line):
            return i
    return None


def find_line_squashed(lines: Sequence[str], keyword: str) -> int | None:
    """Like :func:`find_line_containing`, but tolerant of OCR spacing.

    A line also matches when it contains the keyword after all whitespace
    is removed from both, so ``"Due  Da te"`` still matches ``"due date"``.
    """
    keyword = keyword.lower()
    squashed_keyword = re.sub(r"\s+", "", keyword)
    for i, line in enumerate(lines):
        lowered = line.lower()
        if keyword in lowered or squashed_keyword in re.sub(r"\s+", "", lowered):
            return i
    return None


def keyword_search(
    lines: Sequence[str],
    keywords: Iterable[str],
    extract: Callable[[str], T | None],
    find_line: LineFinder = find_line_containing,
    before: int = 3,
    after: int = 1,
) -> T | None:
    """Try each keyword in priority order with a radius scan around its line.

    Args:
        lines: Document text split into lines.
        keywords: Labels to look for, most specific first.
        extract: Pulls a value out of a single line, or returns ``None``.
        find_line: Locates the line for a keyword.
        before: Preceding lines to scan when the keyword line has no value.
        after: Following lines to scan after the preceding ones.

    Returns:
        The first value found, or ``None``.
    """
    for keyword in keywords:
        index = find_line(lines, keyword)
        if index is None:
            continue
        value = radius_scan(lines, index, extract, before, after)
        if value is not None:
            return value
    return None
