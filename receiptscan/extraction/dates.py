"""Transaction date extraction.

Dates are parsed through a cascade: a tolerant regular expression for
numeric and named-month formats, the same numeric formats after removing
all whitespace, and finally a digit salvage pass that looks for a
month/day/year triple in the bare digits of a line. OCR often splits or
drops characters in dates, and each step recovers a class of those errors.
"""

import calendar
import datetime
import re
from collections.abc import Callable

from receiptscan.models import FieldGuess, Provenance
from receiptscan.utils.logger import get_logger

from .search import find_line_squashed, first_success, keyword_search

logger = get_logger(__name__)

DUE_DATE_WINDOW_DAYS = 45

DATE_KEYWORDS: tuple[str, ...] = (
    "due date",
    "bill date",
    "statement date",
    "date",
    "service period",
    "due after",
    "amount due after",
    "amount due afer",
)

BILL_DATE_KEYWORDS: tuple[str, ...] = (
    "bill date",
    "statement date",
    "date of bill",
    "invoice date",
)

_MONTHS = (
    "January|February|March|April|May|June|July|August|September|October|"
    "November|December|Jan|Feb|Mar|Apr|Jun|Jul|Aug|Sept|Sep|Oct|Nov|Dec"
)
_MONTH_ABBREVIATIONS = (
    "jan", "feb", "mar", "apr", "may", "jun",
    "jul", "aug", "sep", "oct", "nov", "dec",
)
_MONTH_NUMBERS = {name: i + 1 for i, name in enumerate(_MONTH_ABBREVIATIONS)}

_SEP = r"\s*[/\-.]\s*"

_DATE_RE = re.compile(
    rf"(?P<ymd>\d{{4}}{_SEP}\d{{1,2}}{_SEP}\d{{1,2}})"
    rf"|(?P<mdy>\d{{1,2}}{_SEP}\d{{1,2}}{_SEP}\d{{2,4}})"
    rf"|\b(?P<named_md>(?:{_MONTHS})\.?\s+\d{{1,2}}(?:st|nd|rd|th)?[,\s]*\d{{4}})\b"
    rf"|\b(?P<named_dm>\d{{1,2}}(?:st|nd|rd|th)?\s+(?:{_MONTHS})\.?[,\s]*\d{{4}})\b",
    re.IGNORECASE,
)

_SQUASHED_RE = re.compile(
    r"(?P<ymd>\d{4}[/\-.]\d{1,2}[/\-.]\d{1,2})"
    r"|(?P<mdy>\d{1,2}[/\-.]\d{1,2}[/\-.]\d{2,4})"
)

_SALVAGE_RE = re.compile(r"(\d{2})[01]?(\d{2})[01]?(20[2-9]\d)")

_MONTH_NAME_RE = re.compile(_MONTHS, re.IGNORECASE)


def _make_date(year: int, month: int, day: int) -> datetime.date | None:
    try:
        return datetime.date(year, month, day)
    except ValueError:
        return None


def _expand_year(raw: str) -> int | None:
    year = int(raw)
    if len(raw) == 2:
        return 2000 + year if year < 50 else 1900 + year
    if len(raw) == 4:
        return year
    return None


def parse_numeric_date(value: str, day_first: bool = False) -> datetime.date | None:
    """Parse ``YYYY-MM-DD`` or ``M/D/Y`` style text into a date.

    Separators may be ``/``, ``-`` or ``.`` with optional spaces around them.
    Two-field-first dates are month-first unless ``day_first`` is set; a
    first field above 12 is always read as the day.
    """
    parts = re.split(r"\s*[/\-.]\s*", value.strip())
    if len(parts) != 3:
        return None
    if len(parts[0]) == 4:
        return _make_date(int(parts[0]), int(parts[1]), int(parts[2]))

    year = _expand_year(parts[2])
    if year is None:
        return None
    first, second = int(parts[0]), int(parts[1])
    month, day = (second, first) if day_first else (first, second)
    if month > 12 and day <= 12:
        month, day = day, month
    return _make_date(year, month, day)


def parse_named_date(value: str) -> datetime.date | None:
    """Parse ``Jan 5, 2024`` or ``5th January 2024`` style text."""
    month_match = _MONTH_NAME_RE.search(value)
    numbers = re.findall(r"\d+", value)
    if month_match is None or len(numbers) < 2:
        return None
    month = _MONTH_NUMBERS[month_match.group(0)[:3].lower()]
    return _make_date(int(numbers[-1]), month, int(numbers[0]))


def _from_match(match: re.Match[str], day_first: bool) -> datetime.date | None:
    if match.group("ymd") or match.group("mdy"):
        return parse_numeric_date(match.group(0), day_first)
    return parse_named_date(match.group(0))


def _regex_pass(text: str, day_first: bool) -> datetime.date | None:
    return first_success(
        lambda m=m: _from_match(m, day_first) for m in _DATE_RE.finditer(text)
    )


def _squashed_pass(text: str, day_first: bool) -> datetime.date | None:
    squashed = re.sub(r"\s+", "", text)
    return first_success(
        lambda m=m: _from_match(m, day_first) for m in _SQUASHED_RE.finditer(squashed)
    )


def _salvage_pass(text: str) -> datetime.date | None:
    digits = re.sub(r"\D", "", text)
    for match in _SALVAGE_RE.finditer(digits):
        month, day = int(match.group(1)), int(match.group(2))
        if 1 <= month <= 12 and 1 <= day <= 31:
            salvaged = _make_date(int(match.group(3)), month, day)
            if salvaged is not None:
                return salvaged
    return None


def parse_date(text: str, day_first: bool = False) -> datetime.date | None:
    """Find the first date in ``text`` using the full parsing cascade.

    Args:
        text: A line or a whole document.
        day_first: Read ambiguous numeric dates as day/month/year.

    Returns:
        The date found, or ``None``.
    """
    strategies: list[Callable[[], datetime.date | None]] = [
        lambda: _regex_pass(text, day_first),
        lambda: _squashed_pass(text, day_first),
        lambda: _salvage_pass(text),
    ]
    return first_success(strategies)


def add_one_month(value: datetime.date) -> datetime.date:
    """Same day next month, clamped to the last day of that month."""
    if value.month == 12:
        year, month = value.year + 1, 1
    else:
        year, month = value.year, value.month + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return datetime.date(year, month, day)


def correct_due_date(
    due: datetime.date,
    bill: datetime.date,
    window_days: int = DUE_DATE_WINDOW_DAYS,
) -> datetime.date:
    """Repair a due date that OCR placed before its bill date.

    OCR regularly drops the month digit of a due date. When ``due`` falls
    before ``bill``, the due date is moved one month forward; the shift is
    kept only if it lands after the bill date and within ``window_days``
    of it. Otherwise the bill date is used.
    """
    if due >= bill:
        return due
    shifted = add_one_month(due)
    if shifted > bill and (shifted - bill).days <= window_days:
        logger.debug("Shifted due date %s to %s (bill date %s)", due, shifted, bill)
        return shifted
    logger.debug("Due date %s precedes bill date %s, using bill date", due, bill)
    return bill


def extract_date(
    text: str, day_first: bool = False
) -> FieldGuess[datetime.date] | None:
    """Find the transaction or due date of a document.

    Labelled lines are searched first (with a radius of three lines before
    and one after). A labelled date is then checked against the bill or
    statement date. Without any labelled date the whole text is parsed.

    Args:
        text: Full document text.
        day_first: Read ambiguous numeric dates as day/month/year.

    Returns:
        The date with its provenance, or ``None``.
    """
    lines = text.split("\n")

    def from_line(line: str) -> datetime.date | None:
        return parse_date(line, day_first)

    found = keyword_search(lines, DATE_KEYWORDS, from_line, find_line_squashed)
    if found is not None:
        bill = keyword_search(
            lines, BILL_DATE_KEYWORDS, from_line, find_line_squashed, before=2
        )
        if bill is not None:
            found = correct_due_date(found, bill)
        return FieldGuess(found, Provenance.KEYWORD)

    fallback = parse_date(text, day_first)
    if fallback is not None:
        return FieldGuess(fallback, Provenance.GLOBAL_FALLBACK)
    return None
