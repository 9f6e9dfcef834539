"""Mailing address and account number extraction."""

import re

from receiptscan.utils.logger import get_logger

logger = get_logger(__name__)

_STATE_ZIP_RE = re.compile(r",?\s+[A-Z]{2}\s+\d{5}(?:-\d{4})?")
_CITY_RE = re.compile(r"[A-Za-z\s.]+$")
_CITY_WINDOW = 80
_STREET_RE = re.compile(r"^\d+\s+[A-Za-z]")
_PO_BOX_RE = re.compile(r"p\.?o\.?\s*box", re.IGNORECASE)
_ACCOUNT_RE = re.compile(
    r"(?:Account|Acct)\s*(?:Number|#|No\.?)\s*[:#]?\s*([0-9\s-]+)", re.IGNORECASE
)


def _city_state_zip(line: str) -> str | None:
    # Anchor on "ST 12345" and look back a bounded distance for the city,
    # so long lines without a ZIP stay linear.
    for anchor in _STATE_ZIP_RE.finditer(line):
        window_start = max(0, anchor.start() - _CITY_WINDOW)
        city = _CITY_RE.search(line, window_start, anchor.start())
        if city is not None:
            return line[city.start() : anchor.end()].strip()
    return None


def extract_address(text: str) -> str | None:
    """Find a postal address ending in a ``City, ST ZIP`` line.

    The nearest street-number line within three lines above is prepended.
    Addresses that mention a PO box (in the match or the lines scanned
    above it) are used only when no other candidate exists, since a PO box
    is usually a remittance address rather than the merchant's location.

    Args:
        text: Full document text.

    Returns:
        One- or two-line address, or ``None``.
    """
    lines = text.split("\n")
    candidates: list[tuple[str, bool]] = []

    for i, line in enumerate(lines):
        city_state_zip = _city_state_zip(line)
        if city_state_zip is None:
            continue
        address = city_state_zip
        has_po_box = bool(_PO_BOX_RE.search(city_state_zip))

        for j in range(1, 4):
            if i - j < 0:
                break
            previous = lines[i - j].strip()
            if _PO_BOX_RE.search(previous):
                has_po_box = True
            if previous and _STREET_RE.match(previous):
                address = f"{previous}\n{city_state_zip}"
                break

        candidates.append((address, has_po_box))

    if not candidates:
        return None
    for address, has_po_box in candidates:
        if not has_po_box:
            return address
    logger.debug("Only PO box addresses found")
    return candidates[0][0]


def extract_account_number(text: str) -> str | None:
    """Find an ``Account Number``/``Acct #`` value.

    Returns:
        The number with whitespace collapsed, or ``None`` when no labelled
        value has a digit and is longer than three characters.
    """
    for line in text.split("\n"):
        match = _ACCOUNT_RE.search(line)
        if match is None:
            continue
        account = re.sub(r"\s+", " ", match.group(1)).strip()
        if re.search(r"\d", account) and len(account) > 3:
            return account
    return None
