"""Read access to the user's expense history.

The expense store itself lives outside this package. The pipeline only
needs to list past expenses, look them up by content hash, and (in batch
mode) record what it has just scanned, which is what
:class:`ExpenseHistory` describes. :class:`InMemoryHistory` is the
implementation used by the CLI and the tests.
"""

import csv
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from receiptscan.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ExpenseRecord:
    """A persisted expense, as far as scanning is concerned."""

    merchant: str
    category: str | None = None
    file_hash: str | None = None
    id: int | None = None


class ExpenseHistory(Protocol):
    """Read-mostly view of persisted expenses."""

    def records(self) -> list[ExpenseRecord]: ...

    def merchants(self) -> list[str]: ...

    def find_by_hash(self, file_hash: str) -> list[ExpenseRecord]: ...

    def add(self, record: ExpenseRecord) -> None: ...


class InMemoryHistory:
    """Expense history held in a list.

    Args:
        records: Initial expense records.
    """

    def __init__(self, records: Iterable[ExpenseRecord] = ()) -> None:
        self._records = list(records)

    def records(self) -> list[ExpenseRecord]:
        return list(self._records)

    def merchants(self) -> list[str]:
        """Distinct merchant names, in first-seen order."""
        return list(dict.fromkeys(r.merchant for r in self._records if r.merchant))

    def find_by_hash(self, file_hash: str) -> list[ExpenseRecord]:
        return [r for r in self._records if r.file_hash == file_hash]

    def add(self, record: ExpenseRecord) -> None:
        self._records.append(record)

    def __len__(self) -> int:
        return len(self._records)


def load_history(path: Path) -> InMemoryHistory:
    """Load expense history from a CSV export.

    Expected columns are ``merchant`` and optionally ``category``,
    ``file_hash`` and ``id``; other columns are ignored.

    Args:
        path: CSV file path.

    Returns:
        History with one record per row that has a merchant.
    """
    records = []
    with open(path, newline="") as f:
        for row in csv.DictReader(f):
            merchant = (row.get("merchant") or "").strip()
            if not merchant:
                continue
            raw_id = (row.get("id") or "").strip()
            records.append(
                ExpenseRecord(
                    merchant=merchant,
                    category=(row.get("category") or "").strip() or None,
                    file_hash=(row.get("file_hash") or "").strip() or None,
                    id=int(raw_id) if raw_id.isdigit() else None,
                )
            )
    logger.info("Loaded %d expense records from %s", len(records), path)
    return InMemoryHistory(records)


def find_duplicate(
    file_hash: str, history: ExpenseHistory, exclude_id: int | None = None
) -> ExpenseRecord | None:
    """First stored expense with the same content hash.

    Args:
        file_hash: Content hash of the new document.
        history: Expense history to search.
        exclude_id: Record being edited, which never counts as its own duplicate.

    Returns:
        The matching record, or ``None``.
    """
    for record in history.find_by_hash(file_hash):
        if exclude_id is None or record.id != exclude_id:
            return record
    return None


def predict_category(merchant: str, history: ExpenseHistory) -> str | None:
    """Most frequently used category for a merchant.

    Uses the mode rather than the most recent category so that one unusual
    categorisation does not override the user's habit. Ties go to the
    category that appears first in history.

    Args:
        merchant: Merchant name, compared case-insensitively.
        history: Expense history to search.

    Returns:
        The predicted category, or ``None`` without categorised history.
    """
    wanted = merchant.lower()
    counts = Counter(
        r.category
        for r in history.records()
        if r.category and r.merchant.lower() == wanted
    )
    if not counts:
        return None
    category, count = counts.most_common(1)[0]
    logger.debug("Predicted category %r for %r (%d uses)", category, merchant, count)
    return category
