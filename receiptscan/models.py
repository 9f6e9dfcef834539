"""Data model shared by every stage of the receipt scanning pipeline."""

import datetime
import mimetypes
from dataclasses import dataclass, field
from decimal import Decimal
from enum import StrEnum
from pathlib import Path
from typing import Generic, TypeVar

T = TypeVar("T")

_PDF_MAGIC = b"%PDF"


class MediaKind(StrEnum):
    """Declared media kind of an uploaded document."""

    PDF = "pdf"
    IMAGE = "image"

    @classmethod
    def detect(cls, name: str, data: bytes = b"", mime_type: str = "") -> "MediaKind":
        """Infer the media kind from MIME type, magic bytes, or file suffix."""
        if mime_type == "application/pdf" or data[:4] == _PDF_MAGIC:
            return cls.PDF
        if Path(name).suffix.lower() == ".pdf":
            return cls.PDF
        return cls.IMAGE


class DocumentKind(StrEnum):
    """Document classification that selects the amount keyword list."""

    RECEIPT = "receipt"
    STATEMENT = "statement"


class Provenance(StrEnum):
    """Which rule produced a field value."""

    FILENAME = "filename"
    KEYWORD = "keyword"
    KNOWN_PATTERN = "known-pattern"
    CORPORATE_SUFFIX = "corporate-suffix"
    FIRST_LINE = "first-line"
    GLOBAL_FALLBACK = "global-fallback"
    PATTERN = "pattern"
    HISTORY_MATCH = "history-match"


@dataclass(frozen=True)
class RawDocument:
    """An uploaded document, supplied once per submission."""

    data: bytes
    kind: MediaKind
    name: str
    modified_at: float | None = None
    mime_type: str = ""

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_path(cls, path: Path) -> "RawDocument":
        """Read a document from disk, inferring its kind and MIME type.

        Args:
            path: Path to an image or PDF file.

        Returns:
            Document with the file's modification time in epoch milliseconds.

        Raises:
            OSError: If the file cannot be read.
        """
        path = Path(path)
        data = path.read_bytes()
        mime_type = mimetypes.guess_type(path.name)[0] or ""
        return cls(
            data=data,
            kind=MediaKind.detect(path.name, data, mime_type),
            name=path.name,
            modified_at=path.stat().st_mtime * 1000,
            mime_type=mime_type,
        )


@dataclass(frozen=True)
class ExtractedText:
    """Readable text of a document plus the OCR confidence, if any."""

    text: str
    confidence: float | None = None
    source: str = "pdf-text"


@dataclass(frozen=True)
class FieldGuess(Generic[T]):
    """A candidate field value tagged with the rule that produced it."""

    value: T
    provenance: Provenance


@dataclass
class ScanResult:
    """Structured fields recovered from a single document."""

    raw_text: str
    amount: Decimal | None = None
    date: datetime.date | None = None
    merchant: str | None = None
    address: str | None = None
    account_number: str | None = None
    confidence: float | None = None
    currency: str | None = None
    document_kind: DocumentKind = DocumentKind.RECEIPT
    sources: dict[str, Provenance] = field(default_factory=dict)

    def apply(self, name: str, guess: FieldGuess | None) -> None:
        """Set field ``name`` from a guess, recording its provenance."""
        if guess is None:
            return
        setattr(self, name, guess.value)
        self.sources[name] = guess.provenance
