class ScanError(Exception):
    """Base exception for all receipt scanning errors."""


class AcquisitionError(ScanError):
    """Raised when a document cannot be decoded, rendered, or recognized."""


class PdfTextError(ScanError):
    """Raised when the native text layer of a PDF cannot be read."""
