"""Content hashing for duplicate document detection."""

import hashlib

from receiptscan.models import RawDocument
from receiptscan.utils.logger import get_logger

logger = get_logger(__name__)

FALLBACK_PREFIX = "fallback-"


def fallback_hash(document: RawDocument) -> str:
    """Deterministic digest of a document's metadata.

    Used when no cryptographic digest is available. Two different files
    with the same name, size, modification time and type collide, so
    duplicate detection is weaker but still works for re-uploads.

    Returns:
        ``fallback-`` followed by eight hex digits.
    """
    metadata = (
        f"{document.name}-{document.size}-{document.modified_at}-{document.mime_type}"
    )
    value = 0
    for char in metadata:
        value = (value * 31 + ord(char)) & 0xFFFFFFFF
    if value & 0x80000000:
        value -= 1 << 32
    return f"{FALLBACK_PREFIX}{abs(value):08x}"


def is_fallback_hash(value: str) -> bool:
    """Whether ``value`` came from :func:`fallback_hash`."""
    return value.startswith(FALLBACK_PREFIX)


def compute_content_hash(document: RawDocument, algorithm: str = "sha256") -> str:
    """Hex digest of a document's bytes.

    Args:
        document: The uploaded document.
        algorithm: Name of a :mod:`hashlib` algorithm.

    Returns:
        The hex digest, or a metadata fallback digest when the algorithm is
        unavailable on this interpreter (for example on FIPS-restricted builds).
    """
    try:
        digest = hashlib.new(algorithm)
    except ValueError:
        logger.warning(
            "Hash algorithm %s unavailable, using metadata fallback for %s",
            algorithm,
            document.name,
        )
        return fallback_hash(document)

    digest.update(document.data)
    return digest.hexdigest()
