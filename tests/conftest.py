"""Shared test fixtures for the receipt scanning test suite."""

import io
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from receiptscan.identity.history import ExpenseRecord, InMemoryHistory
from receiptscan.models import MediaKind, RawDocument
from receiptscan.utils.config import AppConfig


@pytest.fixture
def sample_image() -> np.ndarray:
    """Create a simple synthetic RGB test image."""
    image = np.zeros((200, 300, 3), dtype=np.uint8)
    image[50:150, 50:250] = (255, 255, 255)
    return image


@pytest.fixture
def png_bytes(sample_image: np.ndarray) -> bytes:
    """Encode the sample image as PNG."""
    buffer = io.BytesIO()
    Image.fromarray(sample_image).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def image_document(png_bytes: bytes) -> RawDocument:
    """A PNG receipt upload."""
    return RawDocument(
        data=png_bytes,
        kind=MediaKind.IMAGE,
        name="receipt.png",
        modified_at=1_700_000_000_000.0,
        mime_type="image/png",
    )


@pytest.fixture
def history() -> InMemoryHistory:
    """A small expense history with categorised merchants."""
    return InMemoryHistory(
        [
            ExpenseRecord("Starbucks", "Coffee", "hash-1", id=1),
            ExpenseRecord("Starbucks", "Coffee", "hash-2", id=2),
            ExpenseRecord("Starbucks", "Meals", "hash-3", id=3),
            ExpenseRecord("Dot Loop", "Software", "hash-4", id=4),
            ExpenseRecord("Home Depot", "Home", None, id=5),
        ]
    )


@pytest.fixture
def config() -> AppConfig:
    """Default application configuration."""
    return AppConfig()


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def config_dir(project_root: Path) -> Path:
    """Return the configs directory path."""
    return project_root / "configs"
