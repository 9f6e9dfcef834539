"""Configuration management for the receipt scanning pipeline.

Loads and validates YAML configuration with sensible defaults for
text acquisition, preprocessing, field extraction, and identity resolution.
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class OCRConfig(BaseModel):
    """Configuration for the Tesseract OCR engine and its worker pool."""

    tesseract_cmd: str | None = None
    default_lang: str = "eng"
    psm: int = 3
    pool_size: int = Field(default=2, ge=1)
    recognition_timeout: float = Field(default=60.0, ge=0.0)


class PDFConfig(BaseModel):
    """Configuration for native PDF text extraction and rasterization."""

    render_scale: float = Field(default=1.5, gt=0.0)
    line_break_threshold: float = 5.0
    word_gap_threshold: float = 1.0


class PreprocessingConfig(BaseModel):
    """Configuration for image preprocessing before OCR."""

    enabled: bool = True
    max_width: int = 1800
    grayscale: bool = True
    contrast: float = 1.2


class ExtractionConfig(BaseModel):
    """Configuration for heuristic field extraction."""

    header_window: int = 3000
    merchant_scan_lines: int = 15
    max_merchant_length: int = 50
    amount_ceiling: float = 100000.0
    statement_threshold: int = 3
    day_first: bool = False
    vendors_path: str | None = None


class IdentityConfig(BaseModel):
    """Configuration for hashing and merchant identity resolution."""

    hash_algorithm: str = "sha256"
    fuzzy_window: int = 1000


class AppConfig(BaseModel):
    """Top-level application configuration."""

    ocr: OCRConfig = Field(default_factory=OCRConfig)
    pdf: PDFConfig = Field(default_factory=PDFConfig)
    preprocessing: PreprocessingConfig = Field(default_factory=PreprocessingConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    identity: IdentityConfig = Field(default_factory=IdentityConfig)
    default_currency: str = "USD"
    log_level: str = "INFO"


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.

    Returns:
        Validated application configuration.
    """
    if path is None:
        path = Path("configs/config.yaml")

    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
        return AppConfig(**raw)

    logger.info("No config file found at %s, using defaults", path)
    return AppConfig()
