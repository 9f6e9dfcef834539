"""Tests for configuration loading and validation."""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from receiptscan.utils.config import (
    AppConfig,
    ExtractionConfig,
    IdentityConfig,
    OCRConfig,
    PDFConfig,
    PreprocessingConfig,
    load_config,
)


class TestOCRConfig:
    """Tests for OCRConfig defaults and overrides."""

    def test_defaults(self) -> None:
        cfg = OCRConfig()
        assert cfg.default_lang == "eng"
        assert cfg.psm == 3
        assert cfg.pool_size == 2
        assert cfg.recognition_timeout == 60.0
        assert cfg.tesseract_cmd is None

    def test_custom_lang(self) -> None:
        cfg = OCRConfig(default_lang="fra", psm=6)
        assert cfg.default_lang == "fra"
        assert cfg.psm == 6

    def test_pool_size_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            OCRConfig(pool_size=0)


class TestPDFConfig:
    """Tests for PDFConfig defaults."""

    def test_defaults(self) -> None:
        cfg = PDFConfig()
        assert cfg.render_scale == 1.5
        assert cfg.line_break_threshold == 5.0
        assert cfg.word_gap_threshold == 1.0


class TestPreprocessingConfig:
    """Tests for PreprocessingConfig defaults and overrides."""

    def test_defaults(self) -> None:
        cfg = PreprocessingConfig()
        assert cfg.enabled is True
        assert cfg.max_width == 1800
        assert cfg.grayscale is True
        assert cfg.contrast == 1.2

    def test_override(self) -> None:
        cfg = PreprocessingConfig(enabled=False, contrast=1.0)
        assert cfg.enabled is False
        assert cfg.contrast == 1.0


class TestExtractionConfig:
    """Tests for ExtractionConfig defaults."""

    def test_defaults(self) -> None:
        cfg = ExtractionConfig()
        assert cfg.header_window == 3000
        assert cfg.merchant_scan_lines == 15
        assert cfg.amount_ceiling == 100000.0
        assert cfg.statement_threshold == 3
        assert cfg.day_first is False
        assert cfg.vendors_path is None


class TestAppConfig:
    """Tests for the top-level AppConfig."""

    def test_defaults(self) -> None:
        cfg = AppConfig()
        assert isinstance(cfg.ocr, OCRConfig)
        assert isinstance(cfg.pdf, PDFConfig)
        assert isinstance(cfg.preprocessing, PreprocessingConfig)
        assert isinstance(cfg.extraction, ExtractionConfig)
        assert isinstance(cfg.identity, IdentityConfig)
        assert cfg.default_currency == "USD"
        assert cfg.log_level == "INFO"

    def test_nested_override(self) -> None:
        cfg = AppConfig(
            identity=IdentityConfig(fuzzy_window=500),
            log_level="DEBUG",
        )
        assert cfg.identity.fuzzy_window == 500
        assert cfg.log_level == "DEBUG"


class TestLoadConfig:
    """Tests for the load_config function."""

    def test_load_default_config(self, config_dir: Path) -> None:
        cfg = load_config(config_dir / "config.yaml")
        assert isinstance(cfg, AppConfig)
        assert cfg.ocr.default_lang == "eng"
        assert cfg.identity.hash_algorithm == "sha256"

    def test_load_missing_file_returns_defaults(self) -> None:
        cfg = load_config(Path("/nonexistent/path/config.yaml"))
        assert isinstance(cfg, AppConfig)
        assert cfg.ocr.pool_size == 2

    def test_load_custom_yaml(self, tmp_path: Path) -> None:
        config_data = {
            "ocr": {"default_lang": "deu", "pool_size": 4},
            "extraction": {"day_first": True},
            "default_currency": "EUR",
            "log_level": "DEBUG",
        }
        config_file = tmp_path / "config.yaml"
        with open(config_file, "w") as f:
            yaml.dump(config_data, f)

        cfg = load_config(config_file)
        assert cfg.ocr.default_lang == "deu"
        assert cfg.ocr.pool_size == 4
        assert cfg.extraction.day_first is True
        assert cfg.default_currency == "EUR"
        assert cfg.log_level == "DEBUG"

    def test_load_empty_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")
        cfg = load_config(config_file)
        assert isinstance(cfg, AppConfig)

    def test_load_none_defaults_to_standard_path(self) -> None:
        cfg = load_config()
        assert isinstance(cfg, AppConfig)
