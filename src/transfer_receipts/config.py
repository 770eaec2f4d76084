"""
Configuration management.

All config keys live in this module; other modules receive values through
the dataclasses below, never by reading YAML or the environment themselves.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    pass


@dataclass
class OcrConfig:
    """OCR service configuration."""

    base_url: str = "http://localhost:8500"
    token: str = ""
    timeout_seconds: int = 60
    max_retries: int = 3


@dataclass
class ParserConfig:
    """Receipt parser settings."""

    # Drop masked numbers equal to the receipt year from BBVA fallback blocks
    exclude_receipt_year: bool = True


@dataclass
class Config:
    """Application configuration."""

    ocr: OcrConfig = field(default_factory=OcrConfig)
    parser: ParserConfig = field(default_factory=ParserConfig)
    state_db_path: Path = field(default_factory=lambda: Path("data/transfers.db"))
    # None means the rule table bundled with the package
    rules_path: Path | None = None

    def validate(self) -> list[str]:
        """Validate configuration completeness and consistency.

        Returns:
            List of validation errors (empty if valid)
        """
        errors: list[str] = []

        if not self.ocr.base_url:
            errors.append("ocr.base_url is required")
        if self.ocr.timeout_seconds <= 0:
            errors.append("ocr.timeout_seconds must be positive")
        if self.ocr.max_retries < 0:
            errors.append("ocr.max_retries must be >= 0")
        if self.rules_path is not None and not self.rules_path.exists():
            errors.append(f"rules_path does not exist: {self.rules_path}")

        return errors

    def ensure_valid(self) -> None:
        """Raise ConfigValidationError if validate() reports problems."""
        errors = self.validate()
        if errors:
            raise ConfigValidationError("; ".join(errors))


def _int_setting(env_name: str, value, setting: str) -> int:
    raw = os.environ.get(env_name, value)
    try:
        return int(raw)
    except (TypeError, ValueError) as e:
        raise ConfigValidationError(f"{setting} must be an integer, got {raw!r}") from e


def load_config(config_path: Path) -> Config:
    """
    Load configuration from YAML file.

    A missing file yields defaults. Environment variables override config values:
    - TRANSFER_DB_PATH
    - TRANSFER_RULES_PATH
    - OCR_URL
    - OCR_TOKEN
    - OCR_TIMEOUT (request timeout in seconds)
    """
    if config_path.exists():
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    else:
        data = {}

    if not isinstance(data, dict):
        raise ConfigValidationError(f"{config_path} must contain a YAML mapping")

    # OCR service
    ocr_data = data.get("ocr") or {}
    ocr = OcrConfig(
        base_url=os.environ.get("OCR_URL", ocr_data.get("base_url", "http://localhost:8500")),
        token=os.environ.get("OCR_TOKEN", ocr_data.get("token") or ""),
        timeout_seconds=_int_setting(
            "OCR_TIMEOUT", ocr_data.get("timeout_seconds", 60), "ocr.timeout_seconds"
        ),
        max_retries=_int_setting(
            "OCR_MAX_RETRIES", ocr_data.get("max_retries", 3), "ocr.max_retries"
        ),
    )

    # Parser
    parser_data = data.get("parser") or {}
    parser = ParserConfig(
        exclude_receipt_year=bool(parser_data.get("exclude_receipt_year", True)),
    )

    # Paths
    state_db = os.environ.get("TRANSFER_DB_PATH", data.get("state_db_path", "data/transfers.db"))
    rules = os.environ.get("TRANSFER_RULES_PATH", data.get("rules_path"))

    return Config(
        ocr=ocr,
        parser=parser,
        state_db_path=Path(state_db),
        rules_path=Path(rules) if rules else None,
    )


def create_default_config(config_path: Path) -> None:
    """Create a default configuration file."""
    default_config = """# Transfer receipts configuration
#
# Environment variables override these values:
# TRANSFER_DB_PATH, TRANSFER_RULES_PATH, OCR_URL, OCR_TOKEN, OCR_TIMEOUT

# OCR service (image -> text)
ocr:
  base_url: "http://localhost:8500"
  token: ""
  timeout_seconds: 60
  max_retries: 3

parser:
  exclude_receipt_year: true   # Ignore "**** 2023" style blocks on 2023 receipts

# SQLite database with saved transfers
state_db_path: "data/transfers.db"

# Per-bank extraction patterns (JSON). null uses the bundled table.
rules_path: null
"""

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        f.write(default_config)
