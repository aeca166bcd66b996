"""
Configuration and constants for the receipt scanner.

This module provides:
- Fixed keyword and currency vocabularies for total extraction
- Default settings, overridable via environment variables
- Loading user settings from YAML files
"""
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

# =============================================================================
# Application Info
# =============================================================================

APP_NAME: str = "Receipt Scanner"
APP_VERSION: str = "1.0.0"

# =============================================================================
# Storage
# =============================================================================

STORE_FILENAME: str = "receipts.json"
RECEIPT_FILE_PREFIX: str = "Receipt_"
RECEIPT_FILE_SUFFIX: str = ".pdf"

SUPPORTED_INPUT_EXTENSIONS: Tuple[str, ...] = (".txt", ".pdf")

# =============================================================================
# Total Detection Keywords
# =============================================================================

# A line containing any of these (case-insensitive substring) is more
# likely to carry the receipt total.
POSITIVE_KEYWORDS: List[str] = [
    "total",
    "amount",
    "sum",          # also covers "summe", "suma"
    "paid",
    "grand total",
    "balance due",
    "amount due",
    "gesamt",
    "betrag",
    "zu zahlen",
    "celkem",
    "k úhradě",
    "k platbě",
    "montant",
    "à payer",
    "importe",
    "razem",
    "do zapłaty",
]

# A line containing any of these is dropped from the primary pass.
NEGATIVE_KEYWORDS: List[str] = [
    "tax",
    "vat",
    "tip",
    "change",
    "refund",
    "deposit",
    "points",
    "mwst",
    "steuer",
    "rückgeld",
    "wechselgeld",
    "trinkgeld",
    "pfand",
    "punkte",
    "dph",
    "spropitné",
    "vráceno",
]

SUBTOTAL_KEYWORDS: List[str] = ["subtotal"]

# Markers of line-item rows
LINE_ITEM_KEYWORDS: List[str] = ["unit", "qty"]

SCORE_WEIGHTS: Dict[str, int] = {
    "base": 1,
    "positive_keyword": 3,
    "currency": 2,
    "subtotal": -1,
    "line_item": -1,
}

# =============================================================================
# Currencies
# =============================================================================

# Raw symbol/code (lower-cased, whitespace removed) -> ISO 4217 code
CURRENCY_MAP: Dict[str, str] = {
    "kč": "CZK",
    "kc": "CZK",
    "czk": "CZK",
    "€": "EUR",
    "eur": "EUR",
    "euro": "EUR",
    "$": "USD",
    "us$": "USD",
    "usd": "USD",
    "£": "GBP",
    "gbp": "GBP",
    "chf": "CHF",
    "fr.": "CHF",
    "sfr.": "CHF",
    "zł": "PLN",
    "zl": "PLN",
    "pln": "PLN",
    "₹": "INR",
    "rs.": "INR",
    "rs": "INR",
    "inr": "INR",
    "¥": "JPY",
    "jpy": "JPY",
    "ft": "HUF",
    "huf": "HUF",
    "sek": "SEK",
    "nok": "NOK",
    "dkk": "DKK",
    "cad": "CAD",
    "aud": "AUD",
}

# =============================================================================
# Display
# =============================================================================

DEFAULT_DATE_DISPLAY_FORMAT: str = "%d %b %Y"


# =============================================================================
# Flexible Configuration System
# =============================================================================

class Config:
    """
    Configuration manager that supports:
    - Environment variables
    - Custom YAML configuration files
    - Runtime overrides

    The extraction vocabularies above are fixed and never read from here.
    """

    _instance: Optional["Config"] = None
    _settings: Dict[str, Any] = {}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._load_defaults()
            cls._instance._load_custom_config()
        return cls._instance

    def _load_defaults(self) -> None:
        """Load default settings."""
        self._settings = {
            "store_dir": os.environ.get(
                "RECEIPTS_STORE_DIR",
                str(Path.home() / ".receiptscanner"),
            ),
            "log_level": os.environ.get("LOG_LEVEL", "INFO").upper(),
            "date_display_format": os.environ.get(
                "DATE_DISPLAY_FORMAT", DEFAULT_DATE_DISPLAY_FORMAT
            ),
            "max_upload_mb": int(os.environ.get("MAX_UPLOAD_MB", "16")),
        }

    def _load_custom_config(self) -> None:
        """Load custom configuration from YAML file if available."""
        config_paths = [
            Path.cwd() / "config.yaml",
            Path.cwd() / "config.yml",
            Path.home() / ".receiptscanner" / "config.yaml",
        ]

        for config_path in config_paths:
            if config_path.exists():
                try:
                    with open(config_path, 'r', encoding='utf-8') as f:
                        custom_config = yaml.safe_load(f) or {}
                except (OSError, yaml.YAMLError) as e:
                    logger.warning("Could not load config from %s: %s", config_path, e)
                    continue
                if not isinstance(custom_config, dict):
                    logger.warning("Ignoring %s: expected a mapping", config_path)
                    continue
                self._settings.update(custom_config)
                logger.info("Loaded config from %s", config_path)
                break

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value."""
        return self._settings.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value at runtime."""
        self._settings[key] = value

    def reload(self) -> None:
        """Reload configuration from environment and files."""
        self._load_defaults()
        self._load_custom_config()


def get_config() -> Config:
    """Get the global configuration instance."""
    return Config()


def get_store_dir() -> Path:
    """Directory holding receipts.json and the scanned documents."""
    return Path(get_config().get("store_dir")).expanduser()


def get_log_level() -> int:
    """Resolve the configured log level name to a logging constant."""
    level_name = str(get_config().get("log_level", "INFO")).upper()
    return getattr(logging, level_name, logging.INFO)
