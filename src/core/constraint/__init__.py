from __future__ import annotations

from pathlib import Path

DEFAULT_CONFIG_PATH = Path("config.toml")
ENV_PREFIX = "PDFCONV_"
DEFAULT_LOG_LEVEL = "INFO"

API_TITLE = "PDF Conversion Service"
API_VERSION = "1.0.0"
API_PREFIX = "/api/pdf-conversion"

__all__ = [
    "API_PREFIX",
    "API_TITLE",
    "API_VERSION",
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_LOG_LEVEL",
    "ENV_PREFIX",
]
