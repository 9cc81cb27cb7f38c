from __future__ import annotations

import hashlib
import json
import logging
import os
import threading
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

LOGGER = logging.getLogger("pdf_conversion.journal")

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | int = "INFO") -> None:
    """Install a single stream handler on the ``pdf_conversion`` logger tree."""

    root = logging.getLogger("pdf_conversion")
    root.setLevel(level if isinstance(level, int) else level.upper())
    if not any(getattr(handler, "_pdf_conversion", False) for handler in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._pdf_conversion = True  # type: ignore[attr-defined]
        root.addHandler(handler)


def generate_run_id(prefix: str = "run") -> str:
    epoch_ms = int(time.time() * 1000)
    random_bits = hashlib.sha256(os.urandom(16)).hexdigest()[:8]
    return f"{prefix}-{epoch_ms}-{random_bits}"


@dataclass(slots=True)
class ConversionLogEntry:
    run_id: str
    operation: str
    source: str
    status: str
    detected_type: str | None = None
    error_code: str | None = None
    duration_ms: float = 0.0
    output_path: str | None = None
    size_bytes: int = 0
    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")
    )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class ConversionLogger:
    """Appends one JSON line per finished operation to the conversion journal."""

    def __init__(self, log_file: Path) -> None:
        self._log_file = log_file
        self._lock = threading.Lock()

    @property
    def log_file(self) -> Path:
        return self._log_file

    def append(self, entry: ConversionLogEntry) -> None:
        line = json.dumps(entry.to_dict(), ensure_ascii=False)
        try:
            with self._lock:
                self._log_file.parent.mkdir(parents=True, exist_ok=True)
                with self._log_file.open("a", encoding="utf-8") as handle:
                    handle.write(line + "\n")
        except OSError as exc:
            LOGGER.warning("Failed to append conversion journal entry: %s", exc)


__all__ = [
    "ConversionLogEntry",
    "ConversionLogger",
    "configure_logging",
    "generate_run_id",
]
