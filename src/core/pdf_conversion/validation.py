"""Input validation for path-based and staged-upload conversions.

Both variants run their checks in a fixed order and stop at the first
failure. Failures are reported as a :class:`ValidationOutcome` carrying a
user-facing reason, never as an exception.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from .config import AppConfig

LOGGER = logging.getLogger("pdf_conversion.validation")


@dataclass(frozen=True, slots=True)
class ValidationOutcome:
    valid: bool
    reason: str | None = None
    code: str | None = None

    @classmethod
    def ok(cls) -> "ValidationOutcome":
        return cls(valid=True)

    @classmethod
    def fail(cls, code: str, reason: str) -> "ValidationOutcome":
        return cls(valid=False, reason=reason, code=code)

    def __bool__(self) -> bool:
        return self.valid


def is_within_directory(path: Path, root: Path) -> bool:
    """Case-insensitive containment check on canonicalized paths."""

    candidate = os.path.normcase(str(path.resolve())).casefold()
    base = os.path.normcase(str(root.resolve())).casefold().rstrip("\\/")
    return candidate == base or candidate.startswith(base + os.sep)


class FileValidator:
    def __init__(self, config: AppConfig) -> None:
        self._config = config

    def validate_strict(self, path: Path) -> ValidationOutcome:
        """Validate a caller-supplied path that must live under the input root."""

        return self._run(path, check_containment=True)

    def validate_relaxed(self, path: Path) -> ValidationOutcome:
        """Validate an already-staged upload; the input-root check is skipped."""

        return self._run(path, check_containment=False)

    def check_size(self, size_bytes: int) -> ValidationOutcome:
        size_mb = size_bytes / (1024.0 * 1024.0)
        limit = self._config.runtime.max_file_size_mb
        if size_mb > limit:
            LOGGER.warning("File size too large: %.2fMB (Maximum: %sMB)", size_mb, limit)
            return ValidationOutcome.fail(
                "SIZE_LIMIT",
                f"File size too large ({size_mb:.2f}MB). Maximum allowed: {limit}MB",
            )
        return ValidationOutcome.ok()

    def check_extension(self, extension: str) -> ValidationOutcome:
        if not self._config.is_allowed(extension):
            LOGGER.warning("File extension not allowed: %s", extension or "<none>")
            allowed = ", ".join(self._config.runtime.allowed_extensions)
            return ValidationOutcome.fail(
                "EXTENSION_NOT_ALLOWED",
                f"File extension not allowed. Allowed extensions: {allowed}",
            )
        return ValidationOutcome.ok()

    def _run(self, path: Path, *, check_containment: bool) -> ValidationOutcome:
        try:
            if not path.is_file():
                LOGGER.warning("File not found: %s", path)
                return ValidationOutcome.fail("NOT_FOUND", f"File not found: {path}")

            if check_containment:
                root = self._config.runtime.input_dir
                if not is_within_directory(path, root):
                    LOGGER.warning("File is outside the input directory: %s", path)
                    return ValidationOutcome.fail(
                        "OUTSIDE_ROOT",
                        f"File must be within the allowed directory: {root}",
                    )

            outcome = self.check_extension(path.suffix.lower())
            if not outcome:
                return outcome

            outcome = self.check_size(path.stat().st_size)
            if not outcome:
                return outcome

            try:
                with path.open("rb"):
                    pass
            except OSError:
                LOGGER.warning("File is locked or inaccessible: %s", path)
                return ValidationOutcome.fail(
                    "LOCKED", "File is locked or in use by another process"
                )
        except OSError as exc:
            LOGGER.error("Error during file validation of %s: %s", path, exc)
            return ValidationOutcome.fail("INVALID_INPUT", f"Validation error: {exc}")

        LOGGER.debug("File validation passed for %s", path)
        return ValidationOutcome.ok()


__all__ = ["FileValidator", "ValidationOutcome", "is_within_directory"]
