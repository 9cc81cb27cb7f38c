from __future__ import annotations

import logging
import threading

from .base import RenderingBackend

LOGGER = logging.getLogger("pdf_conversion.rendering")


class BackendGate:
    """Process-wide, once-only initialization of a rendering backend."""

    def __init__(self, backend: RenderingBackend, license_key: str | None = None) -> None:
        self._backend = backend
        self._license_key = license_key
        self._lock = threading.Lock()
        self._ready = False

    @property
    def backend(self) -> RenderingBackend:
        return self._backend

    @property
    def ready(self) -> bool:
        return self._ready

    def ensure_ready(self) -> RenderingBackend:
        if self._ready:
            LOGGER.debug("Rendering backend already initialized")
            return self._backend
        with self._lock:
            if self._ready:
                return self._backend
            LOGGER.info("Initializing rendering backend...")
            if not self._license_key:
                LOGGER.info("No license key configured; initializing backend without one")
            # A failed initialize leaves the gate closed so the next call retries.
            self._backend.initialize(self._license_key)
            self._ready = True
            LOGGER.info("Rendering backend initialized successfully")
        return self._backend


__all__ = ["BackendGate"]
