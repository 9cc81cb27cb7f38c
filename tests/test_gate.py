import threading

import pytest

from core.pdf_conversion.rendering import BackendGate

from conftest import FakeBackend


class FlakyBackend(FakeBackend):
    def __init__(self) -> None:
        super().__init__()
        self.fail_next = True

    def initialize(self, license_key):
        super().initialize(license_key)
        if self.fail_next:
            self.fail_next = False
            raise RuntimeError("license server unreachable")


def test_initializes_once_under_concurrency():
    backend = FakeBackend()
    gate = BackendGate(backend, "key")
    barrier = threading.Barrier(16)

    def worker():
        barrier.wait()
        gate.ensure_ready()

    threads = [threading.Thread(target=worker) for _ in range(16)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert backend.initialize_calls == 1
    assert gate.ready


def test_repeated_calls_are_idempotent():
    backend = FakeBackend()
    gate = BackendGate(backend)
    assert gate.ensure_ready() is backend
    assert gate.ensure_ready() is backend
    assert backend.initialize_calls == 1


def test_failed_initialization_is_retried():
    backend = FlakyBackend()
    gate = BackendGate(backend)
    with pytest.raises(RuntimeError):
        gate.ensure_ready()
    assert not gate.ready
    gate.ensure_ready()
    assert gate.ready
    assert backend.initialize_calls == 2


def test_service_reports_failed_initialization(config):
    from core.pdf_conversion.core import ConversionService

    service = ConversionService(config, FlakyBackend())
    (config.runtime.input_dir / "a.docx").write_bytes(b"x")

    first = service.convert_file(config.runtime.input_dir / "a.docx")
    second = service.convert_file(config.runtime.input_dir / "a.docx")

    assert first.error_message == "Rendering backend initialization failed"
    assert first.error_detail == "RuntimeError: license server unreachable"
    assert second.success
