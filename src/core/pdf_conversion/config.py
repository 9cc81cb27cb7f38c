from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping


CONFIG_FILE = Path("config.toml")

DEFAULT_ALLOWED_EXTENSIONS: tuple[str, ...] = (
    # Office
    ".doc", ".docx", ".docm", ".dot", ".dotx", ".dotm",
    ".xls", ".xlsx", ".xlsm", ".xlt", ".xltx", ".xltm",
    ".ppt", ".pptx", ".pptm", ".pot", ".potx", ".potm", ".pps", ".ppsx", ".ppsm",
    # Images
    ".jpg", ".jpeg", ".png", ".bmp", ".gif", ".tif", ".tiff", ".webp",
    ".svg", ".emf", ".wmf", ".eps",
    # Text and markup
    ".txt", ".rtf", ".xml", ".md", ".html", ".htm",
    # PDF, accepted for merging
    ".pdf",
    # Other
    ".xps", ".oxps", ".pcl",
)

DEFAULT_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"


@dataclass(slots=True)
class RuntimeConfig:
    input_dir: Path = Path("data/input")
    output_dir: Path = Path("data/output")
    temp_dir: Path | None = None
    max_file_size_mb: int = 50
    allowed_extensions: tuple[str, ...] = DEFAULT_ALLOWED_EXTENSIONS
    log_file: str = "conversions.jsonl"
    enable_api: bool = True

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024

    @property
    def log_path(self) -> Path:
        return self.output_dir / self.log_file


@dataclass(slots=True)
class BackendConfig:
    license_key: str | None = None
    html_module_path: Path | None = None
    office_executable: str | None = None
    office_timeout_s: int = 120
    linearize: bool = True


@dataclass(slots=True)
class DownloadConfig:
    timeout_s: float = 30.0
    user_agent: str = DEFAULT_USER_AGENT


@dataclass(slots=True)
class APIConfig:
    host: str = "127.0.0.1"
    port: int = 8000


@dataclass(slots=True)
class AppConfig:
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)
    backend: BackendConfig = field(default_factory=BackendConfig)
    download: DownloadConfig = field(default_factory=DownloadConfig)
    api: APIConfig = field(default_factory=APIConfig)

    def is_allowed(self, extension: str) -> bool:
        return extension.lower() in self.runtime.allowed_extensions


def normalize_extension(value: str) -> str:
    value = value.strip().lower()
    if value and not value.startswith("."):
        value = f".{value}"
    return value


def _read_toml(path: Path) -> Mapping[str, object]:
    if not path.exists():
        return {}
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _optional_path(value: object | None) -> Path | None:
    if value is None or value == "":
        return None
    return Path(str(value))


def _optional_str(value: object | None) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _tuple_of_extensions(value: object | None, default: Iterable[str]) -> tuple[str, ...]:
    if not value:
        return tuple(default)
    if isinstance(value, str):
        value = value.split(",")
    if isinstance(value, Iterable):
        normalized = (normalize_extension(str(item)) for item in value)
        return tuple(dict.fromkeys(item for item in normalized if item))
    raise TypeError(f"Unsupported allowed_extensions configuration: {value!r}")


def _build_runtime(data: Mapping[str, object] | None) -> RuntimeConfig:
    if not data:
        return RuntimeConfig()
    return RuntimeConfig(
        input_dir=Path(str(data.get("input_dir", "data/input"))),
        output_dir=Path(str(data.get("output_dir", "data/output"))),
        temp_dir=_optional_path(data.get("temp_dir")),
        max_file_size_mb=int(data.get("max_file_size_mb", 50)),
        allowed_extensions=_tuple_of_extensions(
            data.get("allowed_extensions"), DEFAULT_ALLOWED_EXTENSIONS
        ),
        log_file=str(data.get("log_file", "conversions.jsonl")),
        enable_api=bool(data.get("enable_api", True)),
    )


def _build_backend(data: Mapping[str, object] | None) -> BackendConfig:
    if not data:
        return BackendConfig()
    return BackendConfig(
        license_key=_optional_str(data.get("license_key")),
        html_module_path=_optional_path(data.get("html_module_path")),
        office_executable=_optional_str(data.get("office_executable")),
        office_timeout_s=int(data.get("office_timeout_s", 120)),
        linearize=bool(data.get("linearize", True)),
    )


def _build_download(data: Mapping[str, object] | None) -> DownloadConfig:
    if not data:
        return DownloadConfig()
    return DownloadConfig(
        timeout_s=float(data.get("timeout_s", 30.0)),
        user_agent=str(data.get("user_agent", DEFAULT_USER_AGENT)),
    )


def _build_api(data: Mapping[str, object] | None) -> APIConfig:
    if not data:
        return APIConfig()
    return APIConfig(host=str(data.get("host", "127.0.0.1")), port=int(data.get("port", 8000)))


def _section(raw: Mapping[str, object], name: str) -> Mapping[str, object] | None:
    value = raw.get(name)
    return value if isinstance(value, Mapping) else None


def load_config(path: Path | None = None) -> AppConfig:
    path = path or CONFIG_FILE
    raw = _read_toml(path)
    return AppConfig(
        runtime=_build_runtime(_section(raw, "runtime")),
        backend=_build_backend(_section(raw, "backend")),
        download=_build_download(_section(raw, "download")),
        api=_build_api(_section(raw, "api")),
    )


def dump_config(config: AppConfig) -> str:
    payload = {
        "runtime": {
            "input_dir": str(config.runtime.input_dir),
            "output_dir": str(config.runtime.output_dir),
            "temp_dir": str(config.runtime.temp_dir) if config.runtime.temp_dir else None,
            "max_file_size_mb": config.runtime.max_file_size_mb,
            "allowed_extensions": list(config.runtime.allowed_extensions),
            "log_file": config.runtime.log_file,
            "enable_api": config.runtime.enable_api,
        },
        "backend": {
            "license_key_configured": bool(config.backend.license_key),
            "html_module_path": (
                str(config.backend.html_module_path) if config.backend.html_module_path else None
            ),
            "office_executable": config.backend.office_executable,
            "office_timeout_s": config.backend.office_timeout_s,
            "linearize": config.backend.linearize,
        },
        "download": {
            "timeout_s": config.download.timeout_s,
            "user_agent": config.download.user_agent,
        },
        "api": {
            "host": config.api.host,
            "port": config.api.port,
        },
    }
    return json.dumps(payload, indent=2)


__all__ = [
    "AppConfig",
    "APIConfig",
    "BackendConfig",
    "DownloadConfig",
    "RuntimeConfig",
    "DEFAULT_ALLOWED_EXTENSIONS",
    "load_config",
    "dump_config",
    "normalize_extension",
]
