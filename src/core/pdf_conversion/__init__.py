"""Document-to-PDF conversion engine."""

from .categories import ConversionCategory, classify
from .config import AppConfig, load_config
from .core import ConversionService
from .detection import detect, detect_extension
from .errors import ConversionError
from .models import ByteConversionResult, ConversionResult, MergeResult

__all__ = [
    "AppConfig",
    "load_config",
    "ByteConversionResult",
    "ConversionCategory",
    "ConversionError",
    "ConversionResult",
    "ConversionService",
    "MergeResult",
    "classify",
    "detect",
    "detect_extension",
]
