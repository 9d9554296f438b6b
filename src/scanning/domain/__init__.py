"""Доменный слой Scanning: интерфейсы и исключения."""

from .interfaces import EngineParameters, RecognitionOutput, IRecognitionEngine, ILabelTextParser
from .exceptions import (
    ScanningError,
    ImageProcessingError,
    ImageDecodingError,
    RecognitionError,
    EngineInitializationError,
    EngineTimeoutError,
    EngineNotReadyError,
    ScanValidationError,
    ScanConfigurationError,
)

__all__ = [
    "EngineParameters",
    "RecognitionOutput",
    "IRecognitionEngine",
    "ILabelTextParser",
    "ScanningError",
    "ImageProcessingError",
    "ImageDecodingError",
    "RecognitionError",
    "EngineInitializationError",
    "EngineTimeoutError",
    "EngineNotReadyError",
    "ScanValidationError",
    "ScanConfigurationError",
]
