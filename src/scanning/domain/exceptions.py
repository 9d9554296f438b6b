"""
Исключения для домена Scanning.

Специфичные для распознавания табличек ошибки. Оркестратор превращает их
в переход на следующий tier или в InitResult(success=False).
"""

from typing import Optional


class ScanningError(Exception):
    """Базовое исключение для ошибок домена Scanning."""

    def __init__(
        self,
        message: str,
        component: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        self.message = message
        self.component = component
        self.original_error = original_error
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = f"Scanning Error: {self.message}"
        if self.component:
            msg += f" (Component: {self.component})"
        if self.original_error:
            msg += f" [Original: {type(self.original_error).__name__}: {str(self.original_error)}]"
        return msg


class ImageProcessingError(ScanningError):
    """Ошибка обработки изображения."""
    pass


class ImageDecodingError(ImageProcessingError):
    """Ошибка декодирования изображения (битый data URI, не картинка)."""
    pass


class RecognitionError(ScanningError):
    """Ошибка движка распознавания."""
    pass


class EngineInitializationError(RecognitionError):
    """Движок не удалось создать или сконфигурировать."""
    pass


class EngineTimeoutError(EngineInitializationError):
    """Создание движка не уложилось в таймаут."""
    pass


class EngineNotReadyError(RecognitionError):
    """Движок не инициализирован."""
    pass


class ScanValidationError(ScanningError):
    """Ошибка валидации данных в домене Scanning."""
    pass


class ScanConfigurationError(ScanningError):
    """Ошибка конфигурации домена Scanning."""
    pass
