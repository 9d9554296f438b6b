"""
Интерфейсы (абстрактные классы) для домена Scanning.

Домен Scanning отвечает за:
1. Жизненный цикл внешнего движка распознавания (OCR)
2. Распознавание текста таблички
3. Извлечение model / serial / product code из текста
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from contracts.scan_dto import ScannedData


@dataclass(frozen=True)
class EngineParameters:
    """
    Параметры движка распознавания.

    Имена следуют терминологии tesseract; другие движки
    используют то, что поддерживают (например, только whitelist).
    """
    char_whitelist: str
    page_seg_mode: str
    engine_mode: str
    numeric_mode: bool = True
    preserve_interword_spaces: bool = True
    extra: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class RecognitionOutput:
    """Сырой результат распознавания."""
    text: str
    confidence: float  # 0 - 100


class IRecognitionEngine(ABC):
    """
    Интерфейс внешнего движка распознавания (домен Scanning).

    Handle принадлежит оркестратору целиком: создаётся, настраивается,
    используется и уничтожается только им.
    Handle не безопасен для параллельных вызовов recognize.
    """

    name: str = "engine"

    @property
    def languages(self) -> List[str]:
        """Загруженные языки."""
        return []

    @abstractmethod
    async def create_instance(self) -> Any:
        """
        Создаёт экземпляр движка (загрузка моделей/языков).

        Returns:
            Handle экземпляра

        Raises:
            EngineInitializationError: если движок недоступен
        """
        pass

    @abstractmethod
    async def configure(self, handle: Any, parameters: EngineParameters) -> None:
        """Применяет параметры к экземпляру."""
        pass

    @abstractmethod
    async def recognize(self, handle: Any, image_data_uri: str) -> RecognitionOutput:
        """
        Распознаёт текст на изображении.

        Args:
            handle: Экземпляр движка
            image_data_uri: Изображение в виде data URI

        Returns:
            RecognitionOutput с текстом и уверенностью [0-100]

        Raises:
            RecognitionError / ImageDecodingError
        """
        pass

    @abstractmethod
    async def destroy(self, handle: Any) -> None:
        """Освобождает экземпляр."""
        pass


class ILabelTextParser(ABC):
    """Интерфейс парсера текста табличек."""

    @abstractmethod
    def detect_manufacturer(self, text: str, hint: Optional[str] = None) -> str:
        pass

    @abstractmethod
    def parse(
        self,
        text: str,
        confidence: float,
        manufacturer_focus: Optional[str] = None
    ) -> ScannedData:
        pass
