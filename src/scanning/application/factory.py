"""
Фабрика для создания компонентов домена Scanning.

Предоставляет удобные методы для создания и конфигурации
всех компонентов домена Scanning через единый интерфейс.
Оркестратор - один на сессию, поэтому фабрика каждый раз создаёт новый.
"""

from typing import Any, Dict, Optional

from loguru import logger

from config.settings import OCR_ENGINE
from ..domain.exceptions import ScanConfigurationError
from ..domain.interfaces import ILabelTextParser, IRecognitionEngine
from ..infrastructure.result_cache import ScanResultCache
from ..parsing.text_parser import LabelTextParser
from ..patterns.pattern_library import known_manufacturers
from ..pre_ocr.label_preprocessor import LabelPreprocessor
from .scan_orchestrator import ScanOrchestrator


class ScanComponentFactory:
    """
    Фабрика для создания компонентов домена Scanning.

    Домен Scanning отвечает за:
    - Жизненный цикл движка распознавания
    - Preprocessing снимков табличек
    - Извлечение model / serial / product code
    """

    @staticmethod
    def create_engine(name: Optional[str] = None, **kwargs: Any) -> IRecognitionEngine:
        """
        Создает движок распознавания.

        Args:
            name: "tesseract" или "google_vision" (по умолчанию из settings)
            **kwargs: Аргументы конструктора движка

        Returns:
            Движок, реализующий интерфейс IRecognitionEngine

        Raises:
            ScanConfigurationError: неизвестный движок
        """
        name = name or OCR_ENGINE
        logger.debug(f"[Scanning] Создание движка {name}")

        if name == "tesseract":
            from ..infrastructure.engines.tesseract_engine import TesseractEngine
            return TesseractEngine(**kwargs)

        if name == "google_vision":
            from ..infrastructure.engines.google_vision_engine import GoogleVisionEngine
            return GoogleVisionEngine(**kwargs)

        raise ScanConfigurationError(
            message=f"Неизвестный движок распознавания: {name}",
            component="ScanComponentFactory"
        )

    @staticmethod
    def create_parser() -> ILabelTextParser:
        logger.debug("[Scanning] Создание парсера табличек")
        return LabelTextParser()

    @staticmethod
    def create_preprocessor() -> LabelPreprocessor:
        logger.debug("[Scanning] Создание препроцессора изображений")
        return LabelPreprocessor()

    @staticmethod
    def create_cache() -> ScanResultCache:
        logger.debug("[Scanning] Создание кэша результатов")
        return ScanResultCache()

    @staticmethod
    def create_orchestrator(
        engine: Optional[IRecognitionEngine] = None,
        parser: Optional[ILabelTextParser] = None,
        preprocessor: Optional[LabelPreprocessor] = None,
        cache: Optional[ScanResultCache] = None,
        use_cache: bool = False
    ) -> ScanOrchestrator:
        """
        Создает оркестратор сканирования (один на сессию).

        Args:
            engine: Движок (по умолчанию из settings)
            parser: Парсер (опционально)
            preprocessor: Препроцессор (опционально)
            cache: Кэш результатов (опционально)
            use_cache: Создать кэш, если он не передан

        Returns:
            Новый ScanOrchestrator
        """
        logger.debug("[Scanning] Создание оркестратора")

        if engine is None:
            engine = ScanComponentFactory.create_engine()

        if parser is None:
            parser = ScanComponentFactory.create_parser()

        if preprocessor is None:
            preprocessor = ScanComponentFactory.create_preprocessor()

        if cache is None and use_cache:
            cache = ScanComponentFactory.create_cache()

        return ScanOrchestrator(
            engine=engine,
            parser=parser,
            preprocessor=preprocessor,
            cache=cache
        )

    @staticmethod
    def get_scanning_info() -> Dict[str, Any]:
        """
        Возвращает информацию о домене Scanning.

        Returns:
            Словарь с информацией о доступных компонентах и их возможностях
        """
        return {
            "domain": "Scanning",
            "responsibility": "OCR заводских табличек + извлечение model/serial/code",
            "output": "RobustScanResult",
            "engines": ["tesseract", "google_vision"],
            "default_engine": OCR_ENGINE,
            "manufacturers": list(known_manufacturers()),
            "components": {
                "text_parser": "LabelTextParser",
                "image_preprocessor": "LabelPreprocessor",
                "result_cache": "ScanResultCache",
                "orchestrator": "ScanOrchestrator"
            },
            "tiers": ["primary", "fallback", "emergency"],
        }
