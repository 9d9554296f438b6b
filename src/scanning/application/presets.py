"""
Пресеты параметров движка.

DEFAULT_PARAMETERS применяются при инициализации.
MULTI_ATTEMPT_PRESETS - набор для режима multiple_attempts: каждый пресет
даёт отдельного кандидата, лучший выбирается по score.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from config.settings import (
    CHAR_WHITELIST, UPPERCASE_WHITELIST, NUMERIC_WHITELIST,
    PAGE_SEG_MODE, ENGINE_MODE, NUMERIC_THRESHOLD, TESSERACT_DAWG_PARAMETERS
)
from ..domain.interfaces import EngineParameters


@dataclass(frozen=True)
class RecognitionPreset:
    """Именованный набор параметров для одной попытки распознавания."""
    name: str
    page_seg_mode: str
    char_whitelist: str
    threshold: Optional[int] = None  # порог бинаризации изображения

    def to_parameters(self) -> EngineParameters:
        return EngineParameters(
            char_whitelist=self.char_whitelist,
            page_seg_mode=self.page_seg_mode,
            engine_mode=ENGINE_MODE,
            extra=dict(TESSERACT_DAWG_PARAMETERS),
        )


DEFAULT_PARAMETERS = EngineParameters(
    char_whitelist=CHAR_WHITELIST,
    page_seg_mode=PAGE_SEG_MODE,
    engine_mode=ENGINE_MODE,
    extra=dict(TESSERACT_DAWG_PARAMETERS),
)

MULTI_ATTEMPT_PRESETS: Tuple[RecognitionPreset, ...] = (
    # Серийные и модельные номера в блоке текста
    RecognitionPreset("single_block", "6", CHAR_WHITELIST),
    # Короткий текст: одно слово
    RecognitionPreset("single_word", "8", UPPERCASE_WHITELIST),
    # Одна строка
    RecognitionPreset("single_text_line", "7", CHAR_WHITELIST),
    # Только цифры, бинаризованное изображение
    RecognitionPreset("numeric_block", "6", NUMERIC_WHITELIST, threshold=NUMERIC_THRESHOLD),
)
