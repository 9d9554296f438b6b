"""
Парсер текста заводских табличек.

Превращает сырой текст OCR + confidence в ScannedData:
1. Определение производителя (подсказка вызывающего всегда побеждает)
2. Построчный проход паттернами производителя (model, serial, code)
3. Поиск года выпуска
4. Fallback: эвристическая классификация токенов,
   если model или serial не найдены
"""

import re
from typing import Dict, List, Optional, Pattern, Tuple

from loguru import logger

from config.settings import MIN_MODEL_LENGTH, MIN_SERIAL_LENGTH, MIN_CODE_LENGTH
from contracts.scan_dto import ScannedData
from ..domain.interfaces import ILabelTextParser
from ..patterns.pattern_library import GENERIC, MANUFACTURER_MARKERS, PatternGroup, get_patterns

_DISALLOWED_CHARS = re.compile(r"[^A-Za-z0-9\-/\s]")
_SEPARATOR_SPACING = re.compile(r"\s*([\-/])\s*")
_WHITESPACE = re.compile(r"\s+")
_YEAR = re.compile(r"(?:19|20)[0-9]{2}")

_LIKELY_MODEL = re.compile(r"^[A-Z]{2,4}[0-9]{2,6}[A-Z0-9]*$", re.IGNORECASE)
_HAS_LETTER = re.compile(r"[A-Z]", re.IGNORECASE)
_HAS_DIGIT = re.compile(r"[0-9]")
_SERIAL_DIGITS = re.compile(r"^[0-9]{8,}$")
_SERIAL_PREFIXED = re.compile(r"^[A-Z]{1,4}[0-9]{6,}$")


def normalize_value(value: str) -> str:
    """
    Чистит извлечённое значение.

    trim -> только [A-Za-z0-9-/ пробел] -> пробелы вокруг - и / убираются
    -> серии пробелов схлопываются -> upper.

    "24 - 601087 - 01" -> "24-601087-01"
    """
    cleaned = _DISALLOWED_CHARS.sub("", value.strip())
    cleaned = _SEPARATOR_SPACING.sub(r"\1", cleaned)
    cleaned = _WHITESPACE.sub(" ", cleaned).strip()
    return cleaned.upper()


def is_likely_model(token: str) -> bool:
    """Модель: 2-4 буквы + 2-6 цифр + хвост, длина 4-12, есть буква и цифра."""
    return (
        bool(_LIKELY_MODEL.match(token))
        and 4 <= len(token) <= 12
        and bool(_HAS_LETTER.search(token))
        and bool(_HAS_DIGIT.search(token))
    )


def is_likely_serial(token: str) -> bool:
    """Серийный номер: длина 8-20, только цифры (>=8) или 1-4 буквы + >=6 цифр."""
    return (
        8 <= len(token) <= 20
        and (bool(_SERIAL_DIGITS.match(token)) or bool(_SERIAL_PREFIXED.match(token)))
    )


class LabelTextParser(ILabelTextParser):
    """
    Извлекает model / serial / product code / year из текста таблички.

    Сначала паттерны производителя, затем эвристики по токенам
    для полей, которые паттерны не нашли.
    """

    # (поле ScannedData, атрибут PatternGroup, минимальная длина захвата)
    FIELDS: Tuple[Tuple[str, str, int], ...] = (
        ("model", "model", MIN_MODEL_LENGTH),
        ("serial_number", "serial", MIN_SERIAL_LENGTH),
        ("product_number", "code", MIN_CODE_LENGTH),
    )

    def detect_manufacturer(self, text: str, hint: Optional[str] = None) -> str:
        """
        Определяет производителя по тексту таблички.

        Args:
            text: Сырой текст OCR
            hint: Подсказка вызывающего; если задана, возвращается как есть

        Returns:
            Ключ производителя (generic, если ничего не найдено)
        """
        if hint:
            return hint

        upper_text = (text or "").upper()
        for manufacturer, markers in MANUFACTURER_MARKERS:
            for marker in markers:
                if marker in upper_text:
                    logger.debug(f"[TextParser] Производитель {manufacturer} (маркер '{marker}')")
                    return manufacturer

        return GENERIC

    def parse(
        self,
        text: str,
        confidence: float,
        manufacturer_focus: Optional[str] = None
    ) -> ScannedData:
        """
        Парсит текст таблички.

        Args:
            text: Сырой текст OCR
            confidence: Уверенность OCR [0-100]
            manufacturer_focus: Принудительный производитель (без автоопределения)

        Returns:
            ScannedData; не найденные поля остаются None
        """
        text = text or ""
        lines = [line.strip() for line in text.split("\n") if line.strip()]

        manufacturer = self.detect_manufacturer(text, manufacturer_focus)
        patterns = get_patterns(manufacturer)

        logger.debug(
            f"[TextParser] Парсинг: {len(lines)} строк, производитель={manufacturer}, "
            f"confidence={confidence:.1f}"
        )

        fields: Dict[str, Optional[str]] = {
            "model": None,
            "serial_number": None,
            "product_number": None,
            "year": None,
        }

        for line in lines:
            self._match_line(line, patterns, fields)

            if fields["year"] is None:
                year_match = _YEAR.search(line)
                if year_match:
                    fields["year"] = year_match.group(0)

        if fields["model"] is None or fields["serial_number"] is None:
            self._fallback_tokens(lines, fields)

        found = [name for name, value in fields.items() if value]
        logger.info(
            f"[TextParser] Готово: производитель={manufacturer}, "
            f"найдено полей: {len(found)} {found}"
        )

        return ScannedData(
            model=fields["model"],
            serial_number=fields["serial_number"],
            product_number=fields["product_number"],
            manufacturer_code=manufacturer,
            year=fields["year"],
            confidence=confidence,
            extracted_text=text,
        )

    def _match_line(self, line: str, patterns: PatternGroup, fields: Dict[str, Optional[str]]) -> None:
        """Пробует паттерны группы на строке для ещё не заполненных полей."""
        for field_name, group_name, min_length in self.FIELDS:
            if fields[field_name] is not None:
                continue

            value = self._first_match(line, getattr(patterns, group_name), min_length)
            if value:
                fields[field_name] = value
                logger.debug(f"[TextParser] {field_name} = '{value}' (строка: '{line}')")

    @staticmethod
    def _first_match(line: str, patterns: Tuple[Pattern[str], ...], min_length: int) -> Optional[str]:
        for pattern in patterns:
            match = pattern.search(line)
            if not match or not match.group(1) or len(match.group(1)) < min_length:
                continue

            value = normalize_value(match.group(1))
            if value:
                return value

        return None

    def _fallback_tokens(self, lines: List[str], fields: Dict[str, Optional[str]]) -> None:
        """Эвристики по токенам. Не перезаписывает уже найденные поля."""
        tokens = [token for token in " ".join(lines).split() if len(token) > 2]

        for token in tokens:
            cleaned = normalize_value(token)

            if fields["model"] is None and is_likely_model(cleaned):
                fields["model"] = cleaned
                logger.debug(f"[TextParser] Fallback model = '{cleaned}'")

            if fields["serial_number"] is None and is_likely_serial(cleaned):
                fields["serial_number"] = cleaned
                logger.debug(f"[TextParser] Fallback serial = '{cleaned}'")
