"""
Библиотека паттернов табличек по производителям.

Для каждого производителя - три упорядоченных списка regex:
model, serial, code. Приоритет паттерна = его позиция (первое совпадение
побеждает). Группа `generic` есть всегда и используется как fallback.

Данные только для чтения.
"""

import re
from types import MappingProxyType
from typing import Mapping, NamedTuple, Optional, Pattern, Tuple

GENERIC = "generic"

_I = re.IGNORECASE


class PatternGroup(NamedTuple):
    """Упорядоченные паттерны одного производителя."""
    model: Tuple[Pattern[str], ...]
    serial: Tuple[Pattern[str], ...]
    code: Tuple[Pattern[str], ...]


def _compile(*patterns: Tuple[str, int]) -> Tuple[Pattern[str], ...]:
    return tuple(re.compile(pattern, flags) for pattern, flags in patterns)


_PATTERNS = {
    "beko": PatternGroup(
        model=_compile(
            # Холодильники: RCNA (MODEL NUMBER) и KS4030N (MODEL TYPE)
            (r"MODEL\s*NUMBER[:.\s]*([A-Z]{3,6})", _I),
            (r"MODEL\s*TYPE[:.\s]*([A-Z]{2}[0-9]{4}[A-Z])", _I),
            # WTV 9612 XS / WTV9612XS
            (r"\b([A-Z]{2,4}\s*[0-9]{3,4}\s*[A-Z]{1,3})\b", 0),
            (r"\b([A-Z]{2,4}\s+[0-9]{3,4}\s+[A-Z]{1,3})\b", 0),
            (r"\b([A-Z]{2,4}[0-9]{3,4}[A-Z]{1,3})\b", 0),
            # Короткие буквенные модели (RCNA)
            (r"\b([A-Z]{3,4})\b", 0),
            (r"(?:PRODUCT|Produkt)[:.\s]*([A-Z0-9]+[/\-]?[A-Z0-9]*)", _I),
            (r"(?:MOD|MODEL)[:.\s]*([A-Z]{2,}[0-9]{2,}[A-Z0-9]*)", _I),
        ),
        serial=_compile(
            # 24 - 601087 - 01
            (r"Serial\s*No[:.\s]*([0-9]{1,3}\s*-\s*[0-9]{6}\s*-\s*[0-9]{2})", _I),
            (r"Serial[:.\s]*([0-9]{1,3}\s*-\s*[0-9]{6}\s*-\s*[0-9]{2})", _I),
            (r"SN[:.\s]*([0-9]{1,3}\s*-\s*[0-9]{6}\s*-\s*[0-9]{2})", _I),
            (r"\b([0-9]{1,3}-[0-9]{6}-[0-9]{2})\b", 0),
            (r"SN[:.\s]*([A-Z0-9\s\-]{6,})", _I),
            (r"S/N[:.\s]*([A-Z0-9\s\-]{6,})", _I),
            (r"Serial[:.\s]*Number[:.\s]*([A-Z0-9\s\-]{6,})", _I),
        ),
        code=_compile(
            # Product Code: 7148246809
            (r"Product\s*Code[:.\s]*([0-9]{8,12})", _I),
            (r"(?:P/N|PN)[:.\s]*([0-9]{8,12})", _I),
            (r"\b([0-9]{10})\b", 0),
        ),
    ),
    "electrolux": PatternGroup(
        model=_compile(
            # ETW36433W OQ1
            (r"\b([A-Z]{3}[0-9]{5}[A-Z]+\s*[A-Z0-9]*)\b", 0),
            (r"\b([A-Z]{3}[0-9]{5}[A-Z])\b", 0),
            (r"(?:Mod|Model|Type)[:.\s]*([A-Z0-9\s]{5,})", _I),
            (r"(?:MOD|MODEL)[:.\s]*([A-Z]{2,}[0-9]{3,}[A-Z0-9]*)", _I),
        ),
        serial=_compile(
            # Ser No: 513000001
            (r"Ser\s*No[:.\s]*([0-9]{8,})", _I),
            (r"Serial\s*No[:.\s]*([0-9]{8,})", _I),
            (r"(?:S/N|SN)[:.\s]*([A-Z0-9]{8,})", _I),
            (r"\b([0-9]{9})\b", 0),
        ),
        code=_compile(
            (r"(?:P/N|PN|Product)[:.\s]*([A-Z0-9]{6,})", _I),
            (r"\b([0-9]{8,12})\b", 0),
        ),
    ),
    "candy": PatternGroup(
        model=_compile(
            # Type: F3M9
            (r"Type[:.\s]*([A-Z0-9]{2,6})", _I),
            (r"\b([A-Z][0-9][A-Z][0-9])\b", 0),
            (r"\b([A-Z]{1,3}[0-9]{1,3}[A-Z]{0,3})\b", 0),
            (r"(?:MOD|MODEL)[:.\s]*([A-Z0-9\-]{4,})", _I),
        ),
        serial=_compile(
            # Mod No: 37 86424180063
            (r"Mod\s*No[:.\s]*([0-9\s]{8,})", _I),
            (r"(?:S/N|SN|Serial)[:.\s]*([A-Z0-9]{6,})", _I),
            (r"\b([0-9]{2}\s*[0-9]{11})\b", 0),
            (r"\b([0-9]{11,15})\b", 0),
        ),
        code=_compile(
            (r"\b([0-9]{11,13})\b", 0),
            (r"(?:P/N|PN|Cod)[:.\s]*([A-Z0-9]{6,})", _I),
        ),
    ),
    "samsung": PatternGroup(
        model=_compile(
            (r"(?:MOD|MODEL)[:.\s]*([A-Z]{2,}[0-9-]+[A-Z]*)", _I),
            (r"^([A-Z]{2,4}[0-9-]{3,}[A-Z]*)$", _I),
        ),
        serial=_compile(
            (r"(?:S/N|SN)[:.\s]*([A-Z0-9]{10,})", _I),
            (r"^([A-Z]{4}[0-9]{6,})$", _I),
        ),
        code=_compile(
            (r"(?:P/N|PN)[:.\s]*([A-Z0-9-]+)", _I),
        ),
    ),
    "lg": PatternGroup(
        model=_compile(
            (r"(?:MOD|MODEL)[:.\s]*([A-Z]{2,}[0-9]+[A-Z]*)", _I),
            (r"^([A-Z]{2,4}[0-9]{3,}[A-Z]?)$", _I),
        ),
        serial=_compile(
            (r"(?:S/N|SN)[:.\s]*([0-9]{8,})", _I),
            (r"^([0-9]{8,12})$", _I),
        ),
        code=_compile(
            (r"(?:P/N|PN)[:.\s]*([A-Z0-9]+)", _I),
        ),
    ),
    GENERIC: PatternGroup(
        model=_compile(
            (r"(?:MOD|MODEL|MODELL?)[:.\s]*([A-Z0-9\-/]+)", _I),
            (r"^([A-Z]{2,}[0-9]{2,}[A-Z0-9\-/]*)$", _I),
            (r"([A-Z]{3,}[0-9]{3,})", _I),
        ),
        serial=_compile(
            (r"(?:S/N|SN|SERIAL|SER)[:.\s]*([A-Z0-9]{6,})", _I),
            (r"^([0-9]{8,}[A-Z0-9]*)$", _I),
            (r"([A-Z0-9]{10,})", _I),
        ),
        code=_compile(
            (r"(?:P/N|PN|PRODUCT|PROD)[:.\s]*([A-Z0-9\-/]+)", _I),
            (r"(?:CODE|KOD)[:.\s]*([A-Z0-9\-/]+)", _I),
        ),
    ),
}

MANUFACTURER_PATTERNS: Mapping[str, PatternGroup] = MappingProxyType(_PATTERNS)

# Маркеры производителя на табличке, в порядке приоритета проверки.
# Текст может совпасть с несколькими - побеждает первый.
MANUFACTURER_MARKERS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("beko", ("BEKO", "MODEL NUMBER", "MODEL TYPE", "WTV")),
    ("electrolux", ("ELECTROLUX", "SER NO", "ETW", "EWF")),
    ("candy", ("CANDY", "MOD NO", "TYPE F")),
    ("samsung", ("SAMSUNG",)),
    ("lg", ("LG",)),
)


def get_patterns(manufacturer: Optional[str]) -> PatternGroup:
    """
    Возвращает группу паттернов производителя.

    Неизвестный или пустой ключ молча разрешается в `generic`.
    """
    if not manufacturer:
        return MANUFACTURER_PATTERNS[GENERIC]
    return MANUFACTURER_PATTERNS.get(manufacturer.lower(), MANUFACTURER_PATTERNS[GENERIC])


def known_manufacturers() -> Tuple[str, ...]:
    """Ключи всех групп, включая generic."""
    return tuple(MANUFACTURER_PATTERNS.keys())
