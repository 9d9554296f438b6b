from .pattern_library import (
    GENERIC,
    PatternGroup,
    MANUFACTURER_PATTERNS,
    MANUFACTURER_MARKERS,
    get_patterns,
    known_manufacturers,
)

__all__ = [
    "GENERIC",
    "PatternGroup",
    "MANUFACTURER_PATTERNS",
    "MANUFACTURER_MARKERS",
    "get_patterns",
    "known_manufacturers",
]
