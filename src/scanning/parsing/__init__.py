from .text_parser import LabelTextParser, normalize_value, is_likely_model, is_likely_serial
from .result_scorer import calculate_score, select_best

__all__ = [
    "LabelTextParser",
    "normalize_value",
    "is_likely_model",
    "is_likely_serial",
    "calculate_score",
    "select_best",
]
