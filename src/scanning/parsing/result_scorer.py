"""
Оценка результатов парсинга.

Используется для выбора лучшего результата из нескольких попыток
распознавания (разные пресеты параметров движка).
Серийный номер весит больше всего.
"""

from typing import Sequence, TypeVar

from config.settings import (
    SCORE_WEIGHT_MODEL, SCORE_WEIGHT_SERIAL,
    SCORE_WEIGHT_PRODUCT, SCORE_WEIGHT_MANUFACTURER
)
from contracts.scan_dto import ScannedData
from ..domain.exceptions import ScanValidationError

T = TypeVar("T", bound=ScannedData)


def calculate_score(result: ScannedData) -> float:
    """confidence + 30*model + 40*serial + 20*product + 10*manufacturer."""
    score = result.confidence
    if result.model:
        score += SCORE_WEIGHT_MODEL
    if result.serial_number:
        score += SCORE_WEIGHT_SERIAL
    if result.product_number:
        score += SCORE_WEIGHT_PRODUCT
    if result.manufacturer_code:
        score += SCORE_WEIGHT_MANUFACTURER
    return score


def select_best(results: Sequence[T]) -> T:
    """
    Возвращает результат с максимальным score.

    При равенстве побеждает более ранний.

    Raises:
        ScanValidationError: если список пуст
    """
    if not results:
        raise ScanValidationError(
            message="Нет результатов для выбора",
            component="ResultScorer"
        )

    best = results[0]
    best_score = calculate_score(best)
    for candidate in results[1:]:
        candidate_score = calculate_score(candidate)
        if candidate_score > best_score:
            best, best_score = candidate, candidate_score
    return best
