"""
Preprocessing фото табличек перед OCR.

Этапы:
1. scale_optimization   - вписываем в 1600x1200 (оптимум для OCR табличек)
2. contrast_enhancement - (v - 128) * 1.5 + 128
3. grayscale            - OCR работает с яркостью, не с цветом
4. binarization         - только если задан порог (числовой пресет)

Результат - снова data URI (PNG), движки принимают только его.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import cv2
import numpy as np
from loguru import logger

from config.settings import PREPROCESS_MAX_WIDTH, PREPROCESS_MAX_HEIGHT, CONTRAST_FACTOR
from ..domain.exceptions import ImageProcessingError
from .data_uri import decode_image, encode_data_uri


@dataclass
class PreprocessResult:
    """Результат preprocessing."""

    data_uri: str
    original_size: Tuple[int, int]   # (width, height)
    processed_size: Tuple[int, int]  # (width, height)
    applied: List[str] = field(default_factory=list)


class LabelPreprocessor:
    """
    Подготовка снимка таблички к OCR.
    """

    def __init__(
        self,
        max_width: int = PREPROCESS_MAX_WIDTH,
        max_height: int = PREPROCESS_MAX_HEIGHT,
        contrast_factor: float = CONTRAST_FACTOR
    ):
        self.max_width = max_width
        self.max_height = max_height
        self.contrast_factor = contrast_factor

    def process(self, image_data_uri: str, threshold: Optional[int] = None) -> PreprocessResult:
        """
        Обрабатывает изображение.

        Args:
            image_data_uri: Исходное изображение (data URI)
            threshold: Порог бинаризации [0-255] или None

        Returns:
            PreprocessResult с новым data URI и списком применённых этапов

        Raises:
            ImageDecodingError: если вход не декодируется
            ImageProcessingError: если обработка не удалась
        """
        image = decode_image(image_data_uri)
        h, w = image.shape[:2]
        applied: List[str] = []

        try:
            scaled = self._scale(image)
            if scaled.shape[:2] != image.shape[:2]:
                applied.append("scale_optimization")

            processed = self._enhance_contrast(scaled)
            applied.append("contrast_enhancement")

            processed = self._to_grayscale(processed)
            applied.append("grayscale")

            if threshold is not None:
                processed = self._binarize(processed, threshold)
                applied.append("binarization")

            success, buffer = cv2.imencode(".png", processed)
        except cv2.error as e:
            raise ImageProcessingError(
                message="Ошибка preprocessing изображения",
                component="LabelPreprocessor",
                original_error=e
            )

        if not success:
            raise ImageProcessingError(
                message="Не удалось закодировать изображение в PNG",
                component="LabelPreprocessor"
            )

        ph, pw = processed.shape[:2]
        logger.debug(f"[LabelPreprocessor] {w}x{h} -> {pw}x{ph}, этапы: {applied}")

        return PreprocessResult(
            data_uri=encode_data_uri(buffer.tobytes(), "image/png"),
            original_size=(w, h),
            processed_size=(pw, ph),
            applied=applied,
        )

    def get_optimal_size(self, w: int, h: int) -> Tuple[int, int]:
        """Размер с сохранением aspect ratio, не больше max_width x max_height."""
        if w <= self.max_width and h <= self.max_height:
            return (w, h)

        scale = min(self.max_width / w, self.max_height / h)
        return (max(1, round(w * scale)), max(1, round(h * scale)))

    def _scale(self, image: np.ndarray) -> np.ndarray:
        h, w = image.shape[:2]
        target = self.get_optimal_size(w, h)
        if target == (w, h):
            return image
        return cv2.resize(image, target, interpolation=cv2.INTER_AREA)

    def _enhance_contrast(self, image: np.ndarray) -> np.ndarray:
        stretched = (image.astype(np.float32) - 128.0) * self.contrast_factor + 128.0
        return np.clip(stretched, 0, 255).astype(np.uint8)

    @staticmethod
    def _to_grayscale(image: np.ndarray) -> np.ndarray:
        if image.ndim == 2:
            return image
        if image.shape[2] == 4:
            return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
        return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)

    @staticmethod
    def _binarize(gray: np.ndarray, threshold: int) -> np.ndarray:
        _, binary = cv2.threshold(gray, threshold, 255, cv2.THRESH_BINARY)
        return binary

