"""
Data URI для pre-OCR.

UI слой передаёт снимок таблички в памяти как data URI
(data:image/jpeg;base64,...). Здесь - декодирование в байты / numpy
array, кодирование обратно и реальные размеры изображения.
"""

import base64
import binascii
import io
from urllib.parse import unquote_to_bytes

import cv2
import numpy as np
from loguru import logger
from PIL import Image, UnidentifiedImageError

from contracts.scan_dto import ImageSize
from ..domain.exceptions import ImageDecodingError


def decode_data_uri(image_data_uri: str) -> bytes:
    """
    Декодирует data URI (или голый base64) в байты.

    Raises:
        ImageDecodingError: пустые или битые данные
    """
    if not image_data_uri or not isinstance(image_data_uri, str):
        raise ImageDecodingError(message="Пустые данные изображения", component="DataURI")

    payload = image_data_uri.strip()
    is_base64 = True

    if payload.startswith("data:"):
        header, separator, payload = payload.partition(",")
        if not separator:
            raise ImageDecodingError(message="Data URI без данных", component="DataURI")
        is_base64 = header.endswith(";base64")

    try:
        if is_base64:
            raw = base64.b64decode("".join(payload.split()), validate=True)
        else:
            raw = unquote_to_bytes(payload)
    except (binascii.Error, ValueError) as e:
        raise ImageDecodingError(
            message="Некорректный base64 в data URI",
            component="DataURI",
            original_error=e
        )

    if not raw:
        raise ImageDecodingError(message="Data URI не содержит данных", component="DataURI")

    return raw


def encode_data_uri(image_bytes: bytes, mime_type: str = "image/png") -> str:
    """Кодирует байты изображения в data URI."""
    return f"data:{mime_type};base64,{base64.b64encode(image_bytes).decode('ascii')}"


def decode_image(image_data_uri: str) -> np.ndarray:
    """
    Декодирует data URI в numpy array (BGR).

    Raises:
        ImageDecodingError: если данные не являются изображением
    """
    raw = decode_data_uri(image_data_uri)
    image = cv2.imdecode(np.frombuffer(raw, np.uint8), cv2.IMREAD_COLOR)

    if image is None:
        raise ImageDecodingError(message="Не удалось декодировать изображение", component="DataURI")

    return image


def get_image_size(image_data_uri: str) -> ImageSize:
    """
    Реальные размеры изображения (читается только заголовок).

    Для диагностики: никогда не падает, 0x0 если не декодируется.
    """
    try:
        raw = decode_data_uri(image_data_uri)
        with Image.open(io.BytesIO(raw)) as img:
            width, height = img.size
        return ImageSize(width=width, height=height)
    except (ImageDecodingError, UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        logger.debug(f"[DataURI] Размер изображения не определён: {e}")
        return ImageSize(width=0, height=0)
