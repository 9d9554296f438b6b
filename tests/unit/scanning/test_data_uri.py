import base64

import numpy as np
import pytest
from src.scanning.domain.exceptions import ImageDecodingError
from src.scanning.pre_ocr.data_uri import (
    decode_data_uri, decode_image, encode_data_uri, get_image_size
)


def test_encode_decode_bytes():
    uri = encode_data_uri(b"\x89PNG-bytes", "image/png")
    assert uri.startswith("data:image/png;base64,")
    assert decode_data_uri(uri) == b"\x89PNG-bytes"


def test_decode_raw_base64_without_prefix():
    payload = base64.b64encode(b"label").decode("ascii")
    assert decode_data_uri(payload) == b"label"


def test_decode_percent_encoded_data_uri():
    assert decode_data_uri("data:text/plain,hello%20label") == b"hello label"


@pytest.mark.parametrize("bad", [
    "",
    "data:image/png;base64",      # нет запятой
    "data:image/png;base64,",     # пустые данные
    "data:image/png;base64,@@@",  # не base64
    "not-an-image",
])
def test_decode_invalid_raises(bad):
    with pytest.raises(ImageDecodingError):
        decode_data_uri(bad)


def test_decode_image(image_data_uri):
    image = decode_image(image_data_uri)
    assert image.shape == (120, 200, 3)
    assert image.dtype == np.uint8


def test_decode_image_not_an_image():
    uri = encode_data_uri(b"definitely not an image", "image/png")
    with pytest.raises(ImageDecodingError):
        decode_image(uri)


def test_get_image_size(image_data_uri):
    size = get_image_size(image_data_uri)
    assert (size.width, size.height) == (200, 120)


@pytest.mark.parametrize("bad", ["", "garbage", encode_data_uri(b"text", "image/png")])
def test_get_image_size_never_raises(bad):
    """Тест: для битых данных размер 0x0, без исключения."""
    size = get_image_size(bad)
    assert (size.width, size.height) == (0, 0)


def test_get_image_size_oversized_header(oversized_png_data_uri):
    """Тест: заголовок больше лимита Pillow - 0x0, без исключения."""
    size = get_image_size(oversized_png_data_uri)
    assert (size.width, size.height) == (0, 0)
