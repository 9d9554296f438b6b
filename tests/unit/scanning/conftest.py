import asyncio
import struct
import zlib
from typing import Any, List, Optional

import cv2
import numpy as np
import pytest

from src.scanning.domain.exceptions import EngineInitializationError, RecognitionError
from src.scanning.domain.interfaces import EngineParameters, IRecognitionEngine, RecognitionOutput
from src.scanning.pre_ocr.data_uri import encode_data_uri


class FakeEngine(IRecognitionEngine):
    """
    Движок-заглушка для тестов оркестратора.

    create_errors / recognize_errors - сколько первых вызовов падают.
    """

    name = "fake"

    def __init__(
        self,
        outputs: Optional[List[RecognitionOutput]] = None,
        create_errors: int = 0,
        create_delay: float = 0.0,
        recognize_errors: int = 0,
        destroy_error: bool = False
    ):
        self.outputs = list(outputs or [RecognitionOutput(text="MODEL: WTV9612XS\nBEKO", confidence=80.0)])
        self.create_errors = create_errors
        self.create_delay = create_delay
        self.recognize_errors = recognize_errors
        self.destroy_error = destroy_error

        self.create_calls = 0
        self.recognize_calls = 0
        self.destroy_calls = 0
        self.configured: List[EngineParameters] = []
        self.images: List[str] = []

    @property
    def languages(self) -> List[str]:
        return ["eng"]

    async def create_instance(self) -> Any:
        self.create_calls += 1
        if self.create_delay:
            await asyncio.sleep(self.create_delay)
        if self.create_calls <= self.create_errors:
            raise EngineInitializationError(message="load failed", component="FakeEngine")
        return {"instance": self.create_calls}

    async def configure(self, handle: Any, parameters: EngineParameters) -> None:
        self.configured.append(parameters)

    async def recognize(self, handle: Any, image_data_uri: str) -> RecognitionOutput:
        self.recognize_calls += 1
        self.images.append(image_data_uri)
        if self.recognize_calls <= self.recognize_errors:
            raise RecognitionError(message="recognize failed", component="FakeEngine")
        if len(self.outputs) > 1:
            return self.outputs.pop(0)
        return self.outputs[0]

    async def destroy(self, handle: Any) -> None:
        self.destroy_calls += 1
        if self.destroy_error:
            raise RuntimeError("destroy failed")


@pytest.fixture
def make_engine():
    """Fixture: фабрика FakeEngine."""
    return FakeEngine


@pytest.fixture
def label_image() -> np.ndarray:
    """Fixture: белое BGR изображение 200x120."""
    return np.full((120, 200, 3), 255, dtype=np.uint8)


@pytest.fixture
def image_data_uri(label_image) -> str:
    """Fixture: PNG data URI 200x120."""
    success, buffer = cv2.imencode(".png", label_image)
    assert success
    return encode_data_uri(buffer.tobytes(), "image/png")


def _png_chunk(tag: bytes, data: bytes) -> bytes:
    return struct.pack(">I", len(data)) + tag + data + struct.pack(">I", zlib.crc32(tag + data) & 0xFFFFFFFF)


@pytest.fixture
def oversized_png_data_uri() -> str:
    """Fixture: PNG, заголовок которого заявляет 20000x20000 (больше лимита Pillow)."""
    header = struct.pack(">IIBBBBB", 20000, 20000, 8, 2, 0, 0, 0)
    png = (
        b"\x89PNG\r\n\x1a\n"
        + _png_chunk(b"IHDR", header)
        + _png_chunk(b"IDAT", zlib.compress(b""))
        + _png_chunk(b"IEND", b"")
    )
    return encode_data_uri(png, "image/png")
