"""
Integration тест: полный цикл сканирования на реальном tesseract.

Пропускается, если бинарник tesseract не установлен.
"""

import shutil

import cv2
import numpy as np
import pytest
import pytesseract
from contracts.scan_dto import ScanConfig, ScanMethod
from src.scanning.application.factory import ScanComponentFactory
from src.scanning.pre_ocr.data_uri import encode_data_uri

pytestmark = pytest.mark.skipif(
    shutil.which("tesseract") is None,
    reason="tesseract не установлен"
)


@pytest.fixture(autouse=True)
def require_english():
    if "eng" not in pytesseract.get_languages(config=""):
        pytest.skip("языковой пакет eng не установлен")


@pytest.fixture
def label_data_uri():
    """Fixture: синтетическая табличка (чёрный текст на белом)."""
    image = np.full((300, 1000, 3), 255, dtype=np.uint8)
    cv2.putText(image, "MODEL: WTV9612XS", (30, 110), cv2.FONT_HERSHEY_SIMPLEX, 2.0, (0, 0, 0), 4)
    cv2.putText(image, "S/N: 12345678", (30, 230), cv2.FONT_HERSHEY_SIMPLEX, 2.0, (0, 0, 0), 4)

    success, buffer = cv2.imencode(".png", image)
    assert success
    return encode_data_uri(buffer.tobytes(), "image/png")


@pytest.mark.asyncio
async def test_scan_label_with_tesseract(label_data_uri):
    engine = ScanComponentFactory.create_engine("tesseract")

    async with ScanComponentFactory.create_orchestrator(engine=engine) as orchestrator:
        assert orchestrator.is_ready

        result = await orchestrator.scan(label_data_uri, ScanConfig(preprocess_image=True))

    assert result.method is ScanMethod.PRIMARY
    assert result.attempts == 1
    assert (result.diagnostics.image_size.width, result.diagnostics.image_size.height) == (1000, 300)
    assert result.diagnostics.constraints_used == ["tesseract_primary"]
    assert 0 <= result.confidence <= 100
    assert result.extracted_text
