"""
DTO контракт: Label Scan -> UI (форма сервисного тикета)

Результат сканирования заводской таблички прибора.
Поля в Python - snake_case; model_dump(by_alias=True) отдаёт camelCase,
который ожидает UI слой (serialNumber, processingTime, ...).

Все модели используют Pydantic v2.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ScanMethod(str, Enum):
    """Уровень (tier) стратегии, который дал итоговый результат."""
    PRIMARY = "primary"
    FALLBACK = "fallback"
    EMERGENCY = "emergency"


class ScannedData(BaseModel):
    """
    Результат парсинга текста таблички.

    Каждое поле заполняется не более одного раза за парсинг:
    первое совпадение побеждает.
    """

    model_config = ConfigDict(populate_by_name=True)

    model: Optional[str] = Field(None, description="Модель прибора")
    serial_number: Optional[str] = Field(None, serialization_alias="serialNumber")
    product_number: Optional[str] = Field(None, serialization_alias="productNumber")
    manufacturer_code: Optional[str] = Field(
        None,
        serialization_alias="manufacturerCode",
        description="beko, electrolux, samsung, lg, candy, generic или подсказка вызывающего"
    )
    year: Optional[str] = Field(None, description="Год выпуска (4 цифры)")
    confidence: float = Field(..., ge=0, le=100, description="Уверенность OCR [0-100]")
    extracted_text: Optional[str] = Field(
        None,
        serialization_alias="extractedText",
        description="Полный сырой текст (для аудита и отладки)"
    )


class ScanConfig(BaseModel):
    """Настройки сканирования от вызывающего (все поля опциональны)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    preprocess_image: bool = Field(False, alias="preprocessImage")
    multiple_attempts: bool = Field(False, alias="multipleAttempts")
    manufacturer_focus: Optional[str] = Field(None, alias="manufacturerFocus")


class ImageSize(BaseModel):
    """Размеры изображения (px). 0x0 - изображение не декодируется."""

    model_config = ConfigDict(frozen=True)

    width: int = Field(0, ge=0)
    height: int = Field(0, ge=0)


class ScanDiagnostics(BaseModel):
    """Диагностика сканирования."""

    image_size: ImageSize = Field(default_factory=ImageSize, serialization_alias="imageSize")
    preprocessing: bool = False
    multiple_attempts: bool = Field(False, serialization_alias="multipleAttempts")
    constraints_used: List[str] = Field(default_factory=list, serialization_alias="constraintsUsed")


class RobustScanResult(ScannedData):
    """
    ScannedData + операционные метаданные.

    method = emergency и confidence ~25 означают:
    "распознавание недоступно, проверьте данные вручную".
    """

    processing_time: float = Field(..., ge=0, serialization_alias="processingTime")
    attempts: int = Field(..., ge=1, le=3)
    method: ScanMethod
    diagnostics: ScanDiagnostics = Field(default_factory=ScanDiagnostics)


class WorkerInfo(BaseModel):
    """Информация о сконфигурированном движке."""

    model_config = ConfigDict(frozen=True)

    languages_loaded: List[str] = Field(default_factory=list, serialization_alias="languagesLoaded")
    engine_mode: str = Field(..., serialization_alias="engineMode")
    page_seg_mode: str = Field(..., serialization_alias="pageSegMode")


class InitResult(BaseModel):
    """Результат инициализации движка. Никогда не исключение."""

    success: bool
    time_elapsed: float = Field(..., ge=0, serialization_alias="timeElapsed")
    error: Optional[str] = None
    worker_info: Optional[WorkerInfo] = Field(None, serialization_alias="workerInfo")
