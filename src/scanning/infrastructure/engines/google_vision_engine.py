"""
OCR: Google Vision API интеграция (альтернативный бэкенд).

Handle - клиент ImageAnnotatorClient. Google Vision не поддерживает
whitelist / psm, поэтому whitelist применяется как фильтр к тексту.
"""

import asyncio
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional

from google.cloud import vision
from google.cloud.vision_v1 import types
from loguru import logger

from config.settings import GOOGLE_APPLICATION_CREDENTIALS, OCR_LANGUAGE
from ...domain.exceptions import EngineInitializationError, EngineNotReadyError, RecognitionError
from ...domain.interfaces import EngineParameters, IRecognitionEngine, RecognitionOutput
from ...pre_ocr.data_uri import decode_data_uri


@dataclass
class GoogleVisionSession:
    """Handle экземпляра."""
    client: Any
    parameters: Optional[EngineParameters] = None


class GoogleVisionEngine(IRecognitionEngine):
    """
    Обёртка над Google Cloud Vision API.

    Реализует интерфейс IRecognitionEngine.
    """

    name = "google_vision"

    def __init__(self, credentials_path: Optional[str] = None):
        """
        Args:
            credentials_path: Путь к JSON-файлу credentials.
                            Если не указан, берётся из settings.
        """
        self.credentials_path = credentials_path or GOOGLE_APPLICATION_CREDENTIALS

    @property
    def languages(self) -> List[str]:
        return [OCR_LANGUAGE]

    async def create_instance(self) -> GoogleVisionSession:
        return await asyncio.to_thread(self._create_session)

    def _create_session(self) -> GoogleVisionSession:
        if not self.credentials_path:
            raise EngineInitializationError(
                message="Google credentials не указаны",
                component="GoogleVisionEngine"
            )

        if not Path(self.credentials_path).exists():
            raise EngineInitializationError(
                message=f"Credentials файл не найден: {self.credentials_path}",
                component="GoogleVisionEngine"
            )

        # Устанавливаем credentials через переменную окружения
        os.environ["GOOGLE_APPLICATION_CREDENTIALS"] = str(self.credentials_path)

        try:
            client = vision.ImageAnnotatorClient()
        except Exception as e:
            raise EngineInitializationError(
                message="Не удалось создать клиент Google Vision",
                component="GoogleVisionEngine",
                original_error=e
            )

        logger.info("[GoogleVisionEngine] Клиент инициализирован")
        return GoogleVisionSession(client=client)

    async def configure(self, handle: GoogleVisionSession, parameters: EngineParameters) -> None:
        if handle is None:
            raise EngineNotReadyError(message="Клиент не создан", component="GoogleVisionEngine")
        handle.parameters = parameters

    async def recognize(self, handle: GoogleVisionSession, image_data_uri: str) -> RecognitionOutput:
        if handle is None:
            raise EngineNotReadyError(message="Клиент не создан", component="GoogleVisionEngine")

        image = types.Image(content=decode_data_uri(image_data_uri))

        try:
            response = await asyncio.to_thread(handle.client.document_text_detection, image=image)
        except Exception as e:
            raise RecognitionError(
                message="Ошибка запроса к Google Vision",
                component="GoogleVisionEngine",
                original_error=e
            )

        if response.error.message:
            raise RecognitionError(
                message=f"Google Vision API error: {response.error.message}",
                component="GoogleVisionEngine"
            )

        text = ""
        confidences: List[float] = []
        if response.full_text_annotation:
            text = response.full_text_annotation.text
            for page in response.full_text_annotation.pages:
                for block in page.blocks:
                    for paragraph in block.paragraphs:
                        for word in paragraph.words:
                            confidences.append(max(0.0, min(1.0, word.confidence)))

        if handle.parameters is not None:
            text = self.apply_whitelist(text, handle.parameters.char_whitelist)

        confidence = 100.0 * sum(confidences) / len(confidences) if confidences else 0.0
        logger.debug(f"[GoogleVisionEngine] Слов: {len(confidences)}, confidence={confidence:.1f}")

        return RecognitionOutput(text=text, confidence=confidence)

    @staticmethod
    def apply_whitelist(text: str, whitelist: str) -> str:
        """Оставляет только разрешённые символы (переводы строк сохраняются)."""
        if not whitelist:
            return text
        allowed = set(whitelist) | {"\n"}
        return "".join(ch for ch in text if ch in allowed)

    async def destroy(self, handle: GoogleVisionSession) -> None:
        if handle is None:
            return
        transport = getattr(handle.client, "transport", None)
        if transport is not None:
            await asyncio.to_thread(transport.close)
