"""
OCR: Tesseract интеграция (бэкенд по умолчанию).

Адаптер движка распознавания поверх pytesseract:
- create_instance: проверка бинарника и языкового пакета
- configure: --oem / --psm / -c переменные
- recognize: image_to_data -> строки + средняя уверенность слов

pytesseract блокирующий, вызовы уходят в asyncio.to_thread.
"""

import asyncio
import io
import shlex
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

import pytesseract
from loguru import logger
from PIL import Image, UnidentifiedImageError

from config.settings import OCR_LANGUAGE, TESSERACT_CMD
from ...domain.exceptions import EngineInitializationError, EngineNotReadyError, RecognitionError, ImageDecodingError
from ...domain.interfaces import EngineParameters, IRecognitionEngine, RecognitionOutput
from ...pre_ocr.data_uri import decode_data_uri


@dataclass
class TesseractSession:
    """Handle экземпляра: язык и собранная строка config."""
    language: str
    version: str = ""
    config: str = ""
    closed: bool = False


class TesseractEngine(IRecognitionEngine):
    """
    Обёртка над Tesseract OCR.

    Реализует интерфейс IRecognitionEngine.
    """

    name = "tesseract"

    def __init__(self, language: str = OCR_LANGUAGE, tesseract_cmd: str = TESSERACT_CMD):
        """
        Args:
            language: Языковой пакет tesseract (eng)
            tesseract_cmd: Путь к бинарнику, если его нет в PATH
        """
        self.language = language

        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

    @property
    def languages(self) -> List[str]:
        return [self.language]

    async def create_instance(self) -> TesseractSession:
        return await asyncio.to_thread(self._create_session)

    def _create_session(self) -> TesseractSession:
        try:
            version = str(pytesseract.get_tesseract_version())
            available = pytesseract.get_languages(config="")
        except pytesseract.TesseractNotFoundError as e:
            raise EngineInitializationError(
                message="Бинарник tesseract не найден (apt-get install tesseract-ocr)",
                component="TesseractEngine",
                original_error=e
            )
        except (pytesseract.TesseractError, OSError) as e:
            raise EngineInitializationError(
                message="Tesseract не отвечает",
                component="TesseractEngine",
                original_error=e
            )

        if self.language not in available:
            raise EngineInitializationError(
                message=f"Языковой пакет '{self.language}' не установлен (есть: {available})",
                component="TesseractEngine"
            )

        logger.info(f"[TesseractEngine] Tesseract {version}, язык: {self.language}")
        return TesseractSession(language=self.language, version=version)

    async def configure(self, handle: TesseractSession, parameters: EngineParameters) -> None:
        self._ensure_open(handle)
        handle.config = self.build_config(parameters)
        logger.debug(f"[TesseractEngine] config: {handle.config}")

    @staticmethod
    def build_config(parameters: EngineParameters) -> str:
        """Собирает строку config для pytesseract."""
        variables: Dict[str, str] = {
            "tessedit_char_whitelist": parameters.char_whitelist,
            "classify_bln_numeric_mode": "1" if parameters.numeric_mode else "0",
            "preserve_interword_spaces": "1" if parameters.preserve_interword_spaces else "0",
        }
        variables.update(parameters.extra)

        options = [f"--oem {parameters.engine_mode}", f"--psm {parameters.page_seg_mode}"]
        for key, value in variables.items():
            if value == "":
                continue
            options.append(f"-c {shlex.quote(f'{key}={value}')}")

        return " ".join(options)

    async def recognize(self, handle: TesseractSession, image_data_uri: str) -> RecognitionOutput:
        self._ensure_open(handle)
        image = self._load_image(image_data_uri)

        try:
            data = await asyncio.to_thread(
                pytesseract.image_to_data,
                image,
                lang=handle.language,
                config=handle.config,
                output_type=pytesseract.Output.DICT,
            )
        except (pytesseract.TesseractError, RuntimeError, OSError) as e:
            raise RecognitionError(
                message="Ошибка распознавания",
                component="TesseractEngine",
                original_error=e
            )

        output = self.to_output(data)
        logger.debug(
            f"[TesseractEngine] Распознано {len(output.text)} символов, "
            f"confidence={output.confidence:.1f}"
        )
        return output

    @staticmethod
    def to_output(data: Dict[str, List[Any]]) -> RecognitionOutput:
        """
        Собирает строки из image_to_data (по block/par/line)
        и среднюю уверенность распознанных слов.
        """
        lines: Dict[Tuple[int, int, int], List[str]] = {}
        confidences: List[float] = []

        for i, word in enumerate(data.get("text", [])):
            word = (word or "").strip()
            if not word:
                continue

            key = (int(data["block_num"][i]), int(data["par_num"][i]), int(data["line_num"][i]))
            lines.setdefault(key, []).append(word)

            conf = float(data["conf"][i])
            if conf >= 0:
                confidences.append(conf)

        text = "\n".join(" ".join(words) for words in lines.values())
        confidence = sum(confidences) / len(confidences) if confidences else 0.0

        return RecognitionOutput(text=text, confidence=max(0.0, min(100.0, confidence)))

    async def destroy(self, handle: TesseractSession) -> None:
        # Процесс tesseract запускается на каждый вызов, держать нечего
        if handle is not None:
            handle.closed = True

    @staticmethod
    def _ensure_open(handle: TesseractSession) -> None:
        if handle is None or handle.closed:
            raise EngineNotReadyError(message="Сессия tesseract закрыта", component="TesseractEngine")

    @staticmethod
    def _load_image(image_data_uri: str) -> Image.Image:
        raw = decode_data_uri(image_data_uri)
        try:
            image = Image.open(io.BytesIO(raw))
            image.load()
            return image
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
            raise ImageDecodingError(
                message="Не удалось открыть изображение",
                component="TesseractEngine",
                original_error=e
            )
