"""
Оркестратор сканирования табличек.

Владеет экземпляром движка распознавания и реализует трёхуровневую
стратегию деградации:

    PRIMARY   - движок готов: распознаём сразу
    FALLBACK  - полностью пересоздаём движок и пробуем ещё раз
    EMERGENCY - заглушка с confidence ~25 и без полей

scan() никогда не бросает исключение. initialize() тоже: при неудаче
возвращает InitResult(success=False).

Жизненный цикл движка:
    uninitialized -> initializing -> ready
                                  -> uninitialized (retry через 1 с)
                                  -> failed (попытки исчерпаны)

Один оркестратор на сессию. Операции над одним экземпляром
сериализуются через asyncio.Lock: handle движка не поддерживает
параллельные recognize.
"""

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from loguru import logger

from config.settings import (
    INIT_TIMEOUT_SECONDS, MAX_INIT_ATTEMPTS, INIT_RETRY_DELAY_SECONDS, EMERGENCY_CONFIDENCE
)
from contracts.scan_dto import (
    ImageSize, InitResult, RobustScanResult, ScanConfig, ScanDiagnostics,
    ScanMethod, ScannedData, WorkerInfo
)
from ..domain.exceptions import EngineInitializationError, EngineNotReadyError, EngineTimeoutError
from ..domain.interfaces import EngineParameters, ILabelTextParser, IRecognitionEngine
from ..infrastructure.result_cache import ScanResultCache
from ..parsing.result_scorer import select_best
from ..parsing.text_parser import LabelTextParser
from ..pre_ocr.data_uri import get_image_size
from ..pre_ocr.label_preprocessor import LabelPreprocessor
from .presets import DEFAULT_PARAMETERS, MULTI_ATTEMPT_PRESETS, RecognitionPreset

EMERGENCY_NOTE = "Emergency fallback - recognition service is degraded, verify label data manually"


class EngineState(str, Enum):
    """Состояние движка распознавания."""
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


@dataclass
class TierOutcome:
    """Успешный результат одного tier."""
    data: ScannedData
    preprocessing: bool = False
    multiple_attempts: bool = False
    constraints_used: List[str] = field(default_factory=list)


class ScanOrchestrator:
    """
    Оркестратор сканирования.

    Координирует:
    1. Жизненный цикл движка (initialize / terminate)
    2. Preprocessing (опционально)
    3. Распознавание (одно или по пресетам с выбором лучшего)
    4. Парсинг текста в ScannedData
    5. Деградацию primary -> fallback -> emergency
    """

    def __init__(
        self,
        engine: IRecognitionEngine,
        parser: Optional[ILabelTextParser] = None,
        preprocessor: Optional[LabelPreprocessor] = None,
        cache: Optional[ScanResultCache] = None,
        init_timeout: float = INIT_TIMEOUT_SECONDS,
        max_init_attempts: int = MAX_INIT_ATTEMPTS,
        retry_delay: float = INIT_RETRY_DELAY_SECONDS,
        default_parameters: EngineParameters = DEFAULT_PARAMETERS,
        presets: Sequence[RecognitionPreset] = MULTI_ATTEMPT_PRESETS
    ):
        """
        Args:
            engine: Движок распознавания (TesseractEngine, GoogleVisionEngine)
            parser: Парсер текста табличек
            preprocessor: Препроцессор изображений
            cache: Кэш результатов (опционально)
            init_timeout: Таймаут создания движка, с
            max_init_attempts: Попыток инициализации за один вызов
            retry_delay: Пауза между попытками, с
        """
        self.engine = engine
        self.parser = parser or LabelTextParser()
        self.preprocessor = preprocessor or LabelPreprocessor()
        self.cache = cache
        self.init_timeout = init_timeout
        self.max_init_attempts = max_init_attempts
        self.retry_delay = retry_delay
        self.default_parameters = default_parameters
        self.presets = tuple(presets)

        self._handle: Any = None
        self._state = EngineState.UNINITIALIZED
        self._initialization_attempts = 0
        self._lock: Optional[asyncio.Lock] = None

        self._tiers: Dict[ScanMethod, Callable[[str, ScanConfig], Awaitable[TierOutcome]]] = {
            ScanMethod.PRIMARY: self._primary_tier,
            ScanMethod.FALLBACK: self._fallback_tier,
        }

        logger.info(f"[ScanOrchestrator] Создан (движок: {engine.name})")

    # ------------------------------------------------------------------
    # Статус
    # ------------------------------------------------------------------

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is EngineState.READY and self._handle is not None

    @property
    def initialization_attempts(self) -> int:
        return self._initialization_attempts

    def reset_initialization_attempts(self) -> None:
        self._initialization_attempts = 0

    @property
    def _operation_lock(self) -> asyncio.Lock:
        # Создаётся внутри работающего event loop, а не в __init__
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    async def __aenter__(self) -> "ScanOrchestrator":
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.terminate()

    # ------------------------------------------------------------------
    # Инициализация
    # ------------------------------------------------------------------

    async def initialize(self, config: Optional[ScanConfig] = None) -> InitResult:
        """
        Создаёт и настраивает движок.

        До max_init_attempts попыток, каждая под таймаутом init_timeout,
        пауза retry_delay между ними. Никогда не бросает исключение.

        Args:
            config: Настройки сканирования (на инициализацию не влияют)

        Returns:
            InitResult; success=False если все попытки исчерпаны
        """
        async with self._operation_lock:
            return await self._initialize()

    async def _initialize(self) -> InitResult:
        start = time.perf_counter()
        if self._handle is not None:
            await self._terminate()

        self._initialization_attempts = 0
        last_error: Optional[Exception] = None

        while self._initialization_attempts < self.max_init_attempts:
            self._initialization_attempts += 1
            self._state = EngineState.INITIALIZING
            logger.info(
                f"[ScanOrchestrator] Инициализация {self.engine.name}: "
                f"попытка {self._initialization_attempts}/{self.max_init_attempts}"
            )

            try:
                await self._create_and_configure()
            except Exception as e:
                last_error = e
                self._state = EngineState.UNINITIALIZED
                logger.warning(f"[ScanOrchestrator] Попытка {self._initialization_attempts} неуспешна: {e}")

                if self._initialization_attempts < self.max_init_attempts:
                    await asyncio.sleep(self.retry_delay)
                continue

            self._state = EngineState.READY
            elapsed = self._elapsed_ms(start)
            logger.info(f"[ScanOrchestrator] Движок готов за {elapsed:.0f} мс")

            return InitResult(
                success=True,
                time_elapsed=elapsed,
                worker_info=WorkerInfo(
                    languages_loaded=list(self.engine.languages),
                    engine_mode=self.default_parameters.engine_mode,
                    page_seg_mode=self.default_parameters.page_seg_mode,
                )
            )

        self._state = EngineState.FAILED
        error = (
            f"OCR initialization failed after {self._initialization_attempts} attempts: "
            f"{last_error}"
        )
        logger.error(f"[ScanOrchestrator] {error}")

        return InitResult(success=False, time_elapsed=self._elapsed_ms(start), error=error)

    async def _create_and_configure(self) -> None:
        handle = None
        try:
            handle = await asyncio.wait_for(self.engine.create_instance(), timeout=self.init_timeout)
            await self.engine.configure(handle, self.default_parameters)
        except asyncio.TimeoutError as e:
            raise EngineTimeoutError(
                message=f"Создание движка не уложилось в {self.init_timeout} с",
                component="ScanOrchestrator",
                original_error=e
            )
        except Exception:
            if handle is not None:
                await self._destroy_quietly(handle)
            raise

        self._handle = handle

    # ------------------------------------------------------------------
    # Сканирование
    # ------------------------------------------------------------------

    async def scan(self, image_data_uri: str, config: Optional[ScanConfig] = None) -> RobustScanResult:
        """
        Сканирует табличку: primary -> fallback -> emergency.

        Args:
            image_data_uri: Снимок таблички (data URI)
            config: Настройки сканирования

        Returns:
            RobustScanResult - всегда, даже для битых данных
        """
        config = config or ScanConfig()
        start = time.perf_counter()

        async with self._operation_lock:
            cache_key = None
            if self.cache is not None:
                cache_key = ScanResultCache.make_key(image_data_uri or "", config)
                cached = self.cache.get(cache_key)
                if cached is not None:
                    logger.info("[ScanOrchestrator] Результат из кэша")
                    return cached

            image_size = get_image_size(image_data_uri)
            attempts = 0

            for tier in (ScanMethod.PRIMARY, ScanMethod.FALLBACK):
                if tier is ScanMethod.PRIMARY and not self.is_ready:
                    logger.debug("[ScanOrchestrator] Движок не готов, primary пропущен")
                    continue

                attempts += 1
                logger.info(f"[ScanOrchestrator] Tier {tier.value} (попытка {attempts})")

                try:
                    outcome = await self._tiers[tier](image_data_uri, config)
                except Exception as e:
                    logger.warning(f"[ScanOrchestrator] Tier {tier.value} неуспешен: {e}")
                    continue

                result = self._build_result(outcome, tier, attempts, start, image_size)
                if cache_key is not None:
                    self.cache.put(cache_key, result)
                return result

            attempts += 1
            logger.warning("[ScanOrchestrator] Tier emergency: распознавание недоступно")
            return self._emergency_result(attempts, start, image_size)

    async def _primary_tier(self, image_data_uri: str, config: ScanConfig) -> TierOutcome:
        if not self.is_ready:
            raise EngineNotReadyError(message="Движок не готов", component="ScanOrchestrator")
        return await self._recognize_and_parse(image_data_uri, config, ScanMethod.PRIMARY)

    async def _fallback_tier(self, image_data_uri: str, config: ScanConfig) -> TierOutcome:
        await self._terminate()

        init_result = await self._initialize()
        if not init_result.success:
            raise EngineInitializationError(message=init_result.error or "", component="ScanOrchestrator")

        return await self._recognize_and_parse(image_data_uri, config, ScanMethod.FALLBACK)

    async def _recognize_and_parse(
        self,
        image_data_uri: str,
        config: ScanConfig,
        tier: ScanMethod
    ) -> TierOutcome:
        constraints = [f"{self.engine.name}_{tier.value}"]

        source = image_data_uri
        if config.preprocess_image:
            source = self.preprocessor.process(image_data_uri).data_uri

        if not config.multiple_attempts:
            output = await self.engine.recognize(self._handle, source)
            logger.debug(f"[ScanOrchestrator] OCR: '{output.text[:100]}' ({output.confidence:.1f})")
            data = self.parser.parse(output.text, output.confidence, config.manufacturer_focus)
        else:
            candidates: List[ScannedData] = []
            for preset in self.presets:
                preset_source = source
                if preset.threshold is not None:
                    preset_source = self.preprocessor.process(image_data_uri, threshold=preset.threshold).data_uri

                await self.engine.configure(self._handle, preset.to_parameters())
                output = await self.engine.recognize(self._handle, preset_source)
                logger.debug(
                    f"[ScanOrchestrator] Пресет {preset.name}: "
                    f"'{output.text[:100]}' ({output.confidence:.1f})"
                )

                candidates.append(self.parser.parse(output.text, output.confidence, config.manufacturer_focus))
                constraints.append(preset.name)

            await self.engine.configure(self._handle, self.default_parameters)
            data = select_best(candidates)

        return TierOutcome(
            data=data,
            preprocessing=config.preprocess_image,
            multiple_attempts=config.multiple_attempts,
            constraints_used=constraints,
        )

    def _build_result(
        self,
        outcome: TierOutcome,
        tier: ScanMethod,
        attempts: int,
        start: float,
        image_size: ImageSize
    ) -> RobustScanResult:
        result = RobustScanResult(
            **outcome.data.model_dump(),
            processing_time=self._elapsed_ms(start),
            attempts=attempts,
            method=tier,
            diagnostics=ScanDiagnostics(
                image_size=image_size,
                preprocessing=outcome.preprocessing,
                multiple_attempts=outcome.multiple_attempts,
                constraints_used=outcome.constraints_used,
            )
        )
        logger.info(
            f"[ScanOrchestrator] Готово ({tier.value}, {result.processing_time:.0f} мс): "
            f"model={result.model}, serial={result.serial_number}, confidence={result.confidence:.1f}"
        )
        return result

    def _emergency_result(self, attempts: int, start: float, image_size: ImageSize) -> RobustScanResult:
        return RobustScanResult(
            confidence=EMERGENCY_CONFIDENCE,
            extracted_text=EMERGENCY_NOTE,
            processing_time=self._elapsed_ms(start),
            attempts=attempts,
            method=ScanMethod.EMERGENCY,
            diagnostics=ScanDiagnostics(
                image_size=image_size,
                preprocessing=False,
                multiple_attempts=False,
                constraints_used=["regex_emergency"],
            )
        )

    # ------------------------------------------------------------------
    # Освобождение ресурсов
    # ------------------------------------------------------------------

    async def terminate(self) -> None:
        """Освобождает движок. Идемпотентно, ошибки только логируются."""
        async with self._operation_lock:
            await self._terminate()

    async def _terminate(self) -> None:
        handle, self._handle = self._handle, None
        self._state = EngineState.UNINITIALIZED

        if handle is None:
            return

        await self._destroy_quietly(handle)
        logger.info(f"[ScanOrchestrator] Движок {self.engine.name} освобождён")

    async def _destroy_quietly(self, handle: Any) -> None:
        try:
            await self.engine.destroy(handle)
        except Exception as e:
            logger.warning(f"[ScanOrchestrator] Ошибка при освобождении движка: {e}")

    @staticmethod
    def _elapsed_ms(start: float) -> float:
        return (time.perf_counter() - start) * 1000.0
