import asyncio

import pytest
from contracts.scan_dto import ScanConfig, ScanMethod
from src.scanning.application.presets import DEFAULT_PARAMETERS, MULTI_ATTEMPT_PRESETS
from src.scanning.application.scan_orchestrator import EMERGENCY_NOTE, EngineState, ScanOrchestrator
from src.scanning.domain.interfaces import RecognitionOutput
from src.scanning.infrastructure.result_cache import ScanResultCache


def _orchestrator(engine, **kwargs):
    kwargs.setdefault("init_timeout", 0.05)
    kwargs.setdefault("retry_delay", 0)
    return ScanOrchestrator(engine, **kwargs)


# ---------------------------------------------------------------------------
# Инициализация
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_initialize_success(make_engine):
    engine = make_engine()
    orchestrator = _orchestrator(engine)

    result = await orchestrator.initialize()

    assert result.success is True
    assert result.error is None
    assert result.worker_info.languages_loaded == ["eng"]
    assert result.worker_info.engine_mode == DEFAULT_PARAMETERS.engine_mode
    assert result.worker_info.page_seg_mode == "6"
    assert orchestrator.state is EngineState.READY
    assert orchestrator.is_ready
    # Проверка: параметры по умолчанию применены к новому экземпляру
    assert engine.configured == [DEFAULT_PARAMETERS]


@pytest.mark.asyncio
async def test_initialize_retries_then_succeeds(make_engine):
    engine = make_engine(create_errors=2)
    orchestrator = _orchestrator(engine)

    result = await orchestrator.initialize()

    assert result.success is True
    assert orchestrator.initialization_attempts == 3
    assert engine.create_calls == 3


@pytest.mark.asyncio
async def test_initialize_timeout_fails_after_three_attempts(make_engine):
    """Тест: движок не успевает создаться ни разу - ровно 3 попытки, без исключения."""
    engine = make_engine(create_delay=0.5)
    orchestrator = _orchestrator(engine, init_timeout=0.01)

    result = await orchestrator.initialize()

    assert result.success is False
    assert "after 3 attempts" in result.error
    assert engine.create_calls == 3
    assert orchestrator.state is EngineState.FAILED
    assert not orchestrator.is_ready


@pytest.mark.asyncio
async def test_initialize_never_exceeds_max_attempts(make_engine):
    engine = make_engine(create_errors=100)
    orchestrator = _orchestrator(engine)

    result = await orchestrator.initialize()

    assert result.success is False
    assert engine.create_calls == 3

    # Новый вызов - новый бюджет попыток
    orchestrator.reset_initialization_attempts()
    assert orchestrator.initialization_attempts == 0
    await orchestrator.initialize()
    assert engine.create_calls == 6


@pytest.mark.asyncio
async def test_reinitialize_destroys_previous_instance(make_engine):
    engine = make_engine()
    orchestrator = _orchestrator(engine)

    await orchestrator.initialize()
    await orchestrator.initialize()

    assert engine.create_calls == 2
    assert engine.destroy_calls == 1


# ---------------------------------------------------------------------------
# Сканирование: tiers
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_scan_primary(make_engine, image_data_uri):
    engine = make_engine()
    orchestrator = _orchestrator(engine)
    await orchestrator.initialize()

    result = await orchestrator.scan(image_data_uri)

    assert result.method is ScanMethod.PRIMARY
    assert result.attempts == 1
    assert result.model == "WTV9612XS"
    assert result.manufacturer_code == "beko"
    assert result.confidence == 80
    assert result.processing_time >= 0
    assert (result.diagnostics.image_size.width, result.diagnostics.image_size.height) == (200, 120)
    assert result.diagnostics.constraints_used == ["fake_primary"]
    assert result.diagnostics.preprocessing is False


@pytest.mark.asyncio
async def test_scan_without_initialize_goes_to_fallback(make_engine, image_data_uri):
    engine = make_engine()
    orchestrator = _orchestrator(engine)

    result = await orchestrator.scan(image_data_uri)

    # Primary пропущен: движок не готов
    assert result.method is ScanMethod.FALLBACK
    assert result.attempts == 1
    assert result.diagnostics.constraints_used == ["fake_fallback"]
    assert orchestrator.is_ready


@pytest.mark.asyncio
async def test_primary_failure_rebuilds_engine(make_engine, image_data_uri):
    engine = make_engine(recognize_errors=1)
    orchestrator = _orchestrator(engine)
    await orchestrator.initialize()

    result = await orchestrator.scan(image_data_uri)

    assert result.method is ScanMethod.FALLBACK
    assert result.attempts == 2
    assert result.model == "WTV9612XS"
    # Проверка: старый экземпляр освобождён, создан новый
    assert engine.destroy_calls == 1
    assert engine.create_calls == 2


@pytest.mark.asyncio
async def test_all_tiers_fail_returns_emergency(make_engine, image_data_uri):
    """Тест: оба tier падают - аварийный результат, не исключение."""
    engine = make_engine(recognize_errors=100)
    orchestrator = _orchestrator(engine)
    await orchestrator.initialize()

    result = await orchestrator.scan(image_data_uri)

    assert result.method is ScanMethod.EMERGENCY
    assert result.attempts == 3
    assert result.confidence == 25
    assert result.model is None
    assert result.serial_number is None
    assert result.product_number is None
    assert result.manufacturer_code is None
    assert result.extracted_text == EMERGENCY_NOTE
    assert result.diagnostics.constraints_used == ["regex_emergency"]


@pytest.mark.asyncio
async def test_emergency_when_engine_never_starts(make_engine, image_data_uri):
    engine = make_engine(create_errors=100)
    orchestrator = _orchestrator(engine)

    result = await orchestrator.scan(image_data_uri)

    assert result.method is ScanMethod.EMERGENCY
    assert result.attempts == 2
    assert engine.recognize_calls == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("image", ["", "not-an-image", "data:image/png;base64,AAAA", "data:,"])
async def test_malformed_image_never_raises(make_engine, image):
    engine = make_engine()
    orchestrator = _orchestrator(engine)
    await orchestrator.initialize()

    result = await orchestrator.scan(image, ScanConfig(preprocess_image=True))

    # Preprocessing не декодирует изображение: оба tier падают
    assert result.method is ScanMethod.EMERGENCY
    assert result.attempts == 3
    assert (result.diagnostics.image_size.width, result.diagnostics.image_size.height) == (0, 0)


@pytest.mark.asyncio
async def test_oversized_image_header_never_raises(make_engine, oversized_png_data_uri):
    engine = make_engine()
    orchestrator = _orchestrator(engine)
    await orchestrator.initialize()

    result = await orchestrator.scan(oversized_png_data_uri)

    # FakeEngine не декодирует изображение: primary отрабатывает, размер не определён
    assert result.method is ScanMethod.PRIMARY
    assert (result.diagnostics.image_size.width, result.diagnostics.image_size.height) == (0, 0)


@pytest.mark.asyncio
async def test_manufacturer_focus_passed_to_parser(make_engine, image_data_uri):
    engine = make_engine(outputs=[RecognitionOutput(text="Serial No: 24 - 601087 - 01", confidence=70)])
    orchestrator = _orchestrator(engine)
    await orchestrator.initialize()

    result = await orchestrator.scan(image_data_uri, ScanConfig(manufacturer_focus="beko"))

    assert result.manufacturer_code == "beko"
    assert result.serial_number == "24-601087-01"


@pytest.mark.asyncio
async def test_preprocessing_sends_png(make_engine, image_data_uri):
    engine = make_engine()
    orchestrator = _orchestrator(engine)
    await orchestrator.initialize()

    result = await orchestrator.scan(image_data_uri, ScanConfig(preprocess_image=True))

    assert result.diagnostics.preprocessing is True
    assert engine.images[-1].startswith("data:image/png;base64,")
    assert engine.images[-1] != image_data_uri


# ---------------------------------------------------------------------------
# Несколько попыток
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_multiple_attempts_selects_best(make_engine, image_data_uri):
    engine = make_engine(outputs=[
        RecognitionOutput(text="MODEL: XJ4521KQ", confidence=60),
        RecognitionOutput(text="", confidence=10),
        RecognitionOutput(text="MODEL: XJ4521KQ\nS/N: 00012345678", confidence=55),
        RecognitionOutput(text="0123", confidence=40),
    ])
    orchestrator = _orchestrator(engine)
    await orchestrator.initialize()

    result = await orchestrator.scan(
        image_data_uri, ScanConfig(multiple_attempts=True, manufacturer_focus="generic")
    )

    assert result.method is ScanMethod.PRIMARY
    assert result.attempts == 1
    assert result.model == "XJ4521KQ"
    assert result.serial_number == "00012345678"
    assert result.confidence == 55
    assert result.diagnostics.multiple_attempts is True
    assert result.diagnostics.constraints_used == ["fake_primary"] + [p.name for p in MULTI_ATTEMPT_PRESETS]


@pytest.mark.asyncio
async def test_multiple_attempts_restores_default_parameters(make_engine, image_data_uri):
    engine = make_engine()
    orchestrator = _orchestrator(engine)
    await orchestrator.initialize()

    await orchestrator.scan(image_data_uri, ScanConfig(multiple_attempts=True))

    # init + пресеты + возврат к параметрам по умолчанию
    assert len(engine.configured) == 1 + len(MULTI_ATTEMPT_PRESETS) + 1
    assert engine.configured[1:-1] == [p.to_parameters() for p in MULTI_ATTEMPT_PRESETS]
    assert engine.configured[-1] == DEFAULT_PARAMETERS
    assert engine.recognize_calls == len(MULTI_ATTEMPT_PRESETS)


# ---------------------------------------------------------------------------
# Кэш и освобождение ресурсов
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_cached_result_skips_engine(make_engine, image_data_uri):
    engine = make_engine()
    orchestrator = _orchestrator(engine, cache=ScanResultCache())
    await orchestrator.initialize()

    first = await orchestrator.scan(image_data_uri)
    second = await orchestrator.scan(image_data_uri)

    assert engine.recognize_calls == 1
    assert second.model == first.model
    assert second.method is first.method


@pytest.mark.asyncio
async def test_terminate_is_idempotent(make_engine):
    engine = make_engine()
    orchestrator = _orchestrator(engine)
    await orchestrator.initialize()

    await orchestrator.terminate()
    await orchestrator.terminate()

    assert engine.destroy_calls == 1
    assert orchestrator.state is EngineState.UNINITIALIZED
    assert not orchestrator.is_ready


@pytest.mark.asyncio
async def test_terminate_swallows_destroy_errors(make_engine):
    engine = make_engine(destroy_error=True)
    orchestrator = _orchestrator(engine)
    await orchestrator.initialize()

    await orchestrator.terminate()

    assert orchestrator.state is EngineState.UNINITIALIZED


@pytest.mark.asyncio
async def test_terminate_without_initialize(make_engine):
    engine = make_engine()
    orchestrator = _orchestrator(engine)

    await orchestrator.terminate()

    assert engine.destroy_calls == 0


@pytest.mark.asyncio
async def test_async_context_manager(make_engine, image_data_uri):
    engine = make_engine()

    async with _orchestrator(engine) as orchestrator:
        assert orchestrator.is_ready
        result = await orchestrator.scan(image_data_uri)
        assert result.method is ScanMethod.PRIMARY

    assert engine.destroy_calls == 1
    assert not orchestrator.is_ready


def test_orchestrator_built_outside_event_loop(make_engine, image_data_uri):
    """Тест: оркестратор создан вне event loop, параллельные scan в новом loop сериализуются."""
    engine = make_engine()
    orchestrator = _orchestrator(engine)

    async def run():
        await orchestrator.initialize()
        return await asyncio.gather(
            orchestrator.scan(image_data_uri),
            orchestrator.scan(image_data_uri),
        )

    results = asyncio.run(run())

    assert [r.method for r in results] == [ScanMethod.PRIMARY, ScanMethod.PRIMARY]
    assert engine.recognize_calls == 2
