"""Прикладной слой Scanning: оркестратор, пресеты, фабрика."""

from .scan_orchestrator import ScanOrchestrator, EngineState, TierOutcome, EMERGENCY_NOTE
from .presets import RecognitionPreset, DEFAULT_PARAMETERS, MULTI_ATTEMPT_PRESETS
from .factory import ScanComponentFactory

__all__ = [
    "ScanOrchestrator",
    "EngineState",
    "TierOutcome",
    "EMERGENCY_NOTE",
    "RecognitionPreset",
    "DEFAULT_PARAMETERS",
    "MULTI_ATTEMPT_PRESETS",
    "ScanComponentFactory",
]
