"""
Контракты DTO проекта Label Scan.

Все контракты используют Pydantic v2 для валидации.

Контракты:
- Parser -> Orchestrator: ScannedData
- Caller -> Orchestrator: ScanConfig
- Orchestrator -> Caller: RobustScanResult, InitResult
"""

from .scan_dto import (
    ScanMethod,
    ScannedData,
    ScanConfig,
    ImageSize,
    ScanDiagnostics,
    RobustScanResult,
    WorkerInfo,
    InitResult,
)

__all__ = [
    "ScanMethod",
    "ScannedData",
    "ScanConfig",
    "ImageSize",
    "ScanDiagnostics",
    "RobustScanResult",
    "WorkerInfo",
    "InitResult",
]
