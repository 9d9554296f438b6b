#!/usr/bin/env python3
"""
Точка входа для сканирования заводских табличек.

Использование:
    # Сканировать фото таблички
    python scripts/scan_label.py path/to/label.jpg

    # Подсказать производителя и включить preprocessing + несколько попыток
    python scripts/scan_label.py label.jpg --manufacturer beko --preprocess --multiple-attempts

    # Все изображения из data/input/ через Google Vision
    python scripts/scan_label.py --engine google_vision
"""

import sys
import argparse
import asyncio
import mimetypes
from pathlib import Path
from typing import List

from loguru import logger

# Добавляем корень проекта в путь
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config.settings import INPUT_DIR, SUPPORTED_IMAGE_FORMATS, validate_config
from contracts.scan_dto import ScanConfig, ScanMethod
from src.scanning.application.factory import ScanComponentFactory
from src.scanning.pre_ocr.data_uri import encode_data_uri


def find_images(paths: List[str]) -> List[Path]:
    """Собирает изображения из аргументов (или из data/input/)."""
    if not paths:
        paths = [str(INPUT_DIR)]

    images: List[Path] = []
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            images.extend(
                sorted(p for p in path.iterdir() if p.suffix.lower() in SUPPORTED_IMAGE_FORMATS)
            )
        elif path.exists():
            images.append(path)
        else:
            logger.warning(f"Файл не найден: {path}")

    return images


def to_data_uri(image_path: Path) -> str:
    mime_type = mimetypes.guess_type(image_path.name)[0] or "image/jpeg"
    return encode_data_uri(image_path.read_bytes(), mime_type)


async def scan_images(images: List[Path], config: ScanConfig, engine_name: str) -> int:
    """Сканирует изображения одним оркестратором, печатает JSON."""
    engine = ScanComponentFactory.create_engine(engine_name)
    orchestrator = ScanComponentFactory.create_orchestrator(engine=engine)

    init_result = await orchestrator.initialize(config)
    if not init_result.success:
        logger.warning(f"Движок не инициализирован: {init_result.error}")

    degraded = 0
    try:
        for image_path in images:
            logger.info(f"Сканирование: {image_path.name}")
            result = await orchestrator.scan(to_data_uri(image_path), config)
            if result.method is ScanMethod.EMERGENCY:
                degraded += 1
            print(result.model_dump_json(by_alias=True, indent=2))
    finally:
        await orchestrator.terminate()

    return degraded


def main():
    """Главная функция."""
    parser = argparse.ArgumentParser(description="Сканирование заводских табличек")
    parser.add_argument("paths", nargs="*", help="Файлы или директории с фото табличек")
    parser.add_argument("--manufacturer", help="Принудительный производитель (beko, electrolux, ...)")
    parser.add_argument("--preprocess", action="store_true", help="Контраст + grayscale перед OCR")
    parser.add_argument("--multiple-attempts", action="store_true", help="Несколько пресетов, лучший результат")
    parser.add_argument("--engine", default=None, help="tesseract или google_vision")
    parser.add_argument("--verbose", action="store_true", help="DEBUG логирование")
    args = parser.parse_args()

    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>",
        level="DEBUG" if args.verbose else "INFO"
    )

    try:
        validate_config()
    except ValueError as e:
        logger.error(f"Ошибка конфигурации:\n{e}")
        sys.exit(1)

    images = find_images(args.paths)
    if not images:
        logger.error("Нет изображений для сканирования")
        sys.exit(1)

    config = ScanConfig(
        preprocess_image=args.preprocess,
        multiple_attempts=args.multiple_attempts,
        manufacturer_focus=args.manufacturer,
    )

    degraded = asyncio.run(scan_images(images, config, args.engine))
    if degraded:
        logger.warning(f"Распознавание деградировало для {degraded}/{len(images)} изображений")
        sys.exit(2)


if __name__ == "__main__":
    main()
