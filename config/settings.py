"""
Настройки сканера заводских табличек (Label Scan).

ВАЖНО: Для Google Vision бэкенда укажите путь к credentials файлу!
Tesseract бэкенд требует установленный бинарник tesseract.
"""

import os
from pathlib import Path

# =============================================================================
# ПУТИ ПРОЕКТА
# =============================================================================
PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = PROJECT_ROOT / "data"
INPUT_DIR = DATA_DIR / "input"


# =============================================================================
# OCR ДВИЖОК
# =============================================================================
# Бэкенд распознавания: "tesseract" или "google_vision"
OCR_ENGINE = os.getenv("LABEL_SCAN_OCR_ENGINE", "tesseract")

# Язык распознавания (tesseract traineddata)
OCR_LANGUAGE = os.getenv("LABEL_SCAN_OCR_LANGUAGE", "eng")

# Путь к бинарнику tesseract (если не в PATH)
TESSERACT_CMD = os.getenv("TESSERACT_CMD", "")

# Путь к JSON-файлу с ключом сервисного аккаунта (только для google_vision)
GOOGLE_APPLICATION_CREDENTIALS = os.getenv(
    "GOOGLE_APPLICATION_CREDENTIALS",
    str(PROJECT_ROOT / "config" / "google_credentials.json")
)

# Поддерживаемые форматы изображений (для CLI)
SUPPORTED_IMAGE_FORMATS = [".jpg", ".jpeg", ".png", ".webp", ".bmp", ".tiff"]

# =============================================================================
# ЖИЗНЕННЫЙ ЦИКЛ ДВИЖКА
# =============================================================================
INIT_TIMEOUT_SECONDS = float(os.getenv("LABEL_SCAN_INIT_TIMEOUT", "15"))
MAX_INIT_ATTEMPTS = 3
INIT_RETRY_DELAY_SECONDS = 1.0

# =============================================================================
# ПАРАМЕТРЫ РАСПОЗНАВАНИЯ
# =============================================================================
# Допустимые символы на табличках: латиница, цифры, разделители
CHAR_WHITELIST = (
    "0123456789"
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    "abcdefghijklmnopqrstuvwxyz"
    "-/.: "
)
UPPERCASE_WHITELIST = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ-/"
NUMERIC_WHITELIST = "0123456789-/"

PAGE_SEG_MODE = "6"  # Uniform block of text
ENGINE_MODE = os.getenv("LABEL_SCAN_ENGINE_MODE", "1")  # LSTM only; "2" требует legacy traineddata

# Словари tesseract: отключаем всё кроме числового
TESSERACT_DAWG_PARAMETERS = {
    "load_system_dawg": "0",
    "load_freq_dawg": "0",
    "load_punc_dawg": "0",
    "load_number_dawg": "1",
    "load_unambig_dawg": "0",
    "load_bigram_dawg": "0",
    "load_fixed_length_dawgs": "0",
}

# =============================================================================
# НАСТРОЙКИ ПАРСИНГА
# =============================================================================
MIN_MODEL_LENGTH = 3
MIN_SERIAL_LENGTH = 6
MIN_CODE_LENGTH = 3

# Веса для выбора лучшего результата из нескольких попыток
SCORE_WEIGHT_MODEL = 30
SCORE_WEIGHT_SERIAL = 40
SCORE_WEIGHT_PRODUCT = 20
SCORE_WEIGHT_MANUFACTURER = 10

# Уверенность аварийного результата (распознавание недоступно)
EMERGENCY_CONFIDENCE = 25.0

# =============================================================================
# НАСТРОЙКИ PRE-OCR
# =============================================================================
# Оптимальный размер для OCR табличек
PREPROCESS_MAX_WIDTH = 1600
PREPROCESS_MAX_HEIGHT = 1200

# Усиление контраста: (v - 128) * factor + 128
CONTRAST_FACTOR = 1.5

# Порог бинаризации для числового пресета
NUMERIC_THRESHOLD = 120

# =============================================================================
# КЭШ РЕЗУЛЬТАТОВ
# =============================================================================
SCAN_CACHE_MAX_SIZE = 50
SCAN_CACHE_TTL_SECONDS = 10 * 60


# =============================================================================
# ПРОВЕРКА КОНФИГУРАЦИИ
# =============================================================================
def validate_config():
    """Проверяет корректность конфигурации."""
    errors = []

    if OCR_ENGINE not in ("tesseract", "google_vision"):
        errors.append(
            f"Неизвестный OCR_ENGINE: {OCR_ENGINE}\n"
            "Допустимые значения: tesseract, google_vision."
        )

    if OCR_ENGINE == "google_vision":
        if not GOOGLE_APPLICATION_CREDENTIALS:
            errors.append(
                "GOOGLE_APPLICATION_CREDENTIALS не указан!\n"
                "Укажите путь к JSON-ключу в config/settings.py или через переменную окружения."
            )
        elif not Path(GOOGLE_APPLICATION_CREDENTIALS).exists():
            errors.append(
                f"Файл credentials не найден: {GOOGLE_APPLICATION_CREDENTIALS}"
            )

    if TESSERACT_CMD and not Path(TESSERACT_CMD).exists():
        errors.append(f"Бинарник tesseract не найден: {TESSERACT_CMD}")

    if INIT_TIMEOUT_SECONDS <= 0:
        errors.append(f"INIT_TIMEOUT_SECONDS должен быть > 0: {INIT_TIMEOUT_SECONDS}")

    if errors:
        raise ValueError("\n".join(errors))

    return True
