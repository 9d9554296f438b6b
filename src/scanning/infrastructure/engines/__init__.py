"""
Адаптеры движков распознавания.

Импортируйте нужный модуль напрямую: google_vision_engine тянет
google-cloud-vision, который не нужен tesseract-бэкенду.
"""
