"""Инфраструктура домена Scanning: движки распознавания и кэш."""
