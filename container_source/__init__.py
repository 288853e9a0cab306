"""Живой реестр контейнеров Docker для панели мониторинга."""

__version__ = "0.1.0"
