"""Классы групп настроек с поддержкой валидации."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Tuple

from container_source.core.sorting import SORT_FIELDS
from container_source.settings.exceptions import SettingsNotFoundError, SettingsValidationError
from container_source.settings.validators import (
    CompositeValidator,
    EnumValidator,
    RangeValidator,
    RegexValidator,
    TypeValidator,
    Validator,
)

DOCKER_URL_PATTERN = r"^$|^/.+|^(unix|tcp|npipe|http|https|ssh)://.+$"


class SettingsGroup(ABC):
    """Абстрактная база для конкретных групп настроек."""

    group_name: str = ""

    def __init__(self) -> None:
        self._defaults: Dict[str, Any] = {}
        self._validators: Dict[str, Validator] = {}
        self._values: Dict[str, Any] = {}
        self._initialize_defaults()
        self._setup_validators()
        self.reset_to_defaults()

    @abstractmethod
    def _initialize_defaults(self) -> None:
        """Задаёт значения по умолчанию для группы."""

    @abstractmethod
    def _setup_validators(self) -> None:
        """Привязывает валидаторы к ключам группы."""

    def keys(self) -> Tuple[str, ...]:
        """Возвращает доступные ключи группы."""

        return tuple(self._defaults.keys())

    def get(self, key: str, default: Any = None) -> Any:
        """Возвращает значение настройки."""

        if key not in self._defaults:
            raise SettingsNotFoundError(self.group_name, key)
        return self._values.get(key, default)

    def validate(self, key: str, value: Any) -> Tuple[bool, str]:
        """Применяет соответствующий валидатор и возвращает результат."""

        validator = self._validators.get(key)
        if not validator:
            return True, ""
        return validator.validate(value)

    def set(self, key: str, value: Any) -> None:
        """Сохраняет значение, выбрасывая ошибку при невалидных данных."""

        if key not in self._defaults:
            raise SettingsNotFoundError(self.group_name, key)
        is_valid, error = self.validate(key, value)
        if not is_valid:
            raise SettingsValidationError(
                key=f"{self.group_name}.{key}",
                value=value,
                reason=error,
            )
        self._values[key] = value

    def to_dict(self) -> Dict[str, Any]:
        """Возвращает копию всех значений."""

        return dict(self._values)

    def from_dict(self, data: Dict[str, Any]) -> None:
        """Заполняет значениями из словаря (использует set для валидации)."""

        for key, value in data.items():
            if key in self._defaults:
                self.set(key, value)

    def reset_to_defaults(self) -> None:
        """Сбрасывает значения группы к дефолтным."""

        self._values = dict(self._defaults)


class DockerSettings(SettingsGroup):
    """Параметры подключения к Docker демону."""

    group_name = "docker"

    def _initialize_defaults(self) -> None:
        self._defaults = {
            "base_url": "",  # пустая строка: DOCKER_HOST и прочие переменные окружения
            "timeout_sec": 10,
        }

    def _setup_validators(self) -> None:
        self._validators = {
            "base_url": CompositeValidator([TypeValidator(str), RegexValidator(DOCKER_URL_PATTERN)]),
            "timeout_sec": CompositeValidator([TypeValidator(int), RangeValidator(1, 600)]),
        }


class RefreshSettings(SettingsGroup):
    """Очередь обновления и периодическая сверка."""

    group_name = "refresh"

    def _initialize_defaults(self) -> None:
        self._defaults = {
            "queue_capacity": 60,
            "reconcile_interval_sec": 30,
        }

    def _setup_validators(self) -> None:
        self._validators = {
            "queue_capacity": CompositeValidator([TypeValidator(int), RangeValidator(1, 10000)]),
            "reconcile_interval_sec": CompositeValidator(
                [TypeValidator(int), RangeValidator(0, 86400)]
            ),
        }


class DisplaySettings(SettingsGroup):
    """Порядок и фильтрация списка контейнеров для панели."""

    group_name = "display"

    def _initialize_defaults(self) -> None:
        self._defaults = {
            "sort_field": "state",
            "sort_reversed": False,
            "filter_text": "",
            "show_all": True,
        }

    def _setup_validators(self) -> None:
        self._validators = {
            "sort_field": EnumValidator(SORT_FIELDS),
            "sort_reversed": TypeValidator(bool),
            "filter_text": TypeValidator(str),
            "show_all": TypeValidator(bool),
        }


class MetricsSettings(SettingsGroup):
    """Частота опроса docker stats и глубина истории."""

    group_name = "metrics"

    def _initialize_defaults(self) -> None:
        self._defaults = {
            "interval_ms": 1000,
            "history_size": 60,
        }

    def _setup_validators(self) -> None:
        self._validators = {
            "interval_ms": CompositeValidator([TypeValidator(int), RangeValidator(100, 60000)]),
            "history_size": CompositeValidator([TypeValidator(int), RangeValidator(1, 3600)]),
        }


class LoggingSettings(SettingsGroup):
    """Настройки логирования приложения."""

    group_name = "logging"

    def _initialize_defaults(self) -> None:
        self._defaults = {
            "enabled": True,
            "level": "INFO",
            "max_file_size_mb": 10,
            "max_archived_files": 5,
        }

    def _setup_validators(self) -> None:
        self._validators = {
            "enabled": TypeValidator(bool),
            "level": EnumValidator(["DEBUG", "INFO", "WARNING", "ERROR"]),
            "max_file_size_mb": RangeValidator(1, 1000),
            "max_archived_files": RangeValidator(1, 50),
        }
