"""Упрощённые структуры данных для описания объектов Docker."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(slots=True)
class ContainerSummary:
    """Строка из docker ps: дешевле полного inspect."""

    id: str
    names: List[str] = field(default_factory=list)
    state: str = ""

    @property
    def primary_name(self) -> str:
        return self.names[0] if self.names else ""


@dataclass(slots=True)
class ContainerDetails:
    """Результат docker inspect, нужный для обновления контейнера."""

    name: str
    image: str
    ports: Dict[str, Optional[List[Dict[str, str]]]]
    created: str
    state: str


@dataclass(slots=True)
class RuntimeEvent:
    """Событие жизненного цикла из docker events."""

    type: str
    action: str
    container_id: str

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "RuntimeEvent":
        """Разбирает декодированный JSON события.

        Современный демон присылает ``Type``/``Action``/``Actor.ID``, старые версии
        API ограничиваются ``status`` и ``id``.
        """

        actor = payload.get("Actor") or {}
        return cls(
            type=payload.get("Type") or "container",
            action=payload.get("Action") or payload.get("status") or "",
            container_id=actor.get("ID") or payload.get("id") or "",
        )
