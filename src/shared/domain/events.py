"""Domain event primitives for the modular monolith."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Type
from uuid import UUID, uuid4

_EVENT_TYPES: Dict[str, Type["DomainEvent"]] = {}


@dataclass(frozen=True)
class DomainEvent:
    """Base domain event (immutable).

    ``payload`` carries the JSON-safe facts handlers need (states, amounts)
    so an event can be rebuilt from its outbox row.
    """

    aggregate_id: UUID
    payload: Dict[str, Any] = field(default_factory=dict)
    event_id: UUID = field(default_factory=uuid4)
    occurred_on: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    event_name: str = field(init=False)

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        _EVENT_TYPES[cls.__name__] = cls

    def __post_init__(self) -> None:
        object.__setattr__(self, "event_name", self.__class__.__name__)


def event_from_outbox(
    event_type: str, aggregate_id: str, payload: Dict[str, Any]
) -> DomainEvent:
    """Rebuild a registered event from its persisted outbox fields."""
    try:
        event_class = _EVENT_TYPES[event_type]
    except KeyError:
        raise LookupError(f"Unknown domain event type '{event_type}'.") from None
    return event_class(aggregate_id=UUID(str(aggregate_id)), payload=dict(payload))


class DomainEventMixin:
    """Mixin for aggregate roots that collect domain events in memory."""

    _domain_events: list[DomainEvent]

    def add_domain_event(self, event: DomainEvent) -> None:
        if not hasattr(self, "_domain_events"):
            self._domain_events = []
        self._domain_events.append(event)

    def clear_domain_events(self) -> None:
        if hasattr(self, "_domain_events"):
            self._domain_events.clear()

    @property
    def domain_events(self) -> list[DomainEvent]:
        if not hasattr(self, "_domain_events"):
            self._domain_events = []
        return list(self._domain_events)
