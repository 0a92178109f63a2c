"""Domain events for the Orders bounded context.

Each event's ``payload`` carries the order number and the states after
the change.
"""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderCreated(DomainEvent):
    """Raised when an order is placed."""


@dataclass(frozen=True)
class OrderConfirmed(DomainEvent):
    """Raised when a cash-on-delivery order is confirmed."""


@dataclass(frozen=True)
class PaymentCaptured(DomainEvent):
    """Raised when the gateway reports collected funds."""


@dataclass(frozen=True)
class PaymentFailed(DomainEvent):
    """Raised when the gateway reports a failed payment attempt."""


@dataclass(frozen=True)
class OrderCancelled(DomainEvent):
    """Raised when the owner cancels an order."""
