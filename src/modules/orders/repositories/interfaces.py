"""Order repository interface.

The Service Layer depends exclusively on this contract (DIP).  Owner
scoping is explicit on every read except ``find_by_gateway_session``,
which only the signed webhook path uses.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

from modules.core.repositories.interfaces import IOwnedRepository

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.orders.models import Order, OrderTransition


class IOrderRepository(IOwnedRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The aggregate includes OrderItem children and OrderTransition records.
    """

    @abstractmethod
    def create(self, owner_id: str, data: Dict[str, Any]) -> Order:
        """Insert an order and its items atomically.

        ``data`` holds ``shipping_address``, ``payment_method``,
        ``idempotency_key`` and ``items`` (dicts with ``product``,
        ``quantity``, ``unit_kind``, ``unit_price``).  ``total_amount``
        is computed from the items.
        """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[Order]:
        """Unscoped look-up, for re-reading an order the caller already holds."""

    @abstractmethod
    def get_for_owner(self, owner_id: str, id: str) -> Optional[Order]:
        """The order only if it belongs to ``owner_id``."""

    @abstractmethod
    def list_for_owner(self, owner_id: str) -> QuerySet[Order]:
        """The owner's orders, newest first, as a filterable QuerySet."""

    @abstractmethod
    def latest_for_owner(self, owner_id: str) -> Optional[Order]:
        """The owner's most recent order, if any."""

    @abstractmethod
    def get_by_idempotency_key(self, owner_id: str, key: str) -> Optional[Order]:
        """The owner's order created with ``key``, if any."""

    @abstractmethod
    def find_by_gateway_session(self, session_id: str) -> Optional[Order]:
        """The order bound to a gateway session id, across all owners."""

    @abstractmethod
    def compare_and_set(
        self,
        id: str,
        expected: Mapping[str, Any],
        changes: Mapping[str, Any],
    ) -> bool:
        """Apply ``changes`` only if the row still matches ``expected``.

        One conditional ``UPDATE``; returns whether a row was changed.
        """

    @abstractmethod
    def set_gateway_session(self, id: str, session_id: str) -> bool:
        """Store ``session_id`` if the order has none yet."""

    @abstractmethod
    def add_transition(
        self,
        order_id: str,
        *,
        old_order_state: Optional[str],
        new_order_state: str,
        old_payment_state: Optional[str],
        new_payment_state: str,
        trigger: str,
        actor: str,
        notes: str = "",
    ) -> OrderTransition:
        """Append one row to the order's audit trail."""

    @abstractmethod
    def flush_events(self, order: Order) -> int:
        """Write the order's pending domain events to the outbox."""
