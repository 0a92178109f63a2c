"""Address repository interface.

Every method is scoped by ``owner_id``; there is deliberately no way to
fetch an address by id alone.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Optional

from modules.core.repositories.interfaces import IOwnedRepository

if TYPE_CHECKING:
    from modules.addresses.dtos import CreateAddressDTO
    from modules.addresses.models import Address


class IAddressRepository(IOwnedRepository["Address"]):
    @abstractmethod
    def get_for_owner(self, owner_id: str, id: str) -> Optional[Address]:
        """The address only if it belongs to ``owner_id``."""

    @abstractmethod
    def lock_owner_rows(self, owner_id: str) -> list[Address]:
        """Lock (SELECT FOR UPDATE) and return all of the owner's addresses.

        Must be called inside a transaction; serializes concurrent
        default-address writers for the same owner.
        """

    @abstractmethod
    def create(self, owner_id: str, dto: CreateAddressDTO, is_default: bool) -> Address:
        """Insert a new address for ``owner_id``."""

    @abstractmethod
    def clear_defaults(self, owner_id: str, exclude_id: Optional[str] = None) -> int:
        """Unset ``is_default`` on the owner's addresses; returns rows changed."""

    @abstractmethod
    def mark_default(self, owner_id: str, id: str) -> int:
        """Set ``is_default`` on one owned address; returns rows changed."""

    @abstractmethod
    def delete(self, address: Address) -> None:
        """Remove the address permanently."""

    @abstractmethod
    def newest_for_owner(self, owner_id: str) -> Optional[Address]:
        """Most recently created address of the owner, if any."""
