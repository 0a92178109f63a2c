"""Address book service layer (Use Cases).

Every write locks the owner's address rows first, so concurrent writers
for the same owner are serialized by the database.  The partial unique
constraint on ``(owner_id) WHERE is_default`` is the last line: a writer
that still trips it gets ``DefaultAddressConflict`` and may retry.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from django.db import IntegrityError, transaction

from modules.addresses.exceptions import AddressNotFound, DefaultAddressConflict

if TYPE_CHECKING:
    from modules.addresses.dtos import CreateAddressDTO
    from modules.addresses.models import Address
    from modules.addresses.repositories.interfaces import IAddressRepository

logger = structlog.get_logger(__name__)


class AddressService:
    """Application service for the owner's address book.

    Receives an ``IAddressRepository`` via constructor injection (DIP).
    """

    def __init__(self, repository: IAddressRepository) -> None:
        self._repo = repository

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_addresses(self, owner_id: str) -> list[Address]:
        return self._repo.list_for_owner(owner_id)

    def get_address(self, owner_id: str, id: str) -> Address:
        """Raises ``AddressNotFound`` for missing and foreign addresses alike."""
        address = self._repo.get_for_owner(owner_id, id)
        if not address:
            raise AddressNotFound(f"Address {id} not found.")
        return address

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def add_address(self, owner_id: str, dto: CreateAddressDTO) -> Address:
        """Insert an address; the owner's first address is always default.

        Raises:
            DefaultAddressConflict: a concurrent writer claimed the default.
        """
        try:
            address = self._add_locked(owner_id, dto)
        except IntegrityError as exc:
            logger.warning("address.default_conflict", operation="add")
            raise DefaultAddressConflict(
                "Another request changed the default address; retry."
            ) from exc
        return address

    def remove_address(self, owner_id: str, id: str) -> None:
        """Delete an owned address, promoting the newest remaining one if
        the deleted address was the default.

        Raises:
            AddressNotFound: missing or not owned.
            DefaultAddressConflict: a concurrent writer claimed the default.
        """
        try:
            self._remove_locked(owner_id, id)
        except IntegrityError as exc:
            logger.warning("address.default_conflict", operation="remove")
            raise DefaultAddressConflict(
                "Another request changed the default address; retry."
            ) from exc

    def set_default(self, owner_id: str, id: str) -> Address:
        """Make ``id`` the owner's only default address.

        Clearing the old default and setting the new one happen in one
        transaction over the locked rows, so no reader sees zero or two
        defaults.  Already-default addresses are returned unchanged.

        Raises:
            AddressNotFound: missing or not owned.
            DefaultAddressConflict: a concurrent writer claimed the default.
        """
        try:
            address = self._set_default_locked(owner_id, id)
        except IntegrityError as exc:
            logger.warning("address.default_conflict", operation="set_default")
            raise DefaultAddressConflict(
                "Another request changed the default address; retry."
            ) from exc
        return address

    # ------------------------------------------------------------------
    # Transactional bodies
    # ------------------------------------------------------------------

    @transaction.atomic
    def _add_locked(self, owner_id: str, dto: CreateAddressDTO) -> Address:
        existing = self._repo.lock_owner_rows(owner_id)
        make_default = dto.is_default or not existing
        if make_default and existing:
            self._repo.clear_defaults(owner_id)
        return self._repo.create(owner_id, dto, is_default=make_default)

    @transaction.atomic
    def _remove_locked(self, owner_id: str, id: str) -> None:
        self._repo.lock_owner_rows(owner_id)
        address = self.get_address(owner_id, id)
        was_default = address.is_default
        self._repo.delete(address)

        if not was_default:
            return
        successor = self._repo.newest_for_owner(owner_id)
        if successor is not None:
            self._repo.mark_default(owner_id, str(successor.id))
            logger.info(
                "address.default_promoted",
                address_id=str(successor.id),
                removed_id=id,
            )

    @transaction.atomic
    def _set_default_locked(self, owner_id: str, id: str) -> Address:
        self._repo.lock_owner_rows(owner_id)
        address = self.get_address(owner_id, id)
        if address.is_default:
            return address

        cleared = self._repo.clear_defaults(owner_id, exclude_id=str(address.id))
        self._repo.mark_default(owner_id, str(address.id))
        logger.info(
            "address.default_changed",
            address_id=str(address.id),
            cleared=cleared,
        )
        return self.get_address(owner_id, id)
