"""Django ORM implementation of the Address repository."""

from __future__ import annotations

from typing import Optional

import structlog
from django.core.exceptions import ValidationError
from django.utils import timezone

from modules.addresses.dtos import CreateAddressDTO
from modules.addresses.models import Address
from modules.addresses.repositories.interfaces import IAddressRepository

logger = structlog.get_logger(__name__)


class AddressDjangoRepository(IAddressRepository):
    def list_for_owner(self, owner_id: str) -> list[Address]:
        return list(
            Address.objects.filter(owner_id=owner_id).order_by("-created_at", "-id")
        )

    def get_for_owner(self, owner_id: str, id: str) -> Optional[Address]:
        """Return the owned address, or ``None`` (foreign, unknown, malformed)."""
        try:
            return Address.objects.filter(owner_id=owner_id, id=id).first()
        except (ValueError, ValidationError):
            return None

    def lock_owner_rows(self, owner_id: str) -> list[Address]:
        return list(
            Address.objects.select_for_update()
            .filter(owner_id=owner_id)
            .order_by("id")
        )

    def create(self, owner_id: str, dto: CreateAddressDTO, is_default: bool) -> Address:
        address = Address.objects.create(
            owner_id=owner_id,
            kind=dto.kind,
            street=dto.street,
            city=dto.city,
            region=dto.region,
            postal_code=dto.postal_code,
            is_default=is_default,
        )
        logger.info(
            "address.created",
            address_id=str(address.id),
            is_default=address.is_default,
        )
        return address

    def clear_defaults(self, owner_id: str, exclude_id: Optional[str] = None) -> int:
        queryset = Address.objects.filter(owner_id=owner_id, is_default=True)
        if exclude_id is not None:
            queryset = queryset.exclude(id=exclude_id)
        return queryset.update(is_default=False, updated_at=timezone.now())

    def mark_default(self, owner_id: str, id: str) -> int:
        return Address.objects.filter(owner_id=owner_id, id=id).update(
            is_default=True, updated_at=timezone.now()
        )

    def delete(self, address: Address) -> None:
        address_id = str(address.id)
        address.delete()
        logger.info("address.deleted", address_id=address_id)

    def newest_for_owner(self, owner_id: str) -> Optional[Address]:
        return (
            Address.objects.filter(owner_id=owner_id)
            .order_by("-created_at", "-id")
            .first()
        )
