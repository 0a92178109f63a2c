"""Shipping address book.

Invariant: for each ``owner_id`` at most one address has
``is_default=True``, and an owner with any address has exactly one.  The
service layer keeps the "exactly one" half; the partial unique constraint
below makes "at most one" hold even if two writers race.
"""

from __future__ import annotations

from django.db import models

from modules.core.models import BaseModel


class AddressKind(models.TextChoices):
    HOME = "home", "Home"
    WORK = "work", "Work"
    OTHER = "other", "Other"


class Address(BaseModel):
    owner_id = models.CharField(max_length=255, db_index=True)
    kind = models.CharField(max_length=10, choices=AddressKind.choices)
    street = models.CharField(max_length=255)
    city = models.CharField(max_length=120)
    region = models.CharField(max_length=120)
    postal_code = models.CharField(max_length=12)
    is_default = models.BooleanField(default=False)

    class Meta:
        db_table = "addresses"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(
                fields=["owner_id", "-created_at"],
                name="addresses_owner_created_idx",
            ),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["owner_id"],
                condition=models.Q(is_default=True),
                name="addresses_single_default_per_owner",
            ),
        ]

    def as_snapshot(self) -> dict:
        """Frozen copy stored on orders shipped to this address."""
        return {
            "kind": self.kind,
            "street": self.street,
            "city": self.city,
            "region": self.region,
            "postal_code": self.postal_code,
        }

    def __str__(self) -> str:
        marker = " [default]" if self.is_default else ""
        return f"{self.street}, {self.city} {self.postal_code}{marker}"
