"""Generic repository interface (Dependency Inversion Principle).

Service-layer code depends on these abstractions, never on the Django ORM
directly.  Owner-scoped repositories take the owner id as an explicit
argument on every call so no method can reach another owner's rows.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class IRepository(ABC, Generic[T]):
    """Base generic repository contract.

    ``T`` is the domain entity managed by the repository
    (e.g. ``Order``, ``Product``).
    """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        """Retrieve an entity by its primary key, ``None`` if absent."""


class IOwnedRepository(ABC, Generic[T]):
    """Contract for entities exclusively owned by one identity."""

    @abstractmethod
    def list_for_owner(self, owner_id: str) -> list[T]:
        """Return the owner's entities, newest first."""
