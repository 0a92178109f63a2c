"""Favorites exceptions, translated to HTTP by the views."""

from __future__ import annotations


class FavoriteAlreadyExists(Exception):
    """The owner already bookmarked this product."""


class FavoriteNotFound(Exception):
    """The owner has no bookmark for this product."""
