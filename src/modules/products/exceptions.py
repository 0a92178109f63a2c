"""Catalog exceptions, translated to HTTP by the views."""

from __future__ import annotations


class ProductNotFound(Exception):
    """The product does not exist or has been removed from the catalog."""
