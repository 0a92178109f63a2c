"""Address book exceptions, translated to HTTP by the views."""

from __future__ import annotations


class AddressNotFound(Exception):
    """The address does not exist or belongs to another owner."""


class DefaultAddressConflict(Exception):
    """A concurrent default-address write won the race; retry the request."""
