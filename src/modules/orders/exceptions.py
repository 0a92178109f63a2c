"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.  The API
layer (Views) catches these and translates them into HTTP responses.
"""

from __future__ import annotations


class OrderNotFound(Exception):
    """The order does not exist or belongs to another owner."""


class InvalidOrderInput(Exception):
    """The checkout request is well-formed but violates an order rule."""


class InvalidTransition(Exception):
    """The order is not in a state that allows the requested transition."""
