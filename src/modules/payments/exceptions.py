"""Payment gateway exceptions, translated to HTTP by the views."""

from __future__ import annotations


class GatewayUnavailable(Exception):
    """The gateway could not be reached, timed out or answered an error."""


class InvalidSignature(Exception):
    """A webhook body did not match its ``X-Signature`` header."""


class InvalidWebhookPayload(Exception):
    """A correctly signed webhook body could not be interpreted."""
