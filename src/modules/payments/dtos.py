"""Payment DTOs."""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict


class PaymentSessionDTO(BaseModel):
    """What the client needs to open the hosted checkout.

    ``amount`` is in the currency's minor unit.
    """

    model_config = ConfigDict(frozen=True)

    order_id: UUID
    session_id: str
    amount: int
    currency: str
    key_id: str
