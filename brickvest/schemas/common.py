"""Shared schema types."""

from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, Field, PlainSerializer

from brickvest.utils.helpers import quantize_money

# Currency amounts are serialized as 2dp strings to avoid float rounding
DecimalStr = Annotated[
    Decimal,
    PlainSerializer(lambda x: f"{quantize_money(x):.2f}", return_type=str),
]

# Request amounts must fit the DECIMAL(18, 2) ledger columns
MoneyAmount = Annotated[Decimal, Field(max_digits=18, decimal_places=2)]


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str
