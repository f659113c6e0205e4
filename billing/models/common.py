# billing/models/common.py

from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, PlainSerializer

# Decimal inside the service, a plain JSON number on the wire.
Money = Annotated[
    Decimal,
    PlainSerializer(float, return_type=float, when_used="json"),
]


class SuccessOut(BaseModel):
    success: bool
