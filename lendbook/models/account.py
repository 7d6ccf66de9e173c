"""Account model."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass
class Account:
    """Bank account that funds lendings and receives repayments."""

    account_id: str
    name: str
    balance: Decimal
    currency: str = "USD"
    created_at: datetime | None = None
    updated_at: datetime | None = None
