"""Ledger entry data model."""

import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class EntryType(str, Enum):
    """Kinds of financial events recorded in the ledger."""

    EARN = "EARN"
    PAYOUT = "PAYOUT"
    COMMISSION = "COMMISSION"
    WITHDRAWAL_REQUEST = "WITHDRAWAL_REQUEST"
    WITHDRAWAL_FEE = "WITHDRAWAL_FEE"
    WITHDRAWAL_PAID = "WITHDRAWAL_PAID"
    ADJUSTMENT = "ADJUSTMENT"


# Entry types that count as earnings in daily totals
EARNING_TYPES = (EntryType.EARN, EntryType.COMMISSION)


def new_id(prefix: str = "l") -> str:
    """Create a short unique identifier such as ``l_3f9a1c0b2d4e``."""
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


class LedgerEntry(BaseModel):
    """Immutable, signed record of one financial event."""

    id: str = Field(default_factory=new_id, min_length=1, description="Unique entry ID")
    type: EntryType = Field(..., description="Entry type")
    amount_minor: int = Field(..., description="Signed amount in minor units")
    currency: str = Field(default="USD", min_length=1, description="Entry currency")
    created_at: datetime = Field(
        default_factory=datetime.now, description="Creation timestamp"
    )
    ref_id: Optional[str] = Field(default=None, description="Reference to the causing action")
    meta: dict[str, Any] = Field(default_factory=dict, description="Extra details")

    model_config = {"frozen": True}
