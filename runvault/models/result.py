"""Operation result data model."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from runvault.models.ledger import LedgerEntry
from runvault.models.wallet import AssetBalances, Wallet


class ErrorKind(str, Enum):
    """Why an account operation was refused."""

    INVALID_INPUT = "INVALID_INPUT"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    BELOW_MINIMUM = "BELOW_MINIMUM"
    PLAN_EXHAUSTED = "PLAN_EXHAUSTED"


class OperationResult(BaseModel):
    """Outcome of an account operation.

    Failed operations carry an ``error`` and leave every balance untouched.
    """

    ok: bool = Field(..., description="Whether the operation was applied")
    error: Optional[ErrorKind] = Field(default=None, description="Failure kind")
    message: str = Field(default="", description="Status message")
    entries: list[LedgerEntry] = Field(default_factory=list, description="Entries appended")
    wallet: Optional[Wallet] = Field(default=None, description="Wallet after the operation")
    assets: Optional[AssetBalances] = Field(default=None, description="Assets after the operation")

    model_config = {"frozen": True}

    @classmethod
    def fail(cls, error: ErrorKind, message: str) -> "OperationResult":
        return cls(ok=False, error=error, message=message)
