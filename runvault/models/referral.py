"""Referral data models."""

from typing import Literal

from pydantic import BaseModel, Field


class ReferralFriend(BaseModel):
    """A referred user as seen by the referrer."""

    user_id: str = Field(..., min_length=1, description="Referred user ID")
    name: str = Field(default="", description="Display name")
    level: Literal[1, 2] = Field(..., description="1 = direct, 2 = second level")
    first_deposit_minor: int = Field(default=0, ge=0, description="First deposit amount")
    today_profit_minor: int = Field(default=0, description="Same-day earnings")

    model_config = {"frozen": True}


class ReferralSummary(BaseModel):
    """Aggregated referral rewards for one referrer."""

    l1_count: int = Field(..., ge=0, description="Direct referrals")
    l2_count: int = Field(..., ge=0, description="Second-level referrals")
    first_reward_minor: int = Field(..., ge=0, description="One-time first deposit bonuses")
    today_share_minor: int = Field(..., description="Share of referrals' same-day profit")
    total_minor: int = Field(..., description="First rewards plus today's share")

    model_config = {"frozen": True}
