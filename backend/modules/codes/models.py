"""
Code registry data models.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from modules.entitlements.models import DurationClass, Entitlement


class CodeStatus(str, Enum):
    """Lifecycle of a redeemable code. Redeemed and revoked are final."""

    UNREDEEMED = "unredeemed"
    REDEEMED = "redeemed"
    REVOKED = "revoked"


class AccessCode(BaseModel):
    """A single-use code that grants a fixed duration or lifetime access."""

    code: str = Field(..., description="Opaque, unguessable token")
    duration_class: DurationClass = Field(..., description="Duration granted on redemption")
    status: CodeStatus = Field(default=CodeStatus.UNREDEEMED, description="Lifecycle status")
    created_at: datetime = Field(..., description="Creation time")
    created_by: str = Field(..., description="Admin who generated the code")
    valid_until: Optional[datetime] = Field(
        None,
        description="Redemption deadline (independent of the duration granted)",
    )
    redeemed_by: Optional[str] = Field(None, description="Subject who redeemed the code")
    redeemed_at: Optional[datetime] = Field(None, description="Redemption time")
    revoked_at: Optional[datetime] = Field(None, description="Revocation time")


class Redemption(BaseModel):
    """Result of a successful redemption."""

    code: AccessCode = Field(..., description="The code, now redeemed")
    entitlement: Entitlement = Field(..., description="Entitlement after the grant")
    applied: bool = Field(..., description="False if lifetime access already absorbed the grant")


class GenerateCodeRequest(BaseModel):
    """Request to generate a new code."""

    duration_class: DurationClass = Field(..., description="Duration the code grants")
    valid_until: Optional[datetime] = Field(None, description="Optional redemption deadline")


class RedeemCodeRequest(BaseModel):
    """Request to redeem a code."""

    code: str = Field(..., min_length=1, max_length=64, description="Code to redeem")


class CodeListResponse(BaseModel):
    """API response for code listings."""

    codes: list[AccessCode] = Field(..., description="Codes, newest first")
    has_more: bool = Field(..., description="Whether more codes exist")
