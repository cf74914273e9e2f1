"""
Trial module data models.
"""

from typing import Optional

from pydantic import BaseModel, Field

from modules.entitlements.models import StatusSnapshot


class TrialEligibility(BaseModel):
    """What the trial/grace manager would allow for a subject right now."""

    subject_id: str = Field(..., description="Subject ID")
    needs_trial: bool = Field(..., description="True if the subject never had any entitlement")
    grace_eligible: bool = Field(..., description="True if a one-time grace can be granted")
    reason: Optional[str] = Field(None, description="Why grace is unavailable, if it is")


class TrialGrantResponse(BaseModel):
    """Result of a trial or grace request."""

    granted: bool = Field(default=True)
    status: StatusSnapshot
