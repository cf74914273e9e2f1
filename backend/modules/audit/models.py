"""
Audit log data models.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class AuditLogEntry(BaseModel):
    """
    One append-only audit record.

    Entries are never mutated or deleted once written.
    """

    model_config = {"frozen": True}

    id: str = Field(..., description="Entry ID (UUID)")
    actor: str = Field(..., description="Who performed the action (subject, admin or 'system')")
    action: str = Field(..., description="Dotted action name, e.g. 'code.redeemed'")
    target: Optional[str] = Field(None, description="What the action applied to")
    timestamp: datetime = Field(..., description="When the action happened")
    details: dict[str, Any] = Field(default_factory=dict, description="Action-specific data")
