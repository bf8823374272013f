"""Share edge domain models and enums."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field, field_validator

from habitshare.core.dates import to_aware_datetime


class ShareStatus(StrEnum):
    """Lifecycle of a share edge."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class ParticipantRole(StrEnum):
    """Role of the other party as seen from the current user."""

    SENDER = "sender"
    RECIPIENT = "recipient"


class MatchConfidence(StrEnum):
    """How a copy was tied to its share edge."""

    EXPLICIT = "explicit"  # copied_item_id on the edge
    HIGH = "high"  # legacy deterministic copy id
    LOW = "low"  # legacy nearest-timestamp match


class ShareEdge(BaseModel):
    """Directed link from a sender's original item to a recipient's copy."""

    id: str = Field(..., description="Unique share edge ID")
    original_item_id: str = Field(..., description="Sender's item")
    copied_item_id: str | None = Field(
        default=None,
        description="Recipient's copy (absent on legacy edges)",
    )
    sender_id: str = Field(..., description="User who shared the item")
    recipient_id: str = Field(..., description="User the item was shared with")
    status: ShareStatus = Field(default=ShareStatus.PENDING, description="Share status")
    created_at: datetime | None = Field(default=None, description="When the edge was created")

    @field_validator("copied_item_id", mode="before")
    @classmethod
    def empty_copy_is_missing(cls, v: str | None) -> str | None:
        """Treat empty strings from the store as a missing copy reference."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("created_at")
    @classmethod
    def attach_timezone(cls, v: datetime | None) -> datetime | None:
        """Naive timestamps are taken to be UTC."""
        return None if v is None else to_aware_datetime(v)

    @property
    def is_legacy(self) -> bool:
        """True for edges created before copy references were recorded."""
        return self.copied_item_id is None

    @property
    def is_self_share(self) -> bool:
        """True when sender and recipient are the same user."""
        return self.sender_id == self.recipient_id
