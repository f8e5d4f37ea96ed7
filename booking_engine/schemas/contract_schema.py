"""Contract data models and request payloads."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from booking_engine.schemas.auth_schema import UserRole
from booking_engine.utils import merge_tags


class ContractStatus(str, Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


class ContractTag(str, Enum):
    """Add-ons that can be negotiated as part of a booking."""
    TRANSPORT = "Transport"
    EFFECTS = "Effects"
    LODGING = "Lodging"
    MEALS = "Meals"
    EQUIPMENT = "Equipment"
    CREW = "Crew"


_TAGS_BY_KEY = {tag.value.lower(): tag for tag in ContractTag}


class StatusChange(BaseModel):
    """Recorded history entry for a contract status."""
    status: ContractStatus
    changed_at: datetime
    changed_by: str


class ContractCreate(BaseModel):
    """Validated contract proposal."""

    artist_id: str = Field(min_length=1)
    venue_id: str = Field(min_length=1)
    event_date: date
    final_price: Decimal
    details: Optional[str] = None
    tags: list[ContractTag] = Field(default_factory=list)
    slot_id: Optional[str] = None

    @field_validator("tags", mode="before")
    @classmethod
    def _canonical_tags(cls, value):
        """Accept tags case-insensitively and drop duplicates."""
        if value is None:
            return []
        tags = []
        for raw in merge_tags(value):
            tag = _TAGS_BY_KEY.get(raw.lower())
            if tag is None:
                raise ValueError(f"unknown contract tag: {raw!r}")
            tags.append(tag)
        return tags


class Contract(BaseModel):
    """A booking proposal/agreement between one artist and one venue."""

    id: str
    artist_id: str
    venue_id: str
    proposer_id: str
    proposer_role: UserRole
    event_date: date
    final_price: Decimal
    details: Optional[str] = None
    tags: list[ContractTag] = Field(default_factory=list)
    slot_id: Optional[str] = None
    status: ContractStatus = ContractStatus.PENDING
    history: list[StatusChange] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @property
    def recipient_id(self) -> str:
        return self.venue_id if self.proposer_id == self.artist_id else self.artist_id

    def counterpart_of(self, user_id: str) -> str:
        return self.venue_id if user_id == self.artist_id else self.artist_id


class ContractPage(BaseModel):
    """One page of a contract listing."""
    items: list[Contract]
    total: int
    limit: int
    offset: int
