"""
Pydantic schemas for request/response validation.
"""
from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, Field, computed_field, field_validator


class UserRef(BaseModel):
    """Display identity of a participant."""
    id: str
    name: Optional[str] = None


class ListingRef(BaseModel):
    """Display summary of the listing a message concerns."""
    id: str
    title: Optional[str] = None
    images: List[str] = Field(default_factory=list)

    @computed_field
    @property
    def primary_image(self) -> Optional[str]:
        return self.images[0] if self.images else None


class SendMessageRequest(BaseModel):
    """Request schema for POST /messages."""

    receiver_id: str = Field(..., description="Recipient user id")
    listing_id: Optional[str] = Field(default=None, description="Listing the message is about")
    content: str = Field(..., description="Message text")

    model_config = {
        "json_schema_extra": {
            "example": {
                "receiver_id": "u-seller",
                "listing_id": "l-bike",
                "content": "Is this still available?"
            }
        }
    }

    @field_validator("listing_id", mode="before")
    @classmethod
    def blank_listing_is_none(cls, v):
        """Treat an empty listing id as an unscoped conversation."""
        if isinstance(v, str) and not v.strip():
            return None
        return v


class MessageResponse(BaseModel):
    """Schema for a single message in responses."""
    message_id: str
    sender: UserRef
    receiver: UserRef
    listing: Optional[ListingRef] = None
    content: str
    is_read: bool
    created_at: datetime


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    pages: int


class MessagesListResponse(BaseModel):
    """Response schema for GET /messages."""
    data: List[MessageResponse]
    pagination: Pagination
    marked_read: int = Field(default=0, description="Messages flipped to read by this request")


class UnreadCountResponse(BaseModel):
    """Response schema for GET /messages/unread-count."""
    count: int


class HealthResponse(BaseModel):
    """Response schema for health endpoints."""
    status: str
    checks: Optional[dict] = None


class ErrorResponse(BaseModel):
    """Standard error response schema."""
    code: str
    detail: str
