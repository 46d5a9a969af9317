"""
Pydantic schemas for the conversation list.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from messaging.schemas.message import ListingRef, Pagination, UserRef


class ConversationSummary(BaseModel):
    """One conversation, described by its most recent message."""
    conversation_id: str
    counterpart: UserRef
    listing: Optional[ListingRef] = None
    last_message_id: str
    last_sender_id: str
    last_content: str
    is_read: bool
    last_created_at: datetime
    unread_count: int = 0


class ConversationsListResponse(BaseModel):
    """Response schema for GET /conversations."""
    data: List[ConversationSummary]
    pagination: Pagination
    next_cursor: Optional[str] = None
