"""
Message database model.
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Index, Integer, String, Text

from messaging.core.database import Base


def _new_message_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Message(Base):
    """One buyer/seller message. Immutable once written, except ``is_read``."""

    __tablename__ = "messages"

    # Insertion order; breaks created_at ties
    seq = Column(Integer, primary_key=True, autoincrement=True)

    # Public identifier
    message_id = Column(String(36), unique=True, nullable=False, default=_new_message_id)

    sender_id = Column(String(64), nullable=False)
    receiver_id = Column(String(64), nullable=False)

    # Marketplace item the message concerns (optional)
    listing_id = Column(String(64), nullable=True)

    content = Column(Text, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("sender_id <> receiver_id", name="ck_messages_distinct_participants"),
        Index("ix_messages_sender_receiver_created", "sender_id", "receiver_id", "created_at"),
        Index("ix_messages_receiver_unread", "receiver_id", "is_read"),
        Index("ix_messages_listing", "listing_id"),
        Index("ix_messages_created_at_seq", "created_at", "seq"),
    )

    def __repr__(self) -> str:
        return f"<Message(message_id={self.message_id}, sender={self.sender_id}, receiver={self.receiver_id})>"
