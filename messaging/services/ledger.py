"""
Conversation ledger: the buyer/seller message log and the views derived from it.

Conversations are not stored. Every list request regroups the caller's
messages by conversation key and keeps the newest message of each group as
the conversation's representative.
"""
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from sqlalchemy import and_, case, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from messaging.core import metrics
from messaging.core.config import Settings, get_settings
from messaging.core.exceptions import InvalidArgument, StorageFailure
from messaging.core.logging import get_logger
from messaging.models.message import Message, utcnow
from messaging.schemas.conversation import ConversationSummary, ConversationsListResponse
from messaging.schemas.message import MessageResponse, MessagesListResponse, UserRef
from messaging.services.conversation_key import conversation_key
from messaging.services.directory import Directory
from messaging.services.pagination import (
    Cursor,
    build_pagination,
    decode_cursor,
    encode_cursor,
    validate_page,
)

logger = get_logger(__name__)


def _is_unread():
    return Message.is_read.is_(False)


def _between(user_id: str, other_user_id: str):
    """Messages exchanged between two users, in either direction."""
    return or_(
        and_(Message.sender_id == user_id, Message.receiver_id == other_user_id),
        and_(Message.sender_id == other_user_id, Message.receiver_id == user_id),
    )


class ConversationLedger:
    """Request-scoped access to the message log."""

    def __init__(
        self,
        db: Session,
        directory: Optional[Directory] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.directory = directory or Directory(db)
        self.settings = settings or get_settings()
        self.clock = clock

    @contextmanager
    def _storage(self, operation: str):
        """Roll back and surface database errors as StorageFailure."""
        try:
            yield
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception(f"Storage operation failed: {operation}")
            raise StorageFailure(f"{operation} failed") from e

    # Conversation list

    def list_conversations(
        self,
        user_id: str,
        page: int = 1,
        page_size: Optional[int] = None,
        cursor: Optional[str] = None,
    ) -> ConversationsListResponse:
        """
        List the caller's conversations, newest activity first.

        With ``cursor`` the page starts strictly after the representative the
        cursor points at, so conversations never repeat or go missing across
        pages when the offset would have shifted under concurrent sends.
        """
        if page_size is None:
            page_size = self.settings.conversations_page_size
        validate_page(page, page_size, self.settings.max_page_size)
        position = decode_cursor(cursor) if cursor else None

        low = case((Message.sender_id < Message.receiver_id, Message.sender_id), else_=Message.receiver_id)
        high = case((Message.sender_id < Message.receiver_id, Message.receiver_id), else_=Message.sender_id)
        partition = (low, high, Message.listing_id)

        ranked = (
            select(
                Message.seq,
                Message.message_id,
                Message.sender_id,
                Message.receiver_id,
                Message.listing_id,
                Message.content,
                Message.is_read,
                Message.created_at,
                func.row_number().over(
                    partition_by=partition,
                    order_by=(Message.created_at.desc(), Message.seq.desc()),
                ).label("recency"),
                func.sum(
                    case((and_(Message.receiver_id == user_id, _is_unread()), 1), else_=0)
                ).over(partition_by=partition).label("unread_count"),
            )
            .where(or_(Message.sender_id == user_id, Message.receiver_id == user_id))
            .subquery("ranked")
        )
        representatives = select(ranked).where(ranked.c.recency == 1)

        page_query = representatives.order_by(ranked.c.created_at.desc(), ranked.c.seq.desc())
        if position is not None:
            page_query = page_query.where(
                or_(
                    ranked.c.created_at < position.created_at,
                    and_(ranked.c.created_at == position.created_at, ranked.c.seq < position.seq),
                )
            )
        else:
            page_query = page_query.offset((page - 1) * page_size)
        # One extra row tells whether another page follows
        page_query = page_query.limit(page_size + 1)

        with self._storage("list conversations"):
            total = self.db.scalar(select(func.count()).select_from(representatives.subquery())) or 0
            rows = self.db.execute(page_query).mappings().all()

            has_more = len(rows) > page_size
            rows = rows[:page_size]

            keys = [conversation_key(row["sender_id"], row["receiver_id"], row["listing_id"]) for row in rows]
            counterparts = [key.counterpart(user_id) for key in keys]
            users = self.directory.users_by_id(counterparts)
            listings = self.directory.listings_by_id(row["listing_id"] for row in rows)

        data = []
        for row, key, counterpart_id in zip(rows, keys, counterparts):
            counterpart = users.get(counterpart_id)
            if counterpart is None:
                logger.warning(
                    "Conversation counterpart could not be resolved",
                    extra={"extra_data": {"user_id": counterpart_id}}
                )
                counterpart = UserRef(id=counterpart_id)
            listing = None
            if row["listing_id"]:
                listing = listings.get(row["listing_id"])
                if listing is None:
                    logger.warning(
                        "Conversation listing could not be resolved",
                        extra={"extra_data": {"listing_id": row["listing_id"]}}
                    )

            data.append(
                ConversationSummary(
                    conversation_id=key.conversation_id,
                    counterpart=counterpart,
                    listing=listing,
                    last_message_id=row["message_id"],
                    last_sender_id=row["sender_id"],
                    last_content=row["content"],
                    is_read=row["is_read"],
                    last_created_at=row["created_at"],
                    unread_count=row["unread_count"] or 0,
                )
            )

        next_cursor = None
        if has_more and rows:
            last = rows[-1]
            next_cursor = encode_cursor(Cursor(last["created_at"], last["seq"]))

        logger.debug(
            "Listed conversations",
            extra={
                "extra_data": {
                    "user_id": user_id,
                    "total": total,
                    "returned": len(data),
                    "page": page,
                    "limit": page_size,
                    "cursor": bool(position),
                }
            }
        )

        return ConversationsListResponse(
            data=data,
            pagination=build_pagination(total, page, page_size),
            next_cursor=next_cursor,
        )

    # Messages in one conversation

    def list_messages(
        self,
        user_id: str,
        other_user_id: Optional[str],
        listing_id: Optional[str] = None,
        page: int = 1,
        page_size: Optional[int] = None,
    ) -> MessagesListResponse:
        """
        Return one conversation in chronological order and mark the caller's
        unread messages in it as read.

        The returned page shows read flags as they were before this call. A
        failed read-mark is logged and reported as ``marked_read=0``; it does
        not fail the read.
        """
        if not other_user_id or not other_user_id.strip():
            raise InvalidArgument("user_id of the other participant is required")
        if other_user_id == user_id:
            raise InvalidArgument("Cannot open a conversation with yourself", {"user_id": other_user_id})
        if page_size is None:
            page_size = self.settings.messages_page_size
        validate_page(page, page_size, self.settings.max_page_size)

        criteria = [_between(user_id, other_user_id)]
        if listing_id:
            criteria.append(Message.listing_id == listing_id)

        with self._storage("list messages"):
            total = self.db.scalar(select(func.count()).select_from(Message).where(*criteria)) or 0
            messages = self.db.scalars(
                select(Message)
                .where(*criteria)
                .order_by(Message.created_at.asc(), Message.seq.asc())
                .offset((page - 1) * page_size)
                .limit(page_size)
            ).all()
            data = self._resolve(messages)

        marked_read = self._mark_read(user_id, other_user_id, listing_id)

        logger.debug(
            "Listed messages",
            extra={
                "extra_data": {
                    "user_id": user_id,
                    "other_user_id": other_user_id,
                    "listing_id": listing_id,
                    "total": total,
                    "returned": len(data),
                    "marked_read": marked_read,
                }
            }
        )

        return MessagesListResponse(
            data=data,
            pagination=build_pagination(total, page, page_size),
            marked_read=marked_read,
        )

    def _mark_read(self, user_id: str, other_user_id: str, listing_id: Optional[str]) -> int:
        """Flip every unread message the caller received in this conversation."""
        stmt = update(Message).where(
            Message.receiver_id == user_id,
            Message.sender_id == other_user_id,
            _is_unread(),
        )
        if listing_id:
            stmt = stmt.where(Message.listing_id == listing_id)
        stmt = stmt.values(is_read=True).execution_options(synchronize_session=False)

        try:
            result = self.db.execute(stmt)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(
                f"Failed to mark messages as read: {e}",
                extra={"extra_data": {"user_id": user_id, "other_user_id": other_user_id}}
            )
            return 0

        marked = max(result.rowcount or 0, 0)
        if marked:
            metrics.increment("messages_marked_read_total", marked)
            logger.info(
                "Marked messages as read",
                extra={
                    "extra_data": {
                        "user_id": user_id,
                        "other_user_id": other_user_id,
                        "listing_id": listing_id,
                        "count": marked,
                    }
                }
            )
        return marked

    # Sending

    def send_message(
        self,
        sender_id: str,
        receiver_id: Optional[str],
        content: Optional[str],
        listing_id: Optional[str] = None,
    ) -> MessageResponse:
        """Validate and append one message to the log."""
        if not receiver_id or not receiver_id.strip():
            raise InvalidArgument("receiver_id is required")
        text = (content or "").strip()
        if not text:
            raise InvalidArgument("content cannot be empty")
        if len(text) > self.settings.max_message_length:
            raise InvalidArgument(
                f"content must be at most {self.settings.max_message_length} characters",
                {"length": len(text)},
            )
        if receiver_id == sender_id:
            raise InvalidArgument("Cannot send a message to yourself")
        listing_id = listing_id or None

        with self._storage("send message"):
            receiver = self.directory.get_user(receiver_id)
            listing = self.directory.get_listing(listing_id) if listing_id else None
            sender = self.directory.users_by_id([sender_id]).get(sender_id, UserRef(id=sender_id))

            message = Message(
                sender_id=sender_id,
                receiver_id=receiver_id,
                listing_id=listing_id,
                content=text,
                is_read=False,
                created_at=self.clock(),
            )
            self.db.add(message)
            self.db.commit()
            self.db.refresh(message)

        metrics.increment("messages_sent_total")
        logger.info(
            "Message sent",
            extra={
                "extra_data": {
                    "message_id": message.message_id,
                    "sender_id": sender_id,
                    "receiver_id": receiver_id,
                    "listing_id": listing_id,
                }
            }
        )

        return MessageResponse(
            message_id=message.message_id,
            sender=sender,
            receiver=receiver,
            listing=listing,
            content=message.content,
            is_read=message.is_read,
            created_at=message.created_at,
        )

    def unread_count(self, user_id: str) -> int:
        """Number of messages the caller has received and not yet read."""
        with self._storage("count unread messages"):
            return self.db.scalar(
                select(func.count()).select_from(Message).where(Message.receiver_id == user_id, _is_unread())
            ) or 0

    def _resolve(self, messages: Sequence[Message]) -> List[MessageResponse]:
        """Attach display names and listing summaries to a page of messages."""
        user_ids = {m.sender_id for m in messages} | {m.receiver_id for m in messages}
        users = self.directory.users_by_id(user_ids)
        listings = self.directory.listings_by_id(m.listing_id for m in messages)
        return [
            MessageResponse(
                message_id=m.message_id,
                sender=users.get(m.sender_id, UserRef(id=m.sender_id)),
                receiver=users.get(m.receiver_id, UserRef(id=m.receiver_id)),
                listing=listings.get(m.listing_id) if m.listing_id else None,
                content=m.content,
                is_read=m.is_read,
                created_at=m.created_at,
            )
            for m in messages
        ]
