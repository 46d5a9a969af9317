"""
Message endpoints: read a conversation, send a message, unread badge count.
"""
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from messaging.api.dependencies import get_ledger
from messaging.core.security import get_caller_id
from messaging.schemas.message import (
    ErrorResponse,
    MessageResponse,
    MessagesListResponse,
    SendMessageRequest,
    UnreadCountResponse,
)
from messaging.services.ledger import ConversationLedger

router = APIRouter(tags=["Messages"])


@router.get(
    "/messages",
    response_model=MessagesListResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Missing or invalid parameters"},
        401: {"model": ErrorResponse, "description": "Missing or unknown caller"},
    },
    summary="Read a conversation",
    description="Messages between the caller and another user, oldest first. Marks the caller's unread messages as read."
)
def list_messages(
    caller_id: Annotated[str, Depends(get_caller_id)],
    ledger: Annotated[ConversationLedger, Depends(get_ledger)],
    user_id: Annotated[Optional[str], Query(description="The other participant")] = None,
    listing_id: Annotated[Optional[str], Query(description="Restrict to one listing")] = None,
    page: Annotated[int, Query(description="1-based page number")] = 1,
    limit: Annotated[Optional[int], Query(description="Messages per page")] = None,
) -> MessagesListResponse:
    return ledger.list_messages(
        caller_id,
        user_id,
        listing_id=listing_id,
        page=page,
        page_size=limit,
    )


@router.post(
    "/messages",
    response_model=MessageResponse,
    status_code=201,
    responses={
        400: {"model": ErrorResponse, "description": "Missing receiver or empty content"},
        401: {"model": ErrorResponse, "description": "Missing or unknown caller"},
        404: {"model": ErrorResponse, "description": "Receiver or listing not found"},
    },
    summary="Send a message",
)
def send_message(
    body: SendMessageRequest,
    caller_id: Annotated[str, Depends(get_caller_id)],
    ledger: Annotated[ConversationLedger, Depends(get_ledger)],
) -> MessageResponse:
    return ledger.send_message(
        caller_id,
        body.receiver_id,
        body.content,
        listing_id=body.listing_id,
    )


@router.get(
    "/messages/unread-count",
    response_model=UnreadCountResponse,
    summary="Unread message count",
)
def unread_count(
    caller_id: Annotated[str, Depends(get_caller_id)],
    ledger: Annotated[ConversationLedger, Depends(get_ledger)],
) -> UnreadCountResponse:
    return UnreadCountResponse(count=ledger.unread_count(caller_id))
