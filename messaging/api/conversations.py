"""
Conversation list endpoint.
"""
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from messaging.api.dependencies import get_ledger
from messaging.core.security import get_caller_id
from messaging.schemas.conversation import ConversationsListResponse
from messaging.schemas.message import ErrorResponse
from messaging.services.ledger import ConversationLedger

router = APIRouter(tags=["Conversations"])


@router.get(
    "/conversations",
    response_model=ConversationsListResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid pagination"},
        401: {"model": ErrorResponse, "description": "Missing or unknown caller"},
    },
    summary="List conversations",
    description="Distinct conversations of the caller, most recent activity first."
)
def list_conversations(
    caller_id: Annotated[str, Depends(get_caller_id)],
    ledger: Annotated[ConversationLedger, Depends(get_ledger)],
    page: Annotated[int, Query(description="1-based page number")] = 1,
    limit: Annotated[Optional[int], Query(description="Conversations per page")] = None,
    cursor: Annotated[Optional[str], Query(description="next_cursor from the previous page")] = None,
) -> ConversationsListResponse:
    """
    One entry per (counterpart, listing) pair, described by its latest message.

    - **page** / **limit**: offset pagination
    - **cursor**: keyset pagination; takes precedence over **page**
    """
    return ledger.list_conversations(caller_id, page=page, page_size=limit, cursor=cursor)
