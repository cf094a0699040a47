"""
Message history API endpoints.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.core.config import settings
from app.dependencies import get_message_store
from app.middleware.auth import get_current_identity
from app.models.presence import Identity
from app.repositories.base import MessageStore
from app.schemas.message import MessageHistoryResponse, MessageResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/messages", tags=["messages"])


@router.get(
    "/{user_id}",
    response_model=MessageHistoryResponse,
    response_model_by_alias=True,
    summary="Conversation history",
    description="Messages exchanged between the caller and another user, oldest first"
)
async def get_conversation(
    user_id: str,
    limit: int = Query(settings.HISTORY_MAX_MESSAGES, ge=1, le=settings.HISTORY_MAX_MESSAGES, description="Most recent messages to return"),
    identity: Identity = Depends(get_current_identity),
    store: MessageStore = Depends(get_message_store)
):
    """Get the conversation between the caller and `user_id`."""
    try:
        messages = await store.query(identity.user_id, user_id, limit=limit)
    except Exception as e:
        logger.error(f"Error loading conversation {identity.user_id}<->{user_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load messages"
        )

    return MessageHistoryResponse(
        messages=[MessageResponse.from_message(m) for m in messages],
        total=len(messages)
    )
