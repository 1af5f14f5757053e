"""Admin inbox routes.

Endpoints:
    GET /api/admin/conversations  One summary row per order with unread counts
"""

from fastapi import APIRouter, Depends

from src.api.dependencies import get_conversation_service
from src.api.schemas import ConversationListResponse, ConversationSummaryResponse
from src.services.conversation_service import ConversationService

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/conversations", response_model=ConversationListResponse)
def list_conversations(
    service: ConversationService = Depends(get_conversation_service),
) -> ConversationListResponse:
    """List every order's conversation, most recently active first."""
    summaries = service.list_conversations()
    return ConversationListResponse(
        conversations=[ConversationSummaryResponse.model_validate(s) for s in summaries],
        total_unread=sum(s.unread_count for s in summaries),
    )
