"""
Chat API endpoints - The assistant's single conversational entry point.
"""

from fastapi import APIRouter, Depends, Response

from ..core import AIGateway
from ..core.gateway import sanitize_text
from ..errors import ClientError, MethodNotAllowedError
from ..models import ChatRequest, ChatResponse
from .deps import enforce_rate_limit, get_gateway

router = APIRouter(prefix="/api", tags=["chat"])


@router.options("/chat", include_in_schema=False)
async def chat_preflight():
    """Preflight answer for clients that probe without CORS headers."""
    return Response(status_code=200, headers={"Allow": "POST"})


@router.api_route("/chat", methods=["GET", "PUT", "PATCH", "DELETE"], include_in_schema=False)
async def chat_wrong_method():
    raise MethodNotAllowedError(allowed="POST")


@router.post(
    "/chat",
    response_model=ChatResponse,
    dependencies=[Depends(enforce_rate_limit)],
)
async def send_message(
    request: ChatRequest,
    gateway: AIGateway = Depends(get_gateway),
):
    """
    Send a chat message and get the assistant's answer.

    Args:
        request: Message plus optional health context, history and conversation id
        gateway: AI gateway from app state

    Returns:
        ChatResponse with the answer, the provider tag and quick replies
    """
    message = sanitize_text(request.message)
    if not message:
        raise ClientError("Message is required")

    result = await gateway.handle(request.model_copy(update={"message": message}))

    return ChatResponse(
        text=result.text,
        source=result.source,
        suggestions=result.suggestions,
        conversation_id=result.conversation_id,
    )
