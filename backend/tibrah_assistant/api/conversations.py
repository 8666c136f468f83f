"""
Conversation API endpoints - Browse and clear stored chat history.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from ..core import ConversationStore
from .deps import get_conversation_store

router = APIRouter(prefix="/api/conversations", tags=["conversations"])


@router.get("")
async def list_conversations(store: ConversationStore = Depends(get_conversation_store)):
    """All tracked conversations, most recent first."""
    return {
        "conversations": [c.model_dump(mode="json") for c in store.get_all_conversations()]
    }


@router.get("/current")
async def get_current_conversation(store: ConversationStore = Depends(get_conversation_store)):
    conversation = store.get_current_conversation()
    return {
        "conversation": conversation.model_dump(mode="json") if conversation else None,
        "summary": store.generate_summary(),
        "userName": store.get_user_name(),
    }


@router.get("/{conversation_id}")
async def get_conversation(
    conversation_id: str,
    store: ConversationStore = Depends(get_conversation_store),
):
    conversation = store.get_conversation(conversation_id)
    if conversation is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Conversation not found"
        )
    return {"conversation": conversation.model_dump(mode="json")}


@router.delete("/current")
async def clear_current_conversation(store: ConversationStore = Depends(get_conversation_store)):
    await store.clear_current_conversation()
    return {"success": True}


@router.delete("")
async def clear_all_conversations(store: ConversationStore = Depends(get_conversation_store)):
    await store.clear_all()
    return {"success": True}
