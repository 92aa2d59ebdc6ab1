from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from ...domain.chat_models import Conversation, ConversationSave, ConversationSummary, derive_title
from ...infrastructure.conversation_store import ConversationStore, StoreError
from ...security.auth import User, get_current_user
from ..dependencies import get_conversation_store


router = APIRouter(prefix="/conversations", tags=["conversations"])


def _store_failure(exc: StoreError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.get("", response_model=List[ConversationSummary])
def list_conversations(
    user: User = Depends(get_current_user),
    store: ConversationStore = Depends(get_conversation_store),
) -> List[ConversationSummary]:
    try:
        return store.list_conversations(user.id)
    except StoreError as exc:
        raise _store_failure(exc)


@router.get("/{conversation_id}", response_model=Conversation)
def get_conversation(
    conversation_id: str,
    user: User = Depends(get_current_user),
    store: ConversationStore = Depends(get_conversation_store),
) -> Conversation:
    try:
        conv = store.load_conversation(user.id, conversation_id)
    except StoreError as exc:
        raise _store_failure(exc)
    if not conv:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return conv


@router.put("", response_model=Conversation)
def save_conversation(
    req: ConversationSave,
    user: User = Depends(get_current_user),
    store: ConversationStore = Depends(get_conversation_store),
) -> Conversation:
    if not any(m.role == "user" for m in req.messages):
        raise HTTPException(status_code=400, detail="Conversation has no user messages")
    conv = Conversation(
        conversation_id=req.conversation_id,
        title=req.title or derive_title(req.messages),
        messages=req.messages,
    )
    try:
        return store.save_conversation(user.id, conv)
    except StoreError as exc:
        raise _store_failure(exc)


@router.delete("/{conversation_id}")
def delete_conversation(
    conversation_id: str,
    user: User = Depends(get_current_user),
    store: ConversationStore = Depends(get_conversation_store),
):
    try:
        deleted = store.delete_conversation(user.id, conversation_id)
    except StoreError as exc:
        raise _store_failure(exc)
    if not deleted:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return {"deleted": True, "conversation_id": conversation_id}


@router.delete("/{conversation_id}/messages/{message_id}", response_model=Conversation)
def delete_message(
    conversation_id: str,
    message_id: str,
    user: User = Depends(get_current_user),
    store: ConversationStore = Depends(get_conversation_store),
) -> Conversation:
    try:
        conv = store.load_conversation(user.id, conversation_id)
        if not conv:
            raise HTTPException(status_code=404, detail="Conversation not found")
        remaining = [m for m in conv.messages if m.id != message_id]
        if len(remaining) == len(conv.messages):
            raise HTTPException(status_code=404, detail="Message not found")
        conv.messages = remaining
        return store.save_conversation(user.id, conv)
    except StoreError as exc:
        raise _store_failure(exc)
