from __future__ import annotations

from datetime import UTC, datetime
from threading import RLock
from typing import Any, Dict, List, Optional, Protocol
import json
import logging
import uuid

from ..config import Settings
from ..domain.chat_models import Conversation, ConversationSummary, DEFAULT_TITLE, Message


logger = logging.getLogger("ideacrafter.store")

PREVIEW_CHARS = 120


class ConversationStore(Protocol):
    def list_conversations(self, user_id: str) -> List[ConversationSummary]: ...

    def load_conversation(self, user_id: str, conversation_id: str) -> Optional[Conversation]: ...

    def save_conversation(self, user_id: str, conversation: Conversation) -> Conversation: ...

    def delete_conversation(self, user_id: str, conversation_id: str) -> bool: ...


class StoreError(RuntimeError):
    """A storage failure carrying the raw provider message and optional guidance."""

    def __init__(self, message: str, guidance: Optional[str] = None, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.guidance = guidance
        self.code = code

    def __str__(self) -> str:
        if self.guidance:
            return f"{self.message} ({self.guidance})"
        return self.message


def describe_store_error(exc: BaseException, table: str = "chats") -> StoreError:
    raw = str(getattr(exc, "message", None) or exc)
    code = getattr(exc, "code", None)
    lowered = raw.lower()
    guidance = None
    if f'relation "public.{table}" does not exist' in lowered or "could not find the table" in lowered:
        guidance = f"The {table} table is missing; run the database setup scripts."
    elif "column" in lowered and "does not exist" in lowered:
        guidance = f"The {table} table is missing a column; run the migration scripts."
    elif "permission denied" in lowered or "insufficient_privilege" in lowered or "row-level security" in lowered:
        guidance = f"Database permissions are not set up; apply the RLS policies for {table}."
    return StoreError(raw, guidance=guidance, code=str(code) if code else None)


# --- message codec ---
def serialize_messages(messages: List[Message]) -> str:
    return json.dumps([m.model_dump(mode="json") for m in messages])


def parse_messages(raw: Any) -> List[Message]:
    """Decode a stored message list; malformed input degrades to an empty list."""
    if raw is None or raw == "":
        return []
    data = raw
    if isinstance(raw, (str, bytes)):
        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("stored messages are not valid JSON; showing an empty conversation")
            return []
    if not isinstance(data, list):
        logger.warning("stored messages are not a list; showing an empty conversation")
        return []
    out: List[Message] = []
    for item in data:
        try:
            out.append(Message.model_validate(item))
        except Exception:
            logger.warning("skipping malformed stored message: %r", item)
    return out


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            pass
    return datetime.now(UTC)


def row_id(row: Dict[str, Any]) -> Optional[str]:
    """Conversation id of a stored row under either id column; None when neither is set."""
    value = row.get("conversation_id") or row.get("id")
    return str(value) if value not in (None, "") else None


def conversation_from_row(row: Dict[str, Any]) -> Conversation:
    return Conversation(
        conversation_id=row_id(row),
        title=row.get("title") or DEFAULT_TITLE,
        messages=parse_messages(row.get("messages")),
        updated_at=_parse_timestamp(row.get("updated_at")),
    )


def summary_from_row(row: Dict[str, Any]) -> ConversationSummary:
    messages = parse_messages(row.get("messages"))
    last = messages[-1].content if messages else ""
    preview = last[:PREVIEW_CHARS] + ("…" if len(last) > PREVIEW_CHARS else "")
    return ConversationSummary(
        conversation_id=row_id(row) or "",
        title=row.get("title") or DEFAULT_TITLE,
        updated_at=_parse_timestamp(row.get("updated_at")),
        message_count=len(messages),
        preview=preview,
    )


def summaries_from_rows(rows: List[Dict[str, Any]]) -> List[ConversationSummary]:
    out: List[ConversationSummary] = []
    for row in rows:
        if row_id(row) is None:
            logger.warning("skipping stored conversation without an id")
            continue
        out.append(summary_from_row(row))
    return out


class InMemoryConversationStore:
    """Keeps rows in the persisted shape: one record per conversation, messages as JSON text."""

    def __init__(self) -> None:
        self._rows: Dict[str, Dict[str, Any]] = {}
        self._lock = RLock()

    def _now_iso(self) -> str:
        return datetime.now(UTC).isoformat().replace("+00:00", "Z")

    def _owned(self, user_id: str, conversation_id: str) -> Optional[Dict[str, Any]]:
        row = self._rows.get(conversation_id)
        if not row or row["user_id"] != user_id:
            return None
        return row

    def list_conversations(self, user_id: str) -> List[ConversationSummary]:
        with self._lock:
            rows = [dict(r) for r in self._rows.values() if r["user_id"] == user_id]
        rows.sort(key=lambda r: r["updated_at"], reverse=True)
        return summaries_from_rows(rows)

    def load_conversation(self, user_id: str, conversation_id: str) -> Optional[Conversation]:
        with self._lock:
            row = self._owned(user_id, conversation_id)
            if not row:
                return None
            return conversation_from_row(dict(row))

    def save_conversation(self, user_id: str, conversation: Conversation) -> Conversation:
        with self._lock:
            now = self._now_iso()
            cid = conversation.conversation_id
            if cid and cid in self._rows and self._rows[cid]["user_id"] != user_id:
                raise StoreError("Conversation belongs to another user", code="forbidden")
            if not cid:
                cid = uuid.uuid4().hex
            # whole-document replacement
            self._rows[cid] = {
                "conversation_id": cid,
                "user_id": user_id,
                "title": conversation.title or DEFAULT_TITLE,
                "messages": serialize_messages(conversation.messages),
                "updated_at": now,
            }
            return conversation_from_row(dict(self._rows[cid]))

    def delete_conversation(self, user_id: str, conversation_id: str) -> bool:
        with self._lock:
            if not self._owned(user_id, conversation_id):
                return False
            del self._rows[conversation_id]
            return True

    def count_rows(self) -> int:
        with self._lock:
            return len(self._rows)


def build_conversation_store(settings: Settings) -> ConversationStore:
    if settings.store_impl == "supabase":
        if not settings.supabase_configured:
            raise RuntimeError("IDEACRAFTER_STORE_IMPL=supabase requires SUPABASE_URL and SUPABASE_KEY")
        from .conversation_store_supabase import SupabaseConversationStore, create_supabase_client

        return SupabaseConversationStore(create_supabase_client(settings))
    logger.info("Using in-memory conversation store")
    return InMemoryConversationStore()
