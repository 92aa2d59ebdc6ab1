from __future__ import annotations

"""Conversation store backed by a Supabase (PostgREST) table.

Deployed schemas key the ``chats`` table either by ``conversation_id`` or, on
older installs, only by ``id``. The store probes once which columns exist,
always writes the canonical column, and normalises rows on read so callers
only ever see ``conversation_id``.
"""

from datetime import UTC, datetime
from threading import RLock
from typing import Any, Dict, List, Optional, Tuple
import logging

from supabase import Client, create_client

from ..config import Settings
from ..domain.chat_models import Conversation, ConversationSummary, DEFAULT_TITLE
from .conversation_store import (
    StoreError,
    conversation_from_row,
    describe_store_error,
    serialize_messages,
    summaries_from_rows,
)


logger = logging.getLogger("ideacrafter.store")

PRIMARY_ID_COLUMN = "conversation_id"
LEGACY_ID_COLUMN = "id"
NO_ROWS_CODE = "PGRST116"
_MISSING_COLUMN_CODES = {"42703", "PGRST204"}
_INVALID_VALUE_CODES = {"22P02"}


def create_supabase_client(settings: Settings) -> Client:
    return create_client(settings.supabase_url, settings.supabase_key)


def _error_code(exc: BaseException) -> str:
    return str(getattr(exc, "code", "") or "")


def _is_missing_column(exc: BaseException, column: str) -> bool:
    if _error_code(exc) in _MISSING_COLUMN_CODES:
        return True
    text = str(getattr(exc, "message", None) or exc).lower()
    return column in text and ("does not exist" in text or "could not find" in text)


def _is_no_rows(exc: BaseException) -> bool:
    return _error_code(exc) == NO_ROWS_CODE


class SupabaseConversationStore:
    def __init__(self, client: Client, table: str = "chats") -> None:
        self._client = client
        self._table = table
        self._lookup_columns: Optional[Tuple[str, ...]] = None
        self._lock = RLock()

    def _now_iso(self) -> str:
        return datetime.now(UTC).isoformat().replace("+00:00", "Z")

    def _query(self):
        return self._client.table(self._table)

    # --- id column resolution ---
    def lookup_columns(self) -> Tuple[str, ...]:
        """Id columns to try, canonical first; resolved once per store."""
        with self._lock:
            if self._lookup_columns is not None:
                return self._lookup_columns
            try:
                self._query().select(PRIMARY_ID_COLUMN).limit(1).execute()
                columns: Tuple[str, ...] = (PRIMARY_ID_COLUMN, LEGACY_ID_COLUMN)
            except Exception as exc:
                if not _is_missing_column(exc, PRIMARY_ID_COLUMN):
                    raise describe_store_error(exc, self._table) from exc
                columns = (LEGACY_ID_COLUMN,)
            logger.info("chats id columns resolved: %s", ", ".join(columns))
            self._lookup_columns = columns
            return columns

    @property
    def canonical_column(self) -> str:
        return self.lookup_columns()[0]

    def _find_row(self, user_id: str, conversation_id: str) -> Optional[Tuple[str, Dict[str, Any]]]:
        for column in self.lookup_columns():
            try:
                res = (
                    self._query()
                    .select("*")
                    .eq("user_id", user_id)
                    .eq(column, conversation_id)
                    .limit(1)
                    .execute()
                )
            except Exception as exc:
                # a miss under one column only triggers the next lookup
                if _is_no_rows(exc) or _error_code(exc) in _INVALID_VALUE_CODES:
                    continue
                raise describe_store_error(exc, self._table) from exc
            rows = res.data or []
            if rows:
                return column, rows[0]
        return None

    # --- ConversationStore ---
    def list_conversations(self, user_id: str) -> List[ConversationSummary]:
        try:
            res = self._query().select("*").eq("user_id", user_id).order("updated_at", desc=True).execute()
        except Exception as exc:
            raise describe_store_error(exc, self._table) from exc
        return summaries_from_rows(res.data or [])

    def load_conversation(self, user_id: str, conversation_id: str) -> Optional[Conversation]:
        found = self._find_row(user_id, conversation_id)
        if not found:
            return None
        _, row = found
        return conversation_from_row(row)

    def save_conversation(self, user_id: str, conversation: Conversation) -> Conversation:
        payload: Dict[str, Any] = {
            "title": conversation.title or DEFAULT_TITLE,
            "messages": serialize_messages(conversation.messages),
            "updated_at": self._now_iso(),
        }
        cid = conversation.conversation_id
        found = self._find_row(user_id, cid) if cid else None
        try:
            if found:
                column, _ = found
                values = dict(payload)
                if column != self.canonical_column:
                    # rows found under the legacy key get the canonical key too
                    values[self.canonical_column] = cid
                res = self._query().update(values).eq("user_id", user_id).eq(column, cid).execute()
            else:
                row = {"user_id": user_id, **payload}
                if cid:
                    row[self.canonical_column] = cid
                res = self._query().insert(row).execute()
        except Exception as exc:
            raise describe_store_error(exc, self._table) from exc
        rows = res.data or []
        if not rows:
            raise StoreError("Conversation write returned no rows", code="no_rows")
        saved = conversation_from_row(rows[0])
        if not saved.conversation_id:
            raise StoreError("Conversation write returned a row without an id", code="no_id")
        logger.info("conversation saved id=%s messages=%d", saved.conversation_id, len(saved.messages))
        return saved

    def delete_conversation(self, user_id: str, conversation_id: str) -> bool:
        found = self._find_row(user_id, conversation_id)
        if not found:
            return False
        column, _ = found
        try:
            self._query().delete().eq("user_id", user_id).eq(column, conversation_id).execute()
        except Exception as exc:
            raise describe_store_error(exc, self._table) from exc
        return True
