"""Client-side chat session: conversation state, turn state machine and the
progressive reveal of assistant replies.

Per turn the session moves ``IDLE -> AWAITING_REPLY -> REVEALING -> IDLE``;
the session itself is ``UNINITIALIZED`` until a profile has been loaded. The
reveal runs as a single ``asyncio.Task`` which is cancelled whenever the
visible conversation changes, so it never writes into a stale message.

Network calls (completion, store reads/writes) are the only suspension points.
A completion result is applied to whatever conversation is current when it
arrives.
"""

from __future__ import annotations

from enum import Enum
from math import ceil
from typing import List, Optional, Set
import asyncio
import json
import logging

from ..domain.chat_models import (
    Conversation,
    ConversationSummary,
    CompletionOptions,
    CompletionRequest,
    DEFAULT_TITLE,
    HistoryTurn,
    Message,
    derive_title,
)
from ..domain.profile_models import Profile
from ..infrastructure.conversation_store import ConversationStore, StoreError
from ..infrastructure.profile_store import ProfileStore
from .assistant_copy import welcome_message
from .chat_service import GENERIC_FAILURE
from .completion_gateway import CompletionFailed, CompletionGateway
from .handoff import HandoffChannel


logger = logging.getLogger("ideacrafter.session")


class TurnState(str, Enum):
    IDLE = "idle"
    AWAITING_REPLY = "awaiting_reply"
    REVEALING = "revealing"


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"


def reveal_chunk_size(length: int, target_ticks: int) -> int:
    return max(1, ceil(length / max(1, target_ticks)))


class ChatOrchestrator:
    def __init__(
        self,
        store: ConversationStore,
        profiles: ProfileStore,
        completion: CompletionGateway,
        handoff: Optional[HandoffChannel] = None,
        *,
        persona: str = "Strategist",
        tone: str = "Balanced",
        temperature: float = 0.7,
        tick_seconds: float = 0.003,
        reveal_ticks: int = 200,
    ) -> None:
        self._store = store
        self._profiles = profiles
        self._completion = completion
        self._handoff = handoff
        self.options = CompletionOptions(persona=persona, tone=tone, temperature=temperature)
        self.tick_seconds = tick_seconds
        self.reveal_ticks = reveal_ticks

        self.session_state = SessionState.UNINITIALIZED
        self.turn_state = TurnState.IDLE
        self.user_id: Optional[str] = None
        self.profile: Optional[Profile] = None
        self.conversation_id: Optional[str] = None
        self.title: str = DEFAULT_TITLE
        self.messages: List[Message] = []
        self.conversations: List[ConversationSummary] = []
        self.last_error: Optional[str] = None

        self._error_ids: Set[str] = set()
        self._reveal_task: Optional[asyncio.Task] = None
        self._revealing_id: Optional[str] = None
        self._revealing_text: str = ""

    # --- session ---
    @property
    def busy(self) -> bool:
        return self.turn_state is not TurnState.IDLE

    async def initialize(self, user_id: str, conversation_id: Optional[str] = None) -> None:
        profile = await asyncio.to_thread(self._profiles.get_profile, user_id)
        if profile is None:
            raise LookupError(f"No profile for user {user_id}")
        self.user_id = user_id
        self.profile = profile
        self._reset()
        self.session_state = SessionState.READY
        await self.refresh_conversations()
        if conversation_id:
            await self.load_conversation(conversation_id)

    async def close(self) -> None:
        await self.cancel_reveal()

    def _welcome(self) -> Message:
        profile = self.profile
        return Message(
            role="assistant",
            content=welcome_message(profile.user_type, profile.full_name) if profile else welcome_message("entrepreneur", None),
        )

    def _reset(self) -> None:
        self.messages = [self._welcome()]
        self.conversation_id = None
        self.title = DEFAULT_TITLE
        self._error_ids.clear()
        self._settle_turn()

    def _settle_turn(self) -> None:
        # a pending completion keeps the turn until its reply arrives
        if self.turn_state is not TurnState.AWAITING_REPLY:
            self.turn_state = TurnState.IDLE

    # --- turns ---
    def _history(self) -> List[HistoryTurn]:
        return [
            HistoryTurn(role=m.role, content=m.content)
            for m in self.messages
            if m.id not in self._error_ids and m.content
        ]

    async def submit(self, text: str) -> Optional[Message]:
        """Run one turn; returns the assistant message (placeholder or error), or None if ignored."""
        content = (text or "").strip()
        if not content or self.session_state is not SessionState.READY or self.busy:
            return None

        self.messages.append(Message(role="user", content=content))
        self.turn_state = TurnState.AWAITING_REPLY
        request = CompletionRequest(
            conversation_id=self.conversation_id,
            history=self._history(),
            user_id=self.user_id,
            user_type=self.profile.user_type,
            options=self.options,
        )
        try:
            response = await self._completion.complete(request)
        except CompletionFailed as exc:
            return self._fail_turn(exc.message)
        except Exception:
            logger.exception("completion call failed")
            return self._fail_turn(GENERIC_FAILURE)

        if not self.conversation_id:
            self.conversation_id = response.conversation_id
            if response.title and response.title != DEFAULT_TITLE:
                self.title = response.title
            else:
                self.title = derive_title(self.messages)

        await self.cancel_reveal()
        placeholder = Message(role="assistant", content="")
        self.messages.append(placeholder)
        self.turn_state = TurnState.REVEALING
        self._revealing_id = placeholder.id
        self._revealing_text = response.text
        self._reveal_task = asyncio.create_task(self._reveal(placeholder.id, response.text))
        return placeholder

    def _fail_turn(self, message: str) -> Message:
        err = Message(role="assistant", content=message)
        self.messages.append(err)
        self._error_ids.add(err.id)
        self.turn_state = TurnState.IDLE
        return err

    def _set_content(self, message_id: str, content: str) -> None:
        for m in self.messages:
            if m.id == message_id:
                m.content = content
                return

    async def _reveal(self, message_id: str, text: str) -> None:
        step = reveal_chunk_size(len(text), self.reveal_ticks)
        for end in range(step, len(text) + step, step):
            self._set_content(message_id, text[:end])
            await asyncio.sleep(self.tick_seconds)
        self._finish_reveal()
        await self._persist()

    def _finish_reveal(self) -> None:
        if self._revealing_id:
            self._set_content(self._revealing_id, self._revealing_text)
        self._revealing_id = None
        self._revealing_text = ""
        self.turn_state = TurnState.IDLE

    async def wait_for_reveal(self) -> None:
        task = self._reveal_task
        if task is None or task.done():
            return
        try:
            await asyncio.shield(task)
        except asyncio.CancelledError:
            if not task.cancelled():
                raise

    async def cancel_reveal(self, persist: bool = True) -> None:
        """Stop an in-flight reveal, completing the message text immediately."""
        task = self._reveal_task
        self._reveal_task = None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        self._finish_reveal()
        if persist:
            await self._persist()

    # --- persistence ---
    def snapshot(self) -> Conversation:
        return Conversation(
            conversation_id=self.conversation_id,
            title=self.title,
            messages=[m.model_copy() for m in self.messages if m.id not in self._error_ids],
        )

    async def _persist(self) -> None:
        conversation = self.snapshot()
        if not conversation.has_user_turn():
            return
        try:
            saved = await asyncio.to_thread(self._store.save_conversation, self.user_id, conversation)
        except StoreError as exc:
            self.last_error = str(exc)
            logger.error("saving conversation failed: %s", exc)
            return
        if not self.conversation_id:
            self.conversation_id = saved.conversation_id
        await self.refresh_conversations()

    async def refresh_conversations(self) -> None:
        try:
            self.conversations = await asyncio.to_thread(self._store.list_conversations, self.user_id)
        except StoreError as exc:
            self.last_error = str(exc)
            logger.error("listing conversations failed: %s", exc)

    async def new_chat(self) -> None:
        await self.cancel_reveal(persist=False)
        if self.snapshot().has_user_turn():
            await self._persist()
        self._reset()

    async def delete_message(self, message_id: str) -> None:
        await self.cancel_reveal(persist=False)
        self.messages = [m for m in self.messages if m.id != message_id]
        self._error_ids.discard(message_id)
        await self._persist()

    async def load_conversation(self, conversation_id: str) -> Optional[Conversation]:
        await self.cancel_reveal()
        conversation = self._handoff.take(conversation_id) if self._handoff is not None else None
        if conversation is None:
            try:
                conversation = await asyncio.to_thread(self._store.load_conversation, self.user_id, conversation_id)
            except StoreError as exc:
                self.last_error = str(exc)
                logger.error("loading conversation failed: %s", exc)
                return None
        if conversation is None:
            self.last_error = "Conversation not found"
            return None
        self.conversation_id = conversation.conversation_id or conversation_id
        self.title = conversation.title
        self.messages = list(conversation.messages) or [self._welcome()]
        self._error_ids.clear()
        self._settle_turn()
        return conversation

    async def delete_conversation(self, conversation_id: str) -> bool:
        try:
            deleted = await asyncio.to_thread(self._store.delete_conversation, self.user_id, conversation_id)
        except StoreError as exc:
            self.last_error = str(exc)
            logger.error("deleting conversation failed: %s", exc)
            return False
        if not deleted:
            self.last_error = "Conversation not found"
        if conversation_id == self.conversation_id:
            await self.cancel_reveal(persist=False)
            self._reset()
        await self.refresh_conversations()
        return deleted

    def hand_off(self) -> Optional[str]:
        """Park the current conversation for another view; returns its key."""
        if self._handoff is None or not self.conversation_id:
            return None
        self._handoff.put(self.conversation_id, self.snapshot())
        return self.conversation_id

    # --- export ---
    def export_json(self) -> str:
        return json.dumps([m.model_dump(mode="json") for m in self.snapshot().messages], indent=2)

    def export_markdown(self) -> str:
        return "\n\n".join(
            f"**You:** {m.content}" if m.role == "user" else f"**AI:** {m.content}"
            for m in self.snapshot().messages
        )
