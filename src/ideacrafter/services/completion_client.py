from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional
import logging
import time

from langchain_openai import ChatOpenAI

from ..config import DEFAULT_GROQ_BASE_URL, DEFAULT_GROQ_MODEL
from ..domain.chat_models import CompletionOptions
from .prompt_composer import build_messages


LOG = logging.getLogger("ideacrafter.llm")

REPLY_MAX_TOKENS = 500
TITLE_MAX_TOKENS = 15
TITLE_TEMPERATURE = 0.3
TITLE_MAX_WORDS = 7
EMPTY_REPLY_FALLBACK = "Sorry, I couldn't generate a response."
TITLE_FALLBACK = "New Conversation"

ChatModelFactory = Callable[..., Any]


def _chunk_text(chunk: Any) -> str:
    content = chunk.content if hasattr(chunk, "content") else chunk
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(part.get("text", "") if isinstance(part, dict) else str(part) for part in content)
    return str(content or "")


def clean_title(raw: str) -> str:
    """Normalise a model-written title; returns "" when nothing usable is left."""
    lines = [line.strip() for line in (raw or "").strip().splitlines() if line.strip()]
    if not lines:
        return ""
    title = lines[0]
    if title.lower().startswith("title:"):
        title = title[len("title:"):].strip()
    title = title.strip().strip("\"'`*").strip().rstrip(".")
    words = title.split()
    if len(words) > TITLE_MAX_WORDS:
        words = words[:TITLE_MAX_WORDS]
    return " ".join(words)


class CompletionClient:
    """Hosted chat-completion wrapper (Groq through its OpenAI-compatible API).

    The chat model is built per call so temperature and token limits can vary;
    nothing is constructed until the first request, which lets the app start
    without credentials.
    """

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = DEFAULT_GROQ_BASE_URL,
        model: str = DEFAULT_GROQ_MODEL,
        chat_model_factory: Optional[ChatModelFactory] = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url
        self.model = model
        self._factory = chat_model_factory or ChatOpenAI

    def _chat_model(self, temperature: float, max_tokens: int, streaming: bool) -> Any:
        if not self.api_key:
            raise RuntimeError("Groq API key not configured")
        return self._factory(
            api_key=self.api_key,
            base_url=self.base_url,
            model=self.model,
            temperature=temperature,
            max_tokens=max_tokens,
            streaming=streaming,
        )

    def generate_reply(
        self,
        history: List[Dict[str, str]],
        options: Optional[CompletionOptions] = None,
        user_type: str = "entrepreneur",
    ) -> str:
        options = options or CompletionOptions()
        if not 0 <= options.temperature <= 1:
            raise ValueError("Temperature must be a number between 0 and 1")
        msgs = build_messages(history, persona=options.persona, tone=options.tone, user_type=user_type)
        llm = self._chat_model(options.temperature, REPLY_MAX_TOKENS, streaming=True)
        LOG.debug("llm_stream_start", extra={"model": self.model, "turns": len(history)})
        started = time.perf_counter()
        parts: List[str] = []
        for chunk in llm.stream(msgs):
            token = _chunk_text(chunk)
            if token:
                parts.append(token)
        text = "".join(parts).strip()
        LOG.info(
            "llm_stream_complete",
            extra={"model": self.model, "chars": len(text), "elapsed_s": round(time.perf_counter() - started, 3)},
        )
        return text or EMPTY_REPLY_FALLBACK

    def generate_title(self, first_user_message: Optional[str], reply: str) -> str:
        prompt = "\n".join(
            [
                "Create a brief, descriptive title (3-7 words) for this conversation based on the user's first message and the AI's response.",
                "Focus on the main topic or question. Be specific but concise.",
                "",
                f"User: {first_user_message or 'No user message'}",
                f"AI: {reply}",
                "",
                "Title:",
            ]
        )
        llm = self._chat_model(TITLE_TEMPERATURE, TITLE_MAX_TOKENS, streaming=False)
        res = llm.invoke([{"role": "system", "content": prompt}])
        title = clean_title(_chunk_text(res))
        if not title:
            LOG.info("llm_title_empty_fallback", extra={"model": self.model})
        return title or TITLE_FALLBACK
