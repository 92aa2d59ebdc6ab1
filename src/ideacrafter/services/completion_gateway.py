from __future__ import annotations

from typing import Optional, Protocol
import asyncio
import logging

import requests

from ..domain.chat_models import CompletionRequest, CompletionResponse
from .chat_service import GENERIC_FAILURE, ChatService, CompletionError, ValidationFailure


logger = logging.getLogger("ideacrafter.chat")


class CompletionFailed(Exception):
    """A turn-ending failure; ``message`` is safe to show to the user."""

    def __init__(self, message: str, status_code: int = 500) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class CompletionGateway(Protocol):
    async def complete(self, request: CompletionRequest) -> CompletionResponse: ...


class ServiceCompletionGateway:
    """Calls the chat service in-process, off the event loop."""

    def __init__(self, service: ChatService) -> None:
        self._service = service

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        try:
            return await asyncio.to_thread(self._service.complete, request)
        except (CompletionError, ValidationFailure) as exc:
            raise CompletionFailed(exc.message, exc.status_code) from exc


class HttpCompletionGateway:
    """Posts to a running completion endpoint."""

    def __init__(
        self,
        base_url: str,
        path: str = "/api/chat/completions",
        session: Optional[requests.Session] = None,
        timeout: tuple[float, float] = (3.0, 120.0),
    ) -> None:
        self.url = base_url.rstrip("/") + path
        self._session = session or requests.Session()
        self._timeout = timeout

    def _post(self, request: CompletionRequest) -> CompletionResponse:
        try:
            resp = self._session.post(
                self.url,
                json=request.model_dump(mode="json", by_alias=True),
                timeout=self._timeout,
            )
        except requests.exceptions.RequestException as exc:
            logger.warning("completion endpoint unreachable url=%s err=%s", self.url, exc)
            raise CompletionFailed(GENERIC_FAILURE) from exc
        if not resp.ok:
            try:
                message = (resp.json() or {}).get("error") or GENERIC_FAILURE
            except ValueError:
                message = GENERIC_FAILURE
            raise CompletionFailed(message, resp.status_code)
        return CompletionResponse.model_validate(resp.json())

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        return await asyncio.to_thread(self._post, request)
