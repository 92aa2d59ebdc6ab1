from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from ...domain.chat_models import CompletionResponse
from ...security.auth import User, get_optional_user
from ...services.chat_service import ChatService, CompletionError, ValidationFailure, parse_completion_request
from ..dependencies import get_chat_service


router = APIRouter(prefix="/chat", tags=["chat"])
legacy_router = APIRouter(tags=["chat"])

USER_MISMATCH = "User does not match the access token"


@router.post("/completions", response_model=CompletionResponse)
def create_completion(
    payload: Any = Body(None),
    caller: Optional[User] = Depends(get_optional_user),
    service: ChatService = Depends(get_chat_service),
):
    try:
        request = parse_completion_request(payload)
    except ValidationFailure as exc:
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})
    # the body names the user; a token, when sent, must agree with it
    if caller is not None and caller.id != request.user_id:
        return JSONResponse(status_code=403, content={"error": USER_MISMATCH})
    try:
        return service.complete(request)
    except CompletionError as exc:
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


# Path used by the web client
legacy_router.add_api_route("/groq", create_completion, methods=["POST"], response_model=CompletionResponse)
