from __future__ import annotations

from datetime import UTC, datetime
from typing import Optional
from dotenv import load_dotenv
import logging
from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest

from ..config import Settings
from ..infrastructure.conversation_store import ConversationStore, build_conversation_store
from ..infrastructure.profile_store import ProfileStore, build_profile_store
from ..observability.metrics import metrics_middleware_factory
from ..services.chat_service import ChatService
from ..services.completion_client import CompletionClient
from ..services.search_service import SearchService, build_search_service
from .routers.completion import legacy_router as groq_router
from .routers.completion import router as completion_router
from .routers.conversations import router as conversations_router
from .routers.profile import router as profile_router
from .routers.search import router as search_router


logger = logging.getLogger("ideacrafter.api")

API_NAME = "IdeaCrafter API"
API_VERSION = "0.1.0"


def create_app(
    settings: Optional[Settings] = None,
    *,
    conversation_store: Optional[ConversationStore] = None,
    profile_store: Optional[ProfileStore] = None,
    completion_client: Optional[CompletionClient] = None,
    search_service: Optional[SearchService] = None,
) -> FastAPI:
    """Build the application; collaborators are constructed once here and
    shared through ``app.state`` (pass fakes to override)."""
    settings = settings or Settings.from_env()
    app = FastAPI(title=API_NAME, version=API_VERSION)

    client = completion_client or CompletionClient(
        api_key=settings.groq_api_key,
        base_url=settings.groq_base_url,
        model=settings.groq_model,
    )
    app.state.settings = settings
    app.state.conversation_store = conversation_store or build_conversation_store(settings)
    app.state.profile_store = profile_store or build_profile_store(settings)
    app.state.chat_service = ChatService(client)
    app.state.search_service = search_service or build_search_service(settings)
    logger.info(
        "app configured store=%s model=%s web_search=%s",
        type(app.state.conversation_store).__name__,
        client.model,
        settings.web_search_configured,
    )

    # Observability: request latency histogram
    app.middleware("http")(metrics_middleware_factory())

    for prefix in ("", "/api"):
        app.include_router(completion_router, prefix=prefix)
        app.include_router(conversations_router, prefix=prefix)
        app.include_router(search_router, prefix=prefix)
        app.include_router(profile_router, prefix=prefix)
    app.include_router(groq_router, prefix="/api")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def _health() -> dict:
        return {
            "status": "ok",
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "components": {
                "api": "ok",
                "store": type(app.state.conversation_store).__name__,
                "llm": "configured" if client.api_key else "missing_api_key",
            },
        }

    def _metrics() -> Response:
        data = generate_latest(REGISTRY)
        return Response(content=data, media_type=CONTENT_TYPE_LATEST)

    for prefix in ("", "/api"):
        app.add_api_route(f"{prefix}/health", _health, methods=["GET"])
        app.add_api_route(f"{prefix}/metrics", _metrics, methods=["GET"])
        app.add_api_route(prefix or "/", lambda: {"name": API_NAME, "version": API_VERSION}, methods=["GET"])

    return app


load_dotenv()  # Load environment variables from .env if present (GROQ_API_KEY, SUPABASE_URL, etc.)

logging.basicConfig(level=logging.INFO)

app = create_app()
