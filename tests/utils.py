from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Dict, Iterable, List, Optional, Tuple

from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.ideacrafter.api.main import create_app
from src.ideacrafter.config import Settings
from src.ideacrafter.domain.profile_models import Profile
from src.ideacrafter.infrastructure.conversation_store import InMemoryConversationStore
from src.ideacrafter.infrastructure.profile_store import InMemoryProfileStore
from src.ideacrafter.security.auth import JwtConfig, User, create_access_token
from src.ideacrafter.services.completion_client import CompletionClient
from src.ideacrafter.services.search_service import SearchService, SyntheticSearchProvider


TEST_SECRET = "test-secret"

FOUNDER = Profile(id="user-1", user_type="entrepreneur", full_name="Ada Lovelace", email="ada@example.com")
BACKER = Profile(id="user-2", user_type="investor", full_name="Grace Hopper", email="grace@example.com")


class FakeChatModels:
    """Stands in for the ChatOpenAI constructor; records every model built and call made."""

    def __init__(
        self,
        tokens: Iterable[str] = ("Focus on ", "your first ", "ten customers."),
        title: str = "Finding First Customers",
        error: Optional[Exception] = None,
    ) -> None:
        self.tokens = list(tokens)
        self.title = title
        self.error = error
        self.created: List[Dict[str, Any]] = []
        self.streamed: List[List[Dict[str, str]]] = []
        self.invoked: List[List[Dict[str, str]]] = []

    def __call__(self, **kwargs: Any) -> "_FakeChatModel":
        self.created.append(kwargs)
        return _FakeChatModel(self)

    @property
    def calls(self) -> int:
        return len(self.streamed) + len(self.invoked)


class _FakeChatModel:
    def __init__(self, parent: FakeChatModels) -> None:
        self._parent = parent

    def stream(self, msgs):
        self._parent.streamed.append(msgs)
        if self._parent.error is not None:
            raise self._parent.error
        for token in self._parent.tokens:
            yield SimpleNamespace(content=token)

    def invoke(self, msgs):
        self._parent.invoked.append(msgs)
        if self._parent.error is not None:
            raise self._parent.error
        return SimpleNamespace(content=self._parent.title)


def make_client(models: Optional[FakeChatModels] = None, api_key: Optional[str] = "test-key") -> CompletionClient:
    return CompletionClient(api_key=api_key, chat_model_factory=models or FakeChatModels())


def make_app(
    *,
    models: Optional[FakeChatModels] = None,
    store: Any = None,
    profiles: Any = None,
    search_service: Optional[SearchService] = None,
    public_mode: bool = False,
) -> FastAPI:
    import random

    settings = Settings(groq_api_key="test-key", supabase_jwt_secret=TEST_SECRET, public_mode=public_mode)
    return create_app(
        settings,
        conversation_store=store if store is not None else InMemoryConversationStore(),
        profile_store=profiles if profiles is not None else InMemoryProfileStore({FOUNDER.id: FOUNDER, BACKER.id: BACKER}),
        completion_client=make_client(models),
        search_service=search_service or SearchService(SyntheticSearchProvider(random.Random(7))),
    )


def auth_headers(user_id: str = FOUNDER.id, *, secret: str = TEST_SECRET, expires_min: int = 60) -> Dict[str, str]:
    token = create_access_token(User(id=user_id, email=f"{user_id}@example.com"), JwtConfig(secret=secret, expires_min=expires_min))
    return {"Authorization": f"Bearer {token}"}


def client_for(app: FastAPI) -> TestClient:
    return TestClient(app)


# --- Supabase (PostgREST) fake ---
class FakeAPIError(Exception):
    """Shaped like postgrest's APIError: a message plus a code."""

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


ALL_COLUMNS = ("conversation_id", "id", "user_id", "title", "messages", "updated_at")
LEGACY_COLUMNS = ("id", "user_id", "title", "messages", "updated_at")


class FakeSupabase:
    """In-memory table behind the fluent ``table().select().eq()...execute()`` API."""

    def __init__(self, columns: Tuple[str, ...] = ALL_COLUMNS, rows: Optional[List[Dict[str, Any]]] = None) -> None:
        self.columns = set(columns)
        self.rows: List[Dict[str, Any]] = [dict(r) for r in rows or []]
        self.tables: List[str] = []
        self.fail_with: Optional[Exception] = None
        self._seq = 0

    def table(self, name: str) -> "_FakeQuery":
        self.tables.append(name)
        return _FakeQuery(self)

    def next_row_id(self) -> str:
        self._seq += 1
        return f"row-{self._seq}"


class _FakeQuery:
    def __init__(self, db: FakeSupabase) -> None:
        self._db = db
        self._op = "select"
        self._columns: List[str] = []
        self._filters: List[Tuple[str, Any]] = []
        self._payload: Dict[str, Any] = {}
        self._order: Optional[Tuple[str, bool]] = None
        self._limit: Optional[int] = None

    def select(self, columns: str = "*") -> "_FakeQuery":
        self._op = "select"
        if columns != "*":
            self._columns = [c.strip() for c in columns.split(",")]
        return self

    def insert(self, row: Dict[str, Any]) -> "_FakeQuery":
        self._op = "insert"
        self._payload = dict(row)
        return self

    def update(self, values: Dict[str, Any]) -> "_FakeQuery":
        self._op = "update"
        self._payload = dict(values)
        return self

    def delete(self) -> "_FakeQuery":
        self._op = "delete"
        return self

    def eq(self, column: str, value: Any) -> "_FakeQuery":
        self._filters.append((column, value))
        return self

    def order(self, column: str, desc: bool = False) -> "_FakeQuery":
        self._order = (column, desc)
        return self

    def limit(self, count: int) -> "_FakeQuery":
        self._limit = count
        return self

    def _check(self, columns: Iterable[str]) -> None:
        for column in columns:
            if column not in self._db.columns:
                raise FakeAPIError(f"column chats.{column} does not exist", code="42703")

    def _matches(self, row: Dict[str, Any]) -> bool:
        return all(row.get(c) is not None and str(row.get(c)) == str(v) for c, v in self._filters)

    def execute(self) -> SimpleNamespace:
        db = self._db
        if db.fail_with is not None:
            raise db.fail_with
        self._check(self._columns)
        self._check(c for c, _ in self._filters)
        self._check(self._payload)
        if self._op == "select":
            rows = [dict(r) for r in db.rows if self._matches(r)]
            if self._order:
                column, desc = self._order
                rows.sort(key=lambda r: r.get(column) or "", reverse=desc)
            if self._limit is not None:
                rows = rows[: self._limit]
            return SimpleNamespace(data=rows)
        if self._op == "insert":
            row = dict(self._payload)
            if "id" in db.columns and not row.get("id"):
                row["id"] = db.next_row_id()
            db.rows.append(row)
            return SimpleNamespace(data=[dict(row)])
        if self._op == "update":
            changed = []
            for row in db.rows:
                if self._matches(row):
                    row.update(self._payload)
                    changed.append(dict(row))
            return SimpleNamespace(data=changed)
        removed = [r for r in db.rows if self._matches(r)]
        db.rows = [r for r in db.rows if not self._matches(r)]
        return SimpleNamespace(data=removed)
