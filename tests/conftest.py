"""
Shared pytest fixtures for the finance chat tests.

Provides:
- Required environment (settings are loaded at import time)
- In-memory fakes for the relational store and the embedding client
- A fake Gemini model that records every prompt it is sent
- API client fixtures and JWT helpers
"""

import os
import tempfile
from pathlib import Path

os.environ.setdefault("GOOGLE_API_KEY", "test-google-key")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-that-is-at-least-32-bytes")
os.environ.setdefault("LOGS_DIR", str(Path(tempfile.gettempdir()) / "finchat-test-logs"))
os.environ.pop("DEMO_USER_ID", None)
os.environ.pop("ENV", None)

import pytest
import jwt
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import List, Optional
from fastapi.testclient import TestClient

from finchat.api.app import create_app
from finchat.config.settings import settings
from finchat.core.models.chat import ConversationTurn, FactRow, FormulaDefinition
from finchat.core.services import completion as completion_module
from finchat.core.services.chat_service import ChatService
from finchat.core.services.completion import CompletionService
from finchat.core.services.context import ContextAssembler
from finchat.utils.errors import StoreUnavailable


USER_A = "11111111-1111-1111-1111-111111111111"
USER_B = "22222222-2222-2222-2222-222222222222"


# ============================================================================
# Fakes
# ============================================================================

class FakeStore:
    """In-memory stand-in for DatabaseService with the same accessors."""

    def __init__(self):
        self.turns: List[ConversationTurn] = []
        self.formulas: List[FormulaDefinition] = []
        self.rows: List[FactRow] = []
        self.failing = set()
        self.match_calls = []
        self.history_calls = []

    def _check(self, name: str):
        if name in self.failing:
            raise StoreUnavailable(f"{name} is down")

    def add_turn(self, user_id: str, role: str, content: str):
        created_at = datetime.now(timezone.utc) + timedelta(microseconds=len(self.turns))
        self.turns.append(
            ConversationTurn(user_id=user_id, role=role, content=content, created_at=created_at)
        )

    def turns_for(self, user_id: str) -> List[ConversationTurn]:
        return [t for t in self.turns if t.user_id == user_id]

    async def load_history(self, user_id: str, limit_pairs: Optional[int] = None):
        self._check("load_history")
        self.history_calls.append(user_id)
        limit_pairs = settings.HISTORY_LIMIT if limit_pairs is None else limit_pairs
        own = sorted(self.turns_for(user_id), key=lambda t: t.created_at)
        return own[-limit_pairs * 2:] if limit_pairs else []

    async def append_turns(self, user_id: str, question: str, answer: str):
        self._check("append_turns")
        self.add_turn(user_id, "user", question)
        self.add_turn(user_id, "assistant", answer)
        return self.turns[-2:]

    async def fetch_formulas(self):
        self._check("fetch_formulas")
        return list(self.formulas)

    async def match_documents(self, query_embedding, user_id=None, match_threshold=None, match_count=None):
        self._check("match_documents")
        self.match_calls.append({
            "query_embedding": query_embedding,
            "user_id": user_id,
            "match_threshold": match_threshold,
            "match_count": match_count,
        })
        rows = [r for r in self.rows if user_id is None or r.user_id == user_id]
        return rows[:match_count] if match_count is not None else rows


class FakeEmbeddingService:
    def __init__(self):
        self.vector = [0.1, 0.2, 0.3]
        self.error: Optional[Exception] = None
        self.calls = []

    async def get_embedding(self, text: str):
        self.calls.append(text)
        if self.error:
            raise self.error
        return list(self.vector)


class FakeGemini:
    """Replaces genai.GenerativeModel and records each generate call."""

    def __init__(self):
        self.reply = "stub answer"
        self.reply_fn = None
        self.error: Optional[Exception] = None
        self.calls = []

    @property
    def last_call(self):
        return self.calls[-1]

    def __call__(self, model_name, system_instruction=None, **kwargs):
        gemini = self

        class _Model:
            async def generate_content_async(self, contents, generation_config=None):
                gemini.calls.append({
                    "model_name": model_name,
                    "system_instruction": system_instruction,
                    "contents": contents,
                    "generation_config": generation_config,
                })
                if gemini.error:
                    raise gemini.error
                text = gemini.reply_fn(system_instruction, contents) if gemini.reply_fn else gemini.reply
                return SimpleNamespace(text=text)

        return _Model()


# ============================================================================
# Service Fixtures
# ============================================================================

@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def embedding_service() -> FakeEmbeddingService:
    return FakeEmbeddingService()


@pytest.fixture
def fake_gemini(monkeypatch) -> FakeGemini:
    gemini = FakeGemini()
    monkeypatch.setattr(completion_module.genai, "GenerativeModel", gemini)
    return gemini


@pytest.fixture
def chat_service(store, embedding_service, fake_gemini) -> ChatService:
    return ChatService(
        store,
        ContextAssembler(store, embedding_service),
        CompletionService()
    )


# ============================================================================
# API Fixtures
# ============================================================================

@pytest.fixture
def client(chat_service) -> TestClient:
    return TestClient(create_app(chat_service=chat_service))


def make_token(
    sub: Optional[str] = USER_A,
    secret: Optional[str] = None,
    audience: str = "authenticated",
    expires_in: timedelta = timedelta(hours=1)
) -> str:
    payload = {
        "aud": audience,
        "exp": int((datetime.now(timezone.utc) + expires_in).timestamp()),
        "role": "authenticated",
    }
    if sub is not None:
        payload["sub"] = sub
    return jwt.encode(payload, secret or settings.JWT_SECRET, algorithm="HS256")


@pytest.fixture
def auth_headers() -> dict:
    return {"Authorization": f"Bearer {make_token(USER_A)}"}
