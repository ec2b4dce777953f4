"""Shared fixtures: a scripted Gemini stand-in and fresh service wiring."""

import asyncio
from types import SimpleNamespace
from typing import List, Optional

import pytest

from avan_studio.api.app import (
    app,
    get_app_state,
    get_auth_service,
    get_chat_service,
    get_preference_store,
)
from avan_studio.domain.state import AppState
from avan_studio.repositories.memory import InMemoryStore
from avan_studio.repositories.preferences import PreferenceStore
from avan_studio.repositories.projects import ProjectStore
from avan_studio.services.auth import AuthService, InMemoryIdentityProvider
from avan_studio.services.chat import ChatService
from avan_studio.services.llm import CodeGenerationService

LANDING_PAGE = "<!DOCTYPE html>\n<html><body><h1>Coffee Shop</h1><p>Fresh beans daily.</p></body></html>"
DEFAULT_REPLY = f"Here is your site.\n```html\n{LANDING_PAGE}\n```"


class FakeResponse:
    def __init__(self, text: str):
        self.text = text


class FakeGemini:
    """Records requests and answers with scripted replies."""

    def __init__(self) -> None:
        self.replies: List[str] = []
        self.calls: List[dict] = []
        self.error: Optional[Exception] = None
        self.gate: Optional[asyncio.Event] = None

    def factory(self, system_instruction: str) -> "FakeModel":
        return FakeModel(self, system_instruction)


class FakeModel:
    def __init__(self, owner: FakeGemini, system_instruction: str):
        self.owner = owner
        self.system_instruction = system_instruction

    async def generate_content_async(self, contents):
        self.owner.calls.append({"system_instruction": self.system_instruction, "contents": contents})
        if self.owner.gate is not None:
            await self.owner.gate.wait()
        if self.owner.error is not None:
            raise self.owner.error
        if self.owner.replies:
            return FakeResponse(self.owner.replies.pop(0))
        return FakeResponse(DEFAULT_REPLY)


@pytest.fixture
def gemini() -> FakeGemini:
    return FakeGemini()


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def project_store(store) -> ProjectStore:
    return ProjectStore(store)


@pytest.fixture
def preference_store(store) -> PreferenceStore:
    return PreferenceStore(store)


@pytest.fixture
def chat_service(project_store, gemini) -> ChatService:
    return ChatService(project_store, CodeGenerationService(model_factory=gemini.factory))


@pytest.fixture
def services(chat_service, preference_store, gemini):
    """Points the API dependencies at fresh in-memory services."""
    wiring = SimpleNamespace(
        chat=chat_service,
        preferences=preference_store,
        auth=AuthService(InMemoryIdentityProvider()),
        state=AppState(),
        gemini=gemini,
    )
    app.dependency_overrides[get_chat_service] = lambda: wiring.chat
    app.dependency_overrides[get_preference_store] = lambda: wiring.preferences
    app.dependency_overrides[get_auth_service] = lambda: wiring.auth
    app.dependency_overrides[get_app_state] = lambda: wiring.state
    yield wiring
    app.dependency_overrides.clear()
