"""Test suite for the Gemini generation service."""

import pytest
from google.api_core import exceptions

from avan_studio.services.llm import GENERATION_ERROR_MESSAGE, TEMPERATURE, CodeGenerationService
from avan_studio.services.prompts import build_system_instruction


@pytest.mark.asyncio
async def test_generate_returns_model_text(gemini):
    """Test a successful call returns the raw reply."""
    gemini.replies = ["Done.\n```html\n<h1>Hi</h1>\n```"]
    service = CodeGenerationService(model_factory=gemini.factory)

    text = await service.generate("A landing page", ["earlier"], "", "de")

    assert text == "Done.\n```html\n<h1>Hi</h1>\n```"
    assert len(gemini.calls) == 1
    call = gemini.calls[0]
    assert "**German**" in call["system_instruction"]
    assert call["contents"][0] == {"role": "user", "parts": ["earlier"]}
    assert "User Request: A landing page" in call["contents"][-1]["parts"][0]


@pytest.mark.asyncio
async def test_provider_error_returns_sentinel(gemini):
    """Test provider failures become the error message, without retrying."""
    gemini.error = exceptions.InternalServerError("backend down")
    service = CodeGenerationService(model_factory=gemini.factory)

    assert await service.generate("Anything") == GENERATION_ERROR_MESSAGE
    assert len(gemini.calls) == 1


@pytest.mark.asyncio
async def test_quota_error_returns_sentinel(gemini):
    """Test quota exhaustion is handled the same way."""
    gemini.error = exceptions.ResourceExhausted("quota")
    service = CodeGenerationService(model_factory=gemini.factory)

    assert await service.generate("Anything") == GENERATION_ERROR_MESSAGE


@pytest.mark.asyncio
async def test_network_error_returns_sentinel(gemini):
    """Test arbitrary exceptions never escape."""
    gemini.error = ConnectionError("no route to host")
    service = CodeGenerationService(model_factory=gemini.factory)

    assert await service.generate("Anything") == GENERATION_ERROR_MESSAGE


@pytest.mark.asyncio
async def test_empty_response_returns_sentinel(gemini):
    """Test an empty reply counts as a failure."""
    gemini.replies = [""]
    service = CodeGenerationService(model_factory=gemini.factory)

    assert await service.generate("Anything") == GENERATION_ERROR_MESSAGE


@pytest.mark.asyncio
async def test_blocked_response_returns_sentinel():
    """Test a response whose text accessor raises is handled."""

    class BlockedResponse:
        @property
        def text(self):
            raise ValueError("response was blocked")

    class BlockedModel:
        async def generate_content_async(self, contents):
            return BlockedResponse()

    service = CodeGenerationService(model_factory=lambda instruction: BlockedModel())
    assert await service.generate("Anything") == GENERATION_ERROR_MESSAGE


@pytest.mark.asyncio
async def test_factory_error_returns_sentinel():
    """Test failures while building the model are also caught."""

    def broken_factory(instruction):
        raise RuntimeError("bad config")

    service = CodeGenerationService(model_factory=broken_factory)
    assert await service.generate("Anything") == GENERATION_ERROR_MESSAGE


def test_default_model_is_configured():
    """Test the Gemini model gets the fixed temperature and system instruction."""
    service = CodeGenerationService(model_name="gemini-2.5-flash")
    instruction = build_system_instruction("he")

    model = service._gemini_model(instruction)

    assert model.model_name == "models/gemini-2.5-flash"
    assert model._generation_config == {"temperature": TEMPERATURE}
    assert TEMPERATURE == 0.7
    assert model._system_instruction.parts[0].text == instruction
