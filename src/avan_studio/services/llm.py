"""Website generation through Google's Gemini models."""

from typing import Any, Callable, Optional, Sequence, Union

import google.generativeai as genai
import structlog
from google.api_core import exceptions

from ..config import DEFAULT_MODEL
from ..domain.models import Language
from .prompts import build_contents, build_system_instruction

logger = structlog.get_logger()

TEMPERATURE = 0.7

# Returned in place of model output whenever generation fails.
GENERATION_ERROR_MESSAGE = "Error: Unable to generate code. Please try again later."

ModelFactory = Callable[[str], Any]


class EmptyResponseError(Exception):
    """The model answered without any text."""
    pass


class CodeGenerationService:
    """Sends one generation request per chat turn to Gemini."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: str = DEFAULT_MODEL,
        model_factory: Optional[ModelFactory] = None,
    ):
        """Configure the client.

        ``model_factory`` builds a model for a given system instruction; it
        defaults to ``genai.GenerativeModel`` and exists so tests can supply
        a stand-in.
        """
        self.model_name = model_name
        if model_factory is None:
            if api_key:
                genai.configure(api_key=api_key)
            else:
                logger.warning("gemini_api_key_missing")
            model_factory = self._gemini_model
        self._model_factory = model_factory
        logger.info("generation_service_init", model=model_name)

    def _gemini_model(self, system_instruction: str) -> Any:
        return genai.GenerativeModel(
            self.model_name,
            system_instruction=system_instruction,
            generation_config=genai.GenerationConfig(temperature=TEMPERATURE),
        )

    async def generate(
        self,
        request: str,
        history: Sequence[str] = (),
        current_code: str = "",
        language: Union[Language, str] = Language.EN,
    ) -> str:
        """Return the model's raw reply, or the error sentinel on any failure.

        Exactly one request is made. Callers cannot tell the sentinel from a
        genuine reply.
        """
        try:
            model = self._model_factory(build_system_instruction(language))
            response = await model.generate_content_async(
                build_contents(request, history, current_code)
            )
            text = response.text
            if not text:
                raise EmptyResponseError("Empty response")
            logger.info(
                "generation_complete",
                model=self.model_name,
                request_length=len(request),
                response_length=len(text),
            )
            return text
        except exceptions.ResourceExhausted as e:
            logger.warning("gemini_quota_exhausted", error=str(e))
        except Exception as e:
            logger.error("generation_error", model=self.model_name, error=str(e))
        return GENERATION_ERROR_MESSAGE
