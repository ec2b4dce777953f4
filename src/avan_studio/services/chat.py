"""Chat-driven website generation for a project."""

from typing import Iterable, List, NamedTuple, Optional, Tuple, Union

import structlog

from ..domain.errors import EmptyMessageError
from ..domain.models import ChatMessage, Language, Project, new_project
from ..i18n import translate
from ..repositories.projects import ProjectStore
from .guard import GenerationGuard
from .llm import CodeGenerationService
from .parser import attach_file, parse_response
from .prompts import recent_history

logger = structlog.get_logger()

Attachment = Tuple[str, str]


class TurnResult(NamedTuple):
    project: Project
    reply: ChatMessage


class ChatService:
    """Runs chat turns: prompt, one model call, parse, persist."""

    def __init__(
        self,
        projects: ProjectStore,
        generator: CodeGenerationService,
        guard: Optional[GenerationGuard] = None,
    ):
        self.projects = projects
        self.generator = generator
        self.guard = guard or GenerationGuard()

    def create_project(self, prompt: str) -> Project:
        """Create and persist a project from the first request."""
        if not prompt or not prompt.strip():
            raise EmptyMessageError("Project prompt is empty")
        return self.projects.create(new_project(prompt))

    def get_project(self, project_id: str) -> Project:
        return self.projects.get(project_id)

    def is_generating(self, project_id: str) -> bool:
        return self.guard.is_generating(project_id)

    async def start(self, project_id: str, language: Union[Language, str] = Language.EN) -> Project:
        """Generate the first website for a project that only has its opening request."""
        async with self.guard.acquire(project_id):
            project = self.projects.get(project_id)
            messages = project.messages
            if len(messages) == 1 and messages[0].role == "user" and not project.code:
                await self._generate(project, messages[0].text, [], "", language)
            return project

    async def submit(
        self,
        project_id: str,
        text: str,
        language: Union[Language, str] = Language.EN,
        attachments: Iterable[Attachment] = (),
    ) -> TurnResult:
        """Run one chat turn.

        Raises EmptyMessageError before anything happens when there is no
        visible text, and GenerationInProgress while the project is busy.
        """
        for name, content in attachments:
            text = attach_file(text, name, content)
        if not text or not text.strip():
            raise EmptyMessageError("Message is empty")

        async with self.guard.acquire(project_id):
            project = self.projects.get(project_id)
            history = recent_history([m.text for m in project.messages])
            project.append(ChatMessage(role="user", text=text))
            self.projects.save_transcript(project)

            reply = await self._generate(project, text, history, project.code, language)
            return TurnResult(project, reply)

    async def _generate(
        self,
        project: Project,
        request: str,
        history: List[str],
        current_code: str,
        language: Union[Language, str],
    ) -> ChatMessage:
        response = await self.generator.generate(request, history, current_code, language)
        parsed = parse_response(response, translate(language, "websiteReady"))
        if parsed.code:
            project.current_code = parsed.code

        reply = project.append(ChatMessage(role="model", text=parsed.message))
        self.projects.save_transcript(project)
        logger.info(
            "turn_complete",
            project_id=project.id,
            messages=len(project.messages),
            code_updated=parsed.code is not None,
        )
        return reply
