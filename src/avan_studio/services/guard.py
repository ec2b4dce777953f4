"""Single-slot generation guard per project."""

import contextlib
from typing import AsyncIterator, Set

import structlog

from ..domain.errors import GenerationInProgress

logger = structlog.get_logger()


class GenerationGuard:
    """Allows at most one in-flight generation per project.

    A busy project rejects new work immediately instead of queueing it.
    All access happens on the event loop, so the check-and-claim in
    ``acquire`` has no await between its steps.
    """

    def __init__(self) -> None:
        self._active: Set[str] = set()

    def is_generating(self, project_id: str) -> bool:
        return project_id in self._active

    @contextlib.asynccontextmanager
    async def acquire(self, project_id: str) -> AsyncIterator[None]:
        """Hold the project's slot for the duration of the block."""
        if project_id in self._active:
            logger.warning("generation_rejected_busy", project_id=project_id)
            raise GenerationInProgress(project_id)
        self._active.add(project_id)
        try:
            yield
        finally:
            self._active.discard(project_id)
