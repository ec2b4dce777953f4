"""Project persistence on top of a key/value store."""

import json
from typing import List, Optional

import structlog
from pydantic import TypeAdapter, ValidationError

from ..domain.errors import CorruptProjectError, ProjectNotFound
from ..domain.models import ChatMessage, Project
from .base import KeyValueStore

logger = structlog.get_logger()

SAVED_PROJECTS_KEY = "savedProjects"
DEFAULT_PROJECT_NAME = "Untitled Project"

_messages_adapter = TypeAdapter(List[ChatMessage])
_projects_adapter = TypeAdapter(List[Project])

# Display text is derived from the message text and never stored.
_MESSAGES_EXCLUDE = {"__all__": {"display_text"}}
_PROJECTS_EXCLUDE = {"__all__": {"messages": _MESSAGES_EXCLUDE}}


def messages_key(project_id: str) -> str:
    return f"project_{project_id}_messages"


def code_key(project_id: str) -> str:
    return f"project_{project_id}_code"


def meta_key(project_id: str) -> str:
    return f"project_{project_id}_meta"


class ProjectStore:
    """Reads and writes projects, their transcripts and the saved list."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def save_transcript(self, project: Project) -> None:
        """Write the transcript and artifact under the per-project keys."""
        self.store.set(
            messages_key(project.id),
            _messages_adapter.dump_json(
                project.messages, by_alias=True, exclude=_MESSAGES_EXCLUDE
            ).decode(),
        )
        self.store.set(code_key(project.id), project.code)

    def save_meta(self, project: Project) -> None:
        meta = {"id": project.id, "name": project.name, "createdAt": project.created_at}
        self.store.set(meta_key(project.id), json.dumps(meta))

    def create(self, project: Project) -> Project:
        self.save_meta(project)
        self.save_transcript(project)
        logger.info("project_created", project_id=project.id, name=project.name)
        return project

    def load_messages(self, project_id: str) -> Optional[List[ChatMessage]]:
        raw = self.store.get(messages_key(project_id))
        if raw is None:
            return None
        try:
            return _messages_adapter.validate_json(raw)
        except ValidationError as e:
            logger.error("transcript_load_error", project_id=project_id, error=str(e))
            raise CorruptProjectError(project_id) from e

    def load_code(self, project_id: str) -> Optional[str]:
        return self.store.get(code_key(project_id))

    def open(self, project: Project) -> Project:
        """Overlay the stored transcript and artifact onto a project snapshot."""
        messages = self.load_messages(project.id)
        code = self.load_code(project.id)
        return project.model_copy(
            update={
                "messages": messages if messages is not None else list(project.messages),
                "current_code": code or project.current_code or None,
            }
        )

    def get(self, project_id: str) -> Project:
        """Load a project by id from its metadata or the saved list."""
        raw_meta = self.store.get(meta_key(project_id))
        project = None
        if raw_meta is not None:
            try:
                project = Project.model_validate_json(raw_meta)
            except ValidationError as e:
                logger.error("project_meta_load_error", project_id=project_id, error=str(e))
        if project is None:
            project = next((p for p in self.list_saved_projects() if p.id == project_id), None)
        if project is None:
            logger.warning("project_not_found", project_id=project_id)
            raise ProjectNotFound(project_id)
        return self.open(project)

    def list_saved_projects(self) -> List[Project]:
        raw = self.store.get(SAVED_PROJECTS_KEY)
        if not raw:
            return []
        try:
            return _projects_adapter.validate_json(raw)
        except ValidationError as e:
            logger.error("saved_projects_load_error", error=str(e))
            return []

    def save_project(self, project: Project, name: Optional[str] = None) -> Project:
        """Snapshot a project into the saved list, most recent first.

        Any earlier snapshot with the same id is dropped. The list is never
        trimmed.
        """
        if name is None:
            name = project.name
        snapshot = project.model_copy(
            update={"name": name.strip() or DEFAULT_PROJECT_NAME},
            deep=True,
        )
        saved = [p for p in self.list_saved_projects() if p.id != snapshot.id]
        saved.insert(0, snapshot)
        self.store.set(
            SAVED_PROJECTS_KEY,
            _projects_adapter.dump_json(saved, by_alias=True, exclude=_PROJECTS_EXCLUDE).decode(),
        )
        self.save_meta(snapshot)
        logger.info("project_saved", project_id=snapshot.id, name=snapshot.name, saved_count=len(saved))
        return snapshot
