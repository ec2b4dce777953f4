"""Exceptions raised by the studio services."""


class StudioError(Exception):
    """Base class for studio errors."""
    pass


class EmptyMessageError(StudioError, ValueError):
    """Raised when a submission has no visible text."""
    pass


class ProjectNotFound(StudioError, LookupError):
    """Raised when a project id has nothing stored for it."""

    def __init__(self, project_id: str):
        super().__init__(f"Project {project_id} not found")
        self.project_id = project_id


class GenerationInProgress(StudioError):
    """Raised when a project already has a generation in flight."""

    def __init__(self, project_id: str):
        super().__init__(f"Project {project_id} is already generating")
        self.project_id = project_id


class DataImportError(StudioError, ValueError):
    """Raised when an imported data file cannot be parsed."""
    pass


class AuthError(StudioError):
    """Identity provider failure carrying a provider error code."""

    def __init__(self, code: str, message: str = ""):
        super().__init__(message or code)
        self.code = code


class CorruptProjectError(ProjectNotFound):
    """Raised when a project's stored transcript cannot be read.

    The stored value is left untouched so it is never overwritten by a
    later save.
    """
    pass
