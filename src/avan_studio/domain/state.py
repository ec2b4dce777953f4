"""Application state shared by the API handlers."""

from typing import Optional

from pydantic import BaseModel

from .models import AccessibilitySettings, Language, UserPreferences, UserProfile


class AppState(BaseModel):
    """Session state for the single local user.

    Loaded from the preference store at startup and handed to request
    handlers through dependencies. Writes go back through the stores; this
    object only mirrors what is current.
    """

    user: Optional[UserProfile] = None
    current_project_id: Optional[str] = None
    language: Language = Language.EN
    settings: AccessibilitySettings = AccessibilitySettings()
    preferences: UserPreferences = UserPreferences()

    @property
    def signed_in(self) -> bool:
        return self.user is not None

    def sign_out(self) -> None:
        self.user = None
        self.current_project_id = None
