"""Domain models for the website studio."""

import threading
import time
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

from ..services import parser

PROJECT_NAME_LENGTH = 20

_id_lock = threading.Lock()
_last_timestamp = 0


def now_ms() -> int:
    """Current wall clock time in milliseconds."""
    return int(time.time() * 1000)


def next_timestamp() -> int:
    """Millisecond timestamp that never repeats within this process."""
    global _last_timestamp
    with _id_lock:
        ts = max(now_ms(), _last_timestamp + 1)
        _last_timestamp = ts
        return ts


class Language(str, Enum):
    """Supported interface and generation languages."""

    HE = "he"
    EN = "en"
    IT = "it"
    FR = "fr"
    DE = "de"
    PL = "pl"
    DA = "da"
    NL = "nl"
    ES = "es"

    @property
    def direction(self) -> str:
        return "rtl" if self is Language.HE else "ltr"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Language":
        """Parse a stored language code, falling back to English."""
        try:
            return cls(value)
        except ValueError:
            return cls.EN


Role = Literal["user", "model"]


class CamelModel(BaseModel):
    """Base model serialized with camelCase field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatMessage(CamelModel):
    """One transcript entry. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(next_timestamp()))
    role: Role
    text: str
    timestamp: int = Field(default_factory=now_ms)

    @computed_field(alias="displayText")
    @property
    def display_text(self) -> str:
        """Text as shown in the chat, with attached files collapsed."""
        return parser.display_text(self.text)


class Project(CamelModel):
    """A chat transcript plus the latest generated website."""

    id: str = Field(default_factory=lambda: str(next_timestamp()))
    name: str
    created_at: int = Field(default_factory=now_ms)
    messages: List[ChatMessage] = []
    current_code: Optional[str] = None

    def append(self, message: ChatMessage) -> ChatMessage:
        self.messages.append(message)
        return message

    @property
    def code(self) -> str:
        return self.current_code or ""


def new_project(prompt: str) -> Project:
    """Create a project seeded with the user's first request."""
    created = next_timestamp()
    return Project(
        id=str(created),
        name=prompt[:PROJECT_NAME_LENGTH] + "...",
        created_at=created,
        messages=[ChatMessage(id="init", role="user", text=prompt, timestamp=created)],
    )


class UserProfile(CamelModel):
    """Signed-in user as reported by the identity provider."""

    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    photo_url: Optional[str] = Field(default=None, alias="photoURL")


ACCESSIBILITY_TOGGLES = (
    "large_text",
    "word_spacing",
    "letter_spacing",
    "grayscale",
    "invert_colors",
    "highlight_links",
    "big_cursor",
    "reading_guide",
    "hide_images",
    "readable_font",
)


class AccessibilitySettings(CamelModel):
    """Display and accessibility preferences."""

    theme: Literal["light", "dark"] = "dark"
    sound_enabled: bool = True

    large_text: bool = False
    word_spacing: bool = False
    letter_spacing: bool = False
    grayscale: bool = False
    invert_colors: bool = False
    highlight_links: bool = False
    big_cursor: bool = False
    reading_guide: bool = False
    hide_images: bool = False
    readable_font: bool = False

    high_contrast: bool = False
    reduce_motion: bool = False
    screen_reader_optimized: bool = False

    def reset_accessibility(self) -> "AccessibilitySettings":
        """Copy with every accessibility toggle switched off."""
        return self.model_copy(update={name: False for name in ACCESSIBILITY_TOGGLES})


class UserPreferences(CamelModel):
    """Onboarding flags."""

    has_seen_welcome: bool = False
    accepted_terms: bool = False
