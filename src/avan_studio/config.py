"""Runtime configuration read from the environment."""

import os
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel

DEFAULT_MODEL = "gemini-2.5-flash"


class AppConfig(BaseModel):
    """Service configuration."""

    gemini_api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    storage_path: Optional[str] = None
    auth_backend: Literal["memory", "firebase"] = "memory"
    firebase_api_key: Optional[str] = None


def load_config() -> AppConfig:
    """Build the config from environment variables and an optional .env file."""
    load_dotenv()
    return AppConfig(
        gemini_api_key=os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY"),
        model=os.getenv("AVAN_MODEL", DEFAULT_MODEL),
        storage_path=os.getenv("AVAN_STORAGE_PATH") or None,
        auth_backend=os.getenv("AVAN_AUTH_BACKEND", "memory").lower(),
        firebase_api_key=os.getenv("FIREBASE_API_KEY"),
    )
