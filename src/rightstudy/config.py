"""Runtime settings read from the environment, plus logging setup.

Env Vars (optional)
- GEMINI_API_KEY (or API_KEY)   key for the generative AI service
- RIGHTSTUDY_CHAT_MODEL         model for the text assistant and course tutor
- RIGHTSTUDY_VOICE_MODEL        native-audio model for the live tutor
- RIGHTSTUDY_VOICE_NAME         prebuilt voice used by the live tutor
- RIGHTSTUDY_LOG_LEVEL          DEBUG | INFO | WARNING | ERROR
"""
import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from google import genai
from rich.logging import RichHandler

DEFAULT_CHAT_MODEL = "gemini-3-pro-preview"
DEFAULT_VOICE_MODEL = "gemini-2.5-flash-native-audio-preview-09-2025"
DEFAULT_VOICE_NAME = "Zephyr"


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(name) or default


@dataclass
class Settings:
    api_key: Optional[str] = field(default_factory=lambda: _env("GEMINI_API_KEY") or _env("API_KEY"))
    chat_model: str = field(default_factory=lambda: _env("RIGHTSTUDY_CHAT_MODEL", DEFAULT_CHAT_MODEL))
    voice_model: str = field(default_factory=lambda: _env("RIGHTSTUDY_VOICE_MODEL", DEFAULT_VOICE_MODEL))
    voice_name: str = field(default_factory=lambda: _env("RIGHTSTUDY_VOICE_NAME", DEFAULT_VOICE_NAME))
    log_level: str = field(default_factory=lambda: _env("RIGHTSTUDY_LOG_LEVEL", "WARNING").upper())

    @property
    def ai_enabled(self) -> bool:
        return bool(self.api_key)


def get_client(settings: Settings):
    """Build a Gemini client for the configured key."""
    return genai.Client(api_key=settings.api_key)


def configure_logging(level: str = "WARNING") -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )
