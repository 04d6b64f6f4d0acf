"""Application configuration utilities."""

from .logging import CustomJsonFormatter, setup_logging
from .settings import DEFAULT_OPENAI_MODEL, Settings, get_settings

__all__ = [
    "DEFAULT_OPENAI_MODEL",
    "CustomJsonFormatter",
    "Settings",
    "get_settings",
    "setup_logging",
]
