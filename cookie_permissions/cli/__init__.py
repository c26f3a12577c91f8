"""CLI package for the cookie permission manager."""

from .interaction import ConsoleInteraction
from .main import app

__all__ = ["app", "ConsoleInteraction"]
