"""Application package for the office awards voting service."""

from .main import create_application

__all__ = ["create_application"]
