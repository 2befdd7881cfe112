"""Database models."""
from .check_event import CheckEventRow

__all__ = ["CheckEventRow"]
