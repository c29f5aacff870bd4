"""Core module - foundational components."""

from review_engine.core.database import get_db
from review_engine.core.exceptions import AppException
from review_engine.core.logging import get_logger

__all__ = ["get_db", "AppException", "get_logger"]
