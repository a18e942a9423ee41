"""
Core module: Configuration, Logging, Exceptions
"""

from knnstore.core.config import settings
from knnstore.core.logging import configure_logging, get_logger

__all__ = ["settings", "configure_logging", "get_logger"]
