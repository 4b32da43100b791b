"""
Observability helpers: logging configuration and safe structured logging.
"""

from knowledge_base.observability.log_utils import (
    human_readable_vector,
    log_exception_with_context,
    log_with_context,
    safe_log_value,
)
from knowledge_base.observability.logger import configure_logging

__all__ = [
    "configure_logging",
    "human_readable_vector",
    "log_exception_with_context",
    "log_with_context",
    "safe_log_value",
]
