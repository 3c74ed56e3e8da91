"""Utility functions."""

from src.utils.audit import log_action
from src.utils.cache import MISSING, TTLCache

__all__ = [
    "log_action",
    "TTLCache",
    "MISSING",
]
