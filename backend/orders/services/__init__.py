"""
Orders services package.

- OrderSessionService: persisted cart per operator and its status transitions
- OrderActivityLogService: audit sink for removed lines and cleared carts
- OrderSessionStore: the live, debounced cart of one logged-in operator
"""

from .session_service import OrderSessionService
from .activity_service import OrderActivityLogService
from .store import OrderSessionStore, DatabaseSessionBackend

__all__ = [
    "OrderSessionService",
    "OrderActivityLogService",
    "OrderSessionStore",
    "DatabaseSessionBackend",
]
