from .session_store import SessionStore, is_valid_id

__all__ = [
    "SessionStore",
    "is_valid_id",
]
