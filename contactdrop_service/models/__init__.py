from .sessions import Contact, ContactRequest, CreateSessionRequest, Session

__all__ = [
    "Contact",
    "ContactRequest",
    "CreateSessionRequest",
    "Session",
]
