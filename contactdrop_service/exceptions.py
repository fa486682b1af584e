class ContactDropError(Exception):
    """Base class for service-layer errors."""


class SessionNotFoundError(ContactDropError):
    def __init__(self, session_id: str):
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


class SessionFullError(ContactDropError):
    def __init__(self, session_id: str, limit: int):
        super().__init__(f"Session {session_id} already holds {limit} contacts")
        self.session_id = session_id
        self.limit = limit
