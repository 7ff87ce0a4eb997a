"""Error types for the coach module."""


class SessionNotFoundError(Exception):
    """Raised when a session id is not known to the store or registry."""

    def __init__(self, session_id: str, message: str | None = None):
        self.session_id = session_id
        self.message = message or f"Unknown session: {session_id}"
        super().__init__(self.message)
