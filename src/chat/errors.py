# errors.py

class ChatError(Exception):
    """Base class for all chat core errors."""
    pass


class SessionNotFound(ChatError):
    """Raised when an operation targets a session id the store does not hold."""
    def __init__(self, session_id: str):
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


class ProviderError(ChatError):
    """Raised when the answer provider fails (network, HTTP, empty reply)."""
    def __init__(self, message: str, provider: str | None = None):
        super().__init__(message)
        self.provider = provider or "unknown_provider"


class SnapshotError(ChatError):
    """Raised when a persisted session snapshot fails structural validation."""
    pass


class ConversationBusy(ChatError):
    """Raised when a submit is attempted while an answer is still pending."""
    pass
