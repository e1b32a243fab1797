"""
Exceptions raised by the bracket engine.
"""


class BracketEngineError(Exception):
    """Base exception for all engine errors."""
    pass


class ValidationError(BracketEngineError):
    """Raised before any network call when a request is invalid for the match."""

    def __init__(self, message: str, match_id: str = None):
        self.match_id = match_id
        super().__init__(message)


class MutationInFlightError(BracketEngineError):
    """Raised when a mutation is already running for the same match."""

    def __init__(self, match_id: str):
        self.match_id = match_id
        super().__init__(f"A change to match {match_id} is already being saved")


class RemoteServiceError(BracketEngineError):
    """Raised when the remote tournament service fails or cannot be reached."""

    def __init__(self, message: str, status_code: int = None, retryable: bool = True):
        self.status_code = status_code
        self.retryable = retryable
        super().__init__(message)
