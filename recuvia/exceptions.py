# Error taxonomy shared by the request handlers.
# Every error carries the HTTP status the API layer answers with.


class RecuviaError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthenticationError(RecuviaError):
    """No session, or the session could not be validated"""
    status_code = 401


class PermissionDeniedError(RecuviaError):
    """Caller is authenticated but not allowed to touch the resource"""
    status_code = 403


class ValidationError(RecuviaError):
    """Missing or malformed request fields"""
    status_code = 400


class NotFoundError(RecuviaError):
    status_code = 404


class StorageError(RecuviaError):
    """Object upload, URL issuance, fetch or delete failed. Never retried."""


class EmbeddingError(RecuviaError):
    """Embedding pipeline failed or produced a vector of the wrong size"""


class PersistenceError(RecuviaError):
    """Database read/write failed (writes only after exhausting retries)"""
