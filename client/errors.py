from typing import Optional


class AskQLError(Exception):
    """Base class for failures that end up in front of the user."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ValidationError(AskQLError):
    """Candidate file rejected before any network call."""


class SessionCreationError(AskQLError):
    pass


class UploadBindError(AskQLError):
    """The session exists server-side but the file never got bound to it."""

    def __init__(self, message: str, session_id: str, status_code: Optional[int] = None):
        super().__init__(message, status_code)
        self.session_id = session_id


class QueryExecutionError(AskQLError):
    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        generated_sql: Optional[str] = None,
    ):
        super().__init__(message, status_code)
        self.generated_sql = generated_sql


class SessionExpiredError(QueryExecutionError):
    pass


class SessionTerminationError(AskQLError):
    """Logged when the best-effort delete fails; never raised to the UI."""


class NoActiveSessionError(AskQLError):
    pass


class EmptyQueryError(AskQLError):
    pass


class OperationInFlightError(AskQLError):
    pass
