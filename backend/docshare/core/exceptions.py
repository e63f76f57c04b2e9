"""Errors raised by the DocShare client library.

They map onto the three failure categories a form can end in: a local
validation failure, a rejection by the server, and a network or otherwise
unexpected failure.
"""


class DocShareError(Exception):
    pass


class FormValidationError(DocShareError):
    """Local validation failed; nothing was sent to the server."""

    def __init__(self, errors: dict[str, str], message: str = "Please correct the highlighted fields."):
        super().__init__(message)
        self.message = message
        self.errors = dict(errors)

    @property
    def field(self) -> str | None:
        return next(iter(self.errors), None)


class ServerRejectionError(DocShareError):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NetworkError(DocShareError):
    def __init__(self, message: str = "Unexpected error occurred."):
        super().__init__(message)
        self.message = message


class SubmissionInProgressError(DocShareError):
    def __init__(self):
        super().__init__("A submission is already in progress.")
