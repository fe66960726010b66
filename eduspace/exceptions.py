"""Exception hierarchy for EduSpace."""


class EduSpaceError(Exception):
    """Base exception for all application errors."""
    pass


class GenerationError(EduSpaceError):
    """Raised when the generative backend fails or returns an unusable payload."""

    def __init__(self, operation: str, original_error: Exception):
        self.operation = operation
        self.original_error = original_error
        super().__init__(f"{operation} failed: {original_error}")


class PreconditionError(EduSpaceError):
    """Raised when the student asks for something the current state does not allow.

    The message is shown to the student as-is.
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)
