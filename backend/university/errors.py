"""Domain exceptions raised by services.

Services raise these instead of `HTTPException` so they stay usable from
scripts; `university.error_handlers` maps them to HTTP responses.
"""


class UniversityError(Exception):
    """Base class for expected, client-facing failures."""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(UniversityError, LookupError):
    """A referenced record does not exist."""
    status_code = 404


class BusinessRuleError(UniversityError, ValueError):
    """A request is well-formed but violates a business rule."""
    status_code = 400
