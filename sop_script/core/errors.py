"""
Domain-specific exceptions for the SOP Script service.

The compiler, validator and highlighter do not raise for well-typed input;
their problems are returned as diagnostics. These exceptions cover the
places where a caller asks for a hard failure (strict compilation, export of
an invalid SOP, unreadable input) and are mapped to HTTP status codes in the
API layer.
"""

from typing import Any


class SopScriptError(Exception):
    """Base exception for all SOP Script domain errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(SopScriptError):
    """
    Raised when input cannot be interpreted as an SOP.

    Examples:
    - Malformed SOP JSON document given to the CLI
    - Document that does not match the SOP model

    HTTP Status: 400 Bad Request
    """

    pass


class NotFoundError(SopScriptError):
    """
    Raised when a requested resource does not exist.

    Examples:
    - SOP file path does not exist

    HTTP Status: 404 Not Found
    """

    pass


class CompilationError(SopScriptError):
    """
    Raised when compiled output cannot be treated as final.

    Examples:
    - Unknown condition operator in strict compilation
    - Export requested for an SOP that has validation errors

    HTTP Status: 422 Unprocessable Entity
    """

    pass


# HTTP Status Code Mapping
ERROR_STATUS_MAP = {
    ValidationError: 400,
    NotFoundError: 404,
    CompilationError: 422,
}


def get_status_code(error: Exception) -> int:
    """
    Get the HTTP status code for a given exception.

    Args:
        error: The exception instance

    Returns:
        HTTP status code (defaults to 500 for unknown errors)
    """
    return ERROR_STATUS_MAP.get(type(error), 500)
