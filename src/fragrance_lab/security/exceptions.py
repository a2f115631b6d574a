"""
Security-related exceptions.
"""


class SecurityError(Exception):
    """Base exception for security violations."""

    pass


class ValidationError(SecurityError):
    """Raised when input validation fails."""

    pass


class CSRFError(SecurityError):
    """Raised when a CSRF token is missing, expired or does not match."""

    pass


class DuplicateSubmissionError(SecurityError):
    """Raised when a form is submitted again inside the debounce window."""

    pass
