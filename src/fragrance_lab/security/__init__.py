"""
Security module: input validation, CSRF tokens and submission debouncing.
"""

from .exceptions import SecurityError, ValidationError, CSRFError, DuplicateSubmissionError
from .input_validator import InputValidator
from .ttl_store import TTLStore
from .csrf import CSRFTokenStore
from .submission_guard import SubmissionGuard

__all__ = [
    "SecurityError",
    "ValidationError",
    "CSRFError",
    "DuplicateSubmissionError",
    "InputValidator",
    "TTLStore",
    "CSRFTokenStore",
    "SubmissionGuard",
]
