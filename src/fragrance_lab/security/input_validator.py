"""
Input validation and sanitization for user chat messages.
"""

import re

from .exceptions import ValidationError


class InputValidator:
    """
    Validates and sanitizes user input.

    Prevents prompt injection and validates input length/content.
    """

    MAX_QUERY_LENGTH = 500

    INJECTION_PATTERNS = [
        r"ignore\s+(all\s+)?(previous|above|all)\s+instructions?",
        r"(system|assistant|prompt)\s*:",
        r"you\s+are\s+now",
        r"forget\s+everything",
        r"disregard\s+(the\s+)?(above|previous)",
        r"override\s+(previous|above|all)",
        r"pretend\s+to\s+be",
        r"```",
    ]

    @staticmethod
    def sanitize_query(query: str, max_length: int = None) -> str:
        """
        Sanitize a user chat message.

        :param query: User's message
        :param max_length: Override for MAX_QUERY_LENGTH
        :return: Trimmed message, stored and sent to the model as typed (may be
            empty; blank turns are rejected by the turn processor)
        :raises ValidationError: If message is invalid or contains malicious content
        """
        limit = max_length or InputValidator.MAX_QUERY_LENGTH

        if not isinstance(query, str):
            raise ValidationError("Message must be a string")

        if len(query) > limit:
            raise ValidationError(f"Message exceeds maximum length of {limit} characters")

        for pattern in InputValidator.INJECTION_PATTERNS:
            if re.search(pattern, query, re.IGNORECASE):
                raise ValidationError(
                    "Message contains potentially malicious content. Please rephrase it."
                )

        return query.replace("\x00", "").strip()

