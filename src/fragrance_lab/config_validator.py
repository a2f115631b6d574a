"""
Configuration validation utilities.

Reads environment values and fails early with actionable messages.
"""
import os
import warnings
from typing import Optional
from .exceptions import ConfigurationError


def get_required_env(key: str, description: str = None) -> str:
    """
    Get required environment variable with validation.

    :param key: Environment variable name
    :param description: Human-readable description for error messages
    :return: Environment variable value
    :raises: ConfigurationError if not set or invalid
    """
    value = os.getenv(key)

    if not value:
        desc = description or key
        raise ConfigurationError(
            f"{key} is required but not set.\n"
            f"Please set it using one of these methods:\n"
            f"  1. Environment variable: export {key}='your-value'\n"
            f"  2. .env file: Create .env in project root with {key}=your-value\n\n"
            f"Description: {desc}"
        )

    if _is_placeholder(value):
        raise ConfigurationError(
            f"{key} appears to be a placeholder value.\n"
            f"Please set a real value. Current value: {_mask_secret(value)}"
        )

    return value


def get_optional_env(key: str, default: Optional[str] = None) -> Optional[str]:
    """
    Get optional environment variable.

    :param key: Environment variable name
    :param default: Default value if not set
    :return: Environment variable value or default
    """
    value = os.getenv(key, default)

    if value and _is_placeholder(value):
        warnings.warn(
            f"{key} appears to be a placeholder. Using default or None.",
            UserWarning
        )
        return default

    return value


def get_int_env(key: str, default: int) -> int:
    """Read an integer variable, raising ConfigurationError on bad input."""
    raw = get_optional_env(key, str(default))
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}")


def get_float_env(key: str, default: float) -> float:
    """Read a float variable, raising ConfigurationError on bad input."""
    raw = get_optional_env(key, str(default))
    try:
        return float(raw)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{key} must be a number, got {raw!r}")


def _is_placeholder(value: str) -> bool:
    """Check if value is a placeholder."""
    if not value:
        return False

    placeholder_patterns = [
        "your_",
        "placeholder",
        "xxx",
        "sk-0000",
        "gsk_0000",
        "replace",
        "todo",
    ]

    value_lower = value.lower()
    return any(pattern in value_lower for pattern in placeholder_patterns)


def _mask_secret(secret: str, show_chars: int = 4) -> str:
    """
    Mask secret for safe display in error messages.

    :param secret: Secret to mask
    :param show_chars: Number of characters to show at start/end
    :return: Masked secret
    """
    if not secret or len(secret) <= show_chars * 2:
        return "***"

    return f"{secret[:show_chars]}...{secret[-show_chars:]}"


def validate_path(path: str, path_name: str, must_exist: bool = False) -> str:
    """
    Validate file/directory path.

    :param path: Path to validate
    :param path_name: Name of the path (for error messages)
    :param must_exist: Whether path must exist
    :return: Validated path
    :raises: ConfigurationError if invalid
    """
    if not path:
        raise ConfigurationError(f"{path_name} is required.")

    if must_exist and not os.path.exists(path):
        raise ConfigurationError(
            f"{path_name} does not exist: {path}\n"
            f"Please check the path and ensure the file exists."
        )

    return path
