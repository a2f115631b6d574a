"""
Configuration loader with validation.
"""
from dotenv import load_dotenv
from .config import FragranceLabConfig
from .config_validator import (
    get_optional_env,
    get_int_env,
    get_float_env,
    validate_path,
)
from .exceptions import ConfigurationError

SUPPORTED_PROVIDERS = ("groq", "openai")


def load_config_from_env(use_dotenv: bool = True) -> FragranceLabConfig:
    """
    Load configuration from environment variables with validation.

    Usage:
        config = load_config_from_env()
        app = FragranceLabApp(config)
        app.initialize()

    :param use_dotenv: Load a local .env file first (disable in production)
    :return: Validated FragranceLabConfig instance
    :raises: ConfigurationError if values are missing or invalid
    """
    if use_dotenv:
        load_dotenv()

    provider = get_optional_env("LLM_PROVIDER", default="openai").lower()
    if provider not in SUPPORTED_PROVIDERS:
        raise ConfigurationError(
            f"LLM_PROVIDER must be one of {list(SUPPORTED_PROVIDERS)}, got {provider!r}"
        )

    default_model = "llama-3.1-8b-instant" if provider == "groq" else "gpt-4o-mini"

    config = FragranceLabConfig(
        llm_provider=provider,
        llm_model=get_optional_env("LLM_MODEL", default=default_model),
        llm_temperature=get_float_env("LLM_TEMPERATURE", 0.7),
        llm_timeout_seconds=get_float_env("LLM_TIMEOUT_SECONDS", 30.0),
        oil_catalog_path=get_optional_env("OIL_CATALOG_PATH"),
        history_max_messages=get_int_env("HISTORY_MAX_MESSAGES", 20),
        max_input_length=get_int_env("MAX_INPUT_LENGTH", 500),
        session_ttl_seconds=get_int_env("SESSION_TTL_SECONDS", 24 * 60 * 60),
        csrf_token_ttl_seconds=get_int_env("CSRF_TOKEN_TTL_SECONDS", 24 * 60 * 60),
        submission_debounce_seconds=get_float_env("SUBMISSION_DEBOUNCE_SECONDS", 2.0),
        warmup_on_start=get_optional_env("WARMUP_ON_START", "true").lower() == "true",
    )

    if config.history_max_messages < 1:
        raise ConfigurationError("HISTORY_MAX_MESSAGES must be at least 1")

    if config.session_ttl_seconds < 1 or config.csrf_token_ttl_seconds < 1:
        raise ConfigurationError("SESSION_TTL_SECONDS and CSRF_TOKEN_TTL_SECONDS must be at least 1")

    if config.oil_catalog_path:
        validate_path(config.oil_catalog_path, "OIL_CATALOG_PATH", must_exist=True)

    return config


def create_config_for_production() -> FragranceLabConfig:
    """
    Create configuration for production deployment.

    Environment variables only; no .env file is read.
    """
    return load_config_from_env(use_dotenv=False)
