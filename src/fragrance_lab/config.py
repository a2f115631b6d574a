from dataclasses import dataclass
from typing import Optional


@dataclass
class FragranceLabConfig:
    # LLM
    llm_provider: str = "openai"
    llm_model: str = "gpt-4o-mini"
    llm_temperature: float = 0.7
    llm_timeout_seconds: float = 30.0

    # Catalog (None uses the bundled essential oil list)
    oil_catalog_path: Optional[str] = None

    # Conversation
    history_max_messages: int = 20
    max_input_length: int = 500

    # Sessions idle longer than this are discarded
    session_ttl_seconds: int = 24 * 60 * 60

    # Guards
    csrf_token_ttl_seconds: int = 24 * 60 * 60
    submission_debounce_seconds: float = 2.0

    # Performance
    warmup_on_start: bool = True
