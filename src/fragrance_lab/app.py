"""
Public application facade for the Fragrance Lab conversation core.

This is the single stable entry point for the library.
"""
import logging
from typing import Optional

from .catalog import OilCatalog
from .config import FragranceLabConfig
from .conversation.state import ConversationState
from .exceptions import AgentNotInitializedError
from .llm_factory import get_llm_instance
from .schemas import ChatResponse
from .service import FragranceLabService
from .turn import LangChainLanguageModel, LanguageModel

logger = logging.getLogger(__name__)


class FragranceLabApp:
    """
    Public application facade.

    All dependency wiring and factory usage is encapsulated here.

    Usage:
        config = load_config_from_env()
        app = FragranceLabApp(config)
        app.initialize()
        state = app.start_session()
        response = app.chat(state.session_id, "Something fresh for summer")
    """

    def __init__(self, config: FragranceLabConfig):
        self._config = config
        self._service: Optional[FragranceLabService] = None

    def initialize(
        self,
        language_model: Optional[LanguageModel] = None,
        catalog: Optional[OilCatalog] = None,
    ) -> None:
        """
        Wire collaborators and warm up the service. Call once.

        :param language_model: Override the configured provider (tests, demos)
        :param catalog: Override the configured oil catalog
        """
        if self._service:
            return

        if language_model is None:
            chat_model = get_llm_instance(
                self._config.llm_provider,
                self._config.llm_model,
                temperature=self._config.llm_temperature,
                timeout=self._config.llm_timeout_seconds,
            )
            language_model = LangChainLanguageModel(chat_model)

        service = FragranceLabService(self._config)
        service.set_language_model(language_model)
        if catalog is not None:
            service.set_catalog(catalog)
        if self._config.warmup_on_start:
            service.warmup()

        self._service = service
        logger.info(
            f"Fragrance Lab initialized (provider={self._config.llm_provider}, model={self._config.llm_model})"
        )

    @property
    def service(self) -> FragranceLabService:
        self._ensure_initialized()
        return self._service

    def start_session(self, session_id: Optional[str] = None) -> ConversationState:
        return self.service.start_session(session_id)

    def get_state(self, session_id: str) -> Optional[ConversationState]:
        return self.service.get_state(session_id)

    def end_session(self, session_id: str) -> None:
        self.service.end_session(session_id)

    def chat(self, session_id: str, user_message: str) -> ChatResponse:
        return self.service.chat(session_id, user_message)

    def regenerate_note(self, session_id: str, category: str, instruction: str) -> ChatResponse:
        return self.service.regenerate_note(session_id, category, instruction)

    def _ensure_initialized(self) -> None:
        if self._service is None:
            raise AgentNotInitializedError("Call initialize() before using the app.")
