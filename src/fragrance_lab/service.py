import logging
from time import time
from typing import Optional

from .catalog import OilCatalog
from .config import FragranceLabConfig
from .conversation.state import ConversationState
from .exceptions import AgentNotInitializedError
from .memory import ConversationSession, ConversationStateManager
from .schemas import ChatResponse
from .turn import LanguageModel, NewTurn, RegenerateNote, TurnProcessor, TurnResult

logger = logging.getLogger(__name__)


class FragranceLabService:
    """
    Facade over the conversation core.
    The ONLY entry point for the UI layers.
    """

    def __init__(self, config: FragranceLabConfig):
        """
        Composition root.
        Collaborators are injected with the setters below, then warmup()
        builds the turn processor.
        """
        self.config = config

        self._language_model: Optional[LanguageModel] = None
        self._catalog: Optional[OilCatalog] = None
        self._processor: Optional[TurnProcessor] = None
        self._sessions = ConversationStateManager(ttl=config.session_ttl_seconds)

    # ----------------------------
    # Cold-start / Warmup
    # ----------------------------
    def warmup(self) -> None:
        """Load the oil catalog (if not injected) and build the turn processor."""
        if self._language_model is None:
            raise AgentNotInitializedError("Language model is not configured.")
        if self._catalog is None:
            self._catalog = OilCatalog.load(self.config.oil_catalog_path)
            logger.info(f"Loaded oil catalog with {len(self._catalog)} oils")
        self._processor = TurnProcessor(
            model=self._language_model,
            catalog=self._catalog,
            history_max_messages=self.config.history_max_messages,
        )

    @property
    def catalog(self) -> Optional[OilCatalog]:
        return self._catalog

    # ----------------------------
    # Sessions
    # ----------------------------
    def start_session(self, session_id: Optional[str] = None) -> ConversationState:
        """Create a fresh conversation (welcome phase, no messages)."""
        session = self._sessions.create(session_id)
        logger.info(f"Started session {session.session_id}")
        return session.state

    def get_state(self, session_id: str) -> Optional[ConversationState]:
        session = self._sessions.get(session_id)
        return session.state if session else None

    def end_session(self, session_id: str) -> None:
        """Discard a conversation and its state."""
        self._sessions.clear_session(session_id)

    # ----------------------------
    # Turns
    # ----------------------------
    def chat(self, session_id: str, user_message: str) -> ChatResponse:
        """
        Process a user message in a session and return a structured response.

        :raises AgentNotInitializedError: if no language model was injected
        :raises EmptyInput, TurnInProgress: caller errors, state unchanged
        """
        return self._run(session_id, NewTurn(user_message))

    def regenerate_note(self, session_id: str, category: str, instruction: str) -> ChatResponse:
        """
        Regenerate one note category of the current recipe; phase is unchanged.

        :raises MissingRecipe: if the session has no recipe yet
        """
        return self._run(session_id, RegenerateNote(category, instruction))

    def _run(self, session_id: str, request) -> ChatResponse:
        if self._processor is None:
            # Lazy warmup when warmup_on_start is off
            self.warmup()

        session: ConversationSession = self._sessions.get_or_create(session_id)
        start_time = time()
        result = session.submit(self._processor, request)
        latency_ms = int((time() - start_time) * 1000)

        if result.error:
            logger.warning(
                f"Turn issue - Session: {session_id}, Kind: {result.error.kind}, Error: {result.error.message}"
            )
        return self._to_response(session.state, result, latency_ms)

    @staticmethod
    def _to_response(state: ConversationState, result: TurnResult, latency_ms: int) -> ChatResponse:
        violations = []
        if result.validation is not None:
            violations = [
                {"category": v.category, "note": v.note, "reason": v.reason, "suggestion": v.suggestion}
                for v in result.validation.violations
            ]
        return ChatResponse(
            session_id=state.session_id,
            phase=state.phase.value,
            message=result.message.to_dict() if result.message else None,
            state=state.to_dict(),
            error=result.error.message if result.error else None,
            error_kind=result.error.kind if result.error else None,
            violations=violations,
            applied=result.applied,
            latency_ms=latency_ms,
        )

    # ----------------------------
    # Dependency injection setters
    # ----------------------------
    def set_language_model(self, model: LanguageModel) -> None:
        """Inject the language model collaborator."""
        self._language_model = model

    def set_catalog(self, catalog: OilCatalog) -> None:
        """Inject the oil catalog collaborator."""
        self._catalog = catalog
