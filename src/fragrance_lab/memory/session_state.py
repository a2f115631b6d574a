"""
Session state management.

One ConversationSession per session id. Turns within a session are strictly
sequential; distinct sessions share no mutable state.
"""
import logging
import threading
from dataclasses import dataclass
from time import monotonic
from typing import Callable, Optional, Tuple, Union

from ..conversation.state import ConversationState
from ..exceptions import TurnInProgress
from ..security.ttl_store import TTLStore
from ..turn.processor import TurnProcessor, TurnResult
from ..turn.requests import TurnRequest

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TTL = 24 * 60 * 60


@dataclass(frozen=True)
class TurnTicket:
    """Freshness token for an outstanding turn."""
    session_id: str
    sequence: int


class ConversationSession:
    """
    Holds the current ConversationState of one session.

    Purpose:
    - Enforce the loading flag (one outstanding turn at a time)
    - Drop responses that arrive after a newer turn started
    - Surface turn errors on the state's error field
    """

    def __init__(self, state: ConversationState):
        self._state = state
        self._sequence = 0
        self._lock = threading.Lock()

    @property
    def state(self) -> ConversationState:
        return self._state

    @property
    def session_id(self) -> str:
        return self._state.session_id

    @property
    def sequence(self) -> int:
        return self._sequence

    def begin_turn(self) -> Tuple[TurnTicket, ConversationState]:
        """
        Mark a turn as outstanding.

        :return: (ticket, state the turn must be processed against)
        :raises TurnInProgress: if a previous turn has not resolved
        """
        with self._lock:
            if self._state.loading:
                raise TurnInProgress("Please wait for the current reply before sending another message.")
            snapshot = self._state
            self._sequence += 1
            self._state = snapshot.with_loading(True)
            return TurnTicket(snapshot.session_id, self._sequence), snapshot

    def apply(self, ticket: TurnTicket, result: TurnResult) -> bool:
        """
        Apply a turn result if its ticket is still the latest.

        :return: True if applied, False if the result was stale
        """
        with self._lock:
            if ticket.session_id != self._state.session_id or ticket.sequence != self._sequence:
                logger.info(
                    f"Discarding stale turn {ticket.sequence} for session {ticket.session_id} "
                    f"(latest is {self._sequence})"
                )
                return False

            new_state = result.state
            if not result.applied and result.error is not None:
                new_state = new_state.with_error(result.error.message)
            self._state = new_state.with_loading(False)
            return True

    def abandon(self, ticket: TurnTicket) -> None:
        """Give up on an outstanding turn; its eventual result becomes stale."""
        with self._lock:
            if ticket.sequence == self._sequence:
                self._sequence += 1
                self._state = self._state.with_loading(False)

    def submit(self, processor: TurnProcessor, request: Union[TurnRequest, str]) -> TurnResult:
        """
        Run a full turn through `processor` and apply its result.

        :raises TurnInProgress: if a previous turn is outstanding
        """
        ticket, snapshot = self.begin_turn()
        try:
            result = processor.process_turn(snapshot, request)
        except Exception:
            self.abandon(ticket)
            raise
        self.apply(ticket, result)
        return result


class ConversationStateManager:
    """
    Manages conversation sessions per session ID.

    A session that sees no activity for `ttl` seconds is discarded; expired
    sessions are swept whenever a new one is created.
    """

    def __init__(self, ttl: float = DEFAULT_SESSION_TTL, clock: Callable[[], float] = monotonic):
        self._sessions: TTLStore[ConversationSession] = TTLStore(ttl, clock=clock)

    def create(self, session_id: Optional[str] = None) -> ConversationSession:
        """
        Create a new session (replacing any existing one with the same id).

        :param session_id: Session identifier, generated if None
        :return: ConversationSession in the welcome phase
        """
        expired = self._sessions.sweep()
        if expired:
            logger.info(f"Discarded {expired} expired session(s)")
        session = ConversationSession(ConversationState.create(session_id))
        self._sessions.put(session.session_id, session)
        return session

    def get(self, session_id: str) -> Optional[ConversationSession]:
        session = self._sessions.get(session_id)
        if session is not None:
            self._sessions.touch(session_id)
        return session

    def get_or_create(self, session_id: str) -> ConversationSession:
        session = self._sessions.setdefault(
            session_id, lambda: ConversationSession(ConversationState.create(session_id))
        )
        self._sessions.touch(session_id)
        return session

    def clear_session(self, session_id: str) -> None:
        self._sessions.invalidate(session_id)

    def clear_all(self) -> None:
        self._sessions.clear()

    def has_session(self, session_id: str) -> bool:
        return self._sessions.get(session_id) is not None

    def __len__(self) -> int:
        return len(self._sessions)
