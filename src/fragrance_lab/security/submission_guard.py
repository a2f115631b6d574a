import logging
import secrets
import threading
from dataclasses import dataclass
from time import monotonic
from typing import Callable, Optional, TypeVar

from .exceptions import DuplicateSubmissionError
from .ttl_store import TTLStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_DEBOUNCE_SECONDS = 2.0


@dataclass
class SubmissionState:
    submitting: bool
    last_submission_time: float
    submission_id: str


class SubmissionGuard:
    """
    Debounces repeated submissions of the same form.

    A submission is refused while one is in flight for the same form id, or
    when the previous one started less than `debounce` seconds ago.
    """

    def __init__(
        self,
        debounce: float = DEFAULT_DEBOUNCE_SECONDS,
        clock: Callable[[], float] = monotonic,
    ):
        self._debounce = debounce
        self._clock = clock
        self._lock = threading.Lock()
        self._states: TTLStore[SubmissionState] = TTLStore(max(debounce, 1.0) * 60, clock=clock)

    def guard(self, form_id: str, submit: Callable[[], T], debounce: Optional[float] = None) -> T:
        """
        Run `submit` unless the form is in flight or was just submitted.

        :return: Whatever `submit` returns
        :raises DuplicateSubmissionError: when refused; `submit` is not called
        """
        window = self._debounce if debounce is None else debounce
        self._states.sweep()

        # Check and in-flight mark happen under one lock
        with self._lock:
            now = self._clock()
            state = self._states.get(form_id)
            if state is not None and (state.submitting or now - state.last_submission_time < window):
                logger.info(f"Refused duplicate submission for form {form_id}")
                raise DuplicateSubmissionError("This request was already submitted. Please wait a moment.")

            submission_id = secrets.token_hex(4)
            self._states.put(form_id, SubmissionState(True, now, submission_id))

        try:
            return submit()
        finally:
            with self._lock:
                current = self._states.get(form_id)
                if current is not None and current.submission_id == submission_id:
                    # Keep the timestamp for the debounce window, clear in-flight flag
                    current.submitting = False

    def is_submitting(self, form_id: str) -> bool:
        state = self._states.get(form_id)
        return bool(state and state.submitting)

    def get_last_submission_time(self, form_id: str) -> float:
        state = self._states.get(form_id)
        return state.last_submission_time if state else 0.0

    def reset(self, form_id: str) -> None:
        with self._lock:
            self._states.invalidate(form_id)
