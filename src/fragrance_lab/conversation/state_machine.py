"""
Phase state machine.

The only place that changes ConversationState.phase. Phase change and the
append of the turn's messages happen in one state replacement.
"""
import logging
from dataclasses import replace
from typing import Iterable, Optional

from ..exceptions import IllegalTransition
from ..recipe.models import FragranceRecipe
from .message import Message
from .phase import Phase, can_transition, ensure_phase
from .state import ConversationState, Selections

logger = logging.getLogger(__name__)

_UNSET = object()


class PhaseStateMachine:
    """
    Validates and applies phase transitions against the transition table.
    """

    def check(self, source: Phase, target: Phase) -> None:
        """
        :raises IllegalTransition: if target is not reachable from source
        """
        if not can_transition(source, target):
            logger.warning(f"Rejected phase transition {source} -> {target}")
            raise IllegalTransition(source, target)

    def commit_turn(
        self,
        state: ConversationState,
        messages: Iterable[Message],
        target,
        selections: Optional[Selections] = None,
        recipe=_UNSET,
        error: Optional[str] = None,
    ) -> ConversationState:
        """
        Append a turn's messages and move to `target` as a single update.

        :param state: State before the turn
        :param messages: Messages produced by the turn, in order
        :param target: Phase after the turn (may equal the current phase)
        :param selections: Replacement selections, or None to keep
        :param recipe: Replacement recipe; omitted keeps the current one
        :param error: Error string to surface; None clears it
        :return: New state
        :raises IllegalTransition: nothing is appended when raised
        """
        target = ensure_phase(target)
        self.check(state.phase, target)

        changes = {
            "messages": state.messages + tuple(messages),
            "phase": target,
            "error": error,
            "loading": False,
        }
        if selections is not None:
            changes["selections"] = selections
        if recipe is not _UNSET:
            if recipe is not None and not isinstance(recipe, FragranceRecipe):
                raise TypeError("recipe must be a FragranceRecipe or None")
            changes["recipe"] = recipe

        if target != state.phase:
            logger.info(f"Phase {state.phase} -> {target} (session {state.session_id})")
        return replace(state, **changes)
