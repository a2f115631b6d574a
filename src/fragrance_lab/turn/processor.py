"""
Turn processor.

Pure function of (state, request) apart from the language model call:
the caller's state is never mutated and a failed turn leaves no trace in it.
"""
import logging
import re
from dataclasses import dataclass
from typing import Optional, Union

from ..catalog import OilCatalog, find_mentions
from ..conversation.message import Message, Role, message_id
from ..conversation.phase import NOTE_PHASES, Phase, next_phase
from ..conversation.state import ConversationState, Selections
from ..conversation.state_machine import PhaseStateMachine
from ..exceptions import (
    EmptyInput,
    MissingRecipe,
    ModelCallFailed,
    RecipeParseFailed,
    RecipeValidationFailed,
)
from ..models import NOTE_CATEGORIES
from ..recipe import (
    FragranceRecipe,
    ParsedReply,
    ValidationResult,
    is_complete,
    merge_note,
    parse_reply,
    validate_recipe,
)
from .language_model import LanguageModel
from .prompts import build_regenerate_prompt, build_system_prompt
from .requests import NewTurn, RegenerateNote, TurnRequest

logger = logging.getLogger(__name__)

CONFIRMATION_PATTERN = re.compile(
    r"\b(yes|yeah|ok|okay|confirm|confirmed|done|finish|finished|complete|perfect)\b|はい|完了|おわり|終わり",
    re.IGNORECASE,
)
NEGATION_PATTERN = re.compile(r"\b(no|not|don't|dont|never)\b|いいえ", re.IGNORECASE)


def is_confirmation(text: str) -> bool:
    """True when the user accepts the presented recipe."""
    return bool(CONFIRMATION_PATTERN.search(text)) and not NEGATION_PATTERN.search(text)


@dataclass(frozen=True)
class TurnError:
    """Short, actionable description of a failed or flagged turn."""
    kind: str
    message: str
    status_code: Optional[int] = None

    @classmethod
    def from_exception(cls, error: Exception) -> "TurnError":
        return cls(
            kind=type(error).__name__,
            message=str(error),
            status_code=getattr(error, "status_code", None),
        )


@dataclass(frozen=True)
class TurnResult:
    state: ConversationState
    message: Optional[Message] = None
    error: Optional[TurnError] = None
    validation: Optional[ValidationResult] = None

    @property
    def applied(self) -> bool:
        """True when the turn produced an assistant message."""
        return self.message is not None


class TurnProcessor:
    """
    Runs one turn: prompt the model, parse its reply, fold it into state.
    """

    def __init__(
        self,
        model: LanguageModel,
        catalog: OilCatalog,
        state_machine: Optional[PhaseStateMachine] = None,
        history_max_messages: int = 20,
    ):
        """
        :param model: Language model collaborator
        :param catalog: Oil catalog used for prompts, selections and validation
        :param state_machine: Phase state machine (default instance if None)
        :param history_max_messages: Most recent messages sent to the model
        """
        self._model = model
        self._catalog = catalog
        self._machine = state_machine or PhaseStateMachine()
        self._history_max_messages = history_max_messages

    def process_turn(
        self,
        state: ConversationState,
        request: Union[TurnRequest, str],
    ) -> TurnResult:
        """
        Process one user turn.

        :param state: Current conversation state (not modified)
        :param request: NewTurn, RegenerateNote, or plain text for a NewTurn
        :return: TurnResult; on model failure its state is `state` itself
        :raises EmptyInput: text is blank after trimming
        :raises MissingRecipe: regeneration requested before any recipe exists
        """
        if isinstance(request, str):
            request = NewTurn(request)

        text = (request.text or "").strip()
        if not text:
            raise EmptyInput("Please enter a message.")

        regenerating = isinstance(request, RegenerateNote)
        if regenerating and state.recipe is None:
            raise MissingRecipe("There is no recipe yet to regenerate a note for.")

        user_message = Message(
            id=message_id(state.session_id, len(state.messages)),
            role=Role.USER,
            content=text,
        )
        history = (state.messages + (user_message,))[-self._history_max_messages:]

        if regenerating:
            system_prompt = build_regenerate_prompt(request.category, state.recipe, self._catalog)
        else:
            system_prompt = build_system_prompt(state.phase, state.selections, self._catalog, text)

        try:
            reply = self._model.complete(system_prompt, history)
        except ModelCallFailed as e:
            return TurnResult(state=state, error=TurnError.from_exception(e))

        parsed = parse_reply(reply.text)
        assistant_id = message_id(state.session_id, len(state.messages) + 1)

        if regenerating:
            return self._fold_regeneration(state, request, user_message, assistant_id, parsed)
        return self._fold_new_turn(state, text, user_message, assistant_id, parsed)

    # ----------------------------
    # Folding replies into state
    # ----------------------------
    def _fold_new_turn(self, state, text, user_message, assistant_id, parsed) -> TurnResult:
        reply: ParsedReply = parsed.reply
        selections = self._select_from_text(state, text)
        recipe = state.recipe
        error: Optional[TurnError] = None
        validation: Optional[ValidationResult] = None

        if parsed.failed:
            target = state.phase
            error = TurnError.from_exception(RecipeParseFailed(parsed.error))
        elif parsed.has_payload:
            target = self.decide_next_phase(state.phase, reply, text)
            if reply.recipe is not None:
                recipe = reply.recipe
                validation = validate_recipe(recipe, self._catalog)
                if not validation.valid:
                    error = TurnError.from_exception(RecipeValidationFailed(
                        f"Some notes need attention: {validation.summary()}",
                        validation.violations,
                    ))
                if is_complete(recipe):
                    selections = self._fill_selections(selections, recipe)
        else:
            target = state.phase

        assistant_message = Message(
            id=assistant_id,
            role=Role.ASSISTANT,
            content=reply.text,
            options=reply.options,
            option_descriptions=reply.option_descriptions,
            recipe=reply.recipe,
            emotion_scores=reply.emotion_scores,
        )

        new_state = self._machine.commit_turn(
            state,
            (user_message, assistant_message),
            target,
            selections=selections,
            recipe=recipe,
            error=error.message if error else None,
        )
        return TurnResult(new_state, assistant_message, error, validation)

    def _fold_regeneration(self, state, request, user_message, assistant_id, parsed) -> TurnResult:
        reply: ParsedReply = parsed.reply
        notes = reply.notes.get(request.category)
        if not notes and reply.recipe is not None:
            notes = reply.recipe.notes_for(request.category)

        if not notes:
            reason = parsed.error or f"The reply did not contain new {request.category} notes."
            logger.warning(f"Regeneration produced no notes (session {state.session_id}): {reason}")
            return TurnResult(state=state, error=TurnError.from_exception(RecipeParseFailed(reason)))

        recipe = merge_note(state.recipe, request.category, notes)
        validation = validate_recipe(recipe, self._catalog)
        error = None
        if not validation.valid:
            error = TurnError.from_exception(RecipeValidationFailed(
                f"Some notes need attention: {validation.summary()}",
                validation.violations,
            ))

        content = reply.text or f"New {request.category} notes: {', '.join(notes)}"
        assistant_message = Message(
            id=assistant_id,
            role=Role.ASSISTANT,
            content=content,
            recipe=recipe,
        )
        selections = state.selections.with_selection(request.category, notes[0])

        # Regeneration never changes phase
        new_state = self._machine.commit_turn(
            state,
            (user_message, assistant_message),
            state.phase,
            selections=selections,
            recipe=recipe,
            error=error.message if error else None,
        )
        return TurnResult(new_state, assistant_message, error, validation)

    # ----------------------------
    # Decisions
    # ----------------------------
    @staticmethod
    def decide_next_phase(phase: Phase, reply: ParsedReply, text: str = "") -> Phase:
        """
        Phase after a reply that carried a structured payload.

        The phase only moves on when the payload carries what the next step
        needs: choices or a recipe (a theme from welcome). A block holding
        only text, such as a clarifying question, keeps the phase.

        :param phase: Current phase
        :param reply: Parsed reply with payload fields
        :param text: The user's message for this turn
        :return: A phase within the transition table's targets for `phase`
        """
        offers_next_step = bool(reply.options) or reply.recipe is not None

        if phase == Phase.WELCOME:
            if offers_next_step:
                return Phase.TOP
            return Phase.THEME_SELECTED if reply.theme else phase
        if phase == Phase.BASE:
            if reply.recipe is not None and is_complete(reply.recipe):
                return Phase.FINALIZED
            return Phase.BASE
        if phase == Phase.FINALIZED:
            # The final recipe is only repeated once the user accepts it
            if reply.recipe is not None or is_confirmation(text):
                return Phase.COMPLETE
            return Phase.FINALIZED
        if not offers_next_step:
            return phase
        return next_phase(phase)

    def _select_from_text(self, state: ConversationState, text: str) -> Selections:
        """Record the scent the user picked for the current note phase."""
        category = NOTE_PHASES.get(state.phase)
        if category is None:
            return state.selections

        previous = state.last_assistant_message()
        if previous is not None and previous.options:
            lowered = text.strip().casefold()
            for option in previous.options:
                if option.casefold() == lowered:
                    return state.selections.with_selection(category, option)
            mentioned = find_mentions(text, previous.options)
            if mentioned:
                return state.selections.with_selection(category, mentioned[0])

        oils = self._catalog.find_in_text(text, category)
        if oils:
            return state.selections.with_selection(category, oils[0].english_name)
        return state.selections

    @staticmethod
    def _fill_selections(selections: Selections, recipe: FragranceRecipe) -> Selections:
        for category in NOTE_CATEGORIES:
            if selections.get(category) is None:
                selections = selections.with_selection(category, recipe.notes_for(category)[0])
        return selections
