"""
Tests for conversation state values and the phase state machine.
"""
import pytest

from fragrance_lab.conversation import (
    ConversationState,
    Message,
    Phase,
    PhaseStateMachine,
    Role,
    Selections,
    TRANSITIONS,
)
from fragrance_lab.conversation.message import message_id
from fragrance_lab.exceptions import IllegalTransition
from fragrance_lab.recipe import FragranceRecipe


@pytest.fixture
def machine():
    return PhaseStateMachine()


@pytest.fixture
def state():
    return ConversationState.create("session-1")


def _turn(session_id, position, text="hi"):
    return (
        Message(message_id(session_id, position), Role.USER, text),
        Message(message_id(session_id, position + 1), Role.ASSISTANT, "hello"),
    )


class TestConversationState:
    """Test the immutable state value."""

    def test_create(self):
        state = ConversationState.create()

        assert state.session_id
        assert state.phase == Phase.WELCOME
        assert state.messages == ()
        assert state.selections == Selections()
        assert not state.loading
        assert state.error is None
        assert state.recipe is None

    def test_create_generates_distinct_ids(self):
        assert ConversationState.create().session_id != ConversationState.create().session_id

    def test_with_helpers_return_new_values(self, state):
        loading = state.with_loading(True)
        errored = state.with_error("boom")

        assert loading.loading and not state.loading
        assert errored.error == "boom" and state.error is None

    def test_selections(self):
        selections = Selections().with_selection("top", "Lemon")

        assert selections.get("top") == "Lemon"
        assert not selections.is_complete()
        assert selections.as_dict() == {"top": "Lemon", "middle": None, "base": None}
        with pytest.raises(ValueError):
            selections.with_selection("heart", "Rose")

    def test_message_equality_ignores_created_at(self):
        first = Message("s:0", Role.USER, "hi", created_at=1.0)
        second = Message("s:0", Role.USER, "hi", created_at=2.0)
        assert first == second

    def test_last_assistant_message(self, state, machine):
        assert state.last_assistant_message() is None
        new_state = machine.commit_turn(state, _turn(state.session_id, 0), Phase.WELCOME)
        assert new_state.last_assistant_message().content == "hello"

    def test_to_dict(self, state):
        data = state.to_dict()
        assert data["phase"] == "welcome"
        assert data["selections"] == {"top": None, "middle": None, "base": None}
        assert data["recipe"] is None


class TestTransition:
    """Test phase changes against the table."""

    def test_legal_transition(self, machine, state):
        new_state = machine.commit_turn(state, (), Phase.TOP)

        assert new_state.phase == Phase.TOP
        assert state.phase == Phase.WELCOME

    def test_transition_accepts_identifier(self, machine, state):
        assert machine.commit_turn(state, (), "themeSelected").phase == Phase.THEME_SELECTED

    def test_illegal_transition_leaves_state_equal(self, machine, state):
        before = ConversationState.create("session-1")

        with pytest.raises(IllegalTransition) as exc_info:
            machine.commit_turn(state, _turn(state.session_id, 0), Phase.BASE)

        assert state == before
        assert exc_info.value.source == Phase.WELCOME
        assert exc_info.value.target == Phase.BASE

    @pytest.mark.parametrize("source", list(Phase))
    @pytest.mark.parametrize("target", list(Phase))
    def test_every_pair_matches_table(self, machine, source, target):
        state = ConversationState(session_id="s", phase=source)
        if target == source or target in TRANSITIONS[source]:
            assert machine.commit_turn(state, (), target).phase == target
        else:
            with pytest.raises(IllegalTransition):
                machine.commit_turn(state, (), target)


class TestCommitTurn:
    """Test the atomic append-and-advance update."""

    def test_appends_and_advances(self, machine, state):
        new_state = machine.commit_turn(
            state.with_loading(True),
            _turn(state.session_id, 0),
            Phase.TOP,
            selections=Selections(top="Lemon"),
        )

        assert [m.id for m in new_state.messages] == ["session-1:0", "session-1:1"]
        assert new_state.phase == Phase.TOP
        assert new_state.selections.top == "Lemon"
        assert not new_state.loading

    def test_illegal_commit_appends_nothing(self, machine, state):
        with pytest.raises(IllegalTransition):
            machine.commit_turn(state, _turn(state.session_id, 0), Phase.FINALIZED)
        assert state.messages == ()

    def test_recipe_kept_replaced_or_cleared(self, machine):
        recipe = FragranceRecipe(["Lemon"], ["Rose"], ["Vanilla"])
        state = ConversationState(session_id="s", phase=Phase.FINALIZED, recipe=recipe)

        kept = machine.commit_turn(state, (), Phase.FINALIZED)
        cleared = machine.commit_turn(state, (), Phase.FINALIZED, recipe=None)

        assert kept.recipe == recipe
        assert cleared.recipe is None

    def test_recipe_type_checked(self, machine, state):
        with pytest.raises(TypeError):
            machine.commit_turn(state, (), Phase.WELCOME, recipe={"top_notes": ["Lemon"]})

    def test_error_set_and_cleared(self, machine, state):
        errored = machine.commit_turn(state, (), Phase.WELCOME, error="Some notes need attention")
        cleared = machine.commit_turn(errored, (), Phase.WELCOME)

        assert errored.error == "Some notes need attention"
        assert cleared.error is None
