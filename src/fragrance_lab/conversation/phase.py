"""
Phase registry for the fragrance-building conversation.

Closed enumeration of phases with display metadata and the transition table.
"""
from enum import Enum
from typing import Dict, FrozenSet, Tuple, Union

from ..exceptions import InvalidPhase


class Phase(str, Enum):
    """Named stage of the guided conversation."""
    WELCOME = "welcome"
    THEME_SELECTED = "themeSelected"
    TOP = "top"
    MIDDLE = "middle"
    BASE = "base"
    FINALIZED = "finalized"
    COMPLETE = "complete"

    def __str__(self) -> str:
        return self.value


class PhaseStatus(str, Enum):
    """Position of a phase relative to the current one."""
    COMPLETED = "completed"
    ACTIVE = "active"
    UPCOMING = "upcoming"


# Display order; themeSelected is a branch between welcome and top.
PHASE_ORDER: Tuple[Phase, ...] = (
    Phase.WELCOME,
    Phase.THEME_SELECTED,
    Phase.TOP,
    Phase.MIDDLE,
    Phase.BASE,
    Phase.FINALIZED,
    Phase.COMPLETE,
)

PHASE_LABELS: Dict[Phase, str] = {
    Phase.WELCOME: "Welcome",
    Phase.THEME_SELECTED: "Theme",
    Phase.TOP: "Top note",
    Phase.MIDDLE: "Middle note",
    Phase.BASE: "Base note",
    Phase.FINALIZED: "Recipe review",
    Phase.COMPLETE: "Complete",
}

TRANSITIONS: Dict[Phase, FrozenSet[Phase]] = {
    Phase.WELCOME: frozenset({Phase.THEME_SELECTED, Phase.TOP}),
    Phase.THEME_SELECTED: frozenset({Phase.TOP}),
    Phase.TOP: frozenset({Phase.MIDDLE}),
    Phase.MIDDLE: frozenset({Phase.BASE}),
    Phase.BASE: frozenset({Phase.FINALIZED}),
    Phase.FINALIZED: frozenset({Phase.COMPLETE}),
    Phase.COMPLETE: frozenset({Phase.COMPLETE}),
}

# Phases in which the user picks a note for the matching category.
NOTE_PHASES: Dict[Phase, str] = {
    Phase.TOP: "top",
    Phase.MIDDLE: "middle",
    Phase.BASE: "base",
}


def ensure_phase(value: Union[Phase, str]) -> Phase:
    """
    Coerce a phase identifier into a Phase.

    :raises InvalidPhase: for identifiers outside the registry
    """
    if isinstance(value, Phase):
        return value
    try:
        return Phase(value)
    except ValueError:
        raise InvalidPhase(f"Unknown phase: {value!r}")


def get_label(phase: Union[Phase, str]) -> str:
    return PHASE_LABELS[ensure_phase(phase)]


def get_step(phase: Union[Phase, str]) -> int:
    return PHASE_ORDER.index(ensure_phase(phase))


def phase_status(phase: Union[Phase, str], current: Union[Phase, str]) -> PhaseStatus:
    """
    Classify a phase relative to the current phase.

    :param phase: Phase being displayed
    :param current: Phase the conversation is in
    :return: COMPLETED, ACTIVE or UPCOMING
    """
    step = get_step(phase)
    current_step = get_step(current)
    if step < current_step:
        return PhaseStatus.COMPLETED
    if step == current_step:
        return PhaseStatus.ACTIVE
    return PhaseStatus.UPCOMING


def progress(current: Union[Phase, str]) -> Tuple[int, int, int]:
    """
    Progress indicator for the current phase.

    :return: (step, total_steps, percentage); welcome counts as step 0
    """
    total = len(PHASE_ORDER) - 1
    step = get_step(current)
    return step, total, round(step / total * 100)


def can_transition(source: Union[Phase, str], target: Union[Phase, str]) -> bool:
    """Staying put is always allowed; anything else must be in the table."""
    source = ensure_phase(source)
    target = ensure_phase(target)
    return source == target or target in TRANSITIONS[source]


def next_phase(phase: Union[Phase, str]) -> Phase:
    """Default forward target for a phase (complete maps to itself)."""
    phase = ensure_phase(phase)
    if phase == Phase.WELCOME:
        return Phase.TOP
    (target,) = TRANSITIONS[phase]
    return target
