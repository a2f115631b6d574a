"""
Conversation domain: phase registry, messages, state and the phase state machine.
"""
from .phase import (
    Phase,
    PhaseStatus,
    PHASE_ORDER,
    TRANSITIONS,
    ensure_phase,
    get_label,
    get_step,
    phase_status,
    progress,
    can_transition,
)
from .message import Message, Role
from .state import ConversationState, Selections
from .state_machine import PhaseStateMachine

__all__ = [
    "Phase",
    "PhaseStatus",
    "PHASE_ORDER",
    "TRANSITIONS",
    "ensure_phase",
    "get_label",
    "get_step",
    "phase_status",
    "progress",
    "can_transition",
    "Message",
    "Role",
    "ConversationState",
    "Selections",
    "PhaseStateMachine",
]
