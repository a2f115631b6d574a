"""
Per-session conversation state.
"""
from .session_state import ConversationSession, ConversationStateManager, TurnTicket

__all__ = ["ConversationSession", "ConversationStateManager", "TurnTicket"]
