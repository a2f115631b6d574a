"""
Turn processing: request types, model collaborator, prompts and the processor.
"""
from .requests import NewTurn, RegenerateNote, TurnRequest
from .language_model import LanguageModel, LangChainLanguageModel, ModelReply
from .processor import TurnError, TurnProcessor, TurnResult

__all__ = [
    "NewTurn",
    "RegenerateNote",
    "TurnRequest",
    "LanguageModel",
    "LangChainLanguageModel",
    "ModelReply",
    "TurnError",
    "TurnProcessor",
    "TurnResult",
]
