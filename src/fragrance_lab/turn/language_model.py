"""
Language model collaborator.

The core only sees LanguageModel.complete(); any failure surfaces as
ModelCallFailed carrying an HTTP-style status code when one is known.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from time import time
from typing import Any, List, Optional, Sequence

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from ..conversation.message import Message, Role
from ..exceptions import ModelCallFailed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelReply:
    text: str
    latency_ms: Optional[int] = None


class LanguageModel(ABC):
    """Completion collaborator used by the turn processor."""

    @abstractmethod
    def complete(self, system_prompt: str, history: Sequence[Message]) -> ModelReply:
        """
        :param system_prompt: Phase-specific instruction
        :param history: Conversation so far, ending with the new user message
        :raises ModelCallFailed: on transport errors, non-2xx or empty replies
        """


def to_langchain_messages(system_prompt: str, history: Sequence[Message]) -> List[BaseMessage]:
    messages: List[BaseMessage] = [SystemMessage(content=system_prompt)]
    for message in history:
        if message.role == Role.USER:
            messages.append(HumanMessage(content=message.content))
        elif message.role == Role.ASSISTANT:
            messages.append(AIMessage(content=message.content))
        else:
            messages.append(SystemMessage(content=message.content))
    return messages


def _status_code(error: Exception) -> Optional[int]:
    code = getattr(error, "status_code", None)
    if code is None:
        response = getattr(error, "response", None)
        code = getattr(response, "status_code", None)
    return code if isinstance(code, int) else None


def _content_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type") == "text":
                parts.append(part.get("text", ""))
        return "".join(parts)
    return ""


class LangChainLanguageModel(LanguageModel):
    """
    Adapter over a LangChain chat model (ChatOpenAI, ChatGroq, fakes in tests).
    """

    def __init__(self, chat_model):
        self._chat_model = chat_model

    def complete(self, system_prompt: str, history: Sequence[Message]) -> ModelReply:
        start = time()
        try:
            response = self._chat_model.invoke(to_langchain_messages(system_prompt, history))
        except Exception as e:
            status = _status_code(e)
            logger.warning(f"Model call failed (status={status}): {e}")
            raise ModelCallFailed(f"Model call failed: {e}", status_code=status) from e

        text = _content_text(getattr(response, "content", response)).strip()
        if not text:
            raise ModelCallFailed("Model returned an empty response")

        return ModelReply(text=text, latency_ms=int((time() - start) * 1000))
