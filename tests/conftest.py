"""
Shared fixtures: the bundled oil catalog and a scripted language model.
"""
import pytest

from fragrance_lab.catalog import OilCatalog
from fragrance_lab.turn import LanguageModel, ModelReply


class ScriptedModel(LanguageModel):
    """
    Deterministic language model that replays canned replies.

    The last reply repeats once the script runs out. Exceptions in the
    script are raised instead of returned.
    """

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    def complete(self, system_prompt, history):
        self.calls.append((system_prompt, list(history)))
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return ModelReply(text=reply)


class FakeClock:
    """Manually advanced clock for TTL based components."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(scope="session")
def catalog():
    """Bundled essential oil catalog."""
    return OilCatalog.load()


@pytest.fixture
def scripted_model():
    """Factory for ScriptedModel instances."""
    return ScriptedModel


@pytest.fixture
def clock():
    return FakeClock()
