import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from interview.questions import QuestionGenerator  # noqa: E402
from interview.scoring import ScoringPipeline  # noqa: E402
from interview.session import SessionCoordinator  # noqa: E402
from interview.timer import ManualScheduler  # noqa: E402
from storage.store import InMemoryStore  # noqa: E402


class StubLLM:
    """Stands in for LLMClient; replies are queued per call kind."""

    def __init__(self, json_replies=None, array_reply=None, raises=None):
        self.json_replies = list(json_replies or [])
        self.array_reply = array_reply
        self.raises = raises
        self.prompts = []

    def generate_json(self, prompt, max_tokens=400, temperature=0.3):
        self.prompts.append(prompt)
        if self.raises:
            raise self.raises
        if not self.json_replies:
            return None, False
        reply = self.json_replies.pop(0)
        return reply, reply is not None

    def generate_json_array(self, prompt, max_tokens=1500, temperature=0.7):
        self.prompts.append(prompt)
        if self.raises:
            raise self.raises
        if self.array_reply is None:
            return None, False
        return self.array_reply, True


class StepClock:
    """Deterministic clock advancing one second per reading."""

    def __init__(self, start=datetime(2024, 1, 1, 9, 0, 0)):
        self.current = start

    def __call__(self):
        value = self.current
        self.current = self.current + timedelta(seconds=1)
        return value


@pytest.fixture
def offline_llm() -> StubLLM:
    return StubLLM()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def make_coordinator(scheduler, clock, offline_llm):
    def _make(store, llm=None):
        llm = llm or offline_llm
        return SessionCoordinator(
            store=store,
            generator=QuestionGenerator(llm=llm),
            pipeline=ScoringPipeline(llm=llm),
            scheduler=scheduler,
            clock=clock,
        )

    return _make


@pytest.fixture
def coordinator(make_coordinator, store) -> SessionCoordinator:
    return make_coordinator(store)


@pytest.fixture
def ada():
    return {"name": "Ada", "email": "ada@x.com", "phone": "5551234567"}
