"""
Shared fixtures for the FocusLens test-suite.

- in-memory database and the per-table services built on it
- a controllable clock (epoch milliseconds)
- a scripted classifier standing in for the language model
- a notifier that records deliveries
"""

import pytest

from focuslens.core.database import Database
from focuslens.core.services.activity_service import ActivityService
from focuslens.core.services.activity_summary_service import ActivitySummaryService
from focuslens.core.services.attention_service import AttentionService
from focuslens.core.services.focus_service import FocusService
from focuslens.core.services.notification_service import INotifier, NotificationService
from focuslens.core.services.settings_service import SettingsService
from focuslens.core.services.state_service import StateService
from focuslens.core.services.visit_service import VisitService
from focuslens.inference.classifier import TextClassifier

START_MS = 1_700_000_000_000


class FakeClock:
    def __init__(self, start: int = START_MS):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


class ScriptedClassifier(TextClassifier):
    """
    Answers by prompt kind. Each answer may be a string, an exception
    instance (raised) or a callable taking the prompt.
    """

    def __init__(
        self,
        drift="no",
        topic="null",
        summary=None,
        website="A website",
        activity='{"summary": "You are reading something"}',
    ):
        self.answers = {
            "drift": drift,
            "topic": topic,
            "summary": summary,
            "website": website,
            "activity": activity,
        }
        self.prompts = []

    @staticmethod
    def kind_of(prompt: str) -> str:
        if "answer yes (shifted)" in prompt:
            return "drift"
        if "primary (current) focus area" in prompt:
            return "topic"
        if "greatest common factor" in prompt:
            return "summary"
        if "third-person summary" in prompt:
            return "activity"
        return "website"

    def calls(self, kind: str) -> int:
        return sum(1 for k, _ in self.prompts if k == kind)

    def classify(self, prompt: str) -> str:
        kind = self.kind_of(prompt)
        self.prompts.append((kind, prompt))
        answer = self.answers[kind]
        if isinstance(answer, BaseException):
            raise answer
        if callable(answer):
            return answer(prompt)
        if answer is None:
            raise AssertionError(f"unexpected {kind} prompt")
        return answer


class RecordingNotifier(INotifier):
    def __init__(self):
        self.delivered = []

    def deliver(self, kind, title, message):
        self.delivered.append(kind)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def db():
    database = Database(":memory:")
    yield database
    database.close()


@pytest.fixture
def visits(db):
    return VisitService(db)


@pytest.fixture
def attentions(db):
    return AttentionService(db)


@pytest.fixture
def focus(db):
    return FocusService(db)


@pytest.fixture
def state(db):
    return StateService(db)


@pytest.fixture
def settings_service(db):
    return SettingsService(db)


@pytest.fixture
def activity(visits, attentions, clock):
    return ActivityService(visits, attentions, clock=clock)


@pytest.fixture
def summaries(db):
    return ActivitySummaryService(db)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def notifications(state, notifier):
    return NotificationService(state, notifier, cooldown_ms=60000)


@pytest.fixture
def read_page(visits, attentions, clock):
    """Record a visit plus one text attention at the current clock time."""

    def _read(url: str, title: str, text: str):
        now = clock()
        visits.record_open(url=url, title=title, opened_at=now)
        attentions.add_text(url, text, now)

    return _read


@pytest.fixture
def scripted():
    return ScriptedClassifier
