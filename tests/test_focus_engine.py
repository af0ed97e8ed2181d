import pytest

from focuslens.core.services.notification_service import NotificationKind
from focuslens.inference.focus_engine import FocusEngine, FocusOutcome, merge_keywords


@pytest.fixture
def make_engine(focus, activity, notifications, clock):
    def _make(classifier):
        return FocusEngine(focus, activity, classifier, notifications, clock=clock)

    return _make


def test_no_activity_does_nothing(make_engine, focus, scripted):
    classifier = scripted()
    result = make_engine(classifier).run()

    assert result.outcome == FocusOutcome.NO_ACTIVITY
    assert classifier.prompts == []
    assert focus.history() == []


def test_first_topic_creates_session_without_summarizing(make_engine, focus, read_page, clock, scripted):
    read_page("https://react.dev/learn/hooks", "Hooks", "useState lets a component remember values")
    classifier = scripted(topic="React Hooks")

    result = make_engine(classifier).run()

    assert result.outcome == FocusOutcome.CREATED
    active = focus.get_active()
    assert active.topic_label == "React Hooks"
    assert active.keywords == ["React Hooks"]
    assert active.time_spent == [{"start": clock(), "end": None}]
    assert classifier.calls("summary") == 0
    assert classifier.calls("drift") == 0


def test_null_topic_creates_nothing(make_engine, focus, read_page, scripted):
    read_page("https://example.com", "Blank", "nothing much to see on this page")
    result = make_engine(scripted(topic="null")).run()

    assert result.outcome == FocusOutcome.NO_TOPIC
    assert focus.get_active() is None


def test_same_topic_merges_keywords_and_relabels(make_engine, focus, read_page, clock, scripted):
    read_page("https://react.dev/learn/hooks", "Hooks", "useState lets a component remember values")
    make_engine(scripted(topic="React Hooks")).run()
    session_id = focus.get_active().id

    clock.advance(60_000)
    read_page("https://react.dev/reference/useEffect", "useEffect", "synchronize a component with an external system")
    classifier = scripted(drift="no", topic="useEffect", summary="React")
    result = make_engine(classifier).run()

    assert result.outcome == FocusOutcome.UPDATED
    active = focus.get_active()
    assert active.id == session_id
    assert active.topic_label == "React"
    assert active.keywords == ["useEffect", "React Hooks"]
    assert active.last_updated == clock()
    assert classifier.calls("summary") == 1


def test_repeated_topic_is_not_duplicated(make_engine, focus, read_page, clock, scripted):
    read_page("https://react.dev/learn/hooks", "Hooks", "useState lets a component remember values")
    make_engine(scripted(topic="React Hooks")).run()

    clock.advance(30_000)
    make_engine(scripted(topic="react hooks", summary="React Hooks")).run()

    assert focus.get_active().keywords == ["react hooks"]


def test_drift_closes_session_and_notifies(make_engine, focus, read_page, clock, notifier, scripted):
    read_page("https://react.dev/learn/hooks", "Hooks", "useState lets a component remember values")
    make_engine(scripted(topic="React Hooks")).run()
    start = clock()

    clock.advance(120_000)
    read_page("https://recipes.example/carbonara", "Carbonara", "whisk the eggs with pecorino and black pepper")
    classifier = scripted(drift="Yes.", topic="Cooking")
    result = make_engine(classifier).run()

    assert result.outcome == FocusOutcome.DRIFTED
    assert focus.get_active() is None
    assert focus.count_open() == 0
    closed = focus.get(result.session.id)
    assert closed.time_spent == [{"start": start, "end": clock()}]
    assert notifier.delivered == [NotificationKind.FOCUS_DRIFT_DETECTED]
    # the new topic waits for the next cycle
    assert classifier.calls("topic") == 0

    clock.advance(30_000)
    result = make_engine(scripted(topic="Cooking")).run()
    assert result.outcome == FocusOutcome.CREATED
    assert focus.get_active().topic_label == "Cooking"
    assert len(focus.history()) == 2
    assert focus.count_open() == 1


def test_drift_prompt_carries_previous_focus(make_engine, read_page, clock, scripted):
    read_page("https://react.dev/learn/hooks", "Hooks", "useState lets a component remember values")
    make_engine(scripted(topic="React Hooks")).run()

    clock.advance(1000)
    classifier = scripted(drift="no", topic="null")
    make_engine(classifier).run()

    kind, prompt = classifier.prompts[0]
    assert kind == "drift"
    assert "Previous focus: React Hooks" in prompt
    assert "URL 1: https://react.dev/learn/hooks" in prompt


@pytest.mark.parametrize("drift", [RuntimeError("model offline"), "maybe?"])
def test_drift_failure_means_still_focused(make_engine, focus, read_page, clock, drift, scripted):
    read_page("https://react.dev/learn/hooks", "Hooks", "useState lets a component remember values")
    make_engine(scripted(topic="React Hooks")).run()

    clock.advance(1000)
    classifier = scripted(drift=drift, topic="useMemo", summary="React")
    result = make_engine(classifier).run()

    assert result.outcome == FocusOutcome.UPDATED
    assert focus.get_active().topic_label == "React"


def test_summary_failure_keeps_previous_label(make_engine, focus, read_page, clock, scripted):
    read_page("https://react.dev/learn/hooks", "Hooks", "useState lets a component remember values")
    make_engine(scripted(topic="React Hooks")).run()

    clock.advance(1000)
    make_engine(scripted(topic="useMemo", summary=TimeoutError("slow"))).run()

    active = focus.get_active()
    assert active.topic_label == "React Hooks"
    assert active.keywords == ["useMemo", "React Hooks"]


def test_topic_failure_is_no_signal(make_engine, focus, read_page, scripted):
    read_page("https://react.dev/learn/hooks", "Hooks", "useState lets a component remember values")
    result = make_engine(scripted(topic=ConnectionError("refused"))).run()

    assert result.outcome == FocusOutcome.NO_TOPIC
    assert focus.get_active() is None


def test_activity_outside_window_is_ignored(make_engine, focus, read_page, clock, scripted):
    read_page("https://react.dev/learn/hooks", "Hooks", "useState lets a component remember values")
    clock.advance(11 * 60 * 1000)

    classifier = scripted(topic="React Hooks")
    result = make_engine(classifier).run()

    assert result.outcome == FocusOutcome.NO_ACTIVITY
    assert classifier.prompts == []


def test_merge_keywords():
    assert merge_keywords("Rust", ["Go", "rust", "C"]) == ["Rust", "Go", "C"]
    assert merge_keywords("Rust", []) == ["Rust"]
