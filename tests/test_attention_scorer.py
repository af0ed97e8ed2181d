import pytest

from focuslens.core.models.settings import Settings
from focuslens.monitoring.attention_scorer import AttentionScorer, ScorerConfig
from focuslens.monitoring.page_snapshot import ContentNode, PageSnapshot, Rect

TEN_WORDS = "one two three four five six seven eight nine ten"
URL = "https://example.com/article"


def node(key, top, text=TEN_WORDS, tag="p", height=100, **kwargs):
    kwargs.setdefault("ancestors", ("article",))
    return ContentNode(tag=tag, text=text, rect=Rect(0, top, 800, height), key=key, **kwargs)


def page(*nodes, url=URL, scroll_y=0.0, **kwargs):
    return PageSnapshot(
        url=url,
        viewport_width=800,
        viewport_height=600,
        nodes=list(nodes),
        scroll_y=scroll_y,
        **kwargs,
    )


@pytest.fixture
def emitted():
    return []


@pytest.fixture
def scorer(clock, emitted):
    return AttentionScorer(
        ScorerConfig(sustained_threshold_ms=3000, words_per_minute=150),
        on_attention=lambda url, text, ts: emitted.append((url, text, ts)),
        clock=clock,
    )


def run_ticks(scorer, clock, count, step=500):
    result = None
    for _ in range(count):
        clock.advance(step)
        result = scorer.tick()
    return result


class TestSustainedAttention:
    def test_stable_dwell_emits_exactly_once(self, scorer, clock, emitted):
        scorer.submit_snapshot(page(node("a", 250)))
        scorer.tick()
        run_ticks(scorer, clock, 6)          # 3000 ms of dwell

        assert len(emitted) == 1
        url, text, ts = emitted[0]
        assert url == URL
        assert text == TEN_WORDS
        assert ts == clock()

        run_ticks(scorer, clock, 10)         # keep reading the same paragraph
        assert len(emitted) == 1

    def test_reading_estimate_at_threshold(self, scorer, clock):
        scorer.submit_snapshot(page(node("a", 250)))
        scorer.tick()
        tick = run_ticks(scorer, clock, 6)

        state = scorer.sustained
        assert state.accumulated_dwell_ms == 3000
        assert state.total_words == 10
        assert state.words_read == pytest.approx(7.5)
        assert state.reading_progress_pct == pytest.approx(75.0)
        assert state.confidence_pct == pytest.approx(100.0)
        assert tick.top_candidates[0].cognitively_attended is True
        assert tick.top_candidates[0].sustained_duration == 3000

    def test_confidence_scales_before_threshold(self, scorer, clock, emitted):
        scorer.submit_snapshot(page(node("a", 250)))
        scorer.tick()
        run_ticks(scorer, clock, 3)

        assert scorer.sustained.accumulated_dwell_ms == 1500
        assert scorer.sustained.confidence_pct == pytest.approx(50.0)
        assert emitted == []

    def test_words_read_capped_at_total(self, scorer, clock):
        scorer.submit_snapshot(page(node("a", 250)))
        scorer.tick()
        run_ticks(scorer, clock, 20)         # 10 s at 150 wpm = 25 words

        assert scorer.sustained.words_read == 10
        assert scorer.sustained.reading_progress_pct == pytest.approx(100.0)

    def test_candidate_change_resets_dwell(self, scorer, clock, emitted):
        scorer.submit_snapshot(page(node("a", 250), node("b", 0)))
        scorer.tick()
        run_ticks(scorer, clock, 4)
        assert scorer.sustained.candidate_key == "a"
        assert scorer.sustained.accumulated_dwell_ms == 2000

        # b moves to the centre, a to the top edge
        scorer.submit_snapshot(page(node("a", 0), node("b", 250)))
        clock.advance(500)
        scorer.tick()

        assert scorer.sustained.candidate_key == "b"
        assert scorer.sustained.accumulated_dwell_ms == 0

        run_ticks(scorer, clock, 3)
        assert scorer.sustained.accumulated_dwell_ms == 1500
        assert emitted == []

    def test_requalifying_after_identity_change_emits_again(self, scorer, clock, emitted):
        scorer.submit_snapshot(page(node("a", 250), node("b", 0)))
        scorer.tick()
        run_ticks(scorer, clock, 6)
        assert len(emitted) == 1

        scorer.submit_snapshot(page(node("a", 0), node("b", 250)))
        run_ticks(scorer, clock, 1)
        scorer.submit_snapshot(page(node("a", 250), node("b", 0)))
        run_ticks(scorer, clock, 1)
        assert scorer.sustained.accumulated_dwell_ms == 0

        run_ticks(scorer, clock, 6)
        assert len(emitted) == 2

    def test_identity_uses_content_hash_without_key(self, scorer, clock, emitted):
        text = "a paragraph that is long enough to be considered for reading"
        for _ in range(8):
            # fresh node objects every tick, same content
            scorer.submit_snapshot(page(node(None, 250, text=text)))
            scorer.tick()
            clock.advance(500)

        assert len(emitted) == 1


class TestActivityGates:
    def test_idle_page_clears_state(self, scorer, clock):
        scorer.submit_snapshot(page(node("a", 250)))
        scorer.tick()
        run_ticks(scorer, clock, 2)
        assert scorer.sustained is not None

        clock.advance(31000)
        tick = scorer.tick()
        assert tick.is_page_active is False
        assert tick.message == "User is idle"
        assert scorer.sustained is None

    def test_input_keeps_page_active(self, scorer, clock, emitted):
        scorer.submit_snapshot(page(node("a", 250)))
        scorer.tick()
        for _ in range(80):                  # 40 s of reading with mouse moves
            clock.advance(500)
            scorer.notify_input()
            scorer.tick()

        assert scorer.is_page_active is True
        assert len(emitted) == 1

    def test_hidden_page_is_not_active(self, scorer, clock, emitted):
        scorer.submit_snapshot(page(node("a", 250), is_visible=False))
        scorer.tick()
        run_ticks(scorer, clock, 10)

        assert scorer.sustained is None
        assert emitted == []

    def test_fast_scroll_resets_dwell(self, scorer, clock):
        scorer.submit_snapshot(page(node("a", 250)))
        scorer.tick()
        run_ticks(scorer, clock, 2)
        assert scorer.sustained.accumulated_dwell_ms == 1000

        scorer.submit_snapshot(page(node("a", 250), scroll_y=3000))
        run_ticks(scorer, clock, 1)
        assert scorer.scroll_velocity > 800
        assert scorer.sustained.candidate_key == "a"
        assert scorer.sustained.accumulated_dwell_ms == 0

        # scrolling stops, dwell starts counting again
        run_ticks(scorer, clock, 1)
        assert scorer.scroll_velocity == 0
        assert scorer.sustained.accumulated_dwell_ms == 500

    def test_scroll_signal_then_matching_snapshot_keeps_velocity(self, scorer, clock):
        scorer.submit_snapshot(page(node("a", 250)))
        scorer.tick()
        run_ticks(scorer, clock, 2)
        assert scorer.sustained.accumulated_dwell_ms == 1000

        clock.advance(100)
        scorer.notify_scroll(2000)
        assert scorer.scroll_velocity > 800

        # the page side then reports the position the signal already announced
        scorer.submit_snapshot(page(node("a", 250), scroll_y=2000))
        run_ticks(scorer, clock, 1, step=100)

        assert scorer.scroll_velocity > 800
        assert scorer.sustained.accumulated_dwell_ms == 0

    def test_no_candidates_is_not_an_error(self, scorer, clock, emitted):
        scorer.submit_snapshot(page(node("a", 900)))     # below the fold
        tick = run_ticks(scorer, clock, 10)

        assert tick.candidate_count == 0
        assert scorer.sustained is None
        assert emitted == []

    def test_tick_without_snapshot(self, scorer):
        tick = scorer.tick()
        assert tick.top_candidates == []
        assert scorer.sustained is None

    def test_store_failure_is_dropped(self, clock):
        def broken_store(url, text, ts):
            raise RuntimeError("disk full")

        scorer = AttentionScorer(on_attention=broken_store, clock=clock)
        scorer.submit_snapshot(page(node("a", 250)))
        scorer.tick()
        run_ticks(scorer, clock, 8)

        assert scorer.sustained.attended is True


class TestScoring:
    def test_excludes_chrome_and_short_text(self, scorer):
        snapshot = page(
            node("nav", 250, ancestors=("nav",)),
            node("banner", 250, class_tokens=("cookie",)),
            node("btn", 250, tag="button"),
            node("short", 250, text="too short"),
            node("ok", 250),
        )
        keys = [c.key for c in scorer.score_candidates(snapshot)]
        assert keys == ["ok"]

    def test_scores_are_deterministic_and_explained(self, scorer):
        snapshot = page(node("a", 250), node("b", 0), node("c", 450))
        first = scorer.score_candidates(snapshot)
        second = scorer.score_candidates(snapshot)

        assert [(c.key, c.score) for c in first] == [(c.key, c.score) for c in second]
        assert first[0].key == "a"
        assert "in-viewport(20)" in first[0].reasons
        assert "main-content(10)" in first[0].reasons
        assert "no-scroll(10)" in first[0].reasons

    def test_partially_visible_scores_lower(self, scorer):
        snapshot = page(node("full", 400), node("half", 550))
        scores = {c.key: c for c in scorer.score_candidates(snapshot)}
        assert "visible-area(20)" in scores["full"].reasons
        assert "visible-area(10)" in scores["half"].reasons

    def test_pointer_over_text_boosts(self, scorer):
        snapshot = page(node("a", 250), node("b", 350), pointer=(100, 400))
        top = scorer.score_candidates(snapshot)[0]
        assert top.key == "b"
        assert "mouse-over-text(15)" in top.reasons

    def test_top_three_kept_for_diagnostics(self, scorer, clock):
        scorer.submit_snapshot(page(*[node(str(i), i * 100) for i in range(6)]))
        tick = scorer.tick()
        assert len(scorer.top_candidates) == 3
        assert tick.candidate_count == 6

    def test_on_tick_receives_diagnostics(self, clock):
        ticks = []
        scorer = AttentionScorer(on_tick=ticks.append, clock=clock)
        scorer.submit_snapshot(page(node("a", 250)))
        scorer.tick()
        assert ticks[0].message == "Tracking active"
        assert ticks[0].sustained.candidate_key == "a"


class TestReconfiguration:
    def test_update_config_applies_new_threshold(self, scorer, clock, emitted):
        scorer.update_config(sustained_threshold_ms=1000)
        scorer.submit_snapshot(page(node("a", 250)))
        scorer.tick()
        run_ticks(scorer, clock, 2)
        assert len(emitted) == 1

    def test_apply_settings(self, scorer):
        scorer.apply_settings(Settings(sustained_threshold_ms=5000, words_per_minute=300))
        assert scorer.config.sustained_threshold_ms == 5000
        assert scorer.config.words_per_minute == 300

    def test_navigation_resets_tracking(self, scorer, clock, emitted):
        scorer.submit_snapshot(page(node("a", 250)))
        scorer.tick()
        run_ticks(scorer, clock, 6)
        assert len(emitted) == 1

        scorer.submit_snapshot(page(node("a", 250), url="https://example.com/other"))
        assert scorer.sustained is None
        scorer.tick()
        run_ticks(scorer, clock, 6)
        assert [e[0] for e in emitted] == [URL, "https://example.com/other"]
