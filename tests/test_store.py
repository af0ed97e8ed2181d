import pytest

from focuslens.core.services.focus_service import ActiveFocusExistsError


class TestVisits:
    def test_record_open_upserts(self, visits, clock):
        t0 = clock()
        visits.record_open("https://a.example", "A", t0, metadata={"lang": "en"})
        visits.record_close("https://a.example", t0 + 100)
        visits.update_summary("https://a.example", "about A", 3)

        visits.record_open("https://a.example", "A again", t0 + 200)

        visit = visits.get("https://a.example")
        assert visit.title == "A again"
        assert visit.opened_at == t0 + 200
        assert visit.closed_at is None
        assert visit.summary is None
        assert len(visits.list_all()) == 1

    def test_self_referrer_is_dropped(self, visits, clock):
        visits.record_open("https://a.example", "A", clock(), referrer="https://a.example")
        visits.record_open("https://b.example", "B", clock(), referrer="https://a.example")

        assert visits.get("https://a.example").referrer is None
        assert visits.get("https://b.example").referrer == "https://a.example"

    def test_updates_report_missing_rows(self, visits, clock):
        assert visits.record_close("https://nowhere.example", clock()) is False
        assert visits.update_active_time("https://nowhere.example", 10) is False

    def test_metadata_round_trip(self, visits, clock):
        visits.record_open("https://a.example", "A", clock(), metadata={"description": "x"})
        assert visits.get("https://a.example").metadata == {"description": "x"}


class TestVideoAttention:
    def test_captions_are_appended(self, attentions, clock):
        attentions.open_video("vid1", "Talk", "Channel", clock())
        assert attentions.append_video_caption("vid1", "hello", clock()) is True
        assert attentions.append_video_caption("vid1", "world", clock()) is True

        assert attentions.get_video("vid1").caption == "hello world"

    def test_repeated_chunk_is_ignored(self, attentions, clock):
        attentions.open_video("vid1", "Talk", "Channel", clock())
        attentions.append_video_caption("vid1", "hello", clock())
        assert attentions.append_video_caption("vid1", "hello", clock()) is False
        assert attentions.get_video("vid1").caption == "hello"

    def test_caption_for_unopened_video(self, attentions, clock):
        assert attentions.append_video_caption("ghost", "hello", clock()) is False
        assert attentions.get_video("ghost") is None

    def test_watch_time_updates_timestamp(self, attentions, clock):
        attentions.open_video("vid1", "Talk", "Channel", clock())
        later = clock.advance(5000)
        assert attentions.update_video_watch_time("vid1", 4200, later) is True

        video = attentions.get_video("vid1")
        assert video.active_watch_time_ms == 4200
        assert video.timestamp == later


class TestFocusSessions:
    def test_single_open_session(self, focus, clock):
        focus.create("Rust", ["Rust"], clock())
        with pytest.raises(ActiveFocusExistsError):
            focus.create("Go", ["Go"], clock())

        assert focus.count_open() == 1
        assert len(focus.history()) == 1

    def test_close_frees_the_slot(self, focus, clock):
        session = focus.create("Rust", ["Rust"], clock())
        closed = focus.close_active(clock.advance(1000))

        assert closed.id == session.id
        assert closed.is_open is False
        assert closed.total_time_ms(clock()) == 1000
        assert focus.get_active() is None
        assert focus.close_active(clock()) is None

        focus.create("Go", ["Go"], clock())
        assert focus.get_active().topic_label == "Go"

    def test_update_topic(self, focus, clock):
        session = focus.create("Rust", ["Rust"], clock())
        assert focus.update_topic(session.id, "Systems", ["Go", "Rust"], clock.advance(10)) is True

        stored = focus.get(session.id)
        assert stored.topic_label == "Systems"
        assert stored.keywords == ["Go", "Rust"]
        assert stored.last_updated == clock()
        assert focus.update_topic(9999, "x", [], clock()) is False

    def test_deleting_active_session_clears_slot(self, focus, clock):
        focus.create("Rust", ["Rust"], clock())
        assert focus.delete_updated_before(clock.advance(1)) == 1

        assert focus.get_active() is None
        focus.create("Go", ["Go"], clock())

    def test_history_newest_first(self, focus, clock):
        focus.create("Rust", ["Rust"], clock())
        focus.close_active(clock.advance(10))
        focus.create("Go", ["Go"], clock.advance(10))

        assert [s.topic_label for s in focus.history()] == ["Go", "Rust"]
        assert [s.topic_label for s in focus.history(limit=1)] == ["Go"]


class TestActivitySummaries:
    def test_append_only_newest_first(self, summaries, clock):
        assert summaries.latest() is None
        t0 = clock()
        summaries.add("You are reading about Rust", t0)
        summaries.add("You are watching a talk", t0 + 60000)

        assert [s.summary for s in summaries.recent()] == [
            "You are watching a talk",
            "You are reading about Rust",
        ]
        assert summaries.latest().timestamp == t0 + 60000

    def test_delete_before(self, summaries, clock):
        t0 = clock()
        summaries.add("old", t0)
        summaries.add("new", t0 + 10)

        assert summaries.delete_before(t0 + 10) == 1
        assert [s.summary for s in summaries.recent()] == ["new"]
