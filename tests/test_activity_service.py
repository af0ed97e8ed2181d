from focuslens.core.services.activity_service import attention_content


def test_empty_store(activity):
    assert activity.all_activity_for_last_ms(60_000) == []


def test_joins_attention_to_visits(activity, visits, attentions, clock):
    t0 = clock()
    visits.record_open("https://a.example/post", "A", t0)
    attentions.add_text("https://a.example/post", "first paragraph", t0 + 10)
    attentions.add_image("https://a.example/post", "https://a.example/cat.png", "a cat", t0 + 20)
    attentions.add_text("https://b.example/other", "belongs elsewhere", t0 + 30)
    clock.advance(1000)

    [item] = activity.all_activity_for_last_ms(60_000)

    assert item.visit.url == "https://a.example/post"
    assert [t.text for t in item.text_attentions] == ["first paragraph"]
    assert [i.caption for i in item.image_attentions] == ["a cat"]
    assert item.attention_count == 2
    assert item.latest_activity == t0 + 20


def test_video_matched_by_id_in_url(activity, visits, attentions, clock):
    t0 = clock()
    visits.record_open("https://www.youtube.com/watch?v=abc123", "Video", t0)
    attentions.open_video("abc123", "Intro to Rust", "Rustacean", t0 + 5)
    attentions.open_video("zzz999", "Unrelated", "Other", t0 + 5)
    clock.advance(100)

    [item] = activity.all_activity_for_last_ms(60_000)
    assert [v.video_id for v in item.video_attentions] == ["abc123"]


def test_window_bounds(activity, visits, attentions, clock):
    t0 = clock()
    visits.record_open("https://old.example", "Old", t0)
    clock.advance(5000)
    visits.record_open("https://new.example", "New", clock())
    attentions.add_text("https://new.example", "fresh", clock())
    attentions.add_text("https://new.example", "stale", t0)

    # cutoff == t0: strictly-after excludes the first visit and the stale text
    items = activity.all_activity_for_last_ms(5000)
    assert [a.visit.url for a in items] == ["https://new.example"]
    assert [t.text for t in items[0].text_attentions] == ["fresh"]


def test_sorted_by_latest_activity(activity, visits, attentions, clock):
    t0 = clock()
    visits.record_open("https://first.example", "First", t0)
    visits.record_open("https://second.example", "Second", t0 + 100)
    attentions.add_text("https://first.example", "read later", t0 + 500)
    clock.advance(1000)

    items = activity.all_activity_for_last_ms(60_000)
    assert [a.visit.url for a in items] == ["https://first.example", "https://second.example"]


def test_latest_activity_counts_close_and_active_time(activity, visits, clock):
    t0 = clock()
    visits.record_open("https://closed.example", "Closed", t0)
    visits.record_close("https://closed.example", t0 + 4000)
    visits.record_open("https://active.example", "Active", t0 + 100)
    visits.update_active_time("https://active.example", 2000)
    clock.advance(5000)

    items = {a.visit.url: a for a in activity.all_activity_for_last_ms(60_000)}
    assert items["https://closed.example"].latest_activity == t0 + 4000
    assert items["https://active.example"].latest_activity == t0 + 2100


def test_repeated_reads_are_identical(activity, read_page, clock):
    read_page("https://a.example", "A", "some text")
    clock.advance(10)

    first = [a.to_dict() for a in activity.all_activity_for_last_ms(60_000)]
    second = [a.to_dict() for a in activity.all_activity_for_last_ms(60_000)]
    assert first == second


def test_attention_content_blocks(activity, visits, attentions, clock):
    t0 = clock()
    visits.record_open("https://a.example", "A", t0)
    attentions.add_text("https://a.example", "alpha", t0)
    visits.record_open("https://b.example", "B", t0 + 1)
    attentions.add_text("https://b.example", "beta", t0 + 1)
    clock.advance(10)

    content = attention_content(activity.all_activity_for_last_ms(60_000))

    assert content.startswith("Title 1: B\nURL 1: https://b.example")
    assert "\n\n---\n\nTitle 2: A" in content
    assert "alpha" in content and "beta" in content
