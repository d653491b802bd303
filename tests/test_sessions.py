"""
Tests for the listing and editor sessions.
"""

from datetime import datetime, timedelta, timezone

import httpx
import pytest

from agents import Summary
from apps.blog.domain import PostRecord
from apps.blog.sources import InMemoryPostSource
from client.api_client import BlogAPI, RemotePostSource
from client.session import Debouncer, EditorSession, ListingSession
from utils.exceptions import AIServiceError, TransportError

BASE = datetime(2024, 1, 1, tzinfo=timezone.utc)


class FakeTimer:
    """Stands in for threading.Timer; tests fire it by hand."""

    created = []

    def __init__(self, interval, function, args=None, kwargs=None):
        self.interval = interval
        self.function = function
        self.args = args or ()
        self.kwargs = kwargs or {}
        self.started = False
        self.cancelled = False
        self.daemon = False
        FakeTimer.created.append(self)

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if not self.cancelled:
            self.function(*self.args, **self.kwargs)


@pytest.fixture(autouse=True)
def reset_timers():
    FakeTimer.created = []


def record(n, **fields):
    defaults = {
        "id": f"id-{n}",
        "slug": f"post-{n}",
        "title": f"Post {n}",
        "category": "Technology",
        "excerpt": f"Excerpt {n}",
        "status": "published",
        "publish_date": BASE + timedelta(days=n),
    }
    defaults.update(fields)
    return PostRecord(**defaults)


class FlakySource:
    """Wraps a source and fails list() while broken is set."""

    def __init__(self, source):
        self.source = source
        self.broken = False
        self.calls = 0

    def list(self, criteria=None):
        self.calls += 1
        if self.broken:
            raise TransportError("Network down")
        return self.source.list(criteria)

    def __getattr__(self, name):
        return getattr(self.source, name)


@pytest.fixture
def source():
    posts = [record(n) for n in range(1, 11)]
    posts.append(record(11, title="The Future of AI", excerpt="Machines"))
    posts.append(record(12, title="Travel Tips", excerpt="Pack light", category="News"))
    posts.append(record(13, title="Hidden draft", status="draft"))
    return InMemoryPostSource(posts=posts, categories=["Technology", "News"])


class TestDebouncer:
    def test_only_last_call_runs(self):
        calls = []
        debouncer = Debouncer(0.3, calls.append, timer_factory=FakeTimer)
        debouncer.call("a")
        debouncer.call("ab")
        first, second = FakeTimer.created
        assert first.cancelled and second.started
        assert second.interval == 0.3
        first.fire()
        second.fire()
        assert calls == ["ab"]
        assert not debouncer.pending

    def test_cancel(self):
        calls = []
        debouncer = Debouncer(0.3, calls.append, timer_factory=FakeTimer)
        debouncer.call("a")
        debouncer.cancel()
        FakeTimer.created[0].fire()
        assert calls == []


class TestListingSession:
    def test_refresh_loads_first_page(self, source):
        session = ListingSession(source, timer_factory=FakeTimer)
        assert session.refresh()
        assert session.total_pages == 2
        assert len(session.cards) == 9
        assert session.cards[0]["title"] == "Travel Tips"
        assert not session.loading

    def test_go_to_page(self, source):
        session = ListingSession(source, timer_factory=FakeTimer)
        session.refresh()
        assert session.go_to_page(2)
        assert session.page == 2
        assert len(session.result.items) == 3

    def test_go_to_page_out_of_range_ignored(self, source):
        session = ListingSession(source, timer_factory=FakeTimer)
        session.refresh()
        assert not session.go_to_page(3)
        assert not session.go_to_page(0)
        assert session.page == 1

    def test_criteria_change_resets_page(self, source):
        session = ListingSession(source, timer_factory=FakeTimer)
        session.refresh()
        session.go_to_page(2)
        session.set_category("Technology")
        assert session.page == 1
        assert all(p.category == "Technology" for p in session.result.items)

    def test_unchanged_criteria_keep_page(self, source):
        session = ListingSession(source, timer_factory=FakeTimer)
        session.refresh()
        session.go_to_page(2)
        assert not session.set_category(None)
        assert session.page == 2

    def test_search(self, source):
        session = ListingSession(source, timer_factory=FakeTimer)
        session.set_search("AI")
        assert [p.title for p in session.result.items] == ["The Future of AI"]

    def test_type_search_is_debounced(self, source):
        session = ListingSession(source, search_delay=0.3, timer_factory=FakeTimer)
        session.refresh()
        session.type_search("tr")
        session.type_search("travel")
        assert session.criteria.search is None
        FakeTimer.created[-1].fire()
        assert session.criteria.search == "travel"
        assert [p.title for p in session.result.items] == ["Travel Tips"]

    def test_failure_keeps_previous_result(self, source):
        flaky = FlakySource(source)
        session = ListingSession(flaky, timer_factory=FakeTimer)
        session.refresh()
        previous = session.result

        flaky.broken = True
        assert not session.set_category("News")
        assert session.result is previous
        assert not session.loading
        notifications = session.pop_notifications()
        assert len(notifications) == 1
        assert notifications[0].is_error
        assert "Network down" in notifications[0].message
        assert session.pop_notifications() == []

    def test_malformed_remote_post_keeps_previous_result(self, source):
        def handler(request):
            return httpx.Response(
                200,
                json={"posts": [{"title": "No id or date"}], "pagination": {"totalPages": 1}},
            )

        session = ListingSession(source, timer_factory=FakeTimer)
        session.refresh()
        previous = session.result

        session.source = RemotePostSource(
            BlogAPI(base_url="http://blog.test/api", transport=httpx.MockTransport(handler))
        )
        assert not session.refresh()
        assert session.result is previous
        assert not session.loading
        assert session.pop_notifications()[0].is_error

    def test_superseded_refresh_is_dropped(self, source):
        session = ListingSession(source, timer_factory=FakeTimer)

        class SlowSource:
            def list(inner, criteria=None):
                # A newer refresh starts while this one is in flight
                session._generation += 1
                return source.list(criteria)

        session.source = SlowSource()
        assert not session.refresh()
        assert session.result is None

    def test_admin_listing_includes_drafts(self, source):
        session = ListingSession(source, status=None, timer_factory=FakeTimer)
        session.refresh()
        assert session.result.total_items == 13


class TestEditorSession:
    def test_generate_with_ai_fills_form(self, source):
        summary = Summary(title="Big news", body="Line one\nLine two", tags=["a", "b"])
        editor = EditorSession(source, summarizer=lambda text: summary)

        assert editor.generate_with_ai("https://news.example.com/story")
        assert editor.form["title"] == "Big news"
        assert editor.form["content"] == "<p>Line one</p><p>Line two</p>"
        assert editor.form["excerpt"] == "Line one\nLine two..."
        assert editor.form["category"] == "News"
        assert editor.form["tags"] == ["a", "b"]
        assert not editor.generating
        assert editor.notifications[-1].title == "Content Generated"

    def test_unknown_category_falls_back_to_first(self):
        source = InMemoryPostSource(categories=["Technology"])
        editor = EditorSession(
            source,
            summarizer=lambda text: {"title": "T", "body": "B", "tags": "x, y", "category": "News"},
        )
        editor.generate_with_ai("text")
        assert editor.form["category"] == "Technology"
        assert editor.form["tags"] == ["x", "y"]

    def test_empty_input_rejected(self, source):
        editor = EditorSession(source, summarizer=lambda text: pytest.fail("should not be called"))
        assert not editor.generate_with_ai("   ")
        assert editor.notifications[-1].is_error

    def test_failure_keeps_form_and_allows_one_retry(self, source):
        attempts = []

        def failing(text):
            attempts.append(text)
            raise AIServiceError("model overloaded")

        editor = EditorSession(source, summarizer=failing)
        editor.set_field("title", "My draft title")

        assert not editor.generate_with_ai("some article")
        assert editor.form["title"] == "My draft title"
        assert editor.notifications[-1].title == "AI Error"
        assert editor.can_retry

        assert not editor.retry_generation()
        assert not editor.can_retry
        assert not editor.retry_generation()
        assert attempts == ["some article", "some article"]

    @pytest.mark.parametrize(
        "reply",
        [
            {"title": "T", "body": "B", "tags": [1, 2]},
            {"title": ["T"], "body": "B", "tags": []},
            {"title": "T", "body": {"text": "B"}, "tags": []},
            "just a string",
        ],
    )
    def test_malformed_reply_is_reported_not_raised(self, source, reply):
        editor = EditorSession(source, summarizer=lambda text: reply)
        editor.set_field("title", "Keep me")

        assert not editor.generate_with_ai("article")
        assert editor.form["title"] == "Keep me"
        assert editor.notifications[-1].title == "AI Error"
        assert editor.can_retry
        assert not editor.generating

    def test_retry_can_succeed(self, source):
        results = [TransportError("timeout"), Summary(title="Second try", body="B", tags=[])]

        def flaky(text):
            result = results.pop(0)
            if isinstance(result, Exception):
                raise result
            return result

        editor = EditorSession(source, summarizer=flaky)
        editor.generate_with_ai("article")
        assert editor.retry_generation()
        assert editor.form["title"] == "Second try"

    def test_save_creates_then_updates(self, source):
        editor = EditorSession(source)
        editor.set_field("title", "Hello, World!")
        editor.set_field("category", "News")
        editor.set_field("tags", "one, two")

        created = editor.save()
        assert created is not None
        assert created.slug == "hello-world"
        assert not editor.is_new
        assert editor.form["tags"] == ["one", "two"]

        editor.set_field("status", "published")
        updated = editor.save()
        assert updated.id == created.id
        assert updated.status == "published"
        assert len(source) == 14

    def test_save_failure_keeps_form(self, source):
        editor = EditorSession(source)
        editor.set_field("title", "No category")
        assert editor.save() is None
        assert editor.is_new
        assert editor.form["title"] == "No category"
        assert editor.notifications[-1].is_error

    def test_edit_existing_and_delete(self, source):
        editor = EditorSession(source, post=source.get("id-1"))
        assert editor.form["title"] == "Post 1"
        assert editor.delete()
        assert editor.is_new
        assert len(source) == 12

    def test_unknown_form_field(self, source):
        with pytest.raises(KeyError):
            EditorSession(source).set_field("views", 1)
