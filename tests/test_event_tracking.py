"""
Tests for the event tracking client and its data contracts.
"""

import json
import logging
import re
import threading
from datetime import datetime, timezone, date
from unittest.mock import MagicMock

import pytest
import requests

from task_analytics.event_tracking.event_tracker import (
    DEFAULT_USER_ID,
    EventTracker,
    PoolDispatcher,
    placeholder_user_id_provider,
)
from task_analytics.event_tracking.event_types import EventType, ReportType
from task_analytics.event_tracking.factory import create_event_tracking_module
from task_analytics.event_tracking.models import (
    AnalyticsEvent,
    ChartData,
    ChartDataset,
    DateRange,
    GeneratedReport,
    ReportConfig,
    ReportSchedule,
    TimeSeriesData,
    TrackEventOptions,
    normalize_metadata,
    parse_iso,
)
from task_analytics.event_tracking.session import generate_session_id
from config_manager import TrackingConfig

SESSION_ID_PATTERN = re.compile(r"^session-\d{13}-[0-9a-z]{9}$")
ENDPOINT = "http://collector.test/api/analytics/events"


def run_now(delivery):
    """Dispatcher that delivers synchronously so tests can inspect the call."""
    delivery()


def make_session(ok=True, status_code=200):
    session = MagicMock()
    session.post.return_value = MagicMock(ok=ok, status_code=status_code)
    return session


def sent_envelope(session, call_index=-1):
    """Decode the JSON body of a recorded session.post call."""
    call = session.post.call_args_list[call_index]
    return json.loads(call.kwargs["data"])


def assert_iso_timestamp(value):
    assert isinstance(value, str)
    assert parse_iso(value) is not None


class TestEventTypes:
    """Test event type validation."""

    def test_valid_event_types(self):
        """Test that all expected event types are valid."""
        valid_types = [
            "page_view", "task_created", "task_completed", "task_updated",
            "user_login", "user_logout", "report_generated", "custom"
        ]

        for event_type in valid_types:
            assert EventType.is_valid(event_type)

    def test_invalid_event_types(self):
        """Test that invalid event types are rejected."""
        for event_type in ["invalid", "PAGE_VIEW", "login", ""]:
            assert not EventType.is_valid(event_type)

    def test_get_allowed_types(self):
        """Test the taxonomy is closed at eight kinds."""
        assert len(EventType.get_allowed_types()) == 8

    def test_report_types(self):
        assert ReportType.is_valid("task_analysis")
        assert not ReportType.is_valid("weekly")


class TestEventModels:
    """Test contract serialization."""

    def test_analytics_event_uses_wire_field_names(self):
        event = AnalyticsEvent(
            id="evt-1",
            event_type=EventType.TASK_CREATED,
            user_id="user-1",
            timestamp=datetime(2026, 1, 1, tzinfo=timezone.utc),
            metadata={"taskId": "t-1"},
            session_id="session-1"
        )

        data = event.to_dict()
        assert data == {
            "id": "evt-1",
            "eventType": "task_created",
            "userId": "user-1",
            "timestamp": "2026-01-01T00:00:00+00:00",
            "metadata": {"taskId": "t-1"},
            "sessionId": "session-1"
        }
        assert AnalyticsEvent.from_dict(data) == event

    def test_optional_event_fields_are_omitted(self):
        event = AnalyticsEvent(
            id="evt-2",
            event_type=EventType.USER_LOGOUT,
            user_id="user-1",
            timestamp=datetime(2026, 1, 1, tzinfo=timezone.utc)
        )
        assert "metadata" not in event.to_dict()
        assert "sessionId" not in event.to_dict()

    def test_report_config_from_dict(self):
        data = {
            "id": "config-1",
            "name": "Weekly productivity",
            "type": "productivity",
            "dateRange": {"start": "2026-01-01T00:00:00Z", "end": "2026-01-07T23:59:59Z", "preset": "last7days"},
            "metrics": ["tasks_completed"],
            "schedule": {"frequency": "weekly", "time": "09:00", "dayOfWeek": 1, "recipients": ["a@example.com"]}
        }

        config = ReportConfig.from_dict(data)
        assert config.type == ReportType.PRODUCTIVITY
        assert config.date_range.preset == "last7days"
        assert config.date_range.start.tzinfo is not None
        assert config.schedule.day_of_week == 1
        assert config.to_dict()["schedule"]["dayOfWeek"] == 1

    def test_generated_report_rejects_unknown_format(self):
        config = ReportConfig(
            id="config-1",
            name="Tasks",
            type=ReportType.TASK_ANALYSIS,
            date_range=DateRange(
                start=datetime(2026, 1, 1, tzinfo=timezone.utc),
                end=datetime(2026, 1, 2, tzinfo=timezone.utc)
            )
        )
        with pytest.raises(ValueError):
            GeneratedReport(
                id="report-1",
                config=config,
                generated_at=datetime(2026, 1, 2, tzinfo=timezone.utc),
                data={},
                format="xlsx"
            )

        report = GeneratedReport(
            id="report-1",
            config=config,
            generated_at=datetime(2026, 1, 2, tzinfo=timezone.utc),
            data={"rows": []},
            format="csv",
            url="/reports/report-1.csv"
        )
        assert report.to_dict()["generatedAt"] == "2026-01-02T00:00:00+00:00"
        assert report.to_dict()["config"]["type"] == "task_analysis"

    def test_invalid_enumerations_rejected(self):
        with pytest.raises(ValueError):
            ReportSchedule(frequency="hourly", time="09:00")
        with pytest.raises(ValueError):
            DateRange(start=datetime.now(timezone.utc), end=datetime.now(timezone.utc), preset="forever")

    def test_normalize_metadata(self):
        """Non-JSON values are coerced at the boundary."""
        normalized = normalize_metadata({
            "when": datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc),
            "day": date(2026, 1, 1),
            "kind": EventType.CUSTOM,
            "tags": ("a", "b"),
            "nested": {"count": 2, "flag": True, "none": None},
            1: "numeric key",
        })

        assert normalized == {
            "when": "2026-01-01T12:00:00+00:00",
            "day": "2026-01-01",
            "kind": "custom",
            "tags": ["a", "b"],
            "nested": {"count": 2, "flag": True, "none": None},
            "1": "numeric key",
        }
        json.dumps(normalized)
        assert normalize_metadata(None) is None

    def test_chart_and_series_payloads_parse(self):
        """Aggregation payloads read back into their typed models."""
        chart = ChartData.from_dict({
            "labels": ["Active", "Completed"],
            "datasets": [{
                "label": "Task Status",
                "data": [3, 5],
                "backgroundColor": ["#3b82f6", "#10b981"],
                "borderColor": "#fff",
                "borderWidth": 2
            }]
        })

        assert chart.labels == ["Active", "Completed"]
        dataset = chart.datasets[0]
        assert isinstance(dataset, ChartDataset)
        assert dataset.background_color == ["#3b82f6", "#10b981"]
        assert dataset.border_width == 2
        assert chart.to_dict()["datasets"][0]["backgroundColor"] == ["#3b82f6", "#10b981"]

        minimal = ChartDataset.from_dict({"label": "Active Users"})
        assert minimal.data == []
        assert minimal.to_dict() == {"label": "Active Users", "data": []}
        assert ChartData.from_dict({}).datasets == []

        point = TimeSeriesData.from_dict({"timestamp": "2026-01-05T00:00:00Z", "value": 4, "label": "Jan 05"})
        assert point.timestamp == datetime(2026, 1, 5, tzinfo=timezone.utc)
        assert point.value == 4
        assert point.label == "Jan 05"
        assert TimeSeriesData.from_dict({"timestamp": "2026-01-05T00:00:00+00:00", "value": 1}).label is None


class TestSessionIds:
    """Test session identifier generation."""

    def test_format(self):
        assert SESSION_ID_PATTERN.match(generate_session_id())

    def test_custom_prefix(self):
        assert generate_session_id("web").startswith("web-")

    def test_consecutive_ids_are_unique(self):
        ids = [generate_session_id() for _ in range(1000)]
        assert all(ids)
        assert len(set(ids)) == 1000


class TestEventTracker:
    """Test the EventTracker client."""

    @pytest.fixture
    def session(self):
        return make_session()

    @pytest.fixture
    def tracker(self, session):
        return EventTracker(ENDPOINT, session=session, dispatcher=run_now)

    def test_track_event_posts_envelope_once(self, tracker, session):
        """Test a single POST with the full envelope."""
        result = tracker.track_event(EventType.USER_LOGIN, {"method": "password"})

        assert result is None
        assert session.post.call_count == 1
        call = session.post.call_args
        assert call.args[0] == ENDPOINT
        assert call.kwargs["headers"] == {"Content-Type": "application/json"}
        assert call.kwargs["timeout"] == 5.0

        envelope = sent_envelope(session)
        assert envelope["eventType"] == "user_login"
        assert envelope["metadata"] == {"method": "password"}
        assert envelope["userId"] == DEFAULT_USER_ID
        assert SESSION_ID_PATTERN.match(envelope["sessionId"])

    def test_track_event_accepts_options_and_strings(self, tracker, session):
        tracker.track_event(TrackEventOptions(event_type=EventType.TASK_UPDATED, session_id="session-abc"))
        tracker.track_event("report_generated")

        first, second = sent_envelope(session, 0), sent_envelope(session, 1)
        assert first["eventType"] == "task_updated"
        assert first["sessionId"] == "session-abc"
        assert "metadata" not in first
        assert second["eventType"] == "report_generated"

    def test_explicit_session_id_is_preserved(self, tracker, session):
        tracker.track_event(EventType.PAGE_VIEW, session_id="session-explicit")
        assert sent_envelope(session)["sessionId"] == "session-explicit"

    def test_user_id_comes_from_provider(self, session):
        tracker = EventTracker(
            ENDPOINT, user_id_provider=lambda: "user-from-auth", session=session, dispatcher=run_now
        )
        tracker.track_event(EventType.USER_LOGOUT)
        assert sent_envelope(session)["userId"] == "user-from-auth"

    def test_one_attempt_per_call(self, tracker, session):
        """Test no retry on failure and one POST per call."""
        session.post.side_effect = requests.exceptions.ConnectionError("down")
        for _ in range(3):
            tracker.track_event(EventType.CUSTOM)
        assert session.post.call_count == 3

    def test_non_success_response_is_logged_not_raised(self, caplog):
        session = make_session(ok=False, status_code=503)
        tracker = EventTracker(ENDPOINT, session=session, dispatcher=run_now)

        with caplog.at_level(logging.ERROR):
            tracker.track_page_view("home")

        assert session.post.call_count == 1
        assert "HTTP 503" in caplog.text

    def test_transport_failure_is_logged_not_raised(self, tracker, session, caplog):
        session.post.side_effect = requests.exceptions.Timeout("slow collector")

        with caplog.at_level(logging.ERROR):
            tracker.track_event(EventType.TASK_CREATED, {"taskId": "t-1"})

        assert "slow collector" in caplog.text

    def test_unexpected_delivery_error_is_swallowed(self, tracker, session):
        session.post.side_effect = RuntimeError("boom")
        tracker.track_event(EventType.CUSTOM)
        assert session.post.call_count == 1

    def test_envelope_failure_is_swallowed(self, session, caplog):
        """Errors while building the envelope never reach the caller."""
        def broken_provider():
            raise RuntimeError("auth unavailable")

        tracker = EventTracker(ENDPOINT, user_id_provider=broken_provider, session=session, dispatcher=run_now)
        with caplog.at_level(logging.ERROR):
            tracker.track_event(EventType.PAGE_VIEW)
            tracker.track_event("not_a_kind")

        session.post.assert_not_called()
        assert "auth unavailable" in caplog.text

    def test_dispatcher_failure_is_swallowed(self, session):
        def broken_dispatcher(delivery):
            raise RuntimeError("can't start new thread")

        tracker = EventTracker(ENDPOINT, session=session, dispatcher=broken_dispatcher)
        tracker.track_event(EventType.CUSTOM)
        session.post.assert_not_called()

    def test_disabled_tracker_skips_delivery(self, session):
        tracker = EventTracker(ENDPOINT, session=session, dispatcher=run_now, enabled=False)
        tracker.track_page_view("home")
        session.post.assert_not_called()

    def test_default_dispatcher_does_not_block(self):
        """The caller returns while delivery is still in flight."""
        release = threading.Event()
        delivered = threading.Event()

        def slow_post(*args, **kwargs):
            release.wait(timeout=5)
            delivered.set()
            return MagicMock(ok=True, status_code=200)

        session = MagicMock()
        session.post.side_effect = slow_post
        tracker = EventTracker(ENDPOINT, session=session)

        tracker.track_task_created("task-1")
        assert not delivered.is_set()

        release.set()
        assert delivered.wait(timeout=5)
        assert session.post.call_count == 1

    def test_burst_of_events_uses_bounded_pool(self):
        """A burst never runs more deliveries at once than the pool allows."""
        lock = threading.Lock()
        in_flight = [0]
        peak = [0]
        thread_names = set()
        release = threading.Event()

        def slow_post(*args, **kwargs):
            with lock:
                in_flight[0] += 1
                peak[0] = max(peak[0], in_flight[0])
                thread_names.add(threading.current_thread().name)
            release.wait(timeout=5)
            with lock:
                in_flight[0] -= 1
            return MagicMock(ok=True, status_code=200)

        session = MagicMock()
        session.post.side_effect = slow_post
        tracker = EventTracker(ENDPOINT, session=session, max_workers=2)
        assert isinstance(tracker.dispatcher, PoolDispatcher)

        for i in range(20):
            tracker.track_task_created(f"task-{i}")

        release.set()
        tracker.close()

        assert session.post.call_count == 20
        assert peak[0] <= 2
        assert len(thread_names) <= 2
        assert all(name.startswith("EventDelivery") for name in thread_names)

    def test_close_ignores_plain_dispatchers(self):
        tracker = EventTracker(ENDPOINT, session=make_session(), dispatcher=run_now)
        tracker.close()
        tracker.track_user_login()
        assert tracker.session.post.call_count == 1


class TestConvenienceWrappers:
    """Test the kind-specific wrappers."""

    @pytest.fixture
    def session(self):
        return make_session()

    @pytest.fixture
    def tracker(self, session):
        return EventTracker(ENDPOINT, session=session, dispatcher=run_now)

    @pytest.mark.parametrize("method, argument, event_type, field", [
        ("track_page_view", "home", "page_view", "page"),
        ("track_task_created", "task-1", "task_created", "taskId"),
        ("track_task_completed", "task-1", "task_completed", "taskId"),
        ("track_task_updated", "task-1", "task_updated", "taskId"),
        ("track_report_generated", "report-1", "report_generated", "reportId"),
        ("track_custom_event", "export_clicked", "custom", "eventName"),
    ])
    def test_wrapper_fixes_kind_and_fields(self, tracker, session, method, argument, event_type, field):
        result = getattr(tracker, method)(argument, {"source": "test"})

        assert result is None
        envelope = sent_envelope(session)
        assert envelope["eventType"] == event_type
        assert envelope["metadata"][field] == argument
        assert envelope["metadata"]["source"] == "test"
        assert_iso_timestamp(envelope["metadata"]["timestamp"])

    def test_login_logout_wrappers(self, tracker, session):
        tracker.track_user_login()
        tracker.track_user_logout({"reason": "idle"})

        login, logout = sent_envelope(session, 0), sent_envelope(session, 1)
        assert login["eventType"] == "user_login"
        assert_iso_timestamp(login["metadata"]["timestamp"])
        assert logout["eventType"] == "user_logout"
        assert logout["metadata"]["reason"] == "idle"

    def test_task_completed_scenario(self, tracker, session):
        tracker.track_task_completed("task-42", {"project": "alpha"})

        envelope = sent_envelope(session)
        assert envelope["eventType"] == "task_completed"
        assert envelope["metadata"]["taskId"] == "task-42"
        assert envelope["metadata"]["project"] == "alpha"
        assert_iso_timestamp(envelope["metadata"]["timestamp"])
        assert envelope["userId"] == DEFAULT_USER_ID
        assert SESSION_ID_PATTERN.match(envelope["sessionId"])

    def test_kind_field_overrides_caller_metadata(self, tracker, session):
        tracker.track_task_created("task-real", {"taskId": "task-stale", "timestamp": "yesterday"})

        metadata = sent_envelope(session)["metadata"]
        assert metadata["taskId"] == "task-real"
        assert metadata["timestamp"] != "yesterday"

    def test_caller_metadata_is_not_mutated(self, tracker):
        metadata = {"project": "alpha"}
        tracker.track_page_view("home", metadata)
        assert metadata == {"project": "alpha"}

    def test_page_views_get_distinct_sessions(self, tracker, session):
        tracker.track_page_view("home")
        tracker.track_page_view("home")

        assert sent_envelope(session, 0)["sessionId"] != sent_envelope(session, 1)["sessionId"]


class TestEventTrackingFactory:
    """Test building the tracker from configuration."""

    def test_factory_applies_config(self):
        session = make_session()
        config = TrackingConfig(
            endpoint_url="http://example.test/events",
            timeout=2.5,
            default_user_id="user-configured",
            session_prefix="web",
            enabled=True
        )

        module = create_event_tracking_module(config, session=session, dispatcher=run_now)
        tracker = module["service"]
        tracker.track_page_view("home")

        call = session.post.call_args
        assert call.args[0] == "http://example.test/events"
        assert call.kwargs["timeout"] == 2.5
        envelope = sent_envelope(session)
        assert envelope["userId"] == "user-configured"
        assert envelope["sessionId"].startswith("web-")

    def test_placeholder_provider(self):
        assert placeholder_user_id_provider()() == DEFAULT_USER_ID
        assert placeholder_user_id_provider("user-9")() == "user-9"
