"""
Analytics Service

Backend side of the tracking contract: stores incoming events, records
derived metrics, and aggregates events into dashboard, time-series and chart
payloads.
"""

import logging
import uuid
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from task_analytics.event_tracking.event_types import EventType
from task_analytics.event_tracking.models import (
    AnalyticsEvent,
    ChartData,
    ChartDataset,
    DashboardMetrics,
    DateRange,
    MetricData,
    TimeSeriesData,
    normalize_metadata,
    utc_now,
)
from .store import AnalyticsStore

logger = logging.getLogger(__name__)

INTERVALS = ("hour", "day", "week", "month")

# Metrics recorded automatically for selected event kinds
DERIVED_METRICS = {
    EventType.TASK_COMPLETED: "tasks_completed",
    EventType.TASK_CREATED: "tasks_created",
    EventType.USER_LOGIN: "user_logins",
}


def _start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


class AnalyticsService:
    """Service for collecting events and computing analytics."""

    def __init__(self, store: Optional[AnalyticsStore] = None, clock: Callable[[], datetime] = utc_now):
        """Initialize the analytics service.

        Args:
            store: Event/metric store (a fresh in-memory store by default)
            clock: Callable returning the current aware datetime
        """
        self.store = store or AnalyticsStore()
        self.clock = clock

    def track_event(
        self,
        event_type: EventType,
        user_id: str,
        metadata: Optional[Dict[str, Any]] = None,
        session_id: Optional[str] = None
    ) -> AnalyticsEvent:
        """Record an incoming event with a server-assigned id and timestamp."""
        event = AnalyticsEvent(
            id=uuid.uuid4().hex,
            event_type=EventType(event_type),
            user_id=user_id,
            timestamp=self.clock(),
            metadata=normalize_metadata(metadata),
            session_id=session_id
        )
        self.store.add_event(event)
        logger.info(f"Tracked event: type={event.event_type.value}, user={user_id}, session={session_id}")

        metric_name = DERIVED_METRICS.get(event.event_type)
        if metric_name:
            self.record_metric(metric_name, 1, {"userId": user_id})

        return event

    def record_metric(self, name: str, value: float, tags: Optional[Dict[str, str]] = None) -> MetricData:
        """Record a named scalar measurement."""
        metric = MetricData(name=name, value=value, timestamp=self.clock(), tags=tags)
        self.store.add_metric(metric)
        return metric

    def _events_in(self, date_range: Optional[DateRange]) -> List[AnalyticsEvent]:
        if date_range is None:
            return self.store.get_events()
        return self.store.get_events_by_date_range(date_range)

    def get_dashboard_metrics(self, date_range: Optional[DateRange] = None) -> DashboardMetrics:
        """Aggregate events into a dashboard snapshot."""
        events = self._events_in(date_range)
        created = [e for e in events if e.event_type == EventType.TASK_CREATED]
        completed = [e for e in events if e.event_type == EventType.TASK_COMPLETED]

        completion_rate = (len(completed) / len(created)) * 100 if created else 0.0

        return DashboardMetrics(
            total_tasks=len(created),
            completed_tasks=len(completed),
            active_tasks=len(created) - len(completed),
            average_completion_time=self._average_completion_hours(created, completed),
            task_completion_rate=completion_rate,
            daily_active_users=self._active_users(events, _start_of_day(self.clock())),
            weekly_active_users=self._active_users(events, self.clock() - timedelta(days=7)),
            monthly_active_users=self._active_users(events, self.clock() - timedelta(days=30))
        )

    @staticmethod
    def _average_completion_hours(created: List[AnalyticsEvent], completed: List[AnalyticsEvent]) -> float:
        """Average hours between creation and completion of the same taskId."""
        created_at: Dict[str, datetime] = {}
        for event in created:
            task_id = (event.metadata or {}).get("taskId")
            if task_id is not None and (task_id not in created_at or event.timestamp < created_at[task_id]):
                created_at[task_id] = event.timestamp

        durations = []
        for event in completed:
            task_id = (event.metadata or {}).get("taskId")
            start = created_at.get(task_id)
            if start is not None and event.timestamp >= start:
                durations.append((event.timestamp - start).total_seconds() / 3600)

        if not durations:
            return 0.0
        return round(sum(durations) / len(durations), 2)

    @staticmethod
    def _active_users(events: List[AnalyticsEvent], since: datetime) -> int:
        return len({e.user_id for e in events if e.timestamp >= since})

    def get_time_series_data(self, metric: str, date_range: DateRange, interval: str = "day") -> List[TimeSeriesData]:
        """Count events per interval bucket within a date range.

        Args:
            metric: Event type value to count, or any other name to count all events
            date_range: Range of event timestamps to include
            interval: One of hour, day, week, month

        Raises:
            ValueError: If interval is not supported
        """
        if interval not in INTERVALS:
            raise ValueError(f"Unsupported interval: {interval}")

        events = self._events_in(date_range)
        if EventType.is_valid(metric):
            events = [e for e in events if e.event_type == EventType(metric)]

        buckets: Dict[datetime, int] = defaultdict(int)
        for event in events:
            buckets[self._bucket(event.timestamp, interval)] += 1

        return [
            TimeSeriesData(timestamp=bucket, value=count, label=self._format_bucket(bucket, interval))
            for bucket, count in sorted(buckets.items())
        ]

    @staticmethod
    def _bucket(moment: datetime, interval: str) -> datetime:
        if interval == "hour":
            return moment.replace(minute=0, second=0, microsecond=0)
        day = _start_of_day(moment)
        if interval == "week":
            # Weeks start on Sunday
            return day - timedelta(days=(day.weekday() + 1) % 7)
        if interval == "month":
            return day.replace(day=1)
        return day

    @staticmethod
    def _format_bucket(bucket: datetime, interval: str) -> str:
        if interval == "hour":
            return bucket.strftime("%b %d %H:00")
        if interval == "week":
            return f"Week of {bucket.strftime('%b %d')}"
        if interval == "month":
            return bucket.strftime("%B %Y")
        return bucket.strftime("%b %d")

    def get_chart_data(self, chart_type: str, date_range: Optional[DateRange] = None) -> ChartData:
        """Build chart data for a named chart; unknown names yield an empty chart."""
        events = self._events_in(date_range)
        if chart_type == "taskStatus":
            return self._task_status_chart(events)
        if chart_type == "userActivity":
            return self._user_activity_chart(events)
        if chart_type == "productivity":
            return self._productivity_chart(events)
        logger.warning(f"Unknown chart type requested: {chart_type}")
        return ChartData()

    @staticmethod
    def _task_status_chart(events: List[AnalyticsEvent]) -> ChartData:
        created = sum(1 for e in events if e.event_type == EventType.TASK_CREATED)
        completed = sum(1 for e in events if e.event_type == EventType.TASK_COMPLETED)
        return ChartData(
            labels=["Active", "Completed"],
            datasets=[ChartDataset(
                label="Task Status",
                data=[created - completed, completed],
                background_color=["#3b82f6", "#10b981"],
                border_color="#fff",
                border_width=2
            )]
        )

    def _last_days(self, count: int) -> List[datetime]:
        today = _start_of_day(self.clock())
        return [today - timedelta(days=count - 1 - i) for i in range(count)]

    def _user_activity_chart(self, events: List[AnalyticsEvent]) -> ChartData:
        days = self._last_days(7)
        data = [
            len({e.user_id for e in events if day <= e.timestamp < day + timedelta(days=1)})
            for day in days
        ]
        return ChartData(
            labels=[day.strftime("%a") for day in days],
            datasets=[ChartDataset(
                label="Active Users",
                data=data,
                background_color="#8b5cf6",
                border_color="#7c3aed",
                border_width=2
            )]
        )

    def _productivity_chart(self, events: List[AnalyticsEvent]) -> ChartData:
        days = self._last_days(30)
        data = [
            sum(
                1 for e in events
                if e.event_type == EventType.TASK_COMPLETED and day <= e.timestamp < day + timedelta(days=1)
            )
            for day in days
        ]
        return ChartData(
            labels=[str(day.day) for day in days],
            datasets=[ChartDataset(
                label="Tasks Completed",
                data=data,
                background_color="#06b6d4",
                border_color="#0891b2",
                border_width=1
            )]
        )
