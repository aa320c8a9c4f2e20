"""
In-memory storage for collected events and metrics.
"""

from threading import Lock
from typing import Any, Dict, List, Optional

from task_analytics.event_tracking.models import AnalyticsEvent, DateRange, MetricData


class AnalyticsStore:
    """Thread-safe in-memory store. Contents are lost on restart."""

    def __init__(self):
        self._events: List[AnalyticsEvent] = []
        self._metrics: List[MetricData] = []
        self._lock = Lock()

    def add_event(self, event: AnalyticsEvent) -> None:
        with self._lock:
            self._events.append(event)

    def add_metric(self, metric: MetricData) -> None:
        with self._lock:
            self._metrics.append(metric)

    def get_events(self, filters: Optional[Dict[str, Any]] = None) -> List[AnalyticsEvent]:
        """Get events whose serialized fields equal every filter value.

        Args:
            filters: Mapping of wire field name (e.g. ``userId``) to value
        """
        with self._lock:
            events = list(self._events)
        if not filters:
            return events
        return [
            event for event in events
            if all(event.to_dict().get(key) == value for key, value in filters.items())
        ]

    def get_events_by_date_range(self, date_range: DateRange) -> List[AnalyticsEvent]:
        with self._lock:
            return [event for event in self._events if date_range.contains(event.timestamp)]

    def get_metrics(self, name: Optional[str] = None) -> List[MetricData]:
        with self._lock:
            if not name:
                return list(self._metrics)
            return [metric for metric in self._metrics if metric.name == name]
