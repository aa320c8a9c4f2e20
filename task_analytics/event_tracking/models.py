"""
Data Models for Event Tracking

Defines the interchange structures shared by the tracking client, the
collection backend, and dashboard/report consumers. Field names in
``to_dict`` output are part of the wire contract and use camelCase.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from .event_types import EventType, ReportType


# JSON-compatible metadata values. Nested lists/dicts hold the same kinds.
MetadataValue = Union[str, int, float, bool, None, List[Any], Dict[str, Any]]
Metadata = Dict[str, MetadataValue]

DATE_RANGE_PRESETS = {"today", "yesterday", "last7days", "last30days", "lastMonth", "custom"}
SCHEDULE_FREQUENCIES = {"daily", "weekly", "monthly"}
REPORT_FORMATS = {"pdf", "csv", "json", "html"}


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime to ISO 8601, passing None through."""
    if value is None:
        return None
    return value.isoformat()


def parse_iso(value: Union[str, datetime, None]) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp (accepting a trailing 'Z').

    Naive timestamps are treated as UTC.

    Raises:
        ValueError: If the string is not a valid ISO 8601 timestamp
    """
    if value is None or isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    if dt is not None and dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def normalize_metadata_value(value: Any) -> MetadataValue:
    """Coerce a single metadata value into a JSON-compatible value."""
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, Enum):
        return normalize_metadata_value(value.value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): normalize_metadata_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [normalize_metadata_value(v) for v in value]
    return str(value)


def normalize_metadata(metadata: Optional[Dict[str, Any]]) -> Optional[Metadata]:
    """Normalize a metadata mapping so it can be serialized as JSON."""
    if metadata is None:
        return None
    return {str(key): normalize_metadata_value(value) for key, value in metadata.items()}


@dataclass
class TrackEventOptions:
    """Caller-facing input to ``EventTracker.track_event``."""

    event_type: EventType
    metadata: Optional[Dict[str, Any]] = None
    session_id: Optional[str] = None


@dataclass
class AnalyticsEvent:
    """A recorded event as stored by the collection backend."""

    id: str
    event_type: EventType
    user_id: str
    timestamp: datetime
    metadata: Optional[Metadata] = None
    session_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = {
            "id": self.id,
            "eventType": self.event_type.value,
            "userId": self.user_id,
            "timestamp": to_iso(self.timestamp),
        }
        if self.metadata is not None:
            data["metadata"] = self.metadata
        if self.session_id is not None:
            data["sessionId"] = self.session_id
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AnalyticsEvent':
        """Create AnalyticsEvent from dictionary."""
        return cls(
            id=data["id"],
            event_type=EventType(data["eventType"]),
            user_id=data["userId"],
            timestamp=parse_iso(data["timestamp"]),
            metadata=data.get("metadata"),
            session_id=data.get("sessionId")
        )


@dataclass
class MetricData:
    """A named scalar measurement."""

    name: str
    value: float
    timestamp: datetime
    tags: Optional[Dict[str, str]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = {
            "name": self.name,
            "value": self.value,
            "timestamp": to_iso(self.timestamp),
        }
        if self.tags is not None:
            data["tags"] = self.tags
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MetricData':
        """Create MetricData from dictionary."""
        return cls(
            name=data["name"],
            value=data["value"],
            timestamp=parse_iso(data["timestamp"]),
            tags=data.get("tags")
        )


@dataclass
class DashboardMetrics:
    """Fixed-shape snapshot consumed by the dashboard."""

    total_tasks: int = 0
    completed_tasks: int = 0
    active_tasks: int = 0
    average_completion_time: float = 0.0
    task_completion_rate: float = 0.0
    daily_active_users: int = 0
    weekly_active_users: int = 0
    monthly_active_users: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "totalTasks": self.total_tasks,
            "completedTasks": self.completed_tasks,
            "activeTasks": self.active_tasks,
            "averageCompletionTime": self.average_completion_time,
            "taskCompletionRate": self.task_completion_rate,
            "dailyActiveUsers": self.daily_active_users,
            "weeklyActiveUsers": self.weekly_active_users,
            "monthlyActiveUsers": self.monthly_active_users
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DashboardMetrics':
        """Create DashboardMetrics from dictionary."""
        return cls(
            total_tasks=data.get("totalTasks", 0),
            completed_tasks=data.get("completedTasks", 0),
            active_tasks=data.get("activeTasks", 0),
            average_completion_time=data.get("averageCompletionTime", 0.0),
            task_completion_rate=data.get("taskCompletionRate", 0.0),
            daily_active_users=data.get("dailyActiveUsers", 0),
            weekly_active_users=data.get("weeklyActiveUsers", 0),
            monthly_active_users=data.get("monthlyActiveUsers", 0)
        )


@dataclass
class TimeSeriesData:
    """One point of a time series."""

    timestamp: datetime
    value: float
    label: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = {"timestamp": to_iso(self.timestamp), "value": self.value}
        if self.label is not None:
            data["label"] = self.label
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TimeSeriesData':
        """Create TimeSeriesData from dictionary."""
        return cls(
            timestamp=parse_iso(data["timestamp"]),
            value=data["value"],
            label=data.get("label")
        )


@dataclass
class ChartDataset:
    """A single dataset within ChartData."""

    label: str
    data: List[float] = field(default_factory=list)
    background_color: Optional[Union[str, List[str]]] = None
    border_color: Optional[str] = None
    border_width: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = {"label": self.label, "data": self.data}
        if self.background_color is not None:
            data["backgroundColor"] = self.background_color
        if self.border_color is not None:
            data["borderColor"] = self.border_color
        if self.border_width is not None:
            data["borderWidth"] = self.border_width
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ChartDataset':
        """Create ChartDataset from dictionary."""
        return cls(
            label=data["label"],
            data=list(data.get("data", [])),
            background_color=data.get("backgroundColor"),
            border_color=data.get("borderColor"),
            border_width=data.get("borderWidth")
        )


@dataclass
class ChartData:
    """Labels plus datasets, ready for a charting widget."""

    labels: List[str] = field(default_factory=list)
    datasets: List[ChartDataset] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "labels": self.labels,
            "datasets": [dataset.to_dict() for dataset in self.datasets]
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ChartData':
        """Create ChartData from dictionary."""
        return cls(
            labels=list(data.get("labels", [])),
            datasets=[ChartDataset.from_dict(d) for d in data.get("datasets", [])]
        )


@dataclass
class DateRange:
    """Inclusive date range, optionally tagged with the preset it came from."""

    start: datetime
    end: datetime
    preset: Optional[str] = None

    def __post_init__(self):
        if self.preset is not None and self.preset not in DATE_RANGE_PRESETS:
            raise ValueError(f"Unknown date range preset: {self.preset}")

    def contains(self, moment: datetime) -> bool:
        """Check whether a timestamp falls inside the range."""
        return self.start <= moment <= self.end

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = {"start": to_iso(self.start), "end": to_iso(self.end)}
        if self.preset is not None:
            data["preset"] = self.preset
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DateRange':
        """Create DateRange from dictionary."""
        return cls(
            start=parse_iso(data["start"]),
            end=parse_iso(data["end"]),
            preset=data.get("preset")
        )


@dataclass
class ReportSchedule:
    """Recurring delivery schedule for a report."""

    frequency: str
    time: str  # HH:mm
    recipients: List[str] = field(default_factory=list)
    day_of_week: Optional[int] = None  # 0-6, weekly only
    day_of_month: Optional[int] = None  # 1-31, monthly only

    def __post_init__(self):
        if self.frequency not in SCHEDULE_FREQUENCIES:
            raise ValueError(f"Unknown schedule frequency: {self.frequency}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = {
            "frequency": self.frequency,
            "time": self.time,
            "recipients": self.recipients
        }
        if self.day_of_week is not None:
            data["dayOfWeek"] = self.day_of_week
        if self.day_of_month is not None:
            data["dayOfMonth"] = self.day_of_month
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ReportSchedule':
        """Create ReportSchedule from dictionary."""
        return cls(
            frequency=data["frequency"],
            time=data["time"],
            recipients=list(data.get("recipients", [])),
            day_of_week=data.get("dayOfWeek"),
            day_of_month=data.get("dayOfMonth")
        )


@dataclass
class ReportConfig:
    """Definition of a report; realized externally into a GeneratedReport."""

    id: str
    name: str
    type: ReportType
    date_range: DateRange
    metrics: List[str] = field(default_factory=list)
    filters: Optional[Dict[str, Any]] = None
    schedule: Optional[ReportSchedule] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "dateRange": self.date_range.to_dict(),
            "metrics": self.metrics
        }
        if self.filters is not None:
            data["filters"] = self.filters
        if self.schedule is not None:
            data["schedule"] = self.schedule.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ReportConfig':
        """Create ReportConfig from dictionary."""
        schedule = data.get("schedule")
        return cls(
            id=data["id"],
            name=data["name"],
            type=ReportType(data["type"]),
            date_range=DateRange.from_dict(data["dateRange"]),
            metrics=list(data.get("metrics", [])),
            filters=data.get("filters"),
            schedule=ReportSchedule.from_dict(schedule) if schedule else None
        )


@dataclass
class GeneratedReport:
    """A report realized from a ReportConfig."""

    id: str
    config: ReportConfig
    generated_at: datetime
    data: Any
    format: str
    url: Optional[str] = None

    def __post_init__(self):
        if self.format not in REPORT_FORMATS:
            raise ValueError(f"Unknown report format: {self.format}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = {
            "id": self.id,
            "config": self.config.to_dict(),
            "generatedAt": to_iso(self.generated_at),
            "data": self.data,
            "format": self.format
        }
        if self.url is not None:
            data["url"] = self.url
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GeneratedReport':
        """Create GeneratedReport from dictionary."""
        return cls(
            id=data["id"],
            config=ReportConfig.from_dict(data["config"]),
            generated_at=parse_iso(data["generatedAt"]),
            data=data.get("data"),
            format=data["format"],
            url=data.get("url")
        )
