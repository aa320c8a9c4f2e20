"""
Event Tracking Subsystem

Client-side event emission plus the data contracts shared with the
collection backend and dashboard/report consumers.
"""

from .event_tracker import EventTracker
from .event_types import EventType, ReportType
from .factory import create_event_tracking_module
from .models import (
    AnalyticsEvent,
    ChartData,
    ChartDataset,
    DashboardMetrics,
    DateRange,
    GeneratedReport,
    MetricData,
    ReportConfig,
    ReportSchedule,
    TimeSeriesData,
    TrackEventOptions,
)
from .session import generate_session_id

__all__ = [
    'EventTracker', 'EventType', 'ReportType', 'create_event_tracking_module',
    'AnalyticsEvent', 'ChartData', 'ChartDataset', 'DashboardMetrics', 'DateRange',
    'GeneratedReport', 'MetricData', 'ReportConfig', 'ReportSchedule',
    'TimeSeriesData', 'TrackEventOptions', 'generate_session_id',
]
