"""
Event Types for the Event Tracking System

Defines the closed taxonomy of event kinds and report kinds shared by the
tracking client and the collection backend.
"""

from enum import Enum


class EventType(Enum):
    """Allowed event types for tracking."""
    
    # Navigation events
    PAGE_VIEW = "page_view"
    
    # Task lifecycle events
    TASK_CREATED = "task_created"
    TASK_COMPLETED = "task_completed"
    TASK_UPDATED = "task_updated"
    
    # User session events
    USER_LOGIN = "user_login"
    USER_LOGOUT = "user_logout"
    
    # Reporting events
    REPORT_GENERATED = "report_generated"
    
    CUSTOM = "custom"
    
    @classmethod
    def is_valid(cls, event_type: str) -> bool:
        """Check if an event type string is valid."""
        try:
            cls(event_type)
            return True
        except ValueError:
            return False
    
    @classmethod
    def get_allowed_types(cls) -> set[str]:
        """Get all allowed event type strings."""
        return {e.value for e in cls}


class ReportType(Enum):
    """Kinds of report a ReportConfig can describe."""
    
    PRODUCTIVITY = "productivity"
    TASK_ANALYSIS = "task_analysis"
    USER_ACTIVITY = "user_activity"
    PERFORMANCE = "performance"
    CUSTOM = "custom"
    
    @classmethod
    def is_valid(cls, report_type: str) -> bool:
        """Check if a report type string is valid."""
        try:
            cls(report_type)
            return True
        except ValueError:
            return False
