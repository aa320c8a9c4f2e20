"""
Collector Module

Reference collection endpoint: receives tracked events and serves
dashboard, time-series and chart aggregates.
"""

from .factory import create_collector_module
from .services import AnalyticsService
from .store import AnalyticsStore

__all__ = ["create_collector_module", "AnalyticsService", "AnalyticsStore"]
