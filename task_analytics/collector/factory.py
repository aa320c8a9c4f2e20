"""
Factory for creating the analytics collector module.
"""
from typing import Optional

from .routes import create_collector_blueprint
from .services import AnalyticsService
from .store import AnalyticsStore


def create_collector_module(store: Optional[AnalyticsStore] = None) -> dict:
    """Create collector module with service and routes.
    
    Args:
        store: Optional store to back the service (in-memory by default)
    
    Returns:
        Dictionary containing the service and blueprint
    """
    analytics_service = AnalyticsService(store)
    
    blueprint = create_collector_blueprint(analytics_service)
    
    return {
        "service": analytics_service,
        "blueprint": blueprint
    }
