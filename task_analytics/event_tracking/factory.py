"""
Factory for creating event tracking module.
"""
from typing import Optional

import requests

from config_manager import TrackingConfig
from .event_tracker import EventTracker, Dispatcher, UserIdProvider, placeholder_user_id_provider


def create_event_tracking_module(
    tracking_config: TrackingConfig,
    user_id_provider: Optional[UserIdProvider] = None,
    session: Optional[requests.Session] = None,
    dispatcher: Optional[Dispatcher] = None
) -> dict:
    """Create event tracking module with its client service.
    
    Args:
        tracking_config: Endpoint, timeout and session settings
        user_id_provider: Callable returning the current user id; falls back
            to the configured placeholder id
        session: Optional requests session for delivery
        dispatcher: Optional dispatcher (defaults to a bounded delivery pool)
    
    Returns:
        Dictionary containing the service
    """
    event_tracker = EventTracker(
        endpoint_url=tracking_config.endpoint_url,
        user_id_provider=user_id_provider or placeholder_user_id_provider(tracking_config.default_user_id),
        session=session,
        timeout=tracking_config.timeout,
        dispatcher=dispatcher,
        session_prefix=tracking_config.session_prefix,
        enabled=tracking_config.enabled,
        max_workers=tracking_config.max_workers
    )
    
    return {
        "service": event_tracker
    }
