"""
Event Tracker

Application-facing tracking client. Builds event envelopes, attaches a
session identifier, and hands a single fire-and-forget delivery to a
background dispatcher.

Delivery is best effort: transport errors, non-success responses and
envelope construction failures are logged and never reach the caller, so
lost events are invisible to the client and unmeasured by it.
"""

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, Optional, Union

import requests

from .event_types import EventType
from .models import TrackEventOptions, normalize_metadata, utc_now
from .session import SESSION_PREFIX, generate_session_id

logger = logging.getLogger(__name__)

DEFAULT_USER_ID = "user-123"
DEFAULT_MAX_WORKERS = 4

UserIdProvider = Callable[[], str]
Dispatcher = Callable[[Callable[[], None]], None]


def placeholder_user_id_provider(user_id: str = DEFAULT_USER_ID) -> UserIdProvider:
    """Return a provider that always yields a fixed user id.

    Stands in for a real auth/session lookup until one is wired in.
    """
    def provider() -> str:
        return user_id
    return provider


class PoolDispatcher:
    """Run deliveries on a bounded pool of background threads.

    Submitting never blocks the caller; bursts beyond max_workers queue up
    until a worker frees.
    """

    def __init__(self, max_workers: int = DEFAULT_MAX_WORKERS):
        self.max_workers = max_workers
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="EventDelivery")

    def __call__(self, delivery: Callable[[], None]) -> None:
        self._executor.submit(delivery)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


class EventTracker:
    """Fire-and-forget tracking client."""

    def __init__(
        self,
        endpoint_url: str,
        user_id_provider: Optional[UserIdProvider] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 5.0,
        dispatcher: Optional[Dispatcher] = None,
        session_prefix: str = SESSION_PREFIX,
        enabled: bool = True,
        max_workers: int = DEFAULT_MAX_WORKERS
    ):
        """Initialize the event tracker.

        Args:
            endpoint_url: Collection endpoint receiving POSTed envelopes
            user_id_provider: Callable returning the current user id
            session: requests session used for delivery
            timeout: Request timeout in seconds
            dispatcher: Callable that runs a delivery off the caller's path
            session_prefix: Prefix for generated session ids
            enabled: When False, events are dropped without a network call
            max_workers: Delivery threads for the default pool dispatcher
        """
        self.endpoint_url = endpoint_url
        self.user_id_provider = user_id_provider or placeholder_user_id_provider()
        self.session = session or requests.Session()
        self.timeout = timeout
        self.dispatcher = dispatcher or PoolDispatcher(max_workers)
        self.session_prefix = session_prefix
        self.enabled = enabled

    def build_envelope(
        self,
        event_type: Union[EventType, str],
        metadata: Optional[Dict[str, Any]] = None,
        session_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """Assemble the wire envelope for one event.

        Raises:
            ValueError: If event_type is not part of the taxonomy
        """
        kind = EventType(event_type)
        envelope = {"eventType": kind.value}
        if metadata is not None:
            envelope["metadata"] = normalize_metadata(metadata)
        envelope["userId"] = self.user_id_provider()
        envelope["sessionId"] = session_id or generate_session_id(self.session_prefix)
        return envelope

    def track_event(
        self,
        event_type: Union[TrackEventOptions, EventType, str],
        metadata: Optional[Dict[str, Any]] = None,
        session_id: Optional[str] = None
    ) -> None:
        """Track a single event.

        Accepts either a TrackEventOptions instance or the individual fields.
        Returns without waiting for delivery; failures are only logged.

        Args:
            event_type: Event kind, or a TrackEventOptions carrying all fields
            metadata: Optional metadata mapping
            session_id: Optional session id; a fresh one is minted if absent
        """
        if isinstance(event_type, TrackEventOptions):
            metadata = event_type.metadata
            session_id = event_type.session_id
            event_type = event_type.event_type

        if not self.enabled:
            logger.debug(f"Event tracking disabled, dropping {event_type}")
            return

        try:
            envelope = self.build_envelope(event_type, metadata, session_id)
            body = json.dumps(envelope, ensure_ascii=False)
        except Exception as e:
            logger.error(f"Error building event envelope for {event_type}: {e}")
            return

        try:
            self.dispatcher(lambda: self._deliver(body))
        except Exception as e:
            logger.error(f"Error dispatching event {envelope['eventType']}: {e}")

    def close(self, wait: bool = True) -> None:
        """Stop the delivery pool, optionally waiting for queued events."""
        shutdown = getattr(self.dispatcher, "shutdown", None)
        if shutdown is not None:
            shutdown(wait=wait)

    def _deliver(self, body: str) -> None:
        """Make exactly one delivery attempt for a serialized envelope."""
        try:
            response = self.session.post(
                self.endpoint_url,
                data=body.encode("utf-8"),
                headers={"Content-Type": "application/json"},
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Error tracking event: {e}")
            return
        except Exception:
            logger.exception("Unexpected error tracking event")
            return

        if not response.ok:
            logger.error(f"Failed to track event: HTTP {response.status_code}")

    @staticmethod
    def _capture(metadata: Optional[Dict[str, Any]], **fields: Any) -> Dict[str, Any]:
        """Merge kind-specific fields and a capture timestamp into metadata."""
        merged = dict(metadata or {})
        merged.update(fields)
        merged["timestamp"] = utc_now().isoformat()
        return merged

    def track_page_view(self, page_name: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        """Track a page view."""
        self.track_event(EventType.PAGE_VIEW, self._capture(metadata, page=page_name))

    def track_task_created(self, task_id: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        """Track creation of a task."""
        self.track_event(EventType.TASK_CREATED, self._capture(metadata, taskId=task_id))

    def track_task_completed(self, task_id: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        """Track completion of a task."""
        self.track_event(EventType.TASK_COMPLETED, self._capture(metadata, taskId=task_id))

    def track_task_updated(self, task_id: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        """Track an update to a task."""
        self.track_event(EventType.TASK_UPDATED, self._capture(metadata, taskId=task_id))

    def track_user_login(self, metadata: Optional[Dict[str, Any]] = None) -> None:
        self.track_event(EventType.USER_LOGIN, self._capture(metadata))

    def track_user_logout(self, metadata: Optional[Dict[str, Any]] = None) -> None:
        self.track_event(EventType.USER_LOGOUT, self._capture(metadata))

    def track_report_generated(self, report_id: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        self.track_event(EventType.REPORT_GENERATED, self._capture(metadata, reportId=report_id))

    def track_custom_event(self, event_name: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        """Track an application-defined event under the custom kind."""
        self.track_event(EventType.CUSTOM, self._capture(metadata, eventName=event_name))
