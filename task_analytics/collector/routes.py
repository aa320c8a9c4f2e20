"""
Collector Routes

Flask routes for the analytics collection endpoint and its read APIs.
"""

import logging
from typing import Optional

from flask import Blueprint, request, jsonify

from task_analytics.event_tracking.event_types import EventType
from task_analytics.event_tracking.models import DateRange, parse_iso
from .services import INTERVALS, AnalyticsService

logger = logging.getLogger(__name__)


def _date_range_from_args(required: bool = False) -> Optional[DateRange]:
    """Build a DateRange from startDate/endDate query parameters.

    Raises:
        ValueError: If dates are required but missing, or malformed
    """
    start_date = request.args.get("startDate")
    end_date = request.args.get("endDate")
    if not start_date or not end_date:
        if required:
            raise ValueError("Missing required query parameters: startDate and endDate")
        return None
    return DateRange(start=parse_iso(start_date), end=parse_iso(end_date))


def create_collector_blueprint(analytics_service: AnalyticsService) -> Blueprint:
    """Create a Flask blueprint for analytics collection routes.

    Args:
        analytics_service: Service that stores and aggregates events

    Returns:
        Flask blueprint mounted under /api/analytics
    """
    bp = Blueprint('collector', __name__, url_prefix='/api/analytics')

    @bp.route("/events", methods=["POST"])
    def ingest_event():
        """Ingest an event envelope from a tracking client."""
        payload = request.get_json(silent=True) or {}
        event_type = payload.get("eventType")
        user_id = payload.get("userId")

        if not event_type or not user_id:
            return jsonify({"error": "Missing required fields: eventType and userId"}), 400

        if not isinstance(event_type, str) or not EventType.is_valid(event_type):
            logger.warning(f"Rejected event with unknown type: {event_type!r}")
            return jsonify({"error": f"Unknown eventType: {event_type}"}), 400

        metadata = payload.get("metadata")
        if metadata is not None and not isinstance(metadata, dict):
            return jsonify({"error": "metadata must be an object"}), 400

        try:
            event = analytics_service.track_event(
                event_type=EventType(event_type),
                user_id=str(user_id),
                metadata=metadata,
                session_id=payload.get("sessionId")
            )
        except Exception as exc:
            logger.error(f"Failed to track event: {exc}", exc_info=True)
            return jsonify({"error": "Failed to track event"}), 500

        return jsonify({"success": True, "event": event.to_dict()})

    @bp.route("/metrics", methods=["POST"])
    def record_metric():
        """Record a named metric value."""
        payload = request.get_json(silent=True) or {}
        name = payload.get("name")
        value = payload.get("value")

        if not name or value is None:
            return jsonify({"error": "Missing required fields: name and value"}), 400
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return jsonify({"error": "value must be a number"}), 400

        tags = payload.get("tags")
        if tags is not None and not isinstance(tags, dict):
            return jsonify({"error": "tags must be an object"}), 400

        try:
            metric = analytics_service.record_metric(name, value, tags)
        except Exception as exc:
            logger.error(f"Failed to record metric: {exc}", exc_info=True)
            return jsonify({"error": "Failed to record metric"}), 500

        return jsonify({"success": True, "metric": metric.to_dict()})

    @bp.route("/dashboard", methods=["GET"])
    def get_dashboard_metrics():
        """Get the dashboard metrics snapshot."""
        try:
            date_range = _date_range_from_args()
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400

        try:
            metrics = analytics_service.get_dashboard_metrics(date_range)
        except Exception as exc:
            logger.error(f"Failed to get dashboard metrics: {exc}", exc_info=True)
            return jsonify({"error": "Failed to get dashboard metrics"}), 500

        return jsonify(metrics.to_dict())

    @bp.route("/timeseries/<metric>", methods=["GET"])
    def get_time_series_data(metric):
        """Get event counts bucketed by interval."""
        interval = request.args.get("interval", "day")
        try:
            date_range = _date_range_from_args(required=True)
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400

        if interval not in INTERVALS:
            return jsonify({"error": f"Unsupported interval: {interval}"}), 400

        try:
            data = analytics_service.get_time_series_data(metric, date_range, interval)
        except Exception as exc:
            logger.error(f"Failed to get time series data: {exc}", exc_info=True)
            return jsonify({"error": "Failed to get time series data"}), 500

        return jsonify([point.to_dict() for point in data])

    @bp.route("/charts/<chart_type>", methods=["GET"])
    def get_chart_data(chart_type):
        """Get chart data for a named chart."""
        try:
            date_range = _date_range_from_args()
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400

        try:
            chart = analytics_service.get_chart_data(chart_type, date_range)
        except Exception as exc:
            logger.error(f"Failed to get chart data: {exc}", exc_info=True)
            return jsonify({"error": "Failed to get chart data"}), 500

        return jsonify(chart.to_dict())

    return bp
