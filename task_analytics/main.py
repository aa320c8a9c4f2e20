from flask import Flask, jsonify
from werkzeug.middleware.proxy_fix import ProxyFix

from task_analytics.collector.factory import create_collector_module


def create_app(collector_module: dict = None) -> Flask:
    """Create the Flask application hosting the collection endpoint.

    Args:
        collector_module: Optional pre-built collector module (for tests)
    """
    flask_app = Flask(__name__)
    flask_app.wsgi_app = ProxyFix(
        flask_app.wsgi_app,
        x_proto=1,    # trust 1 hop for X-Forwarded-Proto
        x_host=1,     # trust 1 hop for X-Forwarded-Host
        x_prefix=1)   # trust 1 hop for X-Forwarded-Prefix

    collector_module = collector_module or create_collector_module()
    flask_app.register_blueprint(collector_module["blueprint"])
    flask_app.extensions["analytics_service"] = collector_module["service"]

    @flask_app.route("/health", methods=["GET"])
    def health():
        return jsonify({"status": "ok"})

    return flask_app


app = create_app()
