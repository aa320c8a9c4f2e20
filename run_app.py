#!/usr/bin/env python3
"""
Simple runner script for the analytics collection service.
This script ensures the correct Python path is set and runs the app.
"""

import sys
from pathlib import Path

# Add the current directory to Python path
current_dir = Path(__file__).parent
sys.path.insert(0, str(current_dir))

from task_analytics.logging_config import get_logger, setup_logging, stop_logging
from task_analytics.main import app

if __name__ == "__main__":
    from config_manager import get_app_config
    app_config = get_app_config()

    setup_logging(debug=app_config.debug)
    logger = get_logger("run_app")
    logger.info(f"Starting analytics collector on {app_config.host}:{app_config.port}")

    try:
        app.run(
            host=app_config.host,
            port=app_config.port,
            debug=app_config.debug
        )
    finally:
        stop_logging()
