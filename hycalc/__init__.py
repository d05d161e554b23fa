"""Rental property projection Flask application factory."""

import logging
from typing import Optional

from flask import Flask

from hycalc.config import get_global_settings


def create_app(config_name: Optional[str] = None) -> Flask:
    """Create and configure the Flask application.

    Args:
        config_name: Configuration name (development, testing, production)

    Returns:
        Flask: Configured Flask application instance
    """
    app = Flask(__name__)

    # Configuration from Pydantic Settings
    settings = get_global_settings()
    app.config["SECRET_KEY"] = settings.secret_key
    app.config["ENV"] = config_name or settings.app_env
    app.config["DEBUG"] = settings.app_env == "development"
    app.config["TESTING"] = (config_name or settings.app_env) == "testing"

    logging.getLogger("hycalc").setLevel(settings.log_level)
    app.logger.setLevel(settings.log_level)

    from hycalc.services import ProjectionService

    app.extensions["projection_service"] = ProjectionService.from_settings(settings)

    # Register blueprints
    from hycalc.blueprints.health import health_bp
    from hycalc.blueprints.projections import projections_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(projections_bp)

    return app
