"""
Brokerage Zones - Application Factory

This module provides the Flask application factory pattern for creating
and configuring the application instance.
"""

import logging
import os

from flask import Flask
from brokerage.extensions import db
from brokerage.config import Config


def create_app(config_class=Config):
    """Create and configure the Flask application.

    Args:
        config_class: Configuration class to use (default: Config)

    Returns:
        Configured Flask application instance
    """
    app = Flask(__name__)
    app.config.from_object(config_class)

    _configure_logging(app.config.get('LOG_LEVEL', 'INFO'))

    # Initialize extensions
    db.init_app(app)

    # One geocoder per app; GEOCODING_BOUNDS is parsed here
    from brokerage.services.geocoding import NominatimGeocoder

    app.extensions['geocoder'] = NominatimGeocoder.from_config(app.config)

    # Register blueprints
    from brokerage.zones import zones_bp

    app.register_blueprint(zones_bp, url_prefix='/api')

    # Create database tables
    with app.app_context():
        _ensure_sqlite_directory(app.config['SQLALCHEMY_DATABASE_URI'])
        from brokerage import models  # noqa: F401
        db.create_all()

    return app


def _configure_logging(level_name):
    """Configure the root handler once and set the package log level."""
    level = getattr(logging, str(level_name).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )
    logging.getLogger('brokerage').setLevel(level)
    # Reduce noise from external libraries
    logging.getLogger('urllib3').setLevel(logging.WARNING)


def _ensure_sqlite_directory(uri):
    """Create the parent directory of a file-backed SQLite database."""
    prefix = 'sqlite:///'
    if not uri.startswith(prefix) or uri.endswith(':memory:'):
        return
    directory = os.path.dirname(uri[len(prefix):])
    if directory:
        os.makedirs(directory, exist_ok=True)
