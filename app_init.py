"""
Application Initialization Module
Builds the Flask app: config, logging, security, database, AI content
service, health endpoints, API blueprints and the optional scheduler.
"""
import os
from flask import Flask
from config import get_config, validate_storage_config
from logging_config import setup_logging
from ai_service import AIService
from security import setup_security
from health_checks import register_health_checks
from database.connection import configure_engine, init_db
from database.seed import seed_database
import logging

logger = logging.getLogger(__name__)

STORAGE_FOLDERS = ('UPLOAD_FOLDER', 'DATA_FOLDER', 'INSPECTION_BACKUP_FOLDER')


def create_app(config_name=None, overrides=None):
    """
    Application factory

    Args:
        config_name: 'development', 'production' or 'testing' (defaults to FLASK_ENV)
        overrides: Optional mapping applied on top of the config class

    Returns:
        Configured Flask application instance
    """
    app = Flask(__name__)

    app.config.from_object(get_config(config_name))
    if overrides:
        app.config.update(overrides)

    setup_logging(app)
    logger.info(f"Starting {app.config['COMPANY_NAME']} Trade Services CRM "
                f"({config_name or os.environ.get('FLASK_ENV', 'development')}, debug={app.debug})")

    # Production must not run on the SQLite fallback
    validate_storage_config(app.config.get('DATABASE_URL'))

    setup_security(app, app.config)

    configure_engine(app.config['DATABASE_URL'], echo=app.config.get('SQLALCHEMY_ECHO', False))
    init_db()
    seed_database()

    create_required_directories(app)

    app.ai_service = AIService(app.config)
    if not app.ai_service.is_available('claude'):
        logger.warning("No AI service configured - SEO content generation is disabled")

    register_health_checks(app)

    from app import register_blueprints
    register_blueprints(app)

    if app.config.get('SCHEDULER_ENABLED'):
        from services.scheduler import init_scheduler
        init_scheduler(app)

    logger.info("Application initialization complete")
    return app


def create_required_directories(app):
    """Create the attachment, data and inspection backup folders"""
    created = []
    for key in STORAGE_FOLDERS:
        directory = app.config[key]
        try:
            os.makedirs(directory, exist_ok=True)
            created.append(directory)
        except OSError as e:
            logger.error(f"Failed to create {key} at {directory}: {e}")
    logger.debug(f"Storage folders ready: {created}")
    return created
