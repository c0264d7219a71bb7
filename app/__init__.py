"""
Trade Services CRM - Application Package

This package contains the modular backend structure:
- api/: HTTP route handlers (Flask Blueprints)
- utils/: Shared utility functions

Business logic lives in the root services/ package and the app factory in
app_init.py at the project root.
"""

import logging

logger = logging.getLogger(__name__)


def register_blueprints(app):
    """
    Register all API blueprints with the Flask app.
    Called from app_init.create_app() after infrastructure is configured.

    Blueprints are imported here because the services they use import
    app.utils, which would otherwise import this package mid-initialization.
    """
    from app.api.contacts import contacts_bp
    from app.api.partners import partners_bp
    from app.api.catalog import catalog_bp
    from app.api.jobs import jobs_bp
    from app.api.invoices import invoices_bp
    from app.api.partner_fees import partner_fees_bp
    from app.api.partner_portal import partner_portal_bp
    from app.api.inspections import inspections_bp
    from app.api.seo import seo_bp
    from app.api.wellbeing import wellbeing_bp
    from app.api.scheduler import scheduler_bp

    for blueprint in (contacts_bp, partners_bp, catalog_bp, jobs_bp, invoices_bp,
                      partner_fees_bp, partner_portal_bp, inspections_bp, seo_bp,
                      wellbeing_bp, scheduler_bp):
        app.register_blueprint(blueprint)

    logger.info("Registered API blueprints")


__all__ = ['register_blueprints']
