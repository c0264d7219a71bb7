"""
Trade Services CRM Application

Jobs, quotes, invoicing, trade partner fees and the partner portal,
inspections with printable certificates, SEO content autopilot and the
owner's wellbeing tools, served as a JSON API.

The Flask app is built by app_init.create_app(); route handlers live in
app/api/ and business logic in services/.

Database tables are created on startup for development. For production
schemas run: alembic upgrade head
"""
import os
import logging

from app_init import create_app

logger = logging.getLogger(__name__)

app = create_app()


if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5000))
    logger.info(f"Starting development server on port {port}")
    app.run(host='0.0.0.0', port=port, debug=False)
