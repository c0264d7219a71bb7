"""
Database seeding for the Trade Services CRM.
Creates default catalog categories and singleton settings rows if missing.
"""

import logging
from database.connection import get_db_session
from database.models import ProductCategory, OwnerWellbeingSettings, SeoAutopilotSettings

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = [
    ('Ventilation', 'Fans, ductwork and air handling equipment'),
    ('Fire Safety', 'Fire doors, dampers and compartmentation'),
    ('Access', 'Access hatches and panels'),
    ('Labour', 'Engineer and operative time'),
    ('Materials', 'Sundries, fixings and consumables'),
]


def seed_default_categories(session):
    """Create the default catalog categories if none exist."""
    if session.query(ProductCategory).count():
        logger.info("Product categories already exist")
        return []

    created = []
    for order, (name, description) in enumerate(DEFAULT_CATEGORIES):
        category = ProductCategory(name=name, description=description, display_order=order)
        session.add(category)
        created.append(category)
    session.flush()
    logger.info(f"Created {len(created)} default product categories")
    return created


def seed_wellbeing_settings(session):
    """Create the wellbeing settings row with default reminder intervals."""
    settings = session.query(OwnerWellbeingSettings).first()
    if settings:
        return settings
    settings = OwnerWellbeingSettings()
    session.add(settings)
    session.flush()
    logger.info("Created default wellbeing settings")
    return settings


def seed_autopilot_settings(session):
    """Create the SEO autopilot settings row (disabled by default)."""
    settings = session.query(SeoAutopilotSettings).first()
    if settings:
        return settings
    settings = SeoAutopilotSettings()
    session.add(settings)
    session.flush()
    logger.info("Created default SEO autopilot settings")
    return settings


def seed_database():
    """
    Seed the database with default data if empty.
    Call this at application startup.
    """
    try:
        with get_db_session() as session:
            seed_default_categories(session)
            seed_wellbeing_settings(session)
            seed_autopilot_settings(session)
        logger.info("Database seeding completed successfully")
        return True
    except Exception as e:
        logger.error(f"Database seeding failed: {e}")
        raise


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    seed_database()
