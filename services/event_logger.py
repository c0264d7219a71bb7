"""
Event Logger Service - Audit trail of significant CRM activity.

Repositories record creations, status moves, fee accruals and payments here so
a job's history can be reconstructed later.
"""

import logging
from typing import Dict, Optional, List
from datetime import datetime

from database.models import EventLog

logger = logging.getLogger(__name__)

# Event types for different operations
EVENT_TYPES = {
    'CREATED': 'Entity was created',
    'UPDATED': 'Entity was updated',
    'DELETED': 'Entity was deleted',
    'STATUS_CHANGED': 'Status was changed',
    'STATUS_FORCED': 'Status was changed with unmet prerequisites',
    'FEE_ACCRUED': 'Partner fee was accrued',
    'INVOICE_GENERATED': 'Invoice was generated',
    'INVOICE_SENT': 'Invoice was sent',
    'PAYMENT_RECEIVED': 'Payment was received',
    'PAYMENT_OVERDUE': 'Payment is overdue',
    'NOTE_ADDED': 'Note was added',
    'PORTAL_LOGIN': 'Partner logged in to the portal',
}


class EventLogger:
    """Service for logging system events to the database."""

    def __init__(self, session, actor_type: str = 'staff', actor_id: str = None):
        """
        Initialize the event logger.

        Args:
            session: SQLAlchemy database session
            actor_type: Type of actor (staff, partner, system)
            actor_id: ID of the actor where known
        """
        self.session = session
        self.actor_type = actor_type
        self.actor_id = actor_id

    def log(self, entity_type: str, entity_id: str, event_type: str,
            description: str = None, metadata: Dict = None) -> EventLog:
        """Add an event to the current session; it is committed with the caller's work."""
        event = EventLog(
            timestamp=datetime.utcnow(),
            actor_type=self.actor_type,
            actor_id=self.actor_id,
            entity_type=entity_type,
            entity_id=entity_id,
            event_type=event_type,
            description=description or EVENT_TYPES.get(event_type, event_type),
            extra_data=metadata or {}
        )
        self.session.add(event)
        logger.debug(f"Event logged: {event_type} on {entity_type}:{entity_id}")
        return event

    def log_create(self, entity_type: str, entity_id: str, description: str = None) -> EventLog:
        return self.log(entity_type, entity_id, 'CREATED',
                        description=description or f"New {entity_type} created")

    def log_delete(self, entity_type: str, entity_id: str, description: str = None) -> EventLog:
        return self.log(entity_type, entity_id, 'DELETED',
                        description=description or f"{entity_type.capitalize()} was deleted")

    def log_status_change(self, entity_type: str, entity_id: str,
                          old_status: str, new_status: str, forced: bool = False) -> EventLog:
        """Log a status change event."""
        return self.log(
            entity_type=entity_type,
            entity_id=entity_id,
            event_type='STATUS_FORCED' if forced else 'STATUS_CHANGED',
            description=f"{entity_type.capitalize()} status changed from '{old_status}' to '{new_status}'",
            metadata={'old_status': old_status, 'new_status': new_status, 'forced': forced}
        )

    def get_entity_history(self, entity_type: str, entity_id: str,
                           limit: int = 50) -> List[Dict]:
        """Get the event history for a specific entity, newest first."""
        events = self.session.query(EventLog).filter(
            EventLog.entity_type == entity_type,
            EventLog.entity_id == entity_id
        ).order_by(EventLog.timestamp.desc()).limit(limit).all()
        return [e.to_dict() for e in events]
