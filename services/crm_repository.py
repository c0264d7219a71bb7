"""
CRM Repository - Database access layer for contacts and trade partners.
Creations and deletions are recorded in the event_log table.
"""

import logging
from datetime import datetime
from typing import List, Optional, Dict
from sqlalchemy.orm import Session
from sqlalchemy import or_

from database.models import Contact, TradePartner, Job, PartnerFeeAccrual, PartnerInvite
from services.event_logger import EventLogger
from services.pricing import money

logger = logging.getLogger(__name__)


class ContactInUseError(Exception):
    """Raised when deleting a contact that still has jobs"""
    pass


class CRMRepository:
    """Repository for contact and trade partner operations."""

    CONTACT_FIELDS = ['name', 'email', 'phone', 'address', 'postcode', 'contact_type', 'notes']
    PARTNER_FIELDS = ['business_name', 'contact_name', 'email', 'phone', 'trade_category',
                      'coverage_areas', 'commission_type', 'payment_terms_days', 'is_active', 'notes']

    def __init__(self, session: Session, actor_id: str = None):
        self.session = session
        self.events = EventLogger(session, actor_id=actor_id)

    # =========================================================================
    # CONTACTS
    # =========================================================================

    def list_contacts(self, search: str = None, contact_type: str = None) -> List[Dict]:
        """List contacts, optionally filtered by a search over name, email and phone."""
        query = self.session.query(Contact)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                Contact.name.ilike(pattern),
                Contact.email.ilike(pattern),
                Contact.phone.ilike(pattern)
            ))
        if contact_type:
            query = query.filter(Contact.contact_type == contact_type)
        return [c.to_dict() for c in query.order_by(Contact.name).all()]

    def get_contact(self, contact_id: str) -> Optional[Dict]:
        contact = self.session.get(Contact, contact_id)
        if not contact:
            return None
        data = contact.to_dict()
        data['job_count'] = len(contact.jobs)
        return data

    def create_contact(self, data: Dict) -> Dict:
        """Create a new contact."""
        contact = Contact(
            name=data['name'].strip(),
            email=data.get('email'),
            phone=data.get('phone'),
            address=data.get('address'),
            postcode=data.get('postcode'),
            contact_type=data.get('contact_type') or 'client',
            notes=data.get('notes')
        )
        self.session.add(contact)
        self.session.flush()

        self.events.log_create('contact', contact.id, f"Contact '{contact.name}' was created")
        logger.info(f"Created contact: {contact.id}")
        return contact.to_dict()

    def update_contact(self, contact_id: str, data: Dict) -> Optional[Dict]:
        contact = self.session.get(Contact, contact_id)
        if not contact:
            return None

        for key in self.CONTACT_FIELDS:
            if key in data:
                setattr(contact, key, data[key])
        contact.updated_at = datetime.utcnow()
        self.session.flush()
        return contact.to_dict()

    def delete_contact(self, contact_id: str) -> bool:
        """
        Delete a contact.

        Raises:
            ContactInUseError: If the contact has jobs
        """
        contact = self.session.get(Contact, contact_id)
        if not contact:
            return False

        job_count = self.session.query(Job).filter(Job.contact_id == contact_id).count()
        if job_count:
            raise ContactInUseError(f"Contact has {job_count} job(s) and cannot be deleted")

        self.session.delete(contact)
        self.events.log_delete('contact', contact_id)
        logger.info(f"Deleted contact: {contact_id}")
        return True

    # =========================================================================
    # TRADE PARTNERS
    # =========================================================================

    def list_partners(self, active_only: bool = False, trade_category: str = None) -> List[Dict]:
        query = self.session.query(TradePartner)
        if active_only:
            query = query.filter(TradePartner.is_active == True)  # noqa: E712
        if trade_category:
            query = query.filter(TradePartner.trade_category == trade_category)
        return [p.to_dict() for p in query.order_by(TradePartner.business_name).all()]

    def get_partner(self, partner_id: str) -> Optional[Dict]:
        partner = self.session.get(TradePartner, partner_id)
        if not partner:
            return None
        data = partner.to_dict()
        data['job_count'] = len(partner.jobs)
        return data

    def create_partner(self, data: Dict) -> Dict:
        """Create a new trade partner."""
        partner = TradePartner(
            business_name=data['business_name'].strip(),
            contact_name=data.get('contact_name'),
            email=data.get('email'),
            phone=data.get('phone'),
            trade_category=data.get('trade_category'),
            coverage_areas=data.get('coverage_areas'),
            commission_type=data.get('commission_type') or 'percentage',
            commission_value=money(data.get('commission_value', 0)),
            payment_terms_days=int(data.get('payment_terms_days') or 14),
            is_active=data.get('is_active', True),
            notes=data.get('notes')
        )
        self.session.add(partner)
        self.session.flush()

        self.events.log_create('trade_partner', partner.id,
                               f"Trade partner '{partner.business_name}' was created")
        logger.info(f"Created trade partner: {partner.id}")
        return partner.to_dict()

    def update_partner(self, partner_id: str, data: Dict) -> Optional[Dict]:
        partner = self.session.get(TradePartner, partner_id)
        if not partner:
            return None

        for key in self.PARTNER_FIELDS:
            if key in data:
                setattr(partner, key, data[key])
        if 'commission_value' in data:
            partner.commission_value = money(data['commission_value'])
        partner.updated_at = datetime.utcnow()
        self.session.flush()
        return partner.to_dict()

    def delete_partner(self, partner_id: str) -> Optional[Dict]:
        """
        Delete a partner. Partners with jobs are deactivated instead so
        their history and fee records stay intact.

        Returns:
            {'deleted': bool, 'deactivated': bool} or None when not found
        """
        partner = self.session.get(TradePartner, partner_id)
        if not partner:
            return None

        has_fees = self.session.query(PartnerFeeAccrual).filter(
            PartnerFeeAccrual.partner_id == partner_id
        ).count() > 0
        if partner.jobs or has_fees:
            partner.is_active = False
            partner.updated_at = datetime.utcnow()
            self.events.log('trade_partner', partner_id, 'UPDATED',
                            description='Partner deactivated instead of deleted (has jobs or fees)')
            logger.info(f"Deactivated trade partner with jobs: {partner_id}")
            return {'deleted': False, 'deactivated': True}

        self.session.query(PartnerInvite).filter(PartnerInvite.partner_id == partner_id).delete()
        self.session.delete(partner)
        self.events.log_delete('trade_partner', partner_id)
        logger.info(f"Deleted trade partner: {partner_id}")
        return {'deleted': True, 'deactivated': False}
