"""
Partner Portal Service - invitations, login and the partner's view of their work.

Partners authenticate with a bearer token issued when they accept an invite
or log in. Passwords are stored as werkzeug hashes.
"""

import secrets
import logging
from datetime import datetime, timedelta
from typing import List, Optional, Dict
from sqlalchemy.orm import Session
from sqlalchemy import func
from werkzeug.security import generate_password_hash, check_password_hash

from database.models import TradePartner, PartnerPortalAccess, PartnerInvite, Job
from services.event_logger import EventLogger
from services.notes_repository import NotesRepository
from services.partner_fees import PartnerFeesService

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
PROFILE_FIELDS = ['contact_name', 'email', 'phone', 'coverage_areas']


class PortalAuthError(Exception):
    """Raised when a partner cannot be authenticated (HTTP 401)"""
    status_code = 401


class PortalAccessDenied(PortalAuthError):
    """Raised when an authenticated partner reaches for another partner's data (HTTP 403)"""
    status_code = 403


def _new_token() -> str:
    return secrets.token_urlsafe(32)


class PartnerPortalService:
    """Operations behind the partner portal endpoints."""

    def __init__(self, session: Session, invite_days: int = 7):
        self.session = session
        self.invite_days = invite_days
        self.events = EventLogger(session, actor_type='partner')

    # =========================================================================
    # INVITES & AUTH
    # =========================================================================

    def create_invite(self, partner_id: str) -> Optional[Dict]:
        partner = self.session.get(TradePartner, partner_id)
        if not partner:
            return None
        if not partner.is_active:
            raise PortalAuthError("Cannot invite an inactive partner")

        invite = PartnerInvite(
            partner_id=partner.id,
            token=_new_token(),
            expires_at=datetime.utcnow() + timedelta(days=self.invite_days)
        )
        self.session.add(invite)
        self.session.flush()
        logger.info(f"Created portal invite for partner {partner.business_name}")
        return invite.to_dict()

    def _valid_invite(self, token: str) -> PartnerInvite:
        invite = self.session.query(PartnerInvite).filter(PartnerInvite.token == token).first()
        if not invite:
            raise PortalAuthError("Invite not found")
        if invite.accepted_at:
            raise PortalAuthError("Invite has already been used")
        if invite.expires_at < datetime.utcnow():
            raise PortalAuthError("Invite has expired")
        return invite

    def get_invite(self, token: str) -> Dict:
        invite = self._valid_invite(token)
        partner = invite.partner
        return {
            'valid': True,
            'expires_at': invite.expires_at.isoformat(),
            'partner': {
                'id': partner.id,
                'business_name': partner.business_name,
                'contact_name': partner.contact_name,
                'email': partner.email,
            }
        }

    def accept_invite(self, token: str, password: str) -> Dict:
        """
        Set the partner's password and issue an access token.

        Raises:
            PortalAuthError: Invalid, used or expired invite
            ValueError: Password too short
        """
        invite = self._valid_invite(token)
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

        access = self.session.query(PartnerPortalAccess).filter(
            PartnerPortalAccess.partner_id == invite.partner_id
        ).first()
        if not access:
            access = PartnerPortalAccess(partner_id=invite.partner_id, access_token=_new_token())
            self.session.add(access)
        else:
            access.access_token = _new_token()
        access.password_hash = generate_password_hash(password)
        access.last_login_at = datetime.utcnow()
        invite.accepted_at = datetime.utcnow()
        self.session.flush()

        logger.info(f"Partner {invite.partner_id} accepted portal invite")
        return {'token': access.access_token, 'partner': invite.partner.to_dict()}

    def login(self, email: str, password: str) -> Dict:
        """Exchange email and password for a fresh access token."""
        if not email or not password:
            raise PortalAuthError("Email and password are required")

        partner = self.session.query(TradePartner).filter(
            func.lower(TradePartner.email) == email.strip().lower()
        ).first()
        access = partner.portal_access if partner else None
        if not access or not access.password_hash or not check_password_hash(access.password_hash, password):
            logger.warning(f"Failed partner portal login for {email}")
            raise PortalAuthError("Invalid email or password")
        if not partner.is_active:
            raise PortalAuthError("Partner account is inactive")

        access.access_token = _new_token()
        access.last_login_at = datetime.utcnow()
        self.session.flush()

        self.events.log('trade_partner', partner.id, 'PORTAL_LOGIN')
        return {'token': access.access_token, 'partner': partner.to_dict()}

    def authenticate(self, token: str) -> TradePartner:
        """Resolve an access token to its active partner."""
        if not token:
            raise PortalAuthError("Missing partner token")
        access = self.session.query(PartnerPortalAccess).filter(
            PartnerPortalAccess.access_token == token
        ).first()
        if not access or not access.partner:
            raise PortalAuthError("Invalid partner token")
        if not access.partner.is_active:
            raise PortalAuthError("Partner account is inactive")
        return access.partner

    # =========================================================================
    # PARTNER VIEW
    # =========================================================================

    def get_partner(self, partner_id: str) -> TradePartner:
        partner = self.session.get(TradePartner, partner_id)
        if not partner:
            raise PortalAuthError("Partner not found")
        return partner

    def update_profile(self, partner: TradePartner, data: Dict) -> Dict:
        """Partners may only change their contact details."""
        for key in PROFILE_FIELDS:
            if key in data:
                setattr(partner, key, data[key])
        partner.updated_at = datetime.utcnow()
        self.session.flush()
        return partner.to_dict()

    @staticmethod
    def _job_summary(job: Job) -> Dict:
        return {
            'id': job.id,
            'job_number': job.job_number,
            'title': job.title,
            'description': job.description,
            'status': job.status,
            'address': job.address,
            'postcode': job.postcode,
            'contact_name': job.contact.name if job.contact else None,
            'survey_date': job.survey_date.isoformat() if job.survey_date else None,
            'work_start_date': job.work_start_date.isoformat() if job.work_start_date else None,
            'completed_at': job.completed_at.isoformat() if job.completed_at else None,
        }

    def list_jobs(self, partner: TradePartner, status: str = None) -> List[Dict]:
        query = self.session.query(Job).filter(Job.partner_id == partner.id)
        if status:
            query = query.filter(Job.status == status)
        return [self._job_summary(job) for job in query.order_by(Job.created_at.desc()).all()]

    def _partner_job(self, partner: TradePartner, job_id: str) -> Optional[Job]:
        job = self.session.get(Job, job_id)
        if not job:
            return None
        if job.partner_id != partner.id:
            raise PortalAccessDenied("This job is not assigned to you")
        return job

    def job_detail(self, partner: TradePartner, job_id: str) -> Optional[Dict]:
        job = self._partner_job(partner, job_id)
        if not job:
            return None
        data = self._job_summary(job)
        data['notes'] = NotesRepository(self.session).list_notes(job.id, partner_view=True)
        return data

    def add_note(self, partner: TradePartner, job_id: str, content: str) -> Optional[Dict]:
        """Partner notes are visible to everyone on the job."""
        job = self._partner_job(partner, job_id)
        if not job:
            return None
        return NotesRepository(self.session).create_note(job.id, {
            'content': content,
            'visibility': 'all',
            'author_name': partner.contact_name or partner.business_name,
        }, author_type='partner')

    def invoices(self, partner: TradePartner) -> List[Dict]:
        """Issued partner invoices (drafts are internal)."""
        return [inv for inv in PartnerFeesService(self.session).list_invoices(partner_id=partner.id)
                if inv['status'] != 'draft']

    def balance(self, partner: TradePartner) -> Dict:
        return PartnerFeesService(self.session).partner_balance(partner.id)
