"""
Partner Portal Routes Blueprint

Token-authenticated views for trade partners:
- /api/partner-portal/invite/<token>: View (GET) / accept with a password (POST)
- /api/partner-portal/login: Email + password -> access token
- /api/partner-portal/profile: View / update contact details
- /api/partner-portal/jobs[/<job_id>]: Assigned jobs with partner-visible notes
- /api/partner-portal/jobs/<job_id>/notes: Add a note
- /api/partner-portal/invoices, /api/partner-portal/balance: Fees owed

Send the token in the X-Partner-Token header or as 'Authorization: Bearer <token>'.
"""

from flask import Blueprint, request, jsonify, g
import logging

from database.connection import get_db_session
from security import require_partner_token
from services.partner_portal import PartnerPortalService, PortalAuthError
from validators import validate_note, require_valid, validate_email, ValidationError, format_validation_error

logger = logging.getLogger(__name__)

# Create blueprint
partner_portal_bp = Blueprint('partner_portal_bp', __name__)


# ============================================================================
# INVITES & LOGIN
# ============================================================================

@partner_portal_bp.route('/api/partner-portal/invite/<token>', methods=['GET', 'POST'])
def handle_invite(token):
    """Show an invite, or accept it by choosing a password"""
    try:
        with get_db_session() as session:
            service = PartnerPortalService(session)

            if request.method == 'GET':
                return jsonify({'success': True, 'invite': service.get_invite(token)})

            data = request.get_json(silent=True) or {}
            result = service.accept_invite(token, data.get('password'))
            return jsonify({'success': True, **result})
    except (PortalAuthError, ValueError) as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception as e:
        logger.error(f"Partner invite error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@partner_portal_bp.route('/api/partner-portal/login', methods=['POST'])
def partner_login():
    """Exchange email and password for an access token"""
    try:
        data = request.get_json(silent=True) or {}
        with get_db_session() as session:
            result = PartnerPortalService(session).login(data.get('email'), data.get('password'))
            return jsonify({'success': True, **result})
    except PortalAuthError as e:
        return jsonify({'success': False, 'error': str(e)}), e.status_code
    except Exception as e:
        logger.error(f"Partner login error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


# ============================================================================
# PARTNER VIEWS
# ============================================================================

@partner_portal_bp.route('/api/partner-portal/profile', methods=['GET', 'PUT', 'PATCH'])
@require_partner_token
def handle_profile():
    """View or update the signed-in partner's contact details"""
    try:
        with get_db_session() as session:
            service = PartnerPortalService(session)
            partner = service.get_partner(g.partner_id)

            if request.method == 'GET':
                return jsonify({'success': True, 'partner': partner.to_dict()})

            data = request.get_json(silent=True) or {}
            if data.get('email'):
                require_valid(validate_email(data['email']), 'email')
            return jsonify({'success': True, 'partner': service.update_profile(partner, data)})
    except ValidationError as e:
        return jsonify(format_validation_error(e.field, e.message)), 400
    except PortalAuthError as e:
        return jsonify({'success': False, 'error': str(e)}), e.status_code
    except Exception as e:
        logger.error(f"Partner profile error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@partner_portal_bp.route('/api/partner-portal/jobs', methods=['GET'])
@require_partner_token
def list_partner_jobs():
    """Jobs assigned to the signed-in partner"""
    try:
        with get_db_session() as session:
            service = PartnerPortalService(session)
            partner = service.get_partner(g.partner_id)
            jobs = service.list_jobs(partner, status=request.args.get('status'))
            return jsonify({'success': True, 'jobs': jobs})
    except PortalAuthError as e:
        return jsonify({'success': False, 'error': str(e)}), e.status_code
    except Exception as e:
        logger.error(f"Partner jobs error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@partner_portal_bp.route('/api/partner-portal/jobs/<job_id>', methods=['GET'])
@require_partner_token
def get_partner_job(job_id):
    """Job detail with partner-visible notes"""
    try:
        with get_db_session() as session:
            service = PartnerPortalService(session)
            job = service.job_detail(service.get_partner(g.partner_id), job_id)
            if not job:
                return jsonify({'success': False, 'error': 'Job not found'}), 404
            return jsonify({'success': True, 'job': job})
    except PortalAuthError as e:
        return jsonify({'success': False, 'error': str(e)}), e.status_code
    except Exception as e:
        logger.error(f"Partner job {job_id} error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@partner_portal_bp.route('/api/partner-portal/jobs/<job_id>/notes', methods=['POST'])
@require_partner_token
def add_partner_note(job_id):
    """Add a note to an assigned job (visible to everyone)"""
    try:
        data = request.get_json(silent=True)
        require_valid(validate_note(data))
        with get_db_session() as session:
            service = PartnerPortalService(session)
            note = service.add_note(service.get_partner(g.partner_id), job_id, data['content'])
            if not note:
                return jsonify({'success': False, 'error': 'Job not found'}), 404
            return jsonify({'success': True, 'note': note}), 201
    except ValidationError as e:
        return jsonify(format_validation_error(e.field, e.message)), 400
    except PortalAuthError as e:
        return jsonify({'success': False, 'error': str(e)}), e.status_code
    except Exception as e:
        logger.error(f"Partner note error for job {job_id}: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@partner_portal_bp.route('/api/partner-portal/invoices', methods=['GET'])
@require_partner_token
def list_partner_portal_invoices():
    """Issued invoices for the signed-in partner"""
    try:
        with get_db_session() as session:
            service = PartnerPortalService(session)
            return jsonify({'success': True, 'invoices': service.invoices(service.get_partner(g.partner_id))})
    except PortalAuthError as e:
        return jsonify({'success': False, 'error': str(e)}), e.status_code
    except Exception as e:
        logger.error(f"Partner portal invoices error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@partner_portal_bp.route('/api/partner-portal/balance', methods=['GET'])
@require_partner_token
def get_partner_portal_balance():
    """Pending fees plus outstanding invoice amounts"""
    try:
        with get_db_session() as session:
            service = PartnerPortalService(session)
            return jsonify({'success': True, 'balance': service.balance(service.get_partner(g.partner_id))})
    except PortalAuthError as e:
        return jsonify({'success': False, 'error': str(e)}), e.status_code
    except Exception as e:
        logger.error(f"Partner portal balance error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500
