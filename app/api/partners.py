"""
Trade Partners Routes Blueprint

Handles trade partner records and portal invites:
- /api/trade-partners: List / create
- /api/trade-partners/<partner_id>: Get / update / delete (soft when the partner has jobs)
- /api/partners/<partner_id>/portal-invite: Issue a portal invite link
"""

from flask import Blueprint, request, jsonify, current_app
import logging

from database.connection import get_db_session
from services.crm_repository import CRMRepository
from services.partner_portal import PartnerPortalService, PortalAuthError
from validators import validate_trade_partner, require_valid, ValidationError, format_validation_error
from app.utils.helpers import parse_bool

logger = logging.getLogger(__name__)

# Create blueprint
partners_bp = Blueprint('partners_bp', __name__)


# ============================================================================
# TRADE PARTNER ROUTES
# ============================================================================

@partners_bp.route('/api/trade-partners', methods=['GET', 'POST'])
def handle_partners():
    """List trade partners or create a new one"""
    try:
        with get_db_session() as session:
            repo = CRMRepository(session)

            if request.method == 'GET':
                partners = repo.list_partners(
                    active_only=parse_bool(request.args.get('active_only')),
                    trade_category=request.args.get('trade_category')
                )
                return jsonify({'success': True, 'partners': partners, 'count': len(partners)})

            data = request.get_json(silent=True)
            require_valid(validate_trade_partner(data))
            partner = repo.create_partner(data)
            return jsonify({'success': True, 'partner': partner}), 201
    except ValidationError as e:
        return jsonify(format_validation_error(e.field, e.message)), 400
    except Exception as e:
        logger.error(f"Trade partners error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@partners_bp.route('/api/trade-partners/<partner_id>', methods=['GET', 'PUT', 'PATCH', 'DELETE'])
def handle_partner(partner_id):
    """Get, update or delete a trade partner"""
    try:
        with get_db_session() as session:
            repo = CRMRepository(session)

            if request.method == 'GET':
                partner = repo.get_partner(partner_id)
            elif request.method == 'DELETE':
                result = repo.delete_partner(partner_id)
                if result is None:
                    return jsonify({'success': False, 'error': 'Trade partner not found'}), 404
                return jsonify({'success': True, **result})
            else:
                data = request.get_json(silent=True)
                require_valid(validate_trade_partner(data, partial=True))
                partner = repo.update_partner(partner_id, data)

            if not partner:
                return jsonify({'success': False, 'error': 'Trade partner not found'}), 404
            return jsonify({'success': True, 'partner': partner})
    except ValidationError as e:
        return jsonify(format_validation_error(e.field, e.message)), 400
    except Exception as e:
        logger.error(f"Trade partner {partner_id} error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@partners_bp.route('/api/partners/<partner_id>/portal-invite', methods=['POST'])
def create_portal_invite(partner_id):
    """Create a portal invite for a partner and return its token"""
    try:
        with get_db_session() as session:
            service = PartnerPortalService(session, invite_days=current_app.config.get('PARTNER_INVITE_DAYS', 7))
            invite = service.create_invite(partner_id)
            if not invite:
                return jsonify({'success': False, 'error': 'Trade partner not found'}), 404
            return jsonify({'success': True, 'invite': invite}), 201
    except PortalAuthError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception as e:
        logger.error(f"Portal invite error for partner {partner_id}: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500
