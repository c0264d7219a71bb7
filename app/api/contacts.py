"""
Contacts Routes Blueprint

Handles customer and lead records:
- /api/contacts: List (with search) / create
- /api/contacts/<contact_id>: Get / update / delete
"""

from flask import Blueprint, request, jsonify
import logging

from database.connection import get_db_session
from services.crm_repository import CRMRepository, ContactInUseError
from validators import validate_contact, require_valid, ValidationError, format_validation_error

logger = logging.getLogger(__name__)

# Create blueprint
contacts_bp = Blueprint('contacts_bp', __name__)


# ============================================================================
# CONTACT ROUTES
# ============================================================================

@contacts_bp.route('/api/contacts', methods=['GET', 'POST'])
def handle_contacts():
    """List contacts or create a new contact"""
    try:
        with get_db_session() as session:
            repo = CRMRepository(session)

            if request.method == 'GET':
                contacts = repo.list_contacts(
                    search=request.args.get('search'),
                    contact_type=request.args.get('type')
                )
                return jsonify({'success': True, 'contacts': contacts, 'count': len(contacts)})

            data = request.get_json(silent=True)
            require_valid(validate_contact(data))
            contact = repo.create_contact(data)
            return jsonify({'success': True, 'contact': contact}), 201
    except ValidationError as e:
        return jsonify(format_validation_error(e.field, e.message)), 400
    except Exception as e:
        logger.error(f"Contacts error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@contacts_bp.route('/api/contacts/<contact_id>', methods=['GET', 'PUT', 'PATCH', 'DELETE'])
def handle_contact(contact_id):
    """Get, update or delete a contact"""
    try:
        with get_db_session() as session:
            repo = CRMRepository(session)

            if request.method == 'GET':
                contact = repo.get_contact(contact_id)
            elif request.method == 'DELETE':
                if not repo.delete_contact(contact_id):
                    return jsonify({'success': False, 'error': 'Contact not found'}), 404
                return jsonify({'success': True})
            else:
                data = request.get_json(silent=True)
                require_valid(validate_contact(data, partial=True))
                contact = repo.update_contact(contact_id, data)

            if not contact:
                return jsonify({'success': False, 'error': 'Contact not found'}), 404
            return jsonify({'success': True, 'contact': contact})
    except ContactInUseError as e:
        return jsonify({'success': False, 'error': str(e)}), 409
    except ValidationError as e:
        return jsonify(format_validation_error(e.field, e.message)), 400
    except Exception as e:
        logger.error(f"Contact {contact_id} error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500
