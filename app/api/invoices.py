"""
Invoices Routes Blueprint

Handles client invoices and formal quotes:
- /api/jobs/<job_id>/invoices: List / create (from quote items or explicit lines)
- /api/invoices/<invoice_id>: Get / update / delete (drafts only)
- /api/invoices/<invoice_id>/send: Draft -> sent
- /api/invoices/<invoice_id>/payments: Record a payment
- /api/invoices/by-reference/<reference>: Lookup by reference number
"""

from flask import Blueprint, request, jsonify, current_app
import logging

from database.connection import get_db_session
from services.invoice_repository import InvoiceRepository, InvoiceStateError
from validators import (
    validate_payment, validate_quote_item, require_valid, ValidationError, format_validation_error
)

logger = logging.getLogger(__name__)

# Create blueprint
invoices_bp = Blueprint('invoices_bp', __name__)


def get_invoice_repository(session) -> InvoiceRepository:
    return InvoiceRepository(session, default_terms_days=current_app.config.get('DEFAULT_PAYMENT_TERMS_DAYS', 14))


def invoice_not_found():
    return jsonify({'success': False, 'error': 'Invoice not found'}), 404


def _validate_lines(data):
    for line in data.get('line_items') or []:
        require_valid(validate_quote_item(line))


# ============================================================================
# INVOICE ROUTES
# ============================================================================

@invoices_bp.route('/api/jobs/<job_id>/invoices', methods=['GET', 'POST'])
def handle_job_invoices(job_id):
    """List a job's invoices or create one"""
    try:
        with get_db_session() as session:
            repo = get_invoice_repository(session)

            if request.method == 'GET':
                return jsonify({'success': True, 'invoices': repo.list_for_job(job_id)})

            data = request.get_json(silent=True) or {}
            _validate_lines(data)
            invoice = repo.create_invoice(job_id, data)
            if invoice is None:
                return jsonify({'success': False, 'error': 'Job not found'}), 404
            return jsonify({'success': True, 'invoice': invoice}), 201
    except ValidationError as e:
        return jsonify(format_validation_error(e.field, e.message)), 400
    except InvoiceStateError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception as e:
        logger.error(f"Invoices error for job {job_id}: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@invoices_bp.route('/api/invoices/by-reference/<reference>', methods=['GET'])
def get_invoice_by_reference(reference):
    """Look up an invoice by its reference number"""
    try:
        with get_db_session() as session:
            invoice = get_invoice_repository(session).get_by_reference(reference)
            if not invoice:
                return invoice_not_found()
            return jsonify({'success': True, 'invoice': invoice.to_dict()})
    except Exception as e:
        logger.error(f"Invoice lookup error for {reference}: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@invoices_bp.route('/api/invoices/<invoice_id>', methods=['GET', 'PUT', 'PATCH', 'DELETE'])
def handle_invoice(invoice_id):
    """Get, update or delete an invoice"""
    try:
        with get_db_session() as session:
            repo = get_invoice_repository(session)

            if request.method == 'GET':
                invoice = repo.get_invoice(invoice_id)
                invoice = invoice.to_dict() if invoice else None
            elif request.method == 'DELETE':
                if not repo.delete_invoice(invoice_id):
                    return invoice_not_found()
                return jsonify({'success': True})
            else:
                data = request.get_json(silent=True) or {}
                _validate_lines(data)
                invoice = repo.update_invoice(invoice_id, data)

            if not invoice:
                return invoice_not_found()
            return jsonify({'success': True, 'invoice': invoice})
    except ValidationError as e:
        return jsonify(format_validation_error(e.field, e.message)), 400
    except InvoiceStateError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception as e:
        logger.error(f"Invoice {invoice_id} error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@invoices_bp.route('/api/invoices/<invoice_id>/send', methods=['POST'])
def send_invoice(invoice_id):
    """Mark a draft invoice as sent"""
    try:
        data = request.get_json(silent=True) or {}
        with get_db_session() as session:
            invoice = get_invoice_repository(session).send_invoice(invoice_id, terms_days=data.get('terms_days'))
            if not invoice:
                return invoice_not_found()
            return jsonify({'success': True, 'invoice': invoice})
    except InvoiceStateError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception as e:
        logger.error(f"Send invoice error for {invoice_id}: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@invoices_bp.route('/api/invoices/<invoice_id>/payments', methods=['POST'])
def record_invoice_payment(invoice_id):
    """Record a client payment against an invoice"""
    try:
        data = request.get_json(silent=True)
        require_valid(validate_payment(data))
        with get_db_session() as session:
            result = get_invoice_repository(session).record_payment(invoice_id, data)
            if not result:
                return invoice_not_found()
            return jsonify({'success': True, **result}), 201
    except ValidationError as e:
        return jsonify(format_validation_error(e.field, e.message)), 400
    except InvoiceStateError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception as e:
        logger.error(f"Invoice payment error for {invoice_id}: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500
