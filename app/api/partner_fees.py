"""
Partner Fees Routes Blueprint

Handles referral fee accruals and partner invoicing:
- /api/partner-fee-accruals: List / create manual accruals
- /api/partner-fee-accruals/<accrual_id>: Get / void
- /api/partner-fees/balances: Pending totals grouped by partner
- /api/partner-invoices: List
- /api/partner-invoices/generate: Consolidate pending accruals into a draft
- /api/partner-invoices/<invoice_id>: Get
- /api/partner-invoices/<invoice_id>/issue: Draft -> issued
- /api/partner-invoices/<invoice_id>/payments: Record a payment
"""

from flask import Blueprint, request, jsonify
import logging

from database.connection import get_db_session
from services.partner_fees import PartnerFeesService, PartnerInvoiceError
from validators import validate_payment, validate_number_range, require_valid, ValidationError, format_validation_error

logger = logging.getLogger(__name__)

# Create blueprint
partner_fees_bp = Blueprint('partner_fees_bp', __name__)


# ============================================================================
# ACCRUAL ROUTES
# ============================================================================

@partner_fees_bp.route('/api/partner-fee-accruals', methods=['GET', 'POST'])
def handle_accruals():
    """List accruals or create a manual accrual"""
    try:
        with get_db_session() as session:
            service = PartnerFeesService(session)

            if request.method == 'GET':
                accruals = service.list_accruals(
                    partner_id=request.args.get('partner_id'),
                    status=request.args.get('status')
                )
                return jsonify({'success': True, 'accruals': accruals})

            data = request.get_json(silent=True) or {}
            if not data.get('partner_id'):
                raise ValidationError("Missing required fields: partner_id", 'partner_id')
            for field in ('fee_value', 'job_value'):
                if data.get(field) is not None:
                    require_valid(validate_number_range(data[field], min_value=0))
            accrual = service.create_accrual(data)
            return jsonify({'success': True, 'accrual': accrual}), 201
    except ValidationError as e:
        return jsonify(format_validation_error(e.field, e.message)), 400
    except PartnerInvoiceError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception as e:
        logger.error(f"Partner fee accruals error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@partner_fees_bp.route('/api/partner-fee-accruals/<accrual_id>', methods=['GET', 'DELETE'])
def handle_accrual(accrual_id):
    """Get an accrual, or void it (DELETE)"""
    try:
        with get_db_session() as session:
            service = PartnerFeesService(session)

            if request.method == 'GET':
                accrual = service.get_accrual(accrual_id)
                accrual = accrual.to_dict() if accrual else None
            else:
                accrual = service.void_accrual(accrual_id)

            if not accrual:
                return jsonify({'success': False, 'error': 'Accrual not found'}), 404
            return jsonify({'success': True, 'accrual': accrual})
    except PartnerInvoiceError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception as e:
        logger.error(f"Partner fee accrual {accrual_id} error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@partner_fees_bp.route('/api/partner-fees/balances', methods=['GET'])
def get_balances():
    """Pending fee totals per partner"""
    try:
        with get_db_session() as session:
            return jsonify({'success': True, 'balances': PartnerFeesService(session).balances()})
    except Exception as e:
        logger.error(f"Partner fee balances error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


# ============================================================================
# PARTNER INVOICE ROUTES
# ============================================================================

@partner_fees_bp.route('/api/partner-invoices', methods=['GET'])
def list_partner_invoices():
    """List partner invoices"""
    try:
        with get_db_session() as session:
            invoices = PartnerFeesService(session).list_invoices(
                partner_id=request.args.get('partner_id'),
                status=request.args.get('status')
            )
            return jsonify({'success': True, 'invoices': invoices})
    except Exception as e:
        logger.error(f"Partner invoices error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@partner_fees_bp.route('/api/partner-invoices/generate', methods=['POST'])
def generate_partner_invoice():
    """Consolidate a partner's pending accruals into a draft invoice"""
    try:
        data = request.get_json(silent=True) or {}
        if not data.get('partner_id'):
            return jsonify({'success': False, 'error': 'partner_id is required'}), 400

        with get_db_session() as session:
            invoice = PartnerFeesService(session).generate_invoice(
                data['partner_id'],
                period_start=data.get('period_start'),
                period_end=data.get('period_end'),
                notes=data.get('notes')
            )
            return jsonify({'success': True, 'invoice': invoice}), 201
    except (PartnerInvoiceError, ValueError) as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception as e:
        logger.error(f"Generate partner invoice error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@partner_fees_bp.route('/api/partner-invoices/<invoice_id>', methods=['GET'])
def get_partner_invoice(invoice_id):
    try:
        with get_db_session() as session:
            invoice = PartnerFeesService(session).get_invoice(invoice_id)
            if not invoice:
                return jsonify({'success': False, 'error': 'Partner invoice not found'}), 404
            return jsonify({'success': True, 'invoice': invoice.to_dict(include_lines=True)})
    except Exception as e:
        logger.error(f"Partner invoice {invoice_id} error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@partner_fees_bp.route('/api/partner-invoices/<invoice_id>/issue', methods=['POST'])
def issue_partner_invoice(invoice_id):
    """Issue a draft partner invoice"""
    try:
        data = request.get_json(silent=True) or {}
        with get_db_session() as session:
            invoice = PartnerFeesService(session).issue_invoice(invoice_id, issue_date=data.get('issue_date'))
            if not invoice:
                return jsonify({'success': False, 'error': 'Partner invoice not found'}), 404
            return jsonify({'success': True, 'invoice': invoice})
    except (PartnerInvoiceError, ValueError) as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception as e:
        logger.error(f"Issue partner invoice error for {invoice_id}: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@partner_fees_bp.route('/api/partner-invoices/<invoice_id>/payments', methods=['POST'])
def record_partner_payment(invoice_id):
    """Record a payment received from a partner"""
    try:
        data = request.get_json(silent=True)
        require_valid(validate_payment(data))
        with get_db_session() as session:
            invoice = PartnerFeesService(session).record_payment(invoice_id, data)
            if not invoice:
                return jsonify({'success': False, 'error': 'Partner invoice not found'}), 404
            return jsonify({'success': True, 'invoice': invoice}), 201
    except ValidationError as e:
        return jsonify(format_validation_error(e.field, e.message)), 400
    except PartnerInvoiceError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception as e:
        logger.error(f"Partner payment error for {invoice_id}: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500
