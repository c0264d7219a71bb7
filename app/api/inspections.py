"""
Inspections Routes Blueprint

Handles the inspection wizard and certificates:
- /api/inspection-templates[/<template_id>]: Wizard and item templates
- /api/inspections: List / create a draft / submit a completed wizard
- /api/inspections/<inspection_id>: Get / update / delete
- /api/inspections/<inspection_id>/wizard/validate: Validate and move through steps
- /api/inspections/<inspection_id>/report: Certificate as html, pdf or json
- /api/backup-inspection: Save a client record and write its JSON backup
- /api/inspections/sync: Back up every unsynced inspection
"""

import io
from flask import Blueprint, request, jsonify, current_app, send_file, Response
import logging

from database.connection import get_db_session
from services.inspection_service import InspectionRepository, InspectionWizard, WizardError
from services.inspection_templates import list_templates, get_template, get_item_template, allowed_item_types
from services.report_renderer import build_report, render_html, render_pdf
from app.utils.helpers import parse_bool
from validators import to_decimal

logger = logging.getLogger(__name__)

# Create blueprint
inspections_bp = Blueprint('inspections_bp', __name__)

REPORT_FORMATS = ('html', 'pdf', 'json')


def get_inspection_repository(session) -> InspectionRepository:
    return InspectionRepository(session, backup_folder=current_app.config['INSPECTION_BACKUP_FOLDER'])


def inspection_not_found():
    return jsonify({'success': False, 'error': 'Inspection not found'}), 404


def wizard_error_response(e: WizardError):
    return jsonify({'success': False, 'error': str(e), 'errors': e.errors}), 400


# ============================================================================
# TEMPLATE ROUTES
# ============================================================================

@inspections_bp.route('/api/inspection-templates', methods=['GET'])
def get_inspection_templates():
    """Template summaries for the picker"""
    return jsonify({'success': True, 'templates': list_templates()})


@inspections_bp.route('/api/inspection-templates/<template_id>', methods=['GET'])
def get_inspection_template(template_id):
    """Full template with the item templates its route step accepts"""
    template = get_template(template_id)
    if not template:
        return jsonify({'success': False, 'error': 'Template not found'}), 404
    item_templates = {name: get_item_template(name) for name in allowed_item_types(template)}
    return jsonify({'success': True, 'template': template, 'item_templates': item_templates})


# ============================================================================
# INSPECTION ROUTES
# ============================================================================

@inspections_bp.route('/api/inspections', methods=['GET', 'POST'])
def handle_inspections():
    """List inspections, create a draft, or submit a completed wizard ('submit': true)"""
    try:
        with get_db_session() as session:
            repo = get_inspection_repository(session)

            if request.method == 'GET':
                inspections = repo.list_inspections(
                    status=request.args.get('status'),
                    template_id=request.args.get('template_id'),
                    unsynced_only=parse_bool(request.args.get('unsynced'))
                )
                return jsonify({'success': True, 'inspections': inspections})

            data = request.get_json(silent=True) or {}
            if parse_bool(data.get('submit')):
                inspection = repo.submit_wizard(
                    data.get('template_id'),
                    data.get('form_data') or data.get('data') or {},
                    items=data.get('items'),
                    start_time=data.get('start_time'),
                    inspection_id=data.get('id')
                )
            else:
                inspection = repo.create_inspection(data)
            return jsonify({'success': True, 'inspection': inspection}), 201
    except WizardError as e:
        return wizard_error_response(e)
    except Exception as e:
        logger.error(f"Inspections error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@inspections_bp.route('/api/inspections/sync', methods=['POST'])
def sync_inspections():
    """Back up every inspection not yet synced"""
    try:
        with get_db_session() as session:
            result = get_inspection_repository(session).sync_all()
            return jsonify({'success': True, **result})
    except Exception as e:
        logger.error(f"Inspection sync error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@inspections_bp.route('/api/inspections/<inspection_id>', methods=['GET', 'PUT', 'PATCH', 'DELETE'])
def handle_inspection(inspection_id):
    """Get, update or delete an inspection"""
    try:
        with get_db_session() as session:
            repo = get_inspection_repository(session)

            if request.method == 'GET':
                inspection = repo.get_inspection(inspection_id)
                inspection = inspection.to_dict() if inspection else None
            elif request.method == 'DELETE':
                if not repo.delete_inspection(inspection_id):
                    return inspection_not_found()
                return jsonify({'success': True})
            else:
                inspection = repo.update_inspection(inspection_id, request.get_json(silent=True) or {})

            if not inspection:
                return inspection_not_found()
            return jsonify({'success': True, 'inspection': inspection})
    except WizardError as e:
        return wizard_error_response(e)
    except Exception as e:
        logger.error(f"Inspection {inspection_id} error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@inspections_bp.route('/api/inspections/<inspection_id>/wizard/validate', methods=['POST'])
def validate_wizard_step(inspection_id):
    """
    Validate the current step of an inspection's wizard.

    Body: step_index, form_data (defaults to the saved data), items and an
    optional action of 'next' or 'back'.
    """
    try:
        data = request.get_json(silent=True) or {}
        step_index = to_decimal(data.get('step_index') or 0)
        if step_index is None or step_index != step_index.to_integral_value():
            return jsonify({'success': False, 'error': 'step_index must be a whole number'}), 400

        with get_db_session() as session:
            inspection = get_inspection_repository(session).get_inspection(inspection_id)
            if not inspection:
                return inspection_not_found()
            template = get_template(inspection.template_id)
            form_data = data.get('form_data') if data.get('form_data') is not None else (inspection.data or {})

        wizard = InspectionWizard(template, form_data, items=data.get('items'),
                                  step_index=int(step_index))
        action = data.get('action')
        if action == 'back':
            wizard.back()
            result = {'valid': True, 'errors': {}, 'action': 'back', 'step_index': wizard.step_index}
        elif action == 'next':
            result = wizard.next()
        else:
            valid, errors = wizard.validate_step()
            result = {'valid': valid, 'errors': errors, 'action': None, 'step_index': wizard.step_index}

        return jsonify({'success': True, **result, 'wizard': wizard.to_dict()})
    except Exception as e:
        logger.error(f"Wizard validation error for {inspection_id}: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@inspections_bp.route('/api/inspections/<inspection_id>/report', methods=['GET'])
def get_inspection_report(inspection_id):
    """Certificate for an inspection (?format=html|pdf|json)"""
    report_format = (request.args.get('format') or 'html').lower()
    if report_format not in REPORT_FORMATS:
        return jsonify({'success': False, 'error': f"Unsupported format: {report_format}"}), 400

    try:
        with get_db_session() as session:
            inspection = get_inspection_repository(session).get_inspection(inspection_id)
            if not inspection:
                return inspection_not_found()
            report = build_report(inspection.to_dict(), company_name=current_app.config.get('COMPANY_NAME'))

        if report_format == 'json':
            return jsonify({'success': True, 'report': report})
        if report_format == 'pdf':
            return send_file(
                io.BytesIO(render_pdf(report)),
                mimetype='application/pdf',
                as_attachment=True,
                download_name=f"inspection_{report['reference']}.pdf"
            )
        return Response(render_html(report), mimetype='text/html')
    except Exception as e:
        logger.error(f"Inspection report error for {inspection_id}: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@inspections_bp.route('/api/backup-inspection', methods=['POST'])
def backup_inspection():
    """Save an inspection sent by the client and write its JSON backup"""
    try:
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict) or not payload.get('template_id'):
            return jsonify({'success': False, 'error': 'An inspection record with template_id is required'}), 400

        with get_db_session() as session:
            inspection = get_inspection_repository(session).backup_payload(payload)
            return jsonify({'success': True, 'inspection': inspection})
    except WizardError as e:
        return wizard_error_response(e)
    except Exception as e:
        logger.error(f"Inspection backup error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500
