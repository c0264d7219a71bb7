"""
Jobs Routes Blueprint

Handles the job pipeline:
- /api/jobs: List / create jobs
- /api/jobs/<job_id>: Get / update / delete
- /api/jobs/<job_id>/quote-items: Quote lines, add from catalog, replace, totals
- /api/jobs/<job_id>/status, /stage-readiness, /validate-stage: Pipeline moves
- /api/job-stages: Ordered stage list with prerequisites
- /api/jobs/<job_id>/payments: Client payments
- /api/jobs/<job_id>/notes, /api/notes/<note_id>/attachments: Notes and files
- /api/jobs/<job_id>/history: Audit trail
"""

from flask import Blueprint, request, jsonify, current_app, send_file
import os
import logging

from database.connection import get_db_session
from services.jobs_repository import JobsRepository
from services.notes_repository import NotesRepository
from services.stage_rules import StageTransitionError, is_known_stage, list_stages
from services.invoice_repository import InvoiceStateError
from validators import (
    validate_job, validate_quote_item, validate_payment, validate_note, validate_attachment_upload,
    require_valid, ValidationError, format_validation_error
)
from app.utils.helpers import parse_bool

logger = logging.getLogger(__name__)

# Create blueprint
jobs_bp = Blueprint('jobs_bp', __name__)


def get_jobs_repository(session) -> JobsRepository:
    return JobsRepository(
        session,
        job_number_prefix=current_app.config.get('JOB_NUMBER_PREFIX', 'CCC'),
        default_tax_rate=current_app.config.get('DEFAULT_TAX_RATE')
    )


def get_notes_repository(session) -> NotesRepository:
    return NotesRepository(session, upload_folder=current_app.config.get('UPLOAD_FOLDER', 'uploads'))


def job_not_found():
    return jsonify({'success': False, 'error': 'Job not found'}), 404


def stage_error_response(e: StageTransitionError, target_stage: str):
    status_code = 409 if is_known_stage(target_stage) else 400
    return jsonify({'success': False, 'error': e.message, 'validation': e.validation}), status_code


# ============================================================================
# JOB ROUTES
# ============================================================================

@jobs_bp.route('/api/jobs', methods=['GET', 'POST'])
def handle_jobs():
    """List jobs or create a new job"""
    try:
        with get_db_session() as session:
            repo = get_jobs_repository(session)

            if request.method == 'GET':
                jobs = repo.list_jobs(
                    status=request.args.get('status'),
                    contact_id=request.args.get('contact_id'),
                    partner_id=request.args.get('partner_id'),
                    search=request.args.get('search')
                )
                return jsonify({'success': True, 'jobs': jobs, 'count': len(jobs)})

            data = request.get_json(silent=True)
            require_valid(validate_job(data))
            job = repo.create_job(data)
            return jsonify({'success': True, 'job': job}), 201
    except ValidationError as e:
        return jsonify(format_validation_error(e.field, e.message)), 400
    except StageTransitionError as e:
        return jsonify({'success': False, 'error': e.message}), 400
    except ValueError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception as e:
        logger.error(f"Jobs error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@jobs_bp.route('/api/jobs/<job_id>', methods=['GET', 'PUT', 'PATCH', 'DELETE'])
def handle_job(job_id):
    """Get, update or delete a job"""
    data = {}
    try:
        with get_db_session() as session:
            repo = get_jobs_repository(session)

            if request.method == 'GET':
                job = repo.get_job(job_id)
                job = repo.job_detail(job) if job else None
            elif request.method == 'DELETE':
                if not repo.delete_job(job_id):
                    return job_not_found()
                return jsonify({'success': True})
            else:
                data = request.get_json(silent=True)
                require_valid(validate_job(data, partial=True))
                job = repo.update_job(job_id, data)

            if not job:
                return job_not_found()
            return jsonify({'success': True, 'job': job})
    except ValidationError as e:
        return jsonify(format_validation_error(e.field, e.message)), 400
    except StageTransitionError as e:
        return stage_error_response(e, data.get('status'))
    except ValueError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception as e:
        logger.error(f"Job {job_id} error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@jobs_bp.route('/api/jobs/<job_id>/history', methods=['GET'])
def job_history(job_id):
    """Audit trail for a job, newest first"""
    try:
        with get_db_session() as session:
            repo = get_jobs_repository(session)
            if not repo.get_job(job_id):
                return job_not_found()
            return jsonify({'success': True, 'events': repo.history(job_id)})
    except Exception as e:
        logger.error(f"Job history error for {job_id}: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


# ============================================================================
# QUOTE ITEM ROUTES
# ============================================================================

@jobs_bp.route('/api/jobs/<job_id>/quote-items', methods=['GET', 'POST', 'PUT'])
def handle_quote_items(job_id):
    """List, add, or replace every quote item on a job"""
    try:
        with get_db_session() as session:
            repo = get_jobs_repository(session)

            if request.method == 'GET':
                items = repo.list_quote_items(job_id)
                if items is None:
                    return job_not_found()
                return jsonify({'success': True, 'items': items, 'totals': repo.quote_totals(job_id)})

            data = request.get_json(silent=True)
            if request.method == 'PUT':
                lines = data.get('items') if isinstance(data, dict) else data
                if not isinstance(lines, list):
                    raise ValidationError("items must be an array", 'items')
                for line in lines:
                    require_valid(validate_quote_item(line))
                items = repo.replace_quote_items(job_id, lines)
                if items is None:
                    return job_not_found()
                return jsonify({'success': True, 'items': items, 'totals': repo.quote_totals(job_id)})

            require_valid(validate_quote_item(data))
            item = repo.add_quote_item(job_id, data)
            if item is None:
                return job_not_found()
            return jsonify({'success': True, 'item': item, 'totals': repo.quote_totals(job_id)}), 201
    except ValidationError as e:
        return jsonify(format_validation_error(e.field, e.message)), 400
    except Exception as e:
        logger.error(f"Quote items error for job {job_id}: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@jobs_bp.route('/api/jobs/<job_id>/quote-items/from-catalog', methods=['POST'])
def add_quote_item_from_catalog(job_id):
    """Copy a catalog item onto the job's quote"""
    try:
        data = request.get_json(silent=True) or {}
        if not data.get('catalog_item_id'):
            return jsonify({'success': False, 'error': 'catalog_item_id is required'}), 400
        if data.get('quantity') is not None:
            require_valid(validate_quote_item({'description': 'catalog', 'quantity': data['quantity']}))

        with get_db_session() as session:
            repo = get_jobs_repository(session)
            item = repo.add_from_catalog(job_id, data['catalog_item_id'], data.get('quantity'))
            if item is None:
                return job_not_found()
            return jsonify({'success': True, 'item': item, 'totals': repo.quote_totals(job_id)}), 201
    except ValidationError as e:
        return jsonify(format_validation_error(e.field, e.message)), 400
    except ValueError as e:
        return jsonify({'success': False, 'error': str(e)}), 404
    except Exception as e:
        logger.error(f"Add from catalog error for job {job_id}: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@jobs_bp.route('/api/jobs/<job_id>/quote-items/<item_id>', methods=['PUT', 'PATCH', 'DELETE'])
def handle_quote_item(job_id, item_id):
    """Update or delete one quote item"""
    try:
        with get_db_session() as session:
            repo = get_jobs_repository(session)

            if request.method == 'DELETE':
                if not repo.delete_quote_item(job_id, item_id):
                    return jsonify({'success': False, 'error': 'Quote item not found'}), 404
                return jsonify({'success': True, 'totals': repo.quote_totals(job_id)})

            data = request.get_json(silent=True)
            require_valid(validate_quote_item(data, partial=True))
            item = repo.update_quote_item(job_id, item_id, data)
            if not item:
                return jsonify({'success': False, 'error': 'Quote item not found'}), 404
            return jsonify({'success': True, 'item': item, 'totals': repo.quote_totals(job_id)})
    except ValidationError as e:
        return jsonify(format_validation_error(e.field, e.message)), 400
    except Exception as e:
        logger.error(f"Quote item {item_id} error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@jobs_bp.route('/api/jobs/<job_id>/quote-totals', methods=['GET'])
def get_quote_totals(job_id):
    """Subtotal, discount, tax and grand total for the job's quote"""
    try:
        with get_db_session() as session:
            totals = get_jobs_repository(session).quote_totals(job_id)
            if totals is None:
                return job_not_found()
            return jsonify({'success': True, 'totals': totals})
    except Exception as e:
        logger.error(f"Quote totals error for job {job_id}: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


# ============================================================================
# PIPELINE ROUTES
# ============================================================================

@jobs_bp.route('/api/job-stages', methods=['GET'])
def get_job_stages():
    """The ordered pipeline stages"""
    return jsonify({'success': True, 'stages': list_stages()})


@jobs_bp.route('/api/jobs/<job_id>/status', methods=['POST'])
def change_job_status(job_id):
    """Move a job to another stage; 'force' overrides unmet prerequisites"""
    data = request.get_json(silent=True) or {}
    target_stage = data.get('status')
    try:
        if not target_stage:
            return jsonify({'success': False, 'error': 'status is required'}), 400

        with get_db_session() as session:
            result = get_jobs_repository(session).change_status(
                job_id, target_stage, force=parse_bool(data.get('force'))
            )
            if result is None:
                return job_not_found()
            return jsonify({'success': True, **result})
    except StageTransitionError as e:
        return stage_error_response(e, target_stage)
    except Exception as e:
        logger.error(f"Status change error for job {job_id}: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@jobs_bp.route('/api/jobs/<job_id>/validate-stage', methods=['POST'])
def validate_job_stage(job_id):
    """Check a stage move without performing it"""
    try:
        data = request.get_json(silent=True) or {}
        target_stage = data.get('target_stage') or data.get('status')
        if not target_stage:
            return jsonify({'success': False, 'error': 'target_stage is required'}), 400

        with get_db_session() as session:
            validation = get_jobs_repository(session).validate_stage(job_id, target_stage)
            if validation is None:
                return job_not_found()
            return jsonify({'success': True, 'validation': validation})
    except Exception as e:
        logger.error(f"Stage validation error for job {job_id}: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@jobs_bp.route('/api/jobs/<job_id>/stage-readiness', methods=['GET'])
def get_stage_readiness(job_id):
    """Prerequisite status for every stage"""
    try:
        with get_db_session() as session:
            readiness = get_jobs_repository(session).stage_readiness(job_id)
            if readiness is None:
                return job_not_found()
            return jsonify({'success': True, **readiness})
    except Exception as e:
        logger.error(f"Stage readiness error for job {job_id}: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


# ============================================================================
# PAYMENT ROUTES
# ============================================================================

@jobs_bp.route('/api/jobs/<job_id>/payments', methods=['GET', 'POST'])
def handle_job_payments(job_id):
    """List or record client payments for a job"""
    try:
        with get_db_session() as session:
            repo = get_jobs_repository(session)

            if request.method == 'GET':
                payments = repo.list_payments(job_id)
                if payments is None:
                    return job_not_found()
                return jsonify({'success': True, 'payments': payments})

            data = request.get_json(silent=True)
            require_valid(validate_payment(data))
            payment = repo.record_payment(job_id, data)
            if payment is None:
                return job_not_found()
            return jsonify({'success': True, 'payment': payment}), 201
    except ValidationError as e:
        return jsonify(format_validation_error(e.field, e.message)), 400
    except (InvoiceStateError, ValueError) as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception as e:
        logger.error(f"Payments error for job {job_id}: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


# ============================================================================
# NOTE ROUTES
# ============================================================================

@jobs_bp.route('/api/jobs/<job_id>/notes', methods=['GET', 'POST'])
def handle_job_notes(job_id):
    """List or add notes on a job"""
    try:
        with get_db_session() as session:
            repo = get_notes_repository(session)

            if request.method == 'GET':
                if not get_jobs_repository(session).get_job(job_id):
                    return job_not_found()
                notes = repo.list_notes(job_id, partner_view=parse_bool(request.args.get('partner_view')))
                return jsonify({'success': True, 'notes': notes})

            data = request.get_json(silent=True)
            require_valid(validate_note(data))
            note = repo.create_note(job_id, data)
            if note is None:
                return job_not_found()
            return jsonify({'success': True, 'note': note}), 201
    except ValidationError as e:
        return jsonify(format_validation_error(e.field, e.message)), 400
    except Exception as e:
        logger.error(f"Notes error for job {job_id}: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@jobs_bp.route('/api/jobs/<job_id>/notes/<note_id>', methods=['PUT', 'PATCH', 'DELETE'])
def handle_job_note(job_id, note_id):
    """Update or delete a note"""
    try:
        with get_db_session() as session:
            repo = get_notes_repository(session)

            if request.method == 'DELETE':
                if not repo.delete_note(job_id, note_id):
                    return jsonify({'success': False, 'error': 'Note not found'}), 404
                return jsonify({'success': True})

            data = request.get_json(silent=True)
            require_valid(validate_note(data, partial=True))
            note = repo.update_note(job_id, note_id, data)
            if not note:
                return jsonify({'success': False, 'error': 'Note not found'}), 404
            return jsonify({'success': True, 'note': note})
    except ValidationError as e:
        return jsonify(format_validation_error(e.field, e.message)), 400
    except Exception as e:
        logger.error(f"Note {note_id} error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@jobs_bp.route('/api/notes/<note_id>/attachments', methods=['GET', 'POST'])
def handle_note_attachments(note_id):
    """List attachments or upload a file to a note"""
    try:
        with get_db_session() as session:
            repo = get_notes_repository(session)

            if request.method == 'GET':
                attachments = repo.list_attachments(note_id)
                if attachments is None:
                    return jsonify({'success': False, 'error': 'Note not found'}), 404
                return jsonify({'success': True, 'attachments': attachments})

            if 'file' not in request.files:
                return jsonify({'success': False, 'error': 'No file uploaded'}), 400
            file = request.files['file']
            is_valid, error, safe_filename = validate_attachment_upload(file)
            if not is_valid:
                return jsonify({'success': False, 'error': error}), 400

            attachment = repo.add_attachment(note_id, file, safe_filename)
            if attachment is None:
                return jsonify({'success': False, 'error': 'Note not found'}), 404
            return jsonify({'success': True, 'attachment': attachment}), 201
    except Exception as e:
        logger.error(f"Attachments error for note {note_id}: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@jobs_bp.route('/api/notes/<note_id>/attachments/<attachment_id>', methods=['GET', 'DELETE'])
def handle_note_attachment(note_id, attachment_id):
    """Download or delete an attachment"""
    try:
        with get_db_session() as session:
            repo = get_notes_repository(session)

            if request.method == 'DELETE':
                if not repo.delete_attachment(note_id, attachment_id):
                    return jsonify({'success': False, 'error': 'Attachment not found'}), 404
                return jsonify({'success': True})

            attachment = repo.get_attachment(note_id, attachment_id)
            if not attachment:
                return jsonify({'success': False, 'error': 'Attachment not found'}), 404
            stored_path, file_name, mime_type = attachment.stored_path, attachment.file_name, attachment.mime_type

        return send_file(os.path.abspath(stored_path), mimetype=mime_type, as_attachment=True, download_name=file_name)
    except FileNotFoundError:
        return jsonify({'success': False, 'error': 'Attachment file is missing'}), 404
    except Exception as e:
        logger.error(f"Attachment {attachment_id} error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500
