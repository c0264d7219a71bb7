"""
Scheduler Routes Blueprint

Owner controls for the housekeeping jobs (autopilot drafts, post reminders,
overdue partner invoices):
- GET  /api/scheduler/status               : running flag plus per-job status
- POST /api/scheduler/run/<job_id>         : run a job now
- POST /api/scheduler/jobs/<job_id>/enable : resume a paused job
- POST /api/scheduler/jobs/<job_id>/disable: pause a job without removing it
"""

import logging
from flask import Blueprint, jsonify

from services.scheduler import get_scheduler

logger = logging.getLogger(__name__)

scheduler_bp = Blueprint('scheduler_bp', __name__)


def _job_not_found(job_id):
    return jsonify({'success': False, 'error': f'Job not found: {job_id}'}), 404


@scheduler_bp.route('/api/scheduler/status', methods=['GET'])
def get_scheduler_status():
    try:
        scheduler = get_scheduler()
        return jsonify({'success': True, 'running': scheduler.running, 'jobs': scheduler.get_job_status()})
    except Exception as e:
        logger.error(f"Error getting scheduler status: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@scheduler_bp.route('/api/scheduler/run/<job_id>', methods=['POST'])
def run_scheduler_job(job_id):
    """Run a job immediately; a failing job gives 500 with its error"""
    try:
        scheduler = get_scheduler()
        if not scheduler.has_job(job_id):
            return _job_not_found(job_id)

        succeeded = scheduler.run_job_now(job_id)
        job = scheduler.get_job_status().get(job_id, {})
        if succeeded:
            logger.info(f"Job '{job_id}' run manually: {job.get('last_result')}")
            return jsonify({'success': True, 'message': f'Job {job_id} executed', 'job': job})
        return jsonify({'success': False, 'error': job.get('last_error') or 'Job failed', 'job': job}), 500

    except Exception as e:
        logger.error(f"Error running scheduler job {job_id}: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@scheduler_bp.route('/api/scheduler/jobs/<job_id>/<action>', methods=['POST'])
def toggle_scheduler_job(job_id, action):
    if action not in ('enable', 'disable'):
        return jsonify({'success': False, 'error': f'Unknown action: {action}'}), 404
    try:
        scheduler = get_scheduler()
        if not scheduler.has_job(job_id):
            return _job_not_found(job_id)

        if action == 'enable':
            scheduler.enable_job(job_id)
        else:
            scheduler.disable_job(job_id)
        logger.info(f"Job '{job_id}' {action}d")
        return jsonify({'success': True, 'job': scheduler.get_job_status()[job_id]})

    except Exception as e:
        logger.error(f"Error updating scheduler job {job_id}: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500
