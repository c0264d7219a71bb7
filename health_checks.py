"""
Health Check & Monitoring Endpoints

/api/health and /api/ping for the load balancer, /api/ready for deploys and
/api/metrics for the owner's monitoring dashboard (process figures plus a few
business counters such as pending partner fees).
"""
import os
import sys
import time
import psutil
from datetime import datetime
from typing import Dict, Any
from flask import Blueprint, jsonify, current_app
from sqlalchemy import func
import logging

from database.connection import check_db_connection, get_db_session

logger = logging.getLogger(__name__)

SERVICE_NAME = 'trade-services-crm'
SERVICE_VERSION = '1.0.0'

health_bp = Blueprint('health', __name__)

START_TIME = time.time()

STORAGE_FOLDERS = ('UPLOAD_FOLDER', 'DATA_FOLDER', 'INSPECTION_BACKUP_FOLDER')
CLOSED_STAGES = ('closed', 'lost')


def get_system_metrics() -> Dict[str, Any]:
    """Process CPU, memory and thread figures (empty when psutil fails)"""
    try:
        process = psutil.Process()
        return {
            'cpu_percent': process.cpu_percent(interval=0.1),
            'memory_mb': round(process.memory_info().rss / 1024 / 1024, 2),
            'threads': process.num_threads(),
        }
    except Exception as e:
        logger.warning(f"Failed to get system metrics: {e}")
        return {}


def get_uptime() -> Dict[str, Any]:
    uptime_seconds = time.time() - START_TIME
    return {
        'uptime_seconds': round(uptime_seconds, 2),
        'started_at': datetime.fromtimestamp(START_TIME).isoformat()
    }


def get_crm_stats() -> Dict[str, Any]:
    """
    Business counters for the monitoring dashboard.

    Returns:
        Open jobs by stage, pending partner fee total, overdue partner
        invoices, autopilot drafts awaiting approval and inspections not yet
        backed up. Empty when the database cannot be queried.
    """
    from database.models import Job, PartnerFeeAccrual, PartnerInvoice, SeoAutopilotSlot, Inspection

    try:
        with get_db_session() as session:
            by_stage = dict(
                session.query(Job.status, func.count(Job.id))
                .filter(Job.status.notin_(CLOSED_STAGES))
                .group_by(Job.status).all()
            )
            pending_fees = session.query(func.coalesce(func.sum(PartnerFeeAccrual.fee_amount), 0)).filter(
                PartnerFeeAccrual.status == 'pending'
            ).scalar()
            overdue_invoices = session.query(func.count(PartnerInvoice.id)).filter(
                PartnerInvoice.status == 'overdue'
            ).scalar()
            slots_to_review = session.query(func.count(SeoAutopilotSlot.id)).filter(
                SeoAutopilotSlot.status == 'generated'
            ).scalar()
            unsynced = session.query(func.count(Inspection.id)).filter(
                Inspection.is_synced.is_(False)
            ).scalar()

        return {
            'open_jobs': sum(by_stage.values()),
            'open_jobs_by_stage': by_stage,
            'pending_partner_fees': float(pending_fees or 0),
            'overdue_partner_invoices': overdue_invoices,
            'autopilot_slots_to_review': slots_to_review,
            'unsynced_inspections': unsynced,
        }
    except Exception as e:
        logger.warning(f"Failed to collect CRM stats: {e}")
        return {}


def get_scheduler_summary() -> Dict[str, Any]:
    """Whether the background scheduler runs and which jobs last failed"""
    from services.scheduler import get_scheduler

    scheduler = get_scheduler()
    jobs = scheduler.get_job_status()
    return {
        'running': scheduler.running,
        'jobs': len(jobs),
        'failing': sorted(job_id for job_id, job in jobs.items() if job['last_error']),
    }


def check_database() -> Dict[str, Any]:
    try:
        check_db_connection()
        return {'healthy': True}
    except Exception as e:
        return {'healthy': False, 'error': str(e)}


def check_ai_services(app) -> Dict[str, bool]:
    """Report whether content generation is configured (it is optional)"""
    ai_service = getattr(app, 'ai_service', None)
    return {
        'anthropic_claude': bool(ai_service and ai_service.is_available('claude'))
    }


def check_filesystem(app) -> Dict[str, Dict[str, Any]]:
    """Attachment, data and inspection backup folders must exist and be writable"""
    filesystem_status = {}

    for key in STORAGE_FOLDERS:
        dir_path = app.config.get(key)
        if not dir_path:
            continue
        exists = os.path.isdir(dir_path)
        writable = os.access(dir_path, os.W_OK) if exists else False
        filesystem_status[key] = {
            'path': dir_path,
            'exists': exists,
            'writable': writable,
            'healthy': exists and writable
        }

    return filesystem_status


@health_bp.route('/health', methods=['GET'])
def health_check():
    """Liveness: 200 while the process is serving"""
    return jsonify({
        'status': 'healthy',
        'timestamp': datetime.utcnow().isoformat(),
        'service': SERVICE_NAME
    }), 200


@health_bp.route('/ready', methods=['GET'])
def readiness_check():
    """
    Readiness probe endpoint
    Returns 200 when the database answers and storage folders are writable
    """
    try:
        database = check_database()
        filesystem = check_filesystem(current_app)
        filesystem_healthy = all(status['healthy'] for status in filesystem.values())
        is_ready = database['healthy'] and filesystem_healthy

        return jsonify({
            'status': 'ready' if is_ready else 'not_ready',
            'timestamp': datetime.utcnow().isoformat(),
            'checks': {
                'database': database,
                'filesystem': filesystem,
                'filesystem_healthy': filesystem_healthy,
                'ai_services': check_ai_services(current_app)
            }
        }), 200 if is_ready else 503

    except Exception as e:
        logger.error(f"Readiness check failed: {e}")
        return jsonify({
            'status': 'error',
            'error': str(e),
            'timestamp': datetime.utcnow().isoformat()
        }), 503


@health_bp.route('/metrics', methods=['GET'])
def metrics():
    try:
        return jsonify({
            'timestamp': datetime.utcnow().isoformat(),
            'service': SERVICE_NAME,
            'version': SERVICE_VERSION,
            'environment': os.environ.get('FLASK_ENV', 'production'),
            'uptime': get_uptime(),
            'system': get_system_metrics(),
            'crm': get_crm_stats(),
            'scheduler': get_scheduler_summary(),
            'services': check_ai_services(current_app),
            'python_version': sys.version.split()[0]
        }), 200

    except Exception as e:
        logger.error(f"Metrics collection failed: {e}")
        return jsonify({
            'status': 'error',
            'error': str(e),
            'timestamp': datetime.utcnow().isoformat()
        }), 500


@health_bp.route('/ping', methods=['GET'])
def ping():
    return 'pong', 200


def register_health_checks(app):
    """Mount the health blueprint under /api"""
    app.register_blueprint(health_bp, url_prefix='/api')
    logger.info("Health check endpoints registered: /api/health, /api/ready, /api/metrics, /api/ping")
