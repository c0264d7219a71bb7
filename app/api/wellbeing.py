"""
Owner Wellbeing Routes Blueprint

Handles the owner's personal organiser:
- /api/wellbeing/settings: Reminder settings
- /api/wellbeing/dashboard: Morning tasks, today's focus and upcoming items
- /api/wellbeing/personal-tasks: Personal tasks and appointments
- /api/wellbeing/daily-focus: Up to three priorities per day
- /api/wellbeing/reminders: Reminders due right now
"""

from datetime import datetime
from flask import Blueprint, request, jsonify
import logging

from database.connection import get_db_session
from services.wellbeing_service import WellbeingService, FocusSlotTaken
from validators import (
    validate_personal_task, validate_daily_focus, validate_wellbeing_settings, require_valid,
    ValidationError, format_validation_error
)
from app.utils.helpers import parse_bool, parse_date, parse_datetime

logger = logging.getLogger(__name__)

# Create blueprint
wellbeing_bp = Blueprint('wellbeing_bp', __name__)


# ============================================================================
# SETTINGS & DASHBOARD
# ============================================================================

@wellbeing_bp.route('/api/wellbeing/settings', methods=['GET', 'PUT', 'POST'])
def handle_settings():
    """Get or update reminder settings"""
    try:
        with get_db_session() as session:
            service = WellbeingService(session)

            if request.method == 'GET':
                return jsonify({'success': True, 'settings': service.get_settings().to_dict()})

            data = request.get_json(silent=True)
            require_valid(validate_wellbeing_settings(data))
            return jsonify({'success': True, 'settings': service.update_settings(data)})
    except ValidationError as e:
        return jsonify(format_validation_error(e.field, e.message)), 400
    except Exception as e:
        logger.error(f"Wellbeing settings error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@wellbeing_bp.route('/api/wellbeing/dashboard', methods=['GET'])
def dashboard():
    """Today's view (or ?date=YYYY-MM-DD)"""
    try:
        today = parse_date(request.args.get('date'))
        with get_db_session() as session:
            data = WellbeingService(session).dashboard(today)
        return jsonify({'success': True, **data})
    except ValueError as e:
        return jsonify({'success': False, 'error': f"Invalid date: {e}"}), 400
    except Exception as e:
        logger.error(f"Wellbeing dashboard error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


# ============================================================================
# PERSONAL TASKS
# ============================================================================

@wellbeing_bp.route('/api/wellbeing/personal-tasks', methods=['GET', 'POST'])
def handle_tasks():
    """List personal tasks or add one"""
    try:
        with get_db_session() as session:
            service = WellbeingService(session)

            if request.method == 'GET':
                tasks = service.list_tasks(
                    include_completed=parse_bool(request.args.get('include_completed')),
                    task_type=request.args.get('task_type')
                )
                return jsonify({'success': True, 'tasks': tasks, 'count': len(tasks)})

            data = request.get_json(silent=True)
            require_valid(validate_personal_task(data))
            return jsonify({'success': True, 'task': service.create_task(data)}), 201
    except ValidationError as e:
        return jsonify(format_validation_error(e.field, e.message)), 400
    except ValueError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception as e:
        logger.error(f"Personal tasks error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@wellbeing_bp.route('/api/wellbeing/personal-tasks/<task_id>', methods=['GET', 'PUT', 'PATCH', 'DELETE'])
def handle_task(task_id):
    """Get, update or delete a personal task"""
    try:
        with get_db_session() as session:
            service = WellbeingService(session)

            if request.method == 'GET':
                task = service.get_task(task_id)
                task = task.to_dict() if task else None
            elif request.method == 'DELETE':
                if not service.delete_task(task_id):
                    return jsonify({'success': False, 'error': 'Task not found'}), 404
                return jsonify({'success': True})
            else:
                data = request.get_json(silent=True)
                require_valid(validate_personal_task(data, partial=True))
                task = service.update_task(task_id, data)

            if not task:
                return jsonify({'success': False, 'error': 'Task not found'}), 404
            return jsonify({'success': True, 'task': task})
    except ValidationError as e:
        return jsonify(format_validation_error(e.field, e.message)), 400
    except ValueError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception as e:
        logger.error(f"Personal task {task_id} error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@wellbeing_bp.route('/api/wellbeing/personal-tasks/<task_id>/complete', methods=['POST'])
def complete_task(task_id):
    try:
        with get_db_session() as session:
            task = WellbeingService(session).complete_task(task_id)
            if not task:
                return jsonify({'success': False, 'error': 'Task not found'}), 404
            return jsonify({'success': True, 'task': task})
    except Exception as e:
        logger.error(f"Complete task {task_id} error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


# ============================================================================
# DAILY FOCUS
# ============================================================================

@wellbeing_bp.route('/api/wellbeing/daily-focus', methods=['GET', 'POST'])
def handle_daily_focus():
    """List a day's priorities (?date, default today) or add one"""
    try:
        with get_db_session() as session:
            service = WellbeingService(session)

            if request.method == 'GET':
                focus_date = parse_date(request.args.get('date')) or datetime.now().date()
                focus = service.list_focus(focus_date)
                return jsonify({'success': True, 'date': focus_date.isoformat(), 'focus': focus})

            data = request.get_json(silent=True)
            require_valid(validate_daily_focus(data))
            return jsonify({'success': True, 'focus': service.create_focus(data)}), 201
    except ValidationError as e:
        return jsonify(format_validation_error(e.field, e.message)), 400
    except FocusSlotTaken as e:
        return jsonify({'success': False, 'error': str(e)}), 409
    except ValueError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception as e:
        logger.error(f"Daily focus error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@wellbeing_bp.route('/api/wellbeing/daily-focus/<focus_id>', methods=['DELETE'])
def delete_daily_focus(focus_id):
    try:
        with get_db_session() as session:
            if not WellbeingService(session).delete_focus(focus_id):
                return jsonify({'success': False, 'error': 'Focus task not found'}), 404
        return jsonify({'success': True})
    except Exception as e:
        logger.error(f"Delete focus {focus_id} error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@wellbeing_bp.route('/api/wellbeing/daily-focus/<focus_id>/complete', methods=['POST'])
def complete_daily_focus(focus_id):
    """Tick off (or with {"completed": false} untick) a focus task"""
    try:
        data = request.get_json(silent=True) or {}
        with get_db_session() as session:
            focus = WellbeingService(session).complete_focus(focus_id, bool(data.get('completed', True)))
            if not focus:
                return jsonify({'success': False, 'error': 'Focus task not found'}), 404
            return jsonify({'success': True, 'focus': focus})
    except Exception as e:
        logger.error(f"Complete focus {focus_id} error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


# ============================================================================
# REMINDERS
# ============================================================================

@wellbeing_bp.route('/api/wellbeing/reminders', methods=['GET'])
def due_reminders():
    """
    Reminders that should fire now.

    Query params (ISO datetimes): now, last_water_at, last_stretch_at,
    session_started_at. The client tracks acknowledgements and session start.
    """
    try:
        args = request.args
        now = parse_datetime(args.get('now')) or datetime.now()
        with get_db_session() as session:
            reminders = WellbeingService(session).due_reminders(
                now,
                last_water_at=parse_datetime(args.get('last_water_at')),
                last_stretch_at=parse_datetime(args.get('last_stretch_at')),
                session_started_at=parse_datetime(args.get('session_started_at'))
            )
        return jsonify({'success': True, 'reminders': reminders, 'now': now.isoformat()})
    except ValueError as e:
        return jsonify({'success': False, 'error': f"Invalid datetime: {e}"}), 400
    except Exception as e:
        logger.error(f"Reminders error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500
