"""
SEO Content Routes Blueprint

Handles the social content workspace:
- /api/seo/business-profile, /api/seo/brand-voice: Singleton settings
- /api/seo/weekly-focus: Weekly service/location focus
- /api/seo/content-posts: Drafted and scheduled posts
- /api/seo/generate-content: AI post drafting
- /api/seo/autopilot/*: Autopilot settings, generation, slots and run history
"""

from flask import Blueprint, request, jsonify, current_app
import logging

from database.connection import get_db_session
from services.seo_service import SeoService
from ai_service import AIServiceError
from validators import (
    validate_content_post, validate_business_profile, validate_autopilot_settings, validate_required_fields,
    require_valid, ValidationError, format_validation_error
)
from app.utils.helpers import parse_datetime

logger = logging.getLogger(__name__)

# Create blueprint
seo_bp = Blueprint('seo_bp', __name__)


def get_seo_service(session) -> SeoService:
    return SeoService(session, company_name=current_app.config.get('COMPANY_NAME', 'CCC Group'))


# ============================================================================
# BUSINESS PROFILE & BRAND VOICE
# ============================================================================

@seo_bp.route('/api/seo/business-profile', methods=['GET', 'PUT', 'POST'])
def handle_business_profile():
    """Get or save the business profile used in content prompts"""
    try:
        with get_db_session() as session:
            service = get_seo_service(session)

            if request.method == 'GET':
                return jsonify({'success': True, 'profile': service.get_business_profile()})

            data = request.get_json(silent=True)
            require_valid(validate_business_profile(data))
            return jsonify({'success': True, 'profile': service.upsert_business_profile(data)})
    except ValidationError as e:
        return jsonify(format_validation_error(e.field, e.message)), 400
    except Exception as e:
        logger.error(f"Business profile error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@seo_bp.route('/api/seo/brand-voice', methods=['GET', 'PUT', 'POST'])
def handle_brand_voice():
    """Get or save the brand voice"""
    try:
        with get_db_session() as session:
            service = get_seo_service(session)

            if request.method == 'GET':
                return jsonify({'success': True, 'brand_voice': service.get_brand_voice()})

            data = request.get_json(silent=True)
            if not isinstance(data, dict):
                raise ValidationError("Request body must be a JSON object")
            return jsonify({'success': True, 'brand_voice': service.upsert_brand_voice(data)})
    except ValidationError as e:
        return jsonify(format_validation_error(e.field, e.message)), 400
    except Exception as e:
        logger.error(f"Brand voice error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


# ============================================================================
# WEEKLY FOCUS
# ============================================================================

@seo_bp.route('/api/seo/weekly-focus', methods=['GET', 'POST'])
def handle_weekly_focus():
    """List weekly focus entries or plan a new week"""
    try:
        with get_db_session() as session:
            service = get_seo_service(session)

            if request.method == 'GET':
                focus = service.list_weekly_focus()
                return jsonify({'success': True, 'weekly_focus': focus, 'count': len(focus)})

            data = request.get_json(silent=True)
            if not isinstance(data, dict):
                raise ValidationError("Request body must be a JSON object")
            require_valid(validate_required_fields(data, ['week_start_date', 'primary_service',
                                                          'primary_location']))
            focus = service.create_weekly_focus(data)
            return jsonify({'success': True, 'focus': focus}), 201
    except ValidationError as e:
        return jsonify(format_validation_error(e.field, e.message)), 400
    except ValueError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception as e:
        logger.error(f"Weekly focus error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@seo_bp.route('/api/seo/weekly-focus/<focus_id>', methods=['PUT', 'PATCH', 'DELETE'])
def handle_weekly_focus_item(focus_id):
    """Update or delete a weekly focus entry"""
    try:
        with get_db_session() as session:
            service = get_seo_service(session)

            if request.method == 'DELETE':
                if not service.delete_weekly_focus(focus_id):
                    return jsonify({'success': False, 'error': 'Weekly focus not found'}), 404
                return jsonify({'success': True})

            data = request.get_json(silent=True) or {}
            focus = service.update_weekly_focus(focus_id, data)
            if not focus:
                return jsonify({'success': False, 'error': 'Weekly focus not found'}), 404
            return jsonify({'success': True, 'focus': focus})
    except ValueError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception as e:
        logger.error(f"Weekly focus {focus_id} error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


# ============================================================================
# CONTENT POSTS
# ============================================================================

@seo_bp.route('/api/seo/content-posts', methods=['GET', 'POST'])
def handle_content_posts():
    """List posts (filter by platform, status, source) or save a new post"""
    try:
        with get_db_session() as session:
            service = get_seo_service(session)

            if request.method == 'GET':
                posts = service.list_posts(
                    platform=request.args.get('platform'),
                    status=request.args.get('status'),
                    source=request.args.get('source')
                )
                return jsonify({'success': True, 'posts': posts, 'count': len(posts)})

            data = request.get_json(silent=True)
            require_valid(validate_content_post(data))
            return jsonify({'success': True, 'post': service.create_post(data)}), 201
    except ValidationError as e:
        return jsonify(format_validation_error(e.field, e.message)), 400
    except Exception as e:
        logger.error(f"Content posts error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@seo_bp.route('/api/seo/content-posts/<post_id>', methods=['GET', 'PUT', 'PATCH', 'DELETE'])
def handle_content_post(post_id):
    """Get, update or delete a content post"""
    try:
        with get_db_session() as session:
            service = get_seo_service(session)

            if request.method == 'GET':
                post = service.get_post(post_id)
                post = post.to_dict() if post else None
            elif request.method == 'DELETE':
                if not service.delete_post(post_id):
                    return jsonify({'success': False, 'error': 'Post not found'}), 404
                return jsonify({'success': True})
            else:
                data = request.get_json(silent=True)
                require_valid(validate_content_post(data, partial=True))
                post = service.update_post(post_id, data)

            if not post:
                return jsonify({'success': False, 'error': 'Post not found'}), 404
            return jsonify({'success': True, 'post': post})
    except ValidationError as e:
        return jsonify(format_validation_error(e.field, e.message)), 400
    except Exception as e:
        logger.error(f"Content post {post_id} error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@seo_bp.route('/api/seo/generate-content', methods=['POST'])
def generate_content():
    """Draft a post with the AI service without saving it"""
    try:
        data = request.get_json(silent=True) or {}
        with get_db_session() as session:
            result = get_seo_service(session).generate_content(current_app.ai_service, data)
        return jsonify({'success': True, **result})
    except AIServiceError as e:
        logger.warning(f"Content generation unavailable: {e}")
        return jsonify({'success': False, 'error': str(e)}), 503
    except Exception as e:
        logger.error(f"Content generation error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


# ============================================================================
# AUTOPILOT
# ============================================================================

@seo_bp.route('/api/seo/autopilot/settings', methods=['GET', 'PUT', 'POST'])
def handle_autopilot_settings():
    """Get or update autopilot settings"""
    try:
        with get_db_session() as session:
            service = get_seo_service(session)

            if request.method == 'GET':
                return jsonify({'success': True, 'settings': service.get_autopilot_settings().to_dict()})

            data = request.get_json(silent=True)
            require_valid(validate_autopilot_settings(data))
            return jsonify({'success': True, 'settings': service.update_autopilot_settings(data)})
    except ValidationError as e:
        return jsonify(format_validation_error(e.field, e.message)), 400
    except Exception as e:
        logger.error(f"Autopilot settings error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@seo_bp.route('/api/seo/autopilot/generate', methods=['POST'])
def run_autopilot():
    """Create upcoming slots and draft their posts now"""
    try:
        with get_db_session() as session:
            result = get_seo_service(session).run_autopilot(current_app.ai_service)
        return jsonify({'success': True, **result})
    except Exception as e:
        logger.error(f"Autopilot generation error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@seo_bp.route('/api/seo/autopilot/slots', methods=['GET'])
def list_slots():
    """List autopilot slots (filter by status and date range)"""
    try:
        with get_db_session() as session:
            slots = get_seo_service(session).list_slots(
                status=request.args.get('status'),
                start=parse_datetime(request.args.get('start')),
                end=parse_datetime(request.args.get('end'))
            )
        return jsonify({'success': True, 'slots': slots, 'count': len(slots)})
    except ValueError as e:
        return jsonify({'success': False, 'error': f"Invalid date: {e}"}), 400
    except Exception as e:
        logger.error(f"Autopilot slots error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@seo_bp.route('/api/seo/autopilot/slots/<slot_id>/approve', methods=['POST'])
def approve_slot(slot_id):
    """Approve a slot's drafted post"""
    try:
        with get_db_session() as session:
            slot = get_seo_service(session).approve_slot(slot_id)
            if not slot:
                return jsonify({'success': False, 'error': 'Slot not found'}), 404
            return jsonify({'success': True, 'slot': slot})
    except ValueError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception as e:
        logger.error(f"Approve slot {slot_id} error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@seo_bp.route('/api/seo/autopilot/slots/<slot_id>/mark-posted', methods=['POST'])
def mark_slot_posted(slot_id):
    """Record that a slot's post went out"""
    try:
        data = request.get_json(silent=True) or {}
        with get_db_session() as session:
            slot = get_seo_service(session).mark_slot_posted(slot_id, parse_datetime(data.get('posted_at')))
            if not slot:
                return jsonify({'success': False, 'error': 'Slot not found'}), 404
            return jsonify({'success': True, 'slot': slot})
    except ValueError as e:
        return jsonify({'success': False, 'error': f"Invalid posted_at: {e}"}), 400
    except Exception as e:
        logger.error(f"Mark slot {slot_id} posted error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@seo_bp.route('/api/seo/autopilot/runs', methods=['GET'])
def list_runs():
    """Recent autopilot runs"""
    try:
        limit = request.args.get('limit', 20, type=int)
        with get_db_session() as session:
            runs = get_seo_service(session).list_runs(limit=limit)
        return jsonify({'success': True, 'runs': runs})
    except Exception as e:
        logger.error(f"Autopilot runs error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500
