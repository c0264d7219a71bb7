"""
SEO Content Service - business profile, brand voice, weekly focus, content
posts and the autopilot that drafts posts ahead of time.

Autopilot generation:
    For each enabled platform and each of the next N days that falls on one
    of the platform's preferred days, a slot is created at the preferred
    time unless one already exists within a minute of it. Each slot gets a
    weighted-random content type and an AI-drafted post.
"""

import random
import logging
from datetime import datetime, date, time, timedelta
from typing import List, Optional, Dict, Any
from sqlalchemy.orm import Session

from database.models import (
    SeoBusinessProfile, SeoBrandVoice, SeoWeeklyFocus, SeoContentPost,
    SeoAutopilotSettings, SeoAutopilotSlot, SeoAutopilotRun
)
from ai_service import AIServiceError, AIServiceUnavailable
from app.utils.helpers import parse_date, parse_datetime

logger = logging.getLogger(__name__)

DAY_NAMES = ['monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday']
DEFAULT_SERVICE = 'Bespoke Carpentry'
DEFAULT_LOCATION = 'Cardiff'
DEFAULT_TRADE_TYPE = 'Carpentry & Home Improvements'
SLOT_TOLERANCE = timedelta(minutes=1)

CONTENT_SYSTEM_PROMPT = (
    "You are a social media content creator for a local trade business. Write engaging, "
    "professional posts that highlight quality work and build local community trust."
)

PROFILE_FIELDS = ['business_name', 'trade_type', 'services_offered', 'service_locations', 'brand_tone',
                  'primary_goals', 'contact_phone', 'contact_email', 'website_url']
BRAND_VOICE_FIELDS = ['custom_phrases', 'blacklisted_phrases', 'preferred_ctas', 'emoji_style',
                      'hashtag_preferences', 'location_keywords']
AUTOPILOT_FIELDS = [
    'enabled', 'facebook_enabled', 'facebook_preferred_days', 'facebook_preferred_time',
    'instagram_enabled', 'instagram_preferred_days', 'instagram_preferred_time',
    'google_enabled', 'google_preferred_days', 'google_preferred_time',
    'project_showcase_weight', 'before_after_weight', 'tips_weight', 'testimonial_weight',
    'seasonal_weight', 'auto_generate_ahead', 'require_approval', 'use_weekly_focus_images'
]


def build_content_prompt(platform: str, post_type: str, service: str, location: str, tone: str,
                         business_name: str, trade_type: str, custom_phrases: List[str] = None,
                         blacklisted_phrases: List[str] = None, preferred_ctas: List[str] = None,
                         hashtags: List[str] = None, media_context: str = None) -> str:
    """Assemble the instruction sent to the model for one post."""
    lines = [
        f"Write a {platform} post for {business_name}, a {trade_type} business.",
        "",
        f"Post type: {post_type}",
        f"Service to highlight: {service}",
        f"Location: {location}",
        f"Tone: {tone}",
    ]
    if custom_phrases:
        lines.append(f"Try to use these phrases: {', '.join(custom_phrases)}")
    if blacklisted_phrases:
        lines.append(f"Do NOT use these phrases: {', '.join(blacklisted_phrases)}")
    if preferred_ctas:
        lines.append(f"End with one of these calls-to-action: {' OR '.join(preferred_ctas)}")
    if hashtags:
        lines.append(f"Include relevant hashtags from: {', '.join(hashtags)}")
    if media_context:
        lines.append(f"This post will accompany a photo/image showing: {media_context}")
    lines.append("")
    lines.append("Keep the post concise and engaging. For Facebook/Instagram, aim for 100-150 words. "
                 "For Google Business Profile, aim for 50-100 words.")
    return "\n".join(lines)


def pick_content_type(weights: List[tuple], rng: random.Random = None) -> str:
    """Weighted random choice; falls back to project_showcase when all weights are zero."""
    rng = rng or random
    total = sum(max(weight, 0) for _, weight in weights)
    if total <= 0:
        return 'project_showcase'
    roll = rng.random() * total
    for content_type, weight in weights:
        roll -= max(weight, 0)
        if roll <= 0:
            return content_type
    return 'project_showcase'


def _parse_time_of_day(value: str, fallback: str) -> time:
    try:
        hours, minutes = (int(part) for part in (value or fallback).split(':'))
        return time(hours, minutes)
    except ValueError:
        hours, minutes = (int(part) for part in fallback.split(':'))
        return time(hours, minutes)


class SeoService:
    """Repository and generator for SEO content."""

    def __init__(self, session: Session, company_name: str = 'CCC Group'):
        self.session = session
        self.company_name = company_name

    # =========================================================================
    # BUSINESS PROFILE & BRAND VOICE
    # =========================================================================

    def get_business_profile(self) -> Optional[Dict]:
        profile = self.session.query(SeoBusinessProfile).first()
        return profile.to_dict() if profile else None

    def upsert_business_profile(self, data: Dict) -> Dict:
        profile = self.session.query(SeoBusinessProfile).first()
        if not profile:
            profile = SeoBusinessProfile()
            self.session.add(profile)
        for key in PROFILE_FIELDS:
            if key in data:
                setattr(profile, key, data[key])
        profile.updated_at = datetime.utcnow()
        self.session.flush()
        return profile.to_dict()

    def get_brand_voice(self) -> Optional[Dict]:
        voice = self.session.query(SeoBrandVoice).first()
        return voice.to_dict() if voice else None

    def upsert_brand_voice(self, data: Dict) -> Dict:
        voice = self.session.query(SeoBrandVoice).first()
        if not voice:
            voice = SeoBrandVoice()
            self.session.add(voice)
        for key in BRAND_VOICE_FIELDS:
            if key in data:
                setattr(voice, key, data[key])
        voice.updated_at = datetime.utcnow()
        self.session.flush()
        return voice.to_dict()

    # =========================================================================
    # WEEKLY FOCUS
    # =========================================================================

    def list_weekly_focus(self) -> List[Dict]:
        focus = self.session.query(SeoWeeklyFocus).order_by(SeoWeeklyFocus.week_start_date.desc()).all()
        return [f.to_dict() for f in focus]

    def active_focus(self) -> Optional[SeoWeeklyFocus]:
        return self.session.query(SeoWeeklyFocus).filter(SeoWeeklyFocus.status == 'active').first()

    def _complete_active(self, except_id: str = None):
        query = self.session.query(SeoWeeklyFocus).filter(SeoWeeklyFocus.status == 'active')
        if except_id:
            query = query.filter(SeoWeeklyFocus.id != except_id)
        for focus in query.all():
            focus.status = 'completed'

    def create_weekly_focus(self, data: Dict) -> Dict:
        """Creating an active focus completes the previously active one."""
        status = data.get('status') or 'planned'
        if status not in ('planned', 'active', 'completed'):
            raise ValueError(f"Invalid weekly focus status: {status}")
        start = parse_date(data.get('week_start_date'))
        end = parse_date(data.get('week_end_date')) or (start + timedelta(days=6) if start else None)
        if not start or not end:
            raise ValueError("week_start_date is required")
        if end < start:
            raise ValueError("week_end_date must not be before week_start_date")

        if status == 'active':
            self._complete_active()
        focus = SeoWeeklyFocus(
            week_start_date=start,
            week_end_date=end,
            primary_service=data['primary_service'],
            primary_location=data['primary_location'],
            focus_image_url=data.get('focus_image_url'),
            focus_image_caption=data.get('focus_image_caption'),
            status=status
        )
        self.session.add(focus)
        self.session.flush()
        return focus.to_dict()

    def update_weekly_focus(self, focus_id: str, data: Dict) -> Optional[Dict]:
        focus = self.session.get(SeoWeeklyFocus, focus_id)
        if not focus:
            return None
        for key in ('primary_service', 'primary_location', 'focus_image_url', 'focus_image_caption'):
            if key in data:
                setattr(focus, key, data[key])
        if 'week_start_date' in data:
            focus.week_start_date = parse_date(data['week_start_date'])
        if 'week_end_date' in data:
            focus.week_end_date = parse_date(data['week_end_date'])
        if 'status' in data:
            if data['status'] not in ('planned', 'active', 'completed'):
                raise ValueError(f"Invalid weekly focus status: {data['status']}")
            if data['status'] == 'active':
                self._complete_active(except_id=focus.id)
            focus.status = data['status']
        self.session.flush()
        return focus.to_dict()

    def delete_weekly_focus(self, focus_id: str) -> bool:
        focus = self.session.get(SeoWeeklyFocus, focus_id)
        if not focus:
            return False
        for model in (SeoContentPost, SeoAutopilotSlot):
            self.session.query(model).filter(model.weekly_focus_id == focus_id).update(
                {model.weekly_focus_id: None}, synchronize_session=False
            )
        self.session.delete(focus)
        return True

    # =========================================================================
    # CONTENT POSTS
    # =========================================================================

    def list_posts(self, platform: str = None, status: str = None, source: str = None) -> List[Dict]:
        query = self.session.query(SeoContentPost)
        if platform:
            query = query.filter(SeoContentPost.platform == platform)
        if status:
            query = query.filter(SeoContentPost.status == status)
        if source:
            query = query.filter(SeoContentPost.source == source)
        return [p.to_dict() for p in query.order_by(SeoContentPost.created_at.desc()).all()]

    def get_post(self, post_id: str) -> Optional[SeoContentPost]:
        return self.session.get(SeoContentPost, post_id)

    def create_post(self, data: Dict) -> Dict:
        post = SeoContentPost(
            platform=data['platform'],
            post_type=data.get('post_type'),
            content=data['content'],
            status=data.get('status') or 'draft',
            source=data.get('source') or 'manual',
            scheduled_for=parse_datetime(data.get('scheduled_for')),
            weekly_focus_id=data.get('weekly_focus_id'),
            media_urls=data.get('media_urls') or []
        )
        self.session.add(post)
        self.session.flush()
        return post.to_dict()

    def update_post(self, post_id: str, data: Dict) -> Optional[Dict]:
        post = self.get_post(post_id)
        if not post:
            return None
        for key in ('platform', 'post_type', 'content', 'status', 'weekly_focus_id', 'media_urls'):
            if key in data:
                setattr(post, key, data[key])
        if 'scheduled_for' in data:
            post.scheduled_for = parse_datetime(data['scheduled_for'])
        if data.get('status') == 'posted' and not post.posted_at:
            post.posted_at = datetime.utcnow()
        post.updated_at = datetime.utcnow()
        self.session.flush()
        return post.to_dict()

    def delete_post(self, post_id: str) -> bool:
        post = self.get_post(post_id)
        if not post:
            return False
        self.session.query(SeoAutopilotSlot).filter(SeoAutopilotSlot.content_post_id == post_id).update(
            {SeoAutopilotSlot.content_post_id: None}, synchronize_session=False
        )
        self.session.delete(post)
        return True

    # =========================================================================
    # GENERATION
    # =========================================================================

    def _prompt_context(self) -> Dict[str, Any]:
        profile = self.session.query(SeoBusinessProfile).first()
        voice = self.session.query(SeoBrandVoice).first()
        return {
            'business_name': (profile.business_name if profile else None) or self.company_name,
            'trade_type': (profile.trade_type if profile else None) or DEFAULT_TRADE_TYPE,
            'default_service': (profile.services_offered or [DEFAULT_SERVICE])[0] if profile else DEFAULT_SERVICE,
            'default_location': (profile.service_locations or [DEFAULT_LOCATION])[0] if profile else DEFAULT_LOCATION,
            'tone': (voice.emoji_style if voice else None) or (profile.brand_tone if profile else None)
            or 'professional',
            'custom_phrases': voice.custom_phrases or [] if voice else [],
            'blacklisted_phrases': voice.blacklisted_phrases or [] if voice else [],
            'preferred_ctas': voice.preferred_ctas or [] if voice else [],
            'hashtags': voice.hashtag_preferences or [] if voice else [],
        }

    @staticmethod
    def _generate(ai_service, prompt: str) -> str:
        if ai_service is None:
            raise AIServiceUnavailable("AI content generation is not configured")
        return ai_service.generate_text(prompt, system=CONTENT_SYSTEM_PROMPT, max_tokens=500)

    def generate_content(self, ai_service, data: Dict) -> Dict:
        """
        Draft a post with the AI service.

        Raises:
            AIServiceUnavailable: No AI key configured
            AIServiceError: Generation failed
        """
        context = self._prompt_context()
        media_context = data.get('media_context') or data.get('image_caption')
        prompt = build_content_prompt(
            platform=data.get('platform') or 'facebook',
            post_type=data.get('post_type') or 'project_showcase',
            service=data.get('service') or context['default_service'],
            location=data.get('location') or context['default_location'],
            tone=data.get('tone') or context['tone'],
            business_name=context['business_name'],
            trade_type=context['trade_type'],
            custom_phrases=context['custom_phrases'],
            blacklisted_phrases=context['blacklisted_phrases'],
            preferred_ctas=context['preferred_ctas'],
            hashtags=context['hashtags'],
            media_context=media_context,
        )
        content = self._generate(ai_service, prompt)
        return {'content': content, 'prompt': prompt, 'used_media_context': bool(media_context)}

    # =========================================================================
    # AUTOPILOT
    # =========================================================================

    def get_autopilot_settings(self) -> SeoAutopilotSettings:
        settings = self.session.query(SeoAutopilotSettings).first()
        if not settings:
            settings = SeoAutopilotSettings()
            self.session.add(settings)
            self.session.flush()
        return settings

    def update_autopilot_settings(self, data: Dict) -> Dict:
        settings = self.get_autopilot_settings()
        for key in AUTOPILOT_FIELDS:
            if key in data:
                setattr(settings, key, data[key])
        settings.updated_at = datetime.utcnow()
        self.session.flush()
        return settings.to_dict()

    @staticmethod
    def _platforms(settings: SeoAutopilotSettings) -> List[Dict[str, Any]]:
        return [
            {'name': 'facebook', 'enabled': settings.facebook_enabled,
             'days': settings.facebook_preferred_days or ['monday', 'wednesday', 'friday'],
             'time': _parse_time_of_day(settings.facebook_preferred_time, '09:00')},
            {'name': 'instagram', 'enabled': settings.instagram_enabled,
             'days': settings.instagram_preferred_days or ['tuesday', 'thursday', 'saturday'],
             'time': _parse_time_of_day(settings.instagram_preferred_time, '18:00')},
            {'name': 'google_business', 'enabled': settings.google_enabled,
             'days': settings.google_preferred_days or ['monday', 'thursday'],
             'time': _parse_time_of_day(settings.google_preferred_time, '12:00')},
        ]

    @staticmethod
    def _weights(settings: SeoAutopilotSettings) -> List[tuple]:
        def weight(value, default):
            return default if value is None else value
        return [
            ('project_showcase', weight(settings.project_showcase_weight, 40)),
            ('before_after', weight(settings.before_after_weight, 20)),
            ('tip', weight(settings.tips_weight, 15)),
            ('testimonial', weight(settings.testimonial_weight, 15)),
            ('seasonal', weight(settings.seasonal_weight, 10)),
        ]

    def _slot_exists(self, platform: str, scheduled_for: datetime) -> bool:
        return self.session.query(SeoAutopilotSlot).filter(
            SeoAutopilotSlot.platform == platform,
            SeoAutopilotSlot.scheduled_for >= scheduled_for - SLOT_TOLERANCE,
            SeoAutopilotSlot.scheduled_for <= scheduled_for + SLOT_TOLERANCE
        ).first() is not None

    def run_autopilot(self, ai_service, today: date = None, rng: random.Random = None) -> Dict[str, Any]:
        """
        Create slots and draft posts for the coming days.

        AI failures on individual slots are collected and the run is recorded
        as partial; the slot is kept as pending with no post.
        """
        result = {'slots_created': 0, 'posts_created': 0, 'errors': [], 'skipped': False}
        settings = self.get_autopilot_settings()
        if not settings.enabled:
            logger.info("Autopilot is disabled, skipping generation")
            result['skipped'] = True
            return result

        today = today or datetime.now().date()
        days_ahead = settings.auto_generate_ahead or 7
        platforms = self._platforms(settings)
        weights = self._weights(settings)
        enabled_names = [p['name'] for p in platforms if p['enabled']]

        logger.info(f"Starting autopilot content generation for {days_ahead} days: {enabled_names}")
        try:
            focus = self.active_focus()
            context = self._prompt_context()
            for platform in platforms:
                if not platform['enabled']:
                    continue
                for offset in range(days_ahead):
                    day = today + timedelta(days=offset)
                    if DAY_NAMES[day.weekday()] not in platform['days']:
                        continue
                    scheduled_for = datetime.combine(day, platform['time'])
                    if self._slot_exists(platform['name'], scheduled_for):
                        continue

                    content_type = pick_content_type(weights, rng)
                    slot = SeoAutopilotSlot(
                        platform=platform['name'],
                        scheduled_for=scheduled_for,
                        content_type=content_type,
                        status='pending',
                        weekly_focus_id=focus.id if focus else None
                    )
                    self.session.add(slot)
                    self.session.flush()
                    result['slots_created'] += 1

                    try:
                        prompt = build_content_prompt(
                            platform=platform['name'],
                            post_type=content_type,
                            service=(focus.primary_service if focus else None) or context['default_service'],
                            location=(focus.primary_location if focus else None) or context['default_location'],
                            tone=context['tone'],
                            business_name=context['business_name'],
                            trade_type=context['trade_type'],
                            custom_phrases=context['custom_phrases'],
                            blacklisted_phrases=context['blacklisted_phrases'],
                            preferred_ctas=context['preferred_ctas'],
                            hashtags=context['hashtags'],
                            media_context=focus.focus_image_caption if focus else None,
                        )
                        content = self._generate(ai_service, prompt)
                    except AIServiceError as e:
                        result['errors'].append(f"Slot {slot.id}: {e}")
                        logger.error(f"AI generation error for slot {slot.id}: {e}")
                        continue

                    media = []
                    if focus and focus.focus_image_url and settings.use_weekly_focus_images:
                        media = [focus.focus_image_url]
                    post = SeoContentPost(
                        platform=platform['name'],
                        post_type=content_type,
                        content=content,
                        status='pending_review' if settings.require_approval else 'approved',
                        source='autopilot',
                        scheduled_for=scheduled_for,
                        weekly_focus_id=focus.id if focus else None,
                        media_urls=media
                    )
                    self.session.add(post)
                    self.session.flush()
                    slot.content_post_id = post.id
                    slot.status = 'generated'
                    result['posts_created'] += 1

            run = SeoAutopilotRun(
                slots_generated=result['slots_created'],
                posts_created=result['posts_created'],
                status='partial' if result['errors'] else 'success',
                error_message='; '.join(result['errors']) or None,
                details={'days_ahead': days_ahead, 'platforms': enabled_names}
            )
            self.session.add(run)
            self.session.flush()
        except Exception as e:
            logger.error(f"Autopilot generation failed: {e}")
            self.session.rollback()
            # Nothing created before the rollback survives it
            result['slots_created'] = 0
            result['posts_created'] = 0
            run = SeoAutopilotRun(status='failed', error_message=str(e), details={})
            self.session.add(run)
            self.session.flush()
            result['errors'].append(str(e))

        result['run'] = run.to_dict()
        logger.info(f"Autopilot generation complete: {result['slots_created']} slots, "
                    f"{result['posts_created']} posts")
        return result

    def list_slots(self, status: str = None, start: datetime = None, end: datetime = None) -> List[Dict]:
        query = self.session.query(SeoAutopilotSlot)
        if status:
            query = query.filter(SeoAutopilotSlot.status == status)
        if start:
            query = query.filter(SeoAutopilotSlot.scheduled_for >= start)
        if end:
            query = query.filter(SeoAutopilotSlot.scheduled_for <= end)
        return [s.to_dict() for s in query.order_by(SeoAutopilotSlot.scheduled_for).all()]

    def approve_slot(self, slot_id: str) -> Optional[Dict]:
        slot = self.session.get(SeoAutopilotSlot, slot_id)
        if not slot:
            return None
        if not slot.content_post:
            raise ValueError("Slot has no generated post to approve")
        slot.status = 'approved'
        slot.content_post.status = 'approved'
        slot.content_post.updated_at = datetime.utcnow()
        self.session.flush()
        return slot.to_dict()

    def mark_slot_posted(self, slot_id: str, posted_at: datetime = None) -> Optional[Dict]:
        slot = self.session.get(SeoAutopilotSlot, slot_id)
        if not slot:
            return None
        posted_at = posted_at or datetime.utcnow()
        slot.status = 'posted'
        slot.posted_at = posted_at
        if slot.content_post:
            slot.content_post.status = 'posted'
            slot.content_post.posted_at = posted_at
        self.session.flush()
        return slot.to_dict()

    def overdue_slots(self, now: datetime = None) -> List[Dict]:
        """Approved slots whose time has passed but have not been posted."""
        now = now or datetime.now()
        slots = self.session.query(SeoAutopilotSlot).filter(
            SeoAutopilotSlot.status == 'approved',
            SeoAutopilotSlot.scheduled_for <= now,
            SeoAutopilotSlot.posted_at.is_(None)
        ).order_by(SeoAutopilotSlot.scheduled_for).all()
        return [s.to_dict() for s in slots]

    def list_runs(self, limit: int = 20) -> List[Dict]:
        runs = self.session.query(SeoAutopilotRun).order_by(SeoAutopilotRun.run_at.desc()).limit(limit).all()
        return [r.to_dict() for r in runs]
