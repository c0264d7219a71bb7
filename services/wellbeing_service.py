"""
Wellbeing Service - owner reminder settings, personal tasks, the three daily
focus priorities and reminder evaluation.
"""

import logging
from datetime import datetime, date, time, timedelta
from typing import List, Optional, Dict, Any
from sqlalchemy.orm import Session
from sqlalchemy import or_

from database.models import OwnerWellbeingSettings, PersonalTask, DailyFocusTask, Job
from app.utils.helpers import parse_date

logger = logging.getLogger(__name__)

UPCOMING_DAYS = 7

SETTINGS_FIELDS = [
    'water_reminder_enabled', 'water_reminder_interval_minutes',
    'stretch_reminder_enabled', 'stretch_reminder_interval_minutes',
    'work_cutoff_enabled', 'work_cutoff_time', 'work_cutoff_message',
    'session_tracking_enabled', 'session_warning_minutes'
]
TASK_FIELDS = ['title', 'description', 'task_type', 'due_time', 'location',
               'is_morning_task', 'reminder_minutes_before']


class FocusSlotTaken(Exception):
    """Raised when a day already has a focus task at the requested priority"""

    def __init__(self, focus_date: date, priority: int):
        self.focus_date = focus_date
        self.priority = priority
        super().__init__(f"Priority {priority} is already set for {focus_date.isoformat()}")


def _clock(value: str) -> Optional[time]:
    if not value:
        return None
    hours, minutes = value.split(':')
    return time(int(hours), int(minutes))


class WellbeingService:
    """Repository for the owner's wellbeing features."""

    def __init__(self, session: Session):
        self.session = session

    # =========================================================================
    # SETTINGS
    # =========================================================================

    def get_settings(self) -> OwnerWellbeingSettings:
        settings = self.session.query(OwnerWellbeingSettings).first()
        if not settings:
            settings = OwnerWellbeingSettings()
            self.session.add(settings)
            self.session.flush()
        return settings

    def update_settings(self, data: Dict) -> Dict:
        settings = self.get_settings()
        for key in SETTINGS_FIELDS:
            if key in data:
                setattr(settings, key, data[key])
        settings.updated_at = datetime.utcnow()
        self.session.flush()
        return settings.to_dict()

    # =========================================================================
    # PERSONAL TASKS
    # =========================================================================

    def list_tasks(self, include_completed: bool = False, task_type: str = None) -> List[Dict]:
        query = self.session.query(PersonalTask)
        if not include_completed:
            query = query.filter(PersonalTask.is_completed.is_(False))
        if task_type:
            query = query.filter(PersonalTask.task_type == task_type)
        tasks = query.order_by(PersonalTask.due_date, PersonalTask.due_time, PersonalTask.created_at).all()
        return [t.to_dict() for t in tasks]

    def get_task(self, task_id: str) -> Optional[PersonalTask]:
        return self.session.get(PersonalTask, task_id)

    def create_task(self, data: Dict) -> Dict:
        task = PersonalTask(
            title=data['title'].strip(),
            task_type=data.get('task_type') or 'personal',
            due_date=parse_date(data.get('due_date'))
        )
        for key in ('description', 'due_time', 'location', 'is_morning_task', 'reminder_minutes_before'):
            if key in data:
                setattr(task, key, data[key])
        if task.task_type == 'morning_routine':
            task.is_morning_task = True
        self.session.add(task)
        self.session.flush()
        return task.to_dict()

    def update_task(self, task_id: str, data: Dict) -> Optional[Dict]:
        task = self.get_task(task_id)
        if not task:
            return None
        for key in TASK_FIELDS:
            if key in data:
                setattr(task, key, data[key])
        if 'due_date' in data:
            task.due_date = parse_date(data['due_date'])
        if 'is_completed' in data:
            self._set_completed(task, bool(data['is_completed']))
        self.session.flush()
        return task.to_dict()

    @staticmethod
    def _set_completed(record, completed: bool):
        record.is_completed = completed
        record.completed_at = datetime.utcnow() if completed else None

    def complete_task(self, task_id: str) -> Optional[Dict]:
        task = self.get_task(task_id)
        if not task:
            return None
        self._set_completed(task, True)
        self.session.flush()
        return task.to_dict()

    def delete_task(self, task_id: str) -> bool:
        task = self.get_task(task_id)
        if not task:
            return False
        self.session.query(DailyFocusTask).filter(DailyFocusTask.task_id == task_id).update(
            {DailyFocusTask.task_id: None}, synchronize_session=False
        )
        self.session.delete(task)
        return True

    # =========================================================================
    # DAILY FOCUS
    # =========================================================================

    def list_focus(self, focus_date: date) -> List[Dict]:
        focus = self.session.query(DailyFocusTask).filter(
            DailyFocusTask.focus_date == focus_date
        ).order_by(DailyFocusTask.priority).all()
        return [f.to_dict() for f in focus]

    def create_focus(self, data: Dict, today: date = None) -> Dict:
        """
        Add one of the day's priorities.

        Raises:
            FocusSlotTaken: The date already has a task at this priority
            ValueError: Linked task or job does not exist
        """
        focus_date = parse_date(data.get('focus_date')) or today or date.today()
        priority = data.get('priority', 1)

        existing = self.session.query(DailyFocusTask).filter(
            DailyFocusTask.focus_date == focus_date,
            DailyFocusTask.priority == priority
        ).first()
        if existing:
            raise FocusSlotTaken(focus_date, priority)
        if data.get('task_id') and not self.session.get(PersonalTask, data['task_id']):
            raise ValueError(f"Personal task not found: {data['task_id']}")
        if data.get('job_id') and not self.session.get(Job, data['job_id']):
            raise ValueError(f"Job not found: {data['job_id']}")

        focus = DailyFocusTask(
            title=data['title'].strip(),
            description=data.get('description'),
            priority=priority,
            task_id=data.get('task_id'),
            job_id=data.get('job_id'),
            focus_date=focus_date
        )
        self.session.add(focus)
        self.session.flush()
        return focus.to_dict()

    def complete_focus(self, focus_id: str, completed: bool = True) -> Optional[Dict]:
        focus = self.session.get(DailyFocusTask, focus_id)
        if not focus:
            return None
        self._set_completed(focus, completed)
        if completed and focus.task_id:
            task = self.get_task(focus.task_id)
            if task and not task.is_completed:
                self._set_completed(task, True)
        self.session.flush()
        return focus.to_dict()

    def delete_focus(self, focus_id: str) -> bool:
        focus = self.session.get(DailyFocusTask, focus_id)
        if not focus:
            return False
        self.session.delete(focus)
        return True

    # =========================================================================
    # DASHBOARD & REMINDERS
    # =========================================================================

    def dashboard(self, today: date = None) -> Dict[str, Any]:
        today = today or date.today()
        horizon = today + timedelta(days=UPCOMING_DAYS)

        morning = self.session.query(PersonalTask).filter(
            PersonalTask.is_completed.is_(False),
            or_(PersonalTask.is_morning_task.is_(True), PersonalTask.task_type == 'morning_routine')
        ).order_by(PersonalTask.due_time, PersonalTask.created_at).all()

        upcoming = self.session.query(PersonalTask).filter(
            PersonalTask.is_completed.is_(False),
            PersonalTask.due_date >= today,
            PersonalTask.due_date <= horizon
        ).order_by(PersonalTask.due_date, PersonalTask.due_time).all()

        next_appointment = next((t for t in upcoming if t.task_type == 'appointment'), None)
        focus = self.list_focus(today)

        return {
            'date': today.isoformat(),
            'settings': self.get_settings().to_dict(),
            'morning_tasks': [t.to_dict() for t in morning],
            'daily_focus': focus,
            'focus_completed': sum(1 for f in focus if f['is_completed']),
            'upcoming_tasks': [t.to_dict() for t in upcoming],
            'next_appointment': next_appointment.to_dict() if next_appointment else None,
        }

    def due_reminders(self, now: datetime, last_water_at: datetime = None, last_stretch_at: datetime = None,
                      session_started_at: datetime = None) -> List[Dict[str, Any]]:
        """
        Reminders that should fire at `now`.

        Water and stretch reminders count from the last acknowledgement, or
        from the start of the session when there has been none.
        """
        settings = self.get_settings()
        reminders = []

        def interval_due(last, minutes):
            baseline = last or session_started_at
            return baseline is None or now - baseline >= timedelta(minutes=minutes)

        if settings.water_reminder_enabled and interval_due(last_water_at,
                                                            settings.water_reminder_interval_minutes or 60):
            reminders.append({'type': 'water', 'message': 'Time for a glass of water'})

        if settings.stretch_reminder_enabled and interval_due(last_stretch_at,
                                                              settings.stretch_reminder_interval_minutes or 90):
            reminders.append({'type': 'stretch', 'message': 'Stand up and stretch for a couple of minutes'})

        cutoff = _clock(settings.work_cutoff_time)
        if settings.work_cutoff_enabled and cutoff and now.time() >= cutoff:
            reminders.append({'type': 'work_cutoff',
                              'message': settings.work_cutoff_message or 'Time to switch to family mode!'})

        if settings.session_tracking_enabled and session_started_at:
            online = int((now - session_started_at).total_seconds() // 60)
            if online >= (settings.session_warning_minutes or 120):
                reminders.append({'type': 'session',
                                  'message': f"You've been working for {online // 60}h {online % 60}m",
                                  'minutes_online': online})

        tasks = self.session.query(PersonalTask).filter(
            PersonalTask.is_completed.is_(False),
            PersonalTask.due_date == now.date(),
            PersonalTask.due_time.isnot(None),
            PersonalTask.reminder_minutes_before.isnot(None)
        ).all()
        for task in tasks:
            due_at = datetime.combine(task.due_date, _clock(task.due_time))
            if due_at - timedelta(minutes=task.reminder_minutes_before) <= now <= due_at:
                reminders.append({
                    'type': 'task',
                    'message': f"{task.title} at {task.due_time}" + (f" ({task.location})" if task.location else ''),
                    'task_id': task.id,
                })

        return reminders
