"""
Background Job Scheduler - Runs periodic CRM housekeeping.

Registered jobs:
- seo_autopilot: draft social posts for the coming days (daily at 06:00)
- seo_post_reminders: log approved posts that are due but not yet posted (daily at 12:00)
- partner_invoice_overdue: flag partner invoices past their due date (daily, and on startup)

Times of day are in the server's local time, the same clock the autopilot
uses for slot times.
"""

import logging
import threading
from datetime import datetime, timedelta, time
from typing import Dict, Any, Optional, Callable

logger = logging.getLogger(__name__)

_scheduler = None

HOUR = 60 * 60
DAY = 24 * HOUR

AUTOPILOT_TIME = '06:00'
POST_REMINDER_TIME = '12:00'


def next_daily_run(now: datetime, at_time: str) -> datetime:
    """The next occurrence of HH:MM strictly after `now`"""
    hours, minutes = (int(part) for part in at_time.split(':'))
    candidate = datetime.combine(now.date(), time(hours, minutes))
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


class BackgroundScheduler:
    """
    Runs registered callables on a daemon thread.

    Jobs either repeat every `interval_seconds` or, with `at_time`, once a
    day at that local time. run_pending() does the actual work and can be
    driven directly with an explicit `now`.
    """

    def __init__(self, check_interval: int = 60):
        self.jobs: Dict[str, Dict] = {}
        self.running = False
        self.check_interval = check_interval
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._stop_event = threading.Event()

    def add_job(self, job_id: str, func: Callable, interval_seconds: int = DAY, at_time: str = None,
                run_immediately: bool = False, kwargs: Dict = None, description: str = None,
                now: datetime = None):
        """
        Register (or replace) a job.

        Args:
            job_id: Name shown in the status endpoint
            func: Called with **kwargs; its return value is kept as last_result
            interval_seconds: Gap between runs when at_time is not given
            at_time: "HH:MM" to run once a day at that time instead
            run_immediately: Make the first run due straight away
            kwargs: Keyword arguments for func
            description: Status text, defaults to func's docstring
        """
        now = now or datetime.now()
        if run_immediately:
            first_run = now
        elif at_time:
            first_run = next_daily_run(now, at_time)
        else:
            first_run = now + timedelta(seconds=interval_seconds)

        with self._lock:
            self.jobs[job_id] = {
                'func': func,
                'interval': DAY if at_time else interval_seconds,
                'at_time': at_time,
                'kwargs': kwargs or {},
                'description': description or func.__doc__,
                'last_run': None,
                'last_result': None,
                'next_run': first_run,
                'run_count': 0,
                'last_error': None,
                'enabled': True
            }
        schedule = f"daily at {at_time}" if at_time else f"every {interval_seconds}s"
        logger.info(f"Scheduled job '{job_id}' {schedule}, first run {first_run.isoformat()}")

    def has_job(self, job_id: str) -> bool:
        with self._lock:
            return job_id in self.jobs

    def remove_job(self, job_id: str):
        with self._lock:
            if self.jobs.pop(job_id, None) is not None:
                logger.info(f"Removed job '{job_id}'")

    def _set_enabled(self, job_id: str, enabled: bool):
        with self._lock:
            if job_id in self.jobs:
                self.jobs[job_id]['enabled'] = enabled

    def enable_job(self, job_id: str):
        self._set_enabled(job_id, True)

    def disable_job(self, job_id: str):
        """Pause a job; it keeps its status and can be enabled again."""
        self._set_enabled(job_id, False)

    def get_job_status(self) -> Dict[str, Any]:
        def iso(value):
            return value.isoformat() if value else None

        with self._lock:
            return {
                job_id: {
                    'description': job['description'],
                    'interval': job['interval'],
                    'at_time': job['at_time'],
                    'last_run': iso(job['last_run']),
                    'next_run': iso(job['next_run']),
                    'run_count': job['run_count'],
                    'last_result': job['last_result'],
                    'last_error': job['last_error'],
                    'enabled': job['enabled']
                }
                for job_id, job in self.jobs.items()
            }

    def start(self):
        if self.running:
            logger.warning("Scheduler is already running")
            return

        self.running = True
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_loop, name='crm-scheduler', daemon=True)
        self._thread.start()
        logger.info(f"Background scheduler started (checking every {self.check_interval}s)")

    def stop(self):
        self.running = False
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=5)
        logger.info("Background scheduler stopped")

    def _execute(self, job_id: str, job: Dict, now: datetime) -> bool:
        try:
            logger.debug(f"Running job '{job_id}'")
            result = job['func'](**job['kwargs'])
        except Exception as e:
            logger.error(f"Job '{job_id}' failed: {e}")
            with self._lock:
                job['last_run'] = now
                job['last_error'] = str(e)
            return False

        with self._lock:
            job['last_run'] = now
            job['last_result'] = result
            job['run_count'] += 1
            job['last_error'] = None
        return True

    def _reschedule(self, job: Dict, now: datetime):
        with self._lock:
            if job['at_time']:
                job['next_run'] = next_daily_run(now, job['at_time'])
            else:
                job['next_run'] = now + timedelta(seconds=job['interval'])

    def run_pending(self, now: datetime = None) -> int:
        """Run every enabled job that is due. Returns the number of jobs run."""
        now = now or datetime.now()
        with self._lock:
            due = [(job_id, job) for job_id, job in self.jobs.items()
                   if job['enabled'] and job['next_run'] <= now]

        for job_id, job in due:
            self._execute(job_id, job, now)
            self._reschedule(job, now)
        return len(due)

    def _run_loop(self):
        while self.running and not self._stop_event.is_set():
            self.run_pending()
            self._stop_event.wait(timeout=self.check_interval)

    def run_job_now(self, job_id: str) -> bool:
        """
        Run a job outside its schedule; its next scheduled run is unchanged.

        Raises:
            KeyError: Unknown job
        """
        with self._lock:
            job = self.jobs[job_id]
        return self._execute(job_id, job, datetime.now())


def get_scheduler() -> BackgroundScheduler:
    """The process-wide scheduler, created on first use."""
    global _scheduler
    if _scheduler is None:
        _scheduler = BackgroundScheduler()
    return _scheduler


# =============================================================================
# SCHEDULED JOBS
# =============================================================================

def seo_autopilot_job(ai_service, company_name: str = 'CCC Group') -> Dict[str, Any]:
    """Generate autopilot slots and draft posts"""
    from database.connection import get_db_session
    from services.seo_service import SeoService

    with get_db_session() as session:
        result = SeoService(session, company_name=company_name).run_autopilot(ai_service)
    return {
        'slots_created': result['slots_created'],
        'posts_created': result['posts_created'],
        'errors': len(result['errors']),
    }


def seo_post_reminders_job() -> Dict[str, Any]:
    """Remind about approved posts that are due"""
    from database.connection import get_db_session
    from services.seo_service import SeoService

    with get_db_session() as session:
        service = SeoService(session)
        if not service.get_autopilot_settings().enabled:
            return {'overdue': 0}
        overdue = service.overdue_slots()
    for slot in overdue:
        logger.info(f"Reminder: post for {slot['platform']} was scheduled for {slot['scheduled_for']}")
    return {'overdue': len(overdue)}


def partner_invoice_overdue_job() -> Dict[str, Any]:
    """Mark partner invoices past their due date as overdue"""
    from database.connection import get_db_session
    from services.partner_fees import PartnerFeesService

    with get_db_session() as session:
        count = PartnerFeesService(session, actor_type='system').mark_overdue()
    return {'marked_overdue': count}


def register_default_jobs(scheduler: BackgroundScheduler, app, now: datetime = None) -> BackgroundScheduler:
    """Register the CRM jobs on a scheduler without starting it."""
    scheduler.add_job(
        'seo_autopilot',
        seo_autopilot_job,
        at_time=app.config.get('AUTOPILOT_RUN_TIME', AUTOPILOT_TIME),
        kwargs={'ai_service': getattr(app, 'ai_service', None),
                'company_name': app.config.get('COMPANY_NAME', 'CCC Group')},
        now=now
    )
    scheduler.add_job('seo_post_reminders', seo_post_reminders_job,
                      at_time=app.config.get('POST_REMINDER_TIME', POST_REMINDER_TIME), now=now)
    scheduler.add_job('partner_invoice_overdue', partner_invoice_overdue_job,
                      interval_seconds=DAY, run_immediately=True, now=now)
    return scheduler


def init_scheduler(app) -> BackgroundScheduler:
    """Register the CRM jobs on the global scheduler and start it."""
    scheduler = get_scheduler()
    scheduler.check_interval = app.config.get('SCHEDULER_CHECK_INTERVAL', 60)
    register_default_jobs(scheduler, app)
    scheduler.start()
    return scheduler
