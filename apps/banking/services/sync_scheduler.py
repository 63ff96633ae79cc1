"""
Recurring bank sync jobs on top of APScheduler.

Default jobs (Europe/Lisbon):
    daily-sync            0 6 * * *         active    last 2 days
    business-hours-sync   0 9-18 * * 1-5    inactive  today only
    weekly-full-sync      0 2 * * 0         active    last 30 days

Every run writes an AuditLog row on the 'sync_jobs' table (SYNC_COMPLETED
or SYNC_ERROR), which get_sync_statistics reads back.
"""

import logging
import re
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from django.conf import settings
from django.db import close_old_connections
from django.utils import timezone

from apps.ledger.models import AuditAction, AuditLog

from ..exceptions import (
    BankingServiceError,
    InvalidScheduleError,
    SyncFailedError,
    SyncJobNotFoundError,
)
from .transaction_sync import sync_all_accounts

logger = logging.getLogger(__name__)

AUDIT_TABLE = 'sync_jobs'
MANUAL_JOB_ID = 'manual-sync'
RECENT_ERRORS = 5

DAY_NAMES = ['sun', 'mon', 'tue', 'wed', 'thu', 'fri', 'sat']


@dataclass
class SyncJob:
    id: str
    name: str
    schedule: str
    is_active: bool
    lookback_days: Optional[int] = None
    trigger: Optional[CronTrigger] = field(default=None, repr=False)
    last_run: Optional[datetime] = None
    last_result: Optional[dict] = None


DEFAULT_JOBS = (
    {'job_id': 'daily-sync', 'name': 'Daily GoCardless Sync',
     'schedule': '0 6 * * *', 'is_active': True, 'lookback_days': 2},
    {'job_id': 'business-hours-sync', 'name': 'Business Hours Sync',
     'schedule': '0 9-18 * * 1-5', 'is_active': False, 'lookback_days': 0},
    {'job_id': 'weekly-full-sync', 'name': 'Weekly Full Sync',
     'schedule': '0 2 * * 0', 'is_active': True, 'lookback_days': 30},
)


def _day_of_week(field: str) -> str:
    """Expand a numeric cron day-of-week field into APScheduler day names."""
    if field == '*' or re.search(r'[a-zA-Z]', field):
        return field

    days = []
    for part in field.split(','):
        span, _, step = part.partition('/')
        step = int(step) if step else 1
        if span == '*':
            start, end = 0, 6
        elif '-' in span:
            start, end = (int(value) for value in span.split('-', 1))
        else:
            start = int(span)
            end = 6 if '/' in part else start
        if not 0 <= start <= end <= 7 or step < 1:
            raise ValueError(f"day of week '{part}' is out of range")
        days.extend(DAY_NAMES[day % 7] for day in range(start, end + 1, step))

    return ','.join(dict.fromkeys(days))


def parse_crontab(expression: str, tz) -> CronTrigger:
    """
    Build a CronTrigger from a five-field crontab expression.

    Day-of-week numbers follow cron (0 and 7 are Sunday).

    Raises:
        InvalidScheduleError: Wrong field count or out-of-range values
    """
    fields = expression.split()
    if len(fields) != 5:
        raise InvalidScheduleError(f"Invalid cron expression '{expression}': expected 5 fields")

    minute, hour, day, month, day_of_week = fields

    try:
        return CronTrigger(
            minute=minute,
            hour=hour,
            day=day,
            month=month,
            day_of_week=_day_of_week(day_of_week),
            timezone=tz,
        )
    except (ValueError, IndexError) as e:
        raise InvalidScheduleError(f"Invalid cron expression '{expression}': {e}")


def record_sync_result(job_id: str, result: dict) -> AuditLog:
    return AuditLog.objects.record(
        table_name=AUDIT_TABLE,
        record_id=job_id,
        action=AuditAction.SYNC_COMPLETED,
        new_values={**result, 'job_id': job_id, 'timestamp': timezone.now().isoformat()},
    )


def record_sync_error(job_id: str, error: Exception) -> AuditLog:
    return AuditLog.objects.record(
        table_name=AUDIT_TABLE,
        record_id=job_id,
        action=AuditAction.SYNC_ERROR,
        new_values={'error': str(error), 'job_id': job_id, 'timestamp': timezone.now().isoformat()},
    )


class SyncScheduler:
    """
    Registry of sync jobs mirrored into an APScheduler BackgroundScheduler.

    Jobs can be added, paused (stop_job), resumed (start_job), removed and
    run on demand; the scheduler thread itself starts with start().
    """

    def __init__(self, *, tz: Optional[str] = None, sync: Optional[Callable] = None, with_defaults: bool = True):
        self.timezone = tz or settings.SYNC_SCHEDULER_TIMEZONE
        self._scheduler = BackgroundScheduler(timezone=self.timezone)
        self._sync = sync or sync_all_accounts
        self._jobs = {}
        self._lock = threading.Lock()

        if with_defaults:
            for job in DEFAULT_JOBS:
                self.add_job(**job)

    @property
    def running(self) -> bool:
        return self._scheduler.running

    def start(self) -> None:
        if not self._scheduler.running:
            self._scheduler.start()

    def shutdown(self, wait: bool = False) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=wait)

    # -------------------------------------------------------------------------
    # Job registry
    # -------------------------------------------------------------------------

    def _get(self, job_id: str) -> SyncJob:
        try:
            return self._jobs[job_id]
        except KeyError:
            raise SyncJobNotFoundError(f"Job {job_id} not found")

    def add_job(
        self,
        *,
        job_id: str,
        name: str,
        schedule: str,
        is_active: bool = True,
        lookback_days: Optional[int] = None,
    ) -> SyncJob:
        trigger = parse_crontab(schedule, self.timezone)
        job = SyncJob(
            id=job_id,
            name=name,
            schedule=schedule,
            is_active=is_active,
            lookback_days=lookback_days,
            trigger=trigger,
        )

        options = {} if is_active else {'next_run_time': None}
        self._scheduler.add_job(
            self._run_scheduled,
            trigger=trigger,
            args=[job_id],
            id=job_id,
            name=name,
            replace_existing=True,
            coalesce=True,
            max_instances=1,
            **options
        )

        with self._lock:
            self._jobs[job_id] = job
        logger.info("Sync job '%s' %s with pattern %s", name, 'scheduled' if is_active else 'created', schedule)
        return job

    def start_job(self, job_id: str) -> SyncJob:
        job = self._get(job_id)
        self._scheduler.resume_job(job_id)
        job.is_active = True
        logger.info("Started sync job %s", job_id)
        return job

    def stop_job(self, job_id: str) -> SyncJob:
        job = self._get(job_id)
        self._scheduler.pause_job(job_id)
        job.is_active = False
        logger.info("Stopped sync job %s", job_id)
        return job

    def remove_job(self, job_id: str) -> None:
        self._get(job_id)
        try:
            self._scheduler.remove_job(job_id)
        except JobLookupError:
            logger.warning("Sync job %s was not registered with APScheduler", job_id)
        with self._lock:
            del self._jobs[job_id]
        logger.info("Removed sync job %s", job_id)

    def _next_run(self, job: SyncJob) -> Optional[datetime]:
        if not job.is_active:
            return None
        now = datetime.now(job.trigger.timezone)
        return job.trigger.get_next_fire_time(None, now)

    def _describe(self, job: SyncJob) -> dict:
        return {
            'id': job.id,
            'name': job.name,
            'schedule': job.schedule,
            'is_active': job.is_active,
            'lookback_days': job.lookback_days,
            'last_run': job.last_run,
            'next_run': self._next_run(job),
            'last_result': job.last_result,
        }

    def get_job_status(self, job_id: str) -> dict:
        return self._describe(self._get(job_id))

    def get_all_jobs(self) -> list:
        with self._lock:
            jobs = list(self._jobs.values())
        return [self._describe(job) for job in jobs]

    # -------------------------------------------------------------------------
    # Running
    # -------------------------------------------------------------------------

    def _execute(self, job_id: str, lookback_days: Optional[int]) -> dict:
        date_from = None
        if lookback_days is not None:
            date_from = timezone.localdate() - timedelta(days=lookback_days)

        logger.info("Starting sync job %s (from %s)", job_id, date_from or 'provider default')
        try:
            result = self._sync(date_from=date_from)
        except BankingServiceError as e:
            logger.error("Sync job %s failed: %s", job_id, e)
            record_sync_error(job_id, e)
            raise SyncFailedError(f"Sync job {job_id} failed: {e}") from e

        record_sync_result(job_id, {**result, 'date_from': date_from.isoformat() if date_from else None})
        logger.info(
            "Sync job %s completed: %d created, %d updated, %d accounts, %d errors",
            job_id, result['created'], result['updated'], result['accounts_processed'], len(result['errors']),
        )
        return result

    def run_job(self, job_id: str) -> dict:
        """Run a registered job now and remember its outcome."""
        job = self._get(job_id)
        job.last_run = timezone.now()
        try:
            job.last_result = self._execute(job_id, job.lookback_days)
        except SyncFailedError as e:
            job.last_result = {'error': str(e)}
            raise
        return job.last_result

    def _run_scheduled(self, job_id: str) -> None:
        close_old_connections()
        try:
            self.run_job(job_id)
        except SyncFailedError:
            # already logged and audited
            pass
        finally:
            close_old_connections()

    def trigger_manual_sync(self, job_id: Optional[str] = None) -> dict:
        """
        Run a job immediately, or an ad-hoc sync over the provider's default
        window recorded as 'manual-sync' when no job is named.
        """
        if job_id:
            return self.run_job(job_id)
        return self._execute(MANUAL_JOB_ID, None)


def get_sync_statistics(days: int = 30) -> dict:
    """
    Outcome of the sync runs recorded in the last `days` days.

    Returns:
        Dict with period, total_syncs, successful_syncs, failed_syncs,
        success_rate (%), total_transactions_created/updated, last_sync and
        up to five recent_errors
    """
    since = timezone.now() - timedelta(days=days)
    logs = list(
        AuditLog.objects.filter(
            table_name=AUDIT_TABLE,
            action__in=[AuditAction.SYNC_COMPLETED, AuditAction.SYNC_ERROR],
            timestamp__gte=since,
        ).order_by('-timestamp')
    )

    completed = [log for log in logs if log.action == AuditAction.SYNC_COMPLETED]
    failed = [log for log in logs if log.action == AuditAction.SYNC_ERROR]

    return {
        'period': {'days': days, 'since': since},
        'total_syncs': len(logs),
        'successful_syncs': len(completed),
        'failed_syncs': len(failed),
        'success_rate': round(len(completed) / len(logs) * 100, 2) if logs else 0,
        'total_transactions_created': sum((log.new_values or {}).get('created', 0) for log in completed),
        'total_transactions_updated': sum((log.new_values or {}).get('updated', 0) for log in completed),
        'last_sync': logs[0].timestamp if logs else None,
        'recent_errors': [
            {
                'timestamp': log.timestamp,
                'error': (log.new_values or {}).get('error'),
                'job_id': (log.new_values or {}).get('job_id'),
            }
            for log in failed[:RECENT_ERRORS]
        ],
    }


_scheduler = None
_scheduler_lock = threading.Lock()


def get_scheduler() -> SyncScheduler:
    """Process-wide scheduler with the default jobs."""
    global _scheduler
    with _scheduler_lock:
        if _scheduler is None:
            _scheduler = SyncScheduler()
        return _scheduler
