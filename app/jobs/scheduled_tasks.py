"""Periodic notification jobs on the ``schedule`` library.

Three jobs run on one scheduler thread: retry of failed deliveries, push
receipt polling and expiry cleanup. Retry and receipt polling also run once
at start-up.
"""

import threading
import time
from typing import Optional

import schedule

from infrastructure.configuration.infrastructure.jobs import JobSettings
from infrastructure.logging import get_module_logger
from jobs.check_push_receipts import check_push_receipts
from jobs.cleanup_expired_notifications import cleanup_expired_notifications
from jobs.retry_failed_notifications import retry_failed_notifications

logger = get_module_logger()

HEARTBEAT_INTERVAL_MINUTES = 5


def safe_run(job):
    def wrapper(*args, **kwargs):
        try:
            return job(*args, **kwargs)
        except Exception as e:
            logger.error(
                "safe_run_error",
                error=str(e),
                function=job.__name__,
                module=job.__module__,
                job_args=args,
                job_kwargs=kwargs,
                exc_info=True,
            )

    wrapper.__name__ = getattr(job, "__name__", "job")
    return wrapper


def init(job_settings: Optional[JobSettings] = None, scheduler=None):
    """Register the notification jobs.

    Args:
        job_settings: Job cadence; defaults to settings from the environment
        scheduler: ``schedule.Scheduler`` to register on; defaults to the
            module-level default scheduler
    """
    job_settings = job_settings or JobSettings()
    scheduler = scheduler or schedule.default_scheduler

    scheduler.every(job_settings.retry_interval_minutes).minutes.do(
        safe_run(retry_failed_notifications)
    )
    scheduler.every(job_settings.receipt_interval_minutes).minutes.do(
        safe_run(check_push_receipts)
    )
    scheduler.every(job_settings.cleanup_interval_minutes).minutes.do(
        safe_run(cleanup_expired_notifications)
    )
    scheduler.every(HEARTBEAT_INTERVAL_MINUTES).minutes.do(safe_run(scheduler_heartbeat))

    logger.info(
        "scheduled_tasks_initialized",
        retry_interval_minutes=job_settings.retry_interval_minutes,
        receipt_interval_minutes=job_settings.receipt_interval_minutes,
        cleanup_interval_minutes=job_settings.cleanup_interval_minutes,
    )


def run_startup_jobs():
    """Run receipt polling and retry once, before the first interval elapses."""
    logger.info("running_startup_jobs")
    safe_run(check_push_receipts)()
    safe_run(retry_failed_notifications)()


def scheduler_heartbeat():
    logger.info(
        "running_scheduler_heartbeat", module="scheduled_tasks", time=time.ctime()
    )


def run_continuously(interval=1, scheduler=None):
    """Continuously run, while executing pending jobs at each
    elapsed time interval.
    @return cease_continuous_run: threading. Event which can
    be set to cease continuous run. Please note that it is
    *intended behavior that run_continuously() does not run
    missed jobs*. For example, if you've registered a job that
    should run every minute and you set a continuous run
    interval of one hour then your job won't be run 60 times
    at each interval but only once.
    """
    cease_continuous_run = threading.Event()
    scheduler = scheduler or schedule.default_scheduler

    class ScheduleThread(threading.Thread):
        def run(self):
            while not cease_continuous_run.is_set():
                scheduler.run_pending()
                cease_continuous_run.wait(interval)

    continuous_thread = ScheduleThread(name="notification-scheduler", daemon=True)
    continuous_thread.start()
    return cease_continuous_run
