# ebay_watch/jobs/scheduler.py
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.date import DateTrigger

from ebay_watch.config import Settings, settings as default_settings
from ebay_watch.workflow import ScheduledWorkflow

logger = logging.getLogger(__name__)

IMMEDIATE_RUN_DELAY = timedelta(seconds=2)


def build_scheduler(workflow: ScheduledWorkflow, cfg: Optional[Settings] = None) -> AsyncIOScheduler:
    cfg = cfg or default_settings
    sched = AsyncIOScheduler(timezone="UTC")
    sched.add_job(
        workflow.run,
        CronTrigger(minute=cfg.CHECK_MINUTE, timezone="UTC"),
        id="ending-soon-check",
        max_instances=1,
        coalesce=True,
    )
    if cfg.RUN_IMMEDIATELY:
        logger.info("Running immediately for testing...")
        sched.add_job(
            workflow.run,
            DateTrigger(run_date=datetime.now(timezone.utc) + IMMEDIATE_RUN_DELAY),
            id="ending-soon-check-now",
        )
    return sched


async def start_scheduler(workflow: ScheduledWorkflow, cfg: Optional[Settings] = None) -> AsyncIOScheduler:
    cfg = cfg or default_settings
    await workflow.notifier.verify_transport()
    sched = build_scheduler(workflow, cfg)
    sched.start()
    logger.info("Check scheduled every hour at minute %d (UTC)", cfg.CHECK_MINUTE)
    return sched
