"""Background lookahead refresh."""

import logging

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger

from .config import Config, load_config
from .core.timeline import now_ms
from .ports.task_store import TaskStore
from .workflows import extend_lookahead

logger = logging.getLogger(__name__)


def refresh_lookahead(store: TaskStore, config: Config) -> dict[str, int]:
    """Extend every series whose window is running out, as of now."""
    logger.info("Running lookahead refresh")
    added = extend_lookahead(
        store,
        now_ms(),
        window_days=config.extension_window_days,
        lookahead_days=config.lookahead_days,
    )
    for parent_id, count in added.items():
        logger.info(f"Series {parent_id}: {count} new instance(s)")
    return added


def setup_scheduler(store: TaskStore, config: Config | None = None) -> BlockingScheduler:
    """Set up the daily refresh job."""
    if config is None:
        config = load_config()

    # Occurrences live on the UTC timeline, so the job does too
    scheduler = BlockingScheduler(timezone="UTC")

    try:
        hour, minute = map(int, config.refresh_time.split(":"))
        scheduler.add_job(
            refresh_lookahead,
            CronTrigger(hour=hour, minute=minute, timezone="UTC"),
            args=[store, config],
            id="extend_lookahead",
            max_instances=1,
            coalesce=True,
        )
        logger.info(f"Scheduled lookahead refresh at {hour:02d}:{minute:02d} UTC")
    except ValueError:
        logger.warning(f"Invalid refresh time format: {config.refresh_time}")

    return scheduler


def run_refresher(store: TaskStore, config: Config | None = None) -> None:
    """Refresh once, then keep refreshing on schedule until interrupted."""
    if config is None:
        config = load_config()

    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=getattr(logging, config.log_level, logging.INFO),
    )

    refresh_lookahead(store, config)
    scheduler = setup_scheduler(store, config)
    logger.info("Scheduler started")
    scheduler.start()
