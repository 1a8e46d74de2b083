"""
Standalone runner for the upcoming-release notification batch.

Runs the batch every day at the configured UTC time, or once with ``--run-once``
so an external cron can own the schedule.
"""
import argparse
import logging
import signal
import sys

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger

from catalog_api.api_notifications.email_service import create_email_sender
from catalog_api.api_notifications.notification_service import check_upcoming_movies
from catalog_api.config import Config, configure_logging
from catalog_api.database import create_mongo_client

logger = logging.getLogger(__name__)


class NotificationRunner:
    """Owns the database handle and sender used by each batch run."""

    def __init__(self, config: dict):
        self.config = config
        self.client = create_mongo_client(config)
        self.db = self.client[config["MONGO_DB_NAME"]]
        self.email_sender = create_email_sender(config)

    def run_job(self):
        """Run the batch once; errors are logged so the schedule keeps going."""
        try:
            return check_upcoming_movies(self.db, self.email_sender)
        except Exception:
            logger.exception("Upcoming movie check failed")
            return None

    def close(self):
        self.client.close()


def load_config():
    return {key: getattr(Config, key) for key in dir(Config) if key.isupper()}


def build_scheduler(runner: NotificationRunner, hour: int, minute: int):
    scheduler = BlockingScheduler(timezone="UTC")
    scheduler.add_job(
        runner.run_job,
        CronTrigger(hour=hour, minute=minute, timezone="UTC"),
        id="check_upcoming_movies",
        max_instances=1,
        coalesce=True,
    )
    return scheduler


def main(argv=None):
    parser = argparse.ArgumentParser(description="Upcoming movie notification scheduler")
    parser.add_argument("--run-once", action="store_true", help="Run the batch once and exit")
    args = parser.parse_args(argv)

    config = load_config()
    configure_logging(config["LOG_LEVEL"])
    runner = NotificationRunner(config)

    if args.run_once:
        summary = runner.run_job()
        runner.close()
        return 0 if summary is not None else 1

    scheduler = build_scheduler(runner, config["NOTIFICATION_HOUR"], config["NOTIFICATION_MINUTE"])

    def shutdown(signum, frame):
        logger.info("Received signal %s, stopping scheduler", signum)
        scheduler.shutdown(wait=False)

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    logger.info("Notification scheduler running daily at %02d:%02d UTC", config["NOTIFICATION_HOUR"], config["NOTIFICATION_MINUTE"])
    try:
        scheduler.start()
    finally:
        runner.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
