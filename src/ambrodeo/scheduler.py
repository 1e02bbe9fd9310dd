from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from src.ambrodeo.jobs import reconcile_counters
from dotenv import load_dotenv
import os
import time
import logging

load_dotenv(override=True)
logging.basicConfig(level=logging.INFO)

RECONCILE_INTERVAL_MINUTES = int(os.getenv("RECONCILE_INTERVAL_MINUTES", "60"))


def build_scheduler(interval_minutes: int = RECONCILE_INTERVAL_MINUTES) -> BackgroundScheduler:
    scheduler = BackgroundScheduler()
    scheduler.add_job(
        reconcile_counters,
        IntervalTrigger(minutes=interval_minutes),
        id="reconcile_counters",
        replace_existing=True
    )
    return scheduler


def start_scheduler():
    logging.info("Scheduler starting...")
    scheduler = build_scheduler()
    scheduler.start()

    try:
        while True:
            time.sleep(60)
    except (KeyboardInterrupt, SystemExit):
        logging.info("Scheduler shutting down...")
        scheduler.shutdown()


if __name__ == "__main__":
    start_scheduler()
