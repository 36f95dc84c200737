"""Main entry point for the medication tracker."""

import asyncio
import sys

from medtracker.config import settings
from medtracker.services.notification_manager import configure_notifications
from medtracker.tracker import create_tracker
from medtracker.utils import MedTrackerError, logger, setup_logger


async def main():
    """Reconcile missed doses and report today's schedule and refill needs."""
    setup_logger(console_level=settings.log_level, logs_dir=settings.log_dir)

    logger.info("=" * 60)
    logger.info("Starting Medication Tracker")
    logger.info("=" * 60)
    logger.info(f"Configuration: {settings}")

    configure_notifications()
    tracker = await create_tracker(settings)

    added = await tracker.sync_missed_doses()
    logger.info(f"Missed doses recorded this run: {len(added)}")

    slots = await tracker.get_daily_schedule()
    if not slots:
        logger.info("No medications scheduled today")
    for slot in slots:
        logger.info(
            f"{slot.scheduled_time or 'as needed':>9} | {slot.medication.name} "
            f"{slot.medication.dosage} | {slot.status}"
        )

    for medication, instant in await tracker.get_next_doses():
        logger.info(f"Next dose of {medication.name}: {instant.strftime('%Y-%m-%d %H:%M')}")

    for medication in await tracker.get_refill_alerts():
        logger.warning(
            f"Refill needed: {medication.name} "
            f"({medication.current_supply} left, threshold {medication.refill_at})"
        )

    logger.info("Medication Tracker finished")


def run() -> None:
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Received KeyboardInterrupt, exiting...")
    except MedTrackerError as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    run()
