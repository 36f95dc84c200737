"""Notification manager for the medication tracker."""

from dataclasses import dataclass, field
from typing import Optional, Protocol

from loguru import logger

from medtracker.data.models import Medication, new_id
from medtracker.services.registry import needs_refill
from medtracker.utils import MalformedScheduleError
from medtracker.utils.calendar import parse_clock_time

REFILL_TYPE = "refill"
DOSE_TYPE = "dose"


@dataclass(frozen=True)
class NotificationPresentation:
    """How alerts are presented when they fire."""

    show_alert: bool = True
    play_sound: bool = True
    set_badge: bool = True


# Process-wide presentation settings, set by configure_notifications()
_presentation: Optional[NotificationPresentation] = None


def configure_notifications(
    show_alert: bool = True,
    play_sound: bool = True,
    set_badge: bool = True,
) -> NotificationPresentation:
    """Set how alerts are presented. Call once at process start.

    Returns:
        The configured presentation settings
    """
    global _presentation
    _presentation = NotificationPresentation(
        show_alert=show_alert,
        play_sound=play_sound,
        set_badge=set_badge,
    )
    logger.info(f"Notifications configured: {_presentation}")
    return _presentation


def get_notification_presentation() -> NotificationPresentation:
    """Get the configured presentation settings.

    Raises:
        RuntimeError: If configure_notifications() was not called
    """
    if _presentation is None:
        raise RuntimeError(
            "Notifications not configured. Call configure_notifications() first."
        )
    return _presentation


class NotificationScheduler(Protocol):
    """Alert scheduling collaborator.

    Alerts are tagged with a medication ID so they can be cancelled together.
    """

    async def schedule_daily(self, tag: str, hour: int, minute: int, title: str, body: str, kind: str = DOSE_TYPE) -> str:
        ...

    async def schedule_immediate(self, tag: str, title: str, body: str, kind: str = REFILL_TYPE) -> str:
        ...

    async def cancel_by_tag(self, tag: str) -> int:
        ...

    async def cancel_all(self) -> None:
        ...


@dataclass
class ScheduledAlert:
    """Alert held by InMemoryNotificationScheduler.

    Attributes:
        id: Alert identifier
        tag: Medication ID the alert belongs to
        title: Alert title
        body: Alert body
        kind: "dose" or "refill"
        hour: Daily hour for repeating alerts, None for immediate ones
        minute: Daily minute for repeating alerts, None for immediate ones
    """

    id: str
    tag: str
    title: str
    body: str
    kind: str
    hour: Optional[int] = None
    minute: Optional[int] = None
    presentation: NotificationPresentation = field(default_factory=NotificationPresentation)

    @property
    def repeats(self) -> bool:
        return self.hour is not None


class InMemoryNotificationScheduler:
    """Notification scheduler that keeps alerts in process memory.

    Delivery is left to whoever consumes ``alerts``.
    """

    def __init__(self, presentation: Optional[NotificationPresentation] = None):
        self.presentation = presentation or get_notification_presentation()
        self.alerts: dict[str, ScheduledAlert] = {}

    async def schedule_daily(self, tag: str, hour: int, minute: int, title: str, body: str, kind: str = DOSE_TYPE) -> str:
        alert = ScheduledAlert(
            id=new_id(), tag=tag, title=title, body=body, kind=kind,
            hour=hour, minute=minute, presentation=self.presentation,
        )
        self.alerts[alert.id] = alert
        logger.debug(f"Scheduled daily alert {alert.id} for {tag} at {hour:02d}:{minute:02d}")
        return alert.id

    async def schedule_immediate(self, tag: str, title: str, body: str, kind: str = REFILL_TYPE) -> str:
        alert = ScheduledAlert(
            id=new_id(), tag=tag, title=title, body=body, kind=kind,
            presentation=self.presentation,
        )
        self.alerts[alert.id] = alert
        logger.debug(f"Scheduled immediate alert {alert.id} for {tag}")
        return alert.id

    async def cancel_by_tag(self, tag: str) -> int:
        cancelled = [alert_id for alert_id, alert in self.alerts.items() if alert.tag == tag]
        for alert_id in cancelled:
            del self.alerts[alert_id]
        logger.debug(f"Cancelled {len(cancelled)} alert(s) for {tag}")
        return len(cancelled)

    async def cancel_all(self) -> None:
        self.alerts.clear()
        logger.debug("Cancelled all alerts")

    def get_alerts(self, tag: Optional[str] = None) -> list[ScheduledAlert]:
        return [alert for alert in self.alerts.values() if tag is None or alert.tag == tag]


def format_reminder_message(medication: Medication) -> tuple[str, str]:
    """Format dose reminder title and body.

    Format:
        Medication Reminder
        Time to take Aspirin (200 mg)
    """
    return (
        "Medication Reminder",
        f"Time to take {medication.name} ({medication.dosage})",
    )


def format_refill_message(medication: Medication) -> tuple[str, str]:
    """Format refill reminder title and body."""
    return (
        "Refill Reminder",
        f"Your {medication.name} supply is running low. "
        f"Current supply: {medication.current_supply}",
    )


class ReminderManager:
    """Manager for medication reminder logic.

    Handles all operations related to medication alerts:
    - Scheduling one daily alert per scheduled time
    - Raising a refill alert when supply is low
    - Cancelling all alerts of a medication

    Scheduler failures are logged and never propagate: dose tracking does
    not depend on alerts being delivered.
    """

    def __init__(self, scheduler: NotificationScheduler):
        self.scheduler = scheduler
        logger.debug("ReminderManager initialized")

    async def schedule_medication_reminder(self, medication: Medication) -> list[str]:
        """Schedule a daily alert for each of the medication's times.

        Returns:
            Identifiers of scheduled alerts (empty if reminders are disabled)
        """
        if not medication.reminder_enabled:
            return []

        title, body = format_reminder_message(medication)
        identifiers = []
        try:
            for value in medication.times:
                try:
                    clock_time = parse_clock_time(value)
                except MalformedScheduleError as e:
                    logger.warning(f"Skipping reminder for medication {medication.id}: {e}")
                    continue
                identifiers.append(
                    await self.scheduler.schedule_daily(
                        medication.id, clock_time.hour, clock_time.minute, title, body,
                    )
                )
        except Exception as e:
            logger.error(
                f"Error scheduling reminders for medication {medication.id}: {e}",
                exc_info=True,
            )

        logger.info(f"Scheduled {len(identifiers)} reminder(s) for medication {medication.id}")
        return identifiers

    async def schedule_refill_reminder(self, medication: Medication) -> Optional[str]:
        """Raise an immediate refill alert when supply is low.

        Returns:
            Alert identifier, or None if no refill is needed
        """
        if not needs_refill(medication):
            return None

        title, body = format_refill_message(medication)
        try:
            identifier = await self.scheduler.schedule_immediate(medication.id, title, body)
        except Exception as e:
            logger.error(
                f"Error scheduling refill reminder for medication {medication.id}: {e}",
                exc_info=True,
            )
            return None

        logger.info(
            f"Refill reminder for medication {medication.id}: "
            f"supply {medication.current_supply} <= {medication.refill_at}"
        )
        return identifier

    async def cancel_medication_reminders(self, medication_id: str) -> None:
        try:
            await self.scheduler.cancel_by_tag(medication_id)
        except Exception as e:
            logger.error(
                f"Error cancelling reminders for medication {medication_id}: {e}",
                exc_info=True,
            )

    async def update_medication_reminders(self, medication: Medication) -> None:
        """Cancel a medication's alerts and schedule them again."""
        await self.cancel_medication_reminders(medication.id)
        await self.schedule_medication_reminder(medication)
        await self.schedule_refill_reminder(medication)

    async def cancel_all(self) -> None:
        """Cancel every scheduled alert.

        Raises:
            Exception: Whatever the scheduler raises
        """
        await self.scheduler.cancel_all()
