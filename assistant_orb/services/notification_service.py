"""User-visible notifications (toasts) raised by widget operations."""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum


logger = logging.getLogger(__name__)


class NotificationVariant(str, Enum):
    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


@dataclass
class Notification:
    title: str
    description: str
    variant: NotificationVariant = NotificationVariant.DEFAULT
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class NotificationService:
    """Collects notifications for the UI layer to display.

    Every error notification is paired with a developer-facing log line.
    """

    def __init__(self):
        self.notifications: list[Notification] = []

    def notify(self, title: str, description: str) -> Notification:
        notification = Notification(title=title, description=description)
        self.notifications.append(notification)
        logger.info(f"{title}: {description}")
        return notification

    def error(self, description: str, error: Exception | None = None) -> Notification:
        """Record a destructive notification, logging the underlying error."""
        notification = Notification(
            title="Error", description=description, variant=NotificationVariant.DESTRUCTIVE
        )
        self.notifications.append(notification)
        if error is not None:
            logger.error(f"{description} ({type(error).__name__}: {str(error)})")
        else:
            logger.error(description)
        return notification

    @property
    def errors(self) -> list[Notification]:
        return [n for n in self.notifications if n.variant == NotificationVariant.DESTRUCTIVE]

    def drain(self) -> list[Notification]:
        """Return and forget everything recorded so far."""
        pending, self.notifications = self.notifications, []
        return pending
