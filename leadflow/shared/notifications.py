"""
Non-fatal user notifications.

Mutations report their outcome as notifications instead of raising, so a
failed write never interrupts the caller. The presentation layer decides how
to render them.
"""

import logging
from enum import Enum
from typing import Optional, Protocol

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class NotificationVariant(str, Enum):
    default = "default"
    destructive = "destructive"


class Notification(BaseModel):
    title: str
    description: Optional[str] = None
    variant: NotificationVariant = NotificationVariant.default


class Notifier(Protocol):
    def notify(self, notification: Notification) -> None: ...


class LoggingNotifier:
    """Writes notifications to the application log."""

    def notify(self, notification: Notification) -> None:
        level = (
            logging.WARNING
            if notification.variant == NotificationVariant.destructive
            else logging.INFO
        )
        if notification.description:
            logger.log(level, f"{notification.title}: {notification.description}")
        else:
            logger.log(level, notification.title)


class CollectingNotifier(LoggingNotifier):
    """Logs notifications and keeps them so a response can carry them."""

    def __init__(self) -> None:
        self.notifications: list[Notification] = []

    def notify(self, notification: Notification) -> None:
        super().notify(notification)
        self.notifications.append(notification)
