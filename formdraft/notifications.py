"""User notifications, delivered through a host-provided observer.

The session core never keeps a global toast list; it calls ``notify`` on
whatever ``Notifier`` the host injects.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, List, Optional


class NotificationLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class Notification:
    level: NotificationLevel
    message: str
    duration_ms: Optional[int] = None
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


class Notifier:
    """Observer for user-facing messages. The base class discards them."""

    def notify(self, notification: Notification) -> None:
        pass

    def info(self, message: str, duration_ms: Optional[int] = None) -> None:
        self.notify(Notification(NotificationLevel.INFO, message, duration_ms))

    def success(self, message: str, duration_ms: Optional[int] = None) -> None:
        self.notify(Notification(NotificationLevel.SUCCESS, message, duration_ms))

    def warning(self, message: str, duration_ms: Optional[int] = None) -> None:
        self.notify(Notification(NotificationLevel.WARNING, message, duration_ms))

    def error(self, message: str, duration_ms: Optional[int] = None) -> None:
        self.notify(Notification(NotificationLevel.ERROR, message, duration_ms))


class CallbackNotifier(Notifier):
    """Forwards every notification to a callable."""

    def __init__(self, callback: Callable[[Notification], None]):
        self.callback = callback

    def notify(self, notification: Notification) -> None:
        self.callback(notification)


class CollectingNotifier(Notifier):
    """Keeps notifications in a list, newest last."""

    def __init__(self) -> None:
        self.notifications: List[Notification] = []

    def notify(self, notification: Notification) -> None:
        self.notifications.append(notification)

    def messages(self, level: Optional[NotificationLevel] = None) -> List[str]:
        return [n.message for n in self.notifications if level is None or n.level is level]
