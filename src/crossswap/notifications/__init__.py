from crossswap.notifications.notifier import (
    Notification,
    NotificationLevel,
    Notifier,
)

__all__ = ["Notification", "NotificationLevel", "Notifier"]
