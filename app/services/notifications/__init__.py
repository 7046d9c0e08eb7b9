from .deadline_utils import WeekCalculator
from .manager_notification_service import ManagerNotificationService
from .processor import NotificationProcessor
from .registry import NotificationTemplateRegistry
from .reminder_scanner import ReminderScanner
from .scheduler import ReminderSchedule, ReminderScheduler
from .store import MemoryNotificationStore, NotificationStore, RedisNotificationStore

__all__ = [
    "WeekCalculator",
    "ManagerNotificationService",
    "NotificationProcessor",
    "NotificationTemplateRegistry",
    "ReminderScanner",
    "ReminderSchedule",
    "ReminderScheduler",
    "NotificationStore",
    "MemoryNotificationStore",
    "RedisNotificationStore",
]
