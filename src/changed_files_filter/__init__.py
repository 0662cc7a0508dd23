from .exceptions import (
    ChangedFilesFilterError,
    ChangedFilesSourceError,
    NPlusOneQueryDetected,
)
from .filters import ChangedFilesFilter, Notification, extract_file_path
from .handlers import FilteredNotificationHandler, log_notification

__all__ = [
    "ChangedFilesFilter",
    "FilteredNotificationHandler",
    "Notification",
    "extract_file_path",
    "log_notification",
    "ChangedFilesFilterError",
    "ChangedFilesSourceError",
    "NPlusOneQueryDetected",
]
