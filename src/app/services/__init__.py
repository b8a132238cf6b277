from src.app.services.lifecycle_service import LifecycleService, StatusNotifier
from src.app.services.message_service import DatabaseMessageStore, MessageService
from src.app.services.project_service import ProjectService

__all__ = [
    "DatabaseMessageStore",
    "LifecycleService",
    "MessageService",
    "ProjectService",
    "StatusNotifier",
]
