"""Model exports.

Import from here: `from src.app.models import Project, Message`
"""

from src.app.models.application import Application
from src.app.models.enums import (
    ASSIGNED_STATUSES,
    ApplicationStatus,
    MessageType,
    ProjectStatus,
    UserRole,
)
from src.app.models.message import Message
from src.app.models.project import Project
from src.app.models.user import User

__all__ = [
    # Enums
    "ASSIGNED_STATUSES",
    "ApplicationStatus",
    "MessageType",
    "ProjectStatus",
    "UserRole",
    # Models
    "Application",
    "Message",
    "Project",
    "User",
]
