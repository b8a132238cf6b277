from src.app.schemas.application import ApplicationCreate, ApplicationRead
from src.app.schemas.message import MessagePayload, MessageRead
from src.app.schemas.project import ProjectCreate, ProjectRead, ProjectState

__all__ = [
    # Application
    "ApplicationCreate",
    "ApplicationRead",
    # Message
    "MessagePayload",
    "MessageRead",
    # Project
    "ProjectCreate",
    "ProjectRead",
    "ProjectState",
]
