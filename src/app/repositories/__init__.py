"""Repository layer - data access abstraction."""

from src.app.repositories.application import ApplicationRepository
from src.app.repositories.base import BaseRepository
from src.app.repositories.message import MessageRepository
from src.app.repositories.project import ProjectRepository
from src.app.repositories.user import UserRepository

__all__ = [
    "ApplicationRepository",
    "BaseRepository",
    "MessageRepository",
    "ProjectRepository",
    "UserRepository",
]
