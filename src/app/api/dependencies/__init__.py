"""FastAPI dependency injection definitions."""

# Auth
from src.app.api.dependencies.auth import (
    AdminUser,
    CurrentUser,
    get_current_user,
    require_admin,
)

# Database
from src.app.api.dependencies.db import DBSession, get_db_session

# Repositories
from src.app.api.dependencies.repositories import (
    ApplicationRepo,
    MessageRepo,
    ProjectRepo,
    UserRepo,
    get_application_repository,
    get_message_repository,
    get_project_repository,
    get_user_repository,
)

# Services
from src.app.api.dependencies.services import (
    ChannelDep,
    LifecycleServiceDep,
    ProjectServiceDep,
    get_channel,
    get_lifecycle_service,
    get_project_service,
)

__all__ = [
    # Database
    "DBSession",
    "get_db_session",
    # Auth
    "AdminUser",
    "CurrentUser",
    "get_current_user",
    "require_admin",
    # Repositories
    "ApplicationRepo",
    "MessageRepo",
    "ProjectRepo",
    "UserRepo",
    "get_application_repository",
    "get_message_repository",
    "get_project_repository",
    "get_user_repository",
    # Services
    "ChannelDep",
    "LifecycleServiceDep",
    "ProjectServiceDep",
    "get_channel",
    "get_lifecycle_service",
    "get_project_service",
]
