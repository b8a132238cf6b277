"""Service factory dependencies."""

from typing import Annotated

from fastapi import Depends, Request

from src.app.api.dependencies.db import DBSession
from src.app.api.dependencies.repositories import ApplicationRepo, MessageRepo, ProjectRepo
from src.app.realtime import MessagingChannel
from src.app.services import LifecycleService, ProjectService


def get_channel(request: Request) -> MessagingChannel:
    """The process-wide messaging channel created with the app."""
    return request.app.state.channel  # type: ignore[no-any-return]


ChannelDep = Annotated[MessagingChannel, Depends(get_channel)]


def get_lifecycle_service(
    project_repo: ProjectRepo,
    application_repo: ApplicationRepo,
    message_repo: MessageRepo,
    session: DBSession,
    channel: ChannelDep,
) -> LifecycleService:
    """Lifecycle service wired to broadcast status changes into project rooms."""
    return LifecycleService(project_repo, application_repo, message_repo, session, notifier=channel)


def get_project_service(
    project_repo: ProjectRepo,
    application_repo: ApplicationRepo,
    message_repo: MessageRepo,
    session: DBSession,
) -> ProjectService:
    return ProjectService(project_repo, application_repo, message_repo, session)


LifecycleServiceDep = Annotated[LifecycleService, Depends(get_lifecycle_service)]
ProjectServiceDep = Annotated[ProjectService, Depends(get_project_service)]
