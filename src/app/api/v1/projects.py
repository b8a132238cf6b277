"""Project endpoints: room state and lifecycle transitions.

Every mutating endpoint returns the authoritative post-transition resource.
Status changes are pushed to the project room by the lifecycle service after
commit; callers of these endpoints do not need to broadcast anything.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, Request, status

from src.app.api.dependencies import (
    AdminUser,
    CurrentUser,
    LifecycleServiceDep,
    ProjectServiceDep,
)
from src.app.core.rate_limit import limiter
from src.app.schemas import (
    ApplicationCreate,
    ApplicationRead,
    MessageRead,
    ProjectCreate,
    ProjectRead,
    ProjectState,
)

router = APIRouter(prefix="/projects", tags=["projects"])

_TRANSITION_ERRORS = {
    403: {"description": "Caller lacks the role or does not own the project"},
    404: {"description": "Project not found"},
    409: {"description": "Transition not allowed from the current status"},
}


@router.post(
    "",
    response_model=ProjectRead,
    status_code=status.HTTP_201_CREATED,
    summary="Post project",
    responses={403: {"description": "Only clients can post projects"}},
)
@limiter.limit("20/minute")
async def create_project(
    request: Request,
    data: ProjectCreate,
    user: CurrentUser,
    service: LifecycleServiceDep,
) -> ProjectRead:
    project = await service.create_project(user, data)
    return ProjectRead.model_validate(project)


@router.get(
    "/{project_id}",
    response_model=ProjectState,
    summary="Get project state",
    description=(
        "Project plus its message history in timeline order. Clients call this "
        "before joining the room and again after reconnecting."
    ),
    responses={404: {"description": "Project not found"}},
)
async def get_project_state(
    project_id: UUID,
    user: CurrentUser,
    service: ProjectServiceDep,
    after_seq: Annotated[
        int | None,
        Query(ge=0, description="Only return messages with a greater sequence number"),
    ] = None,
) -> ProjectState:
    project, messages = await service.fetch_project_state(project_id, user, after_seq=after_seq)
    return ProjectState(
        project=ProjectRead.model_validate(project),
        messages=[MessageRead.from_model(m) for m in messages],
    )


@router.delete(
    "/{project_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete project",
    description="Only Open projects can be deleted. Applications and messages go with it.",
    responses=_TRANSITION_ERRORS,
)
@limiter.limit("20/minute")
async def delete_project(
    request: Request,
    project_id: UUID,
    user: CurrentUser,
    service: LifecycleServiceDep,
) -> None:
    await service.delete_project(project_id, user)


# --- Applications ---


@router.post(
    "/{project_id}/applications",
    response_model=ApplicationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Apply to project",
    responses=_TRANSITION_ERRORS,
)
@limiter.limit("20/minute")
async def apply_to_project(
    request: Request,
    project_id: UUID,
    data: ApplicationCreate,
    user: CurrentUser,
    service: LifecycleServiceDep,
) -> ApplicationRead:
    application = await service.apply(project_id, user, data)
    return ApplicationRead.model_validate(application)


@router.get(
    "/{project_id}/applications",
    response_model=list[ApplicationRead],
    summary="List applications",
    responses={
        403: {"description": "Only the project's client can view applications"},
        404: {"description": "Project not found"},
    },
)
async def list_applications(
    project_id: UUID,
    user: CurrentUser,
    service: ProjectServiceDep,
) -> list[ApplicationRead]:
    applications = await service.list_applications(project_id, user)
    return [ApplicationRead.model_validate(a) for a in applications]


# --- Lifecycle ---


@router.post(
    "/{project_id}/submit",
    response_model=ProjectRead,
    summary="Submit work for approval",
    responses=_TRANSITION_ERRORS,
)
@limiter.limit("30/minute")
async def submit_for_approval(
    request: Request,
    project_id: UUID,
    user: CurrentUser,
    service: LifecycleServiceDep,
) -> ProjectRead:
    """Assigned freelancer: Active -> Pending Approval."""
    project = await service.submit_for_approval(project_id, user)
    return ProjectRead.model_validate(project)


@router.patch(
    "/{project_id}/approve",
    response_model=ProjectRead,
    summary="Approve submitted work",
    responses=_TRANSITION_ERRORS,
)
@limiter.limit("30/minute")
async def approve_project(
    request: Request,
    project_id: UUID,
    user: CurrentUser,
    service: LifecycleServiceDep,
) -> ProjectRead:
    """Owning client: Pending Approval -> Completed."""
    project = await service.approve(project_id, user)
    return ProjectRead.model_validate(project)


@router.patch(
    "/{project_id}/reject",
    response_model=ProjectRead,
    summary="Request changes",
    responses=_TRANSITION_ERRORS,
)
@limiter.limit("30/minute")
async def request_changes(
    request: Request,
    project_id: UUID,
    user: CurrentUser,
    service: LifecycleServiceDep,
) -> ProjectRead:
    """Owning client: Pending Approval -> Active."""
    project = await service.request_changes(project_id, user)
    return ProjectRead.model_validate(project)


@router.patch(
    "/{project_id}/suspend",
    response_model=ProjectRead,
    summary="Suspend project",
    responses=_TRANSITION_ERRORS,
)
@limiter.limit("30/minute")
async def suspend_project(
    request: Request,
    project_id: UUID,
    user: AdminUser,
    service: LifecycleServiceDep,
) -> ProjectRead:
    project = await service.suspend(project_id, user)
    return ProjectRead.model_validate(project)


@router.patch(
    "/{project_id}/resume",
    response_model=ProjectRead,
    summary="Resume suspended project",
    responses=_TRANSITION_ERRORS,
)
@limiter.limit("30/minute")
async def resume_project(
    request: Request,
    project_id: UUID,
    user: AdminUser,
    service: LifecycleServiceDep,
) -> ProjectRead:
    project = await service.resume(project_id, user)
    return ProjectRead.model_validate(project)
