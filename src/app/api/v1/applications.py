"""Application decisions taken by the project's client."""

from uuid import UUID

from fastapi import APIRouter, Request

from src.app.api.dependencies import CurrentUser, LifecycleServiceDep
from src.app.core.rate_limit import limiter
from src.app.schemas import ApplicationRead

router = APIRouter(prefix="/applications", tags=["applications"])


@router.patch(
    "/{application_id}/accept",
    response_model=ApplicationRead,
    summary="Accept application",
    description=(
        "Assigns the freelancer and moves the project to Active. Every other "
        "pending application for the project is rejected in the same transaction."
    ),
    responses={
        403: {"description": "Only the project's client can accept"},
        404: {"description": "Application or project not found"},
        409: {"description": "Project is not Open or application is not Pending"},
    },
)
@limiter.limit("30/minute")
async def accept_application(
    request: Request,
    application_id: UUID,
    user: CurrentUser,
    service: LifecycleServiceDep,
) -> ApplicationRead:
    application = await service.accept_application(application_id, user)
    return ApplicationRead.model_validate(application)


@router.patch(
    "/{application_id}/reject",
    response_model=ApplicationRead,
    summary="Reject application",
    responses={
        403: {"description": "Only the project's client can reject"},
        404: {"description": "Application or project not found"},
        409: {"description": "Application is not Pending"},
    },
)
@limiter.limit("30/minute")
async def reject_application(
    request: Request,
    application_id: UUID,
    user: CurrentUser,
    service: LifecycleServiceDep,
) -> ApplicationRead:
    application = await service.reject_application(application_id, user)
    return ApplicationRead.model_validate(application)
