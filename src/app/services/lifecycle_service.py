"""Project lifecycle state machine.

    Open --accept--> Active --submit--> Pending Approval --approve--> Completed
                       ^                       |
                       +----request changes----+

    Open / Active / Pending Approval --suspend--> Suspended --resume--> Active | Open

Every operation checks capability, existence, ownership and current state
before writing anything. Status writes are compare-and-set on the current
status, so a concurrent transition that got there first turns the loser into
InvalidTransition instead of a lost update. Room notification happens only
after the transaction commits.
"""

from collections.abc import Callable, Iterable
from typing import Protocol
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.app.core.exceptions import (
    Forbidden,
    InvalidTransition,
    NotFound,
    PersistenceFailure,
    WorkroomError,
)
from src.app.core.logging import get_logger
from src.app.core.permissions import Action, require_capability
from src.app.models import (
    Application,
    ApplicationStatus,
    Project,
    ProjectStatus,
    User,
)
from src.app.repositories import (
    ApplicationRepository,
    MessageRepository,
    ProjectRepository,
)
from src.app.schemas import ApplicationCreate, ProjectCreate

logger = get_logger(__name__)


class StatusNotifier(Protocol):
    """Anything that can push a status change into a project room."""

    async def broadcast_status(self, project_id: UUID, status: str) -> None: ...


def _require_client(project: Project, caller: User) -> None:
    if project.client_id != caller.id:
        raise Forbidden("Only the project's client can perform this action")


def _require_freelancer(project: Project, caller: User) -> None:
    if project.freelancer_id is None or project.freelancer_id != caller.id:
        raise Forbidden("Only the project's assigned freelancer can perform this action")


def _any_caller(project: Project, caller: User) -> None:
    return None


class LifecycleService:
    """Enforces legal project and application transitions."""

    def __init__(
        self,
        project_repo: ProjectRepository,
        application_repo: ApplicationRepository,
        message_repo: MessageRepository,
        session: AsyncSession,
        notifier: StatusNotifier | None = None,
    ):
        self.project_repo = project_repo
        self.application_repo = application_repo
        self.message_repo = message_repo
        self.session = session
        self.notifier = notifier

    # --- Project creation and applications ---

    async def create_project(self, caller: User, data: ProjectCreate) -> Project:
        """Post a new project owned by the caller. Starts Open."""
        require_capability(caller.role, Action.CREATE_PROJECT)

        project = Project(
            client_id=caller.id,
            title=data.title,
            description=data.description,
            budget=data.budget,
            skills=data.skills,
        )
        try:
            self.project_repo.add(project)
            await self.session.commit()
            await self.session.refresh(project)
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Failed to create project", error=str(e))
            raise PersistenceFailure("Could not save project") from e

        logger.info("Project created", project_id=str(project.id))
        return project

    async def apply(self, project_id: UUID, caller: User, data: ApplicationCreate) -> Application:
        """Submit a freelancer's proposal for an Open project."""
        require_capability(caller.role, Action.APPLY)

        try:
            project = await self._get_project(project_id)
            if project.status_enum != ProjectStatus.OPEN:
                raise InvalidTransition(
                    f"Cannot apply to a project with status '{project.status}'"
                )
            existing = await self.application_repo.get_by_project_and_freelancer(
                project_id, caller.id
            )
            if existing is not None:
                raise InvalidTransition("You have already applied to this project")

            application = Application(
                project_id=project_id,
                freelancer_id=caller.id,
                proposal=data.proposal,
                proposed_budget=data.proposed_budget,
            )
            self.application_repo.add(application)
            await self.session.commit()
            await self.session.refresh(application)
        except WorkroomError:
            await self.session.rollback()
            raise
        except IntegrityError as e:
            # Lost a race against a duplicate application from the same freelancer
            await self.session.rollback()
            raise InvalidTransition("You have already applied to this project") from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Failed to save application", error=str(e))
            raise PersistenceFailure("Could not save application") from e

        logger.info(
            "Application submitted",
            project_id=str(project_id),
            application_id=str(application.id),
        )
        return application

    async def accept_application(self, application_id: UUID, caller: User) -> Application:
        """Accept one application: Open -> Active.

        Assigning the freelancer, accepting the application and rejecting all
        other Pending applications commit together or not at all.
        """
        require_capability(caller.role, Action.ACCEPT_APPLICATION)

        try:
            application = await self._get_application(application_id)
            project = await self.project_repo.get_for_update(application.project_id)
            if project is None:
                raise NotFound(f"Project {application.project_id} not found")
            _require_client(project, caller)

            if application.status_enum != ApplicationStatus.PENDING:
                raise InvalidTransition(
                    f"Cannot accept an application with status '{application.status}'"
                )
            if project.status_enum != ProjectStatus.OPEN:
                raise InvalidTransition(
                    f"Cannot accept applications for a project with status '{project.status}'"
                )

            assigned = await self.project_repo.transition_status(
                project.id,
                expected=[ProjectStatus.OPEN],
                new_status=ProjectStatus.ACTIVE,
                freelancer_id=application.freelancer_id,
            )
            if not assigned:
                raise InvalidTransition("Project is no longer open")

            accepted = await self.application_repo.set_status_if_pending(
                application.id, ApplicationStatus.ACCEPTED
            )
            if not accepted:
                raise InvalidTransition("Application is no longer pending")

            rejected = await self.application_repo.reject_pending_siblings(
                project.id, application.id
            )
            await self.session.commit()
            await self.session.refresh(application)
            await self.session.refresh(project)
        except WorkroomError:
            await self.session.rollback()
            raise
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Failed to accept application", error=str(e))
            raise PersistenceFailure("Could not accept application") from e

        logger.info(
            "Application accepted",
            project_id=str(project.id),
            application_id=str(application.id),
            freelancer_id=str(application.freelancer_id),
            siblings_rejected=rejected,
        )
        await self._notify(project)
        return application

    async def reject_application(self, application_id: UUID, caller: User) -> Application:
        """Decline a single Pending application. The project is unchanged."""
        require_capability(caller.role, Action.REJECT_APPLICATION)

        try:
            application = await self._get_application(application_id)
            project = await self._get_project(application.project_id)
            _require_client(project, caller)

            if application.status_enum != ApplicationStatus.PENDING:
                raise InvalidTransition(
                    f"Cannot reject an application with status '{application.status}'"
                )
            rejected = await self.application_repo.set_status_if_pending(
                application.id, ApplicationStatus.REJECTED
            )
            if not rejected:
                raise InvalidTransition("Application is no longer pending")

            await self.session.commit()
            await self.session.refresh(application)
        except WorkroomError:
            await self.session.rollback()
            raise
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Failed to reject application", error=str(e))
            raise PersistenceFailure("Could not reject application") from e

        logger.info("Application rejected", application_id=str(application.id))
        return application

    # --- Work submission and review ---

    async def submit_for_approval(self, project_id: UUID, caller: User) -> Project:
        """Assigned freelancer hands in work: Active -> Pending Approval."""
        return await self._transition(
            project_id,
            caller,
            Action.SUBMIT,
            expected=[ProjectStatus.ACTIVE],
            new_status=ProjectStatus.PENDING_APPROVAL,
            check_owner=_require_freelancer,
        )

    async def approve(self, project_id: UUID, caller: User) -> Project:
        """Client accepts the submission: Pending Approval -> Completed (terminal)."""
        return await self._transition(
            project_id,
            caller,
            Action.APPROVE,
            expected=[ProjectStatus.PENDING_APPROVAL],
            new_status=ProjectStatus.COMPLETED,
            check_owner=_require_client,
        )

    async def request_changes(self, project_id: UUID, caller: User) -> Project:
        """Client rejects the submission: Pending Approval -> Active."""
        return await self._transition(
            project_id,
            caller,
            Action.REQUEST_CHANGES,
            expected=[ProjectStatus.PENDING_APPROVAL],
            new_status=ProjectStatus.ACTIVE,
            check_owner=_require_client,
        )

    # --- Administrative override ---

    async def suspend(self, project_id: UUID, caller: User) -> Project:
        """Admin freezes a project that is not yet Completed."""
        return await self._transition(
            project_id,
            caller,
            Action.SUSPEND,
            expected=[ProjectStatus.OPEN, ProjectStatus.ACTIVE, ProjectStatus.PENDING_APPROVAL],
            new_status=ProjectStatus.SUSPENDED,
            check_owner=_any_caller,
        )

    async def resume(self, project_id: UUID, caller: User) -> Project:
        """Admin lifts a suspension.

        The project returns to its operative state: Active when a freelancer
        is assigned (a submission pending at suspension time must be handed
        in again), Open otherwise.
        """
        return await self._transition(
            project_id,
            caller,
            Action.RESUME,
            expected=[ProjectStatus.SUSPENDED],
            new_status=lambda p: (
                ProjectStatus.ACTIVE if p.freelancer_id is not None else ProjectStatus.OPEN
            ),
            check_owner=_any_caller,
        )

    # --- Deletion ---

    async def delete_project(self, project_id: UUID, caller: User) -> None:
        """Delete an Open project together with its applications and messages."""
        require_capability(caller.role, Action.DELETE_PROJECT)

        try:
            project = await self.project_repo.get_for_update(project_id)
            if project is None:
                raise NotFound(f"Project {project_id} not found")
            _require_client(project, caller)
            if project.status_enum != ProjectStatus.OPEN:
                raise InvalidTransition(
                    f"Cannot delete a project with status '{project.status}'"
                )

            applications_deleted = await self.application_repo.delete_by_project(project_id)
            messages_deleted = await self.message_repo.delete_by_project(project_id)
            deleted = await self.project_repo.delete_open(project_id)
            if not deleted:
                raise InvalidTransition("Project is no longer open")

            await self.session.commit()
        except WorkroomError:
            await self.session.rollback()
            raise
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Failed to delete project", error=str(e))
            raise PersistenceFailure("Could not delete project") from e

        # The instance still sits in the identity map after a bulk delete
        self.session.expunge(project)
        logger.info(
            "Project deleted",
            project_id=str(project_id),
            applications_deleted=applications_deleted,
            messages_deleted=messages_deleted,
        )

    # --- Internals ---

    async def _transition(
        self,
        project_id: UUID,
        caller: User,
        action: Action,
        expected: Iterable[ProjectStatus],
        new_status: ProjectStatus | Callable[[Project], ProjectStatus],
        check_owner: Callable[[Project, User], None],
    ) -> Project:
        """Run a single-row status transition and notify the room on success."""
        require_capability(caller.role, action)
        expected = list(expected)

        try:
            project = await self.project_repo.get_for_update(project_id)
            if project is None:
                raise NotFound(f"Project {project_id} not found")
            check_owner(project, caller)

            if project.status_enum not in expected:
                raise InvalidTransition(
                    f"Cannot {action.value.replace('_', ' ')} a project "
                    f"with status '{project.status}'"
                )

            target = new_status(project) if callable(new_status) else new_status
            changed = await self.project_repo.transition_status(project.id, expected, target)
            if not changed:
                raise InvalidTransition("Project status changed concurrently")

            await self.session.commit()
            await self.session.refresh(project)
        except WorkroomError:
            await self.session.rollback()
            raise
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Failed to update project status", action=action.value, error=str(e))
            raise PersistenceFailure("Could not update project status") from e

        logger.info(
            "Project status changed",
            project_id=str(project.id),
            action=action.value,
            status=project.status,
        )
        await self._notify(project)
        return project

    async def _get_project(self, project_id: UUID) -> Project:
        project = await self.project_repo.get_by_id(project_id)
        if project is None:
            raise NotFound(f"Project {project_id} not found")
        return project

    async def _get_application(self, application_id: UUID) -> Application:
        application = await self.application_repo.get_by_id(application_id)
        if application is None:
            raise NotFound(f"Application {application_id} not found")
        return application

    async def _notify(self, project: Project) -> None:
        """Push the committed status into the project room.

        The write is already durable, so a failed broadcast is only logged;
        clients re-sync from the REST state endpoint.
        """
        if self.notifier is None:
            return
        try:
            await self.notifier.broadcast_status(project.id, project.status)
        except Exception as e:
            logger.warning(
                "Status broadcast failed",
                project_id=str(project.id),
                status=project.status,
                error=str(e),
            )
