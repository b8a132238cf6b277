"""Role-based capability lookup for lifecycle actions.

Each role maps to a closed set of actions. Ownership (is the caller the
project's client or its assigned freelancer?) is checked separately by the
lifecycle service, on top of the capability check here.

Pure Python - no FastAPI imports, no database access.
"""

from enum import Enum

from src.app.core.exceptions import Forbidden
from src.app.models import Project, User, UserRole


class Action(str, Enum):
    """Operations gated by role."""

    CREATE_PROJECT = "create_project"
    APPLY = "apply"
    ACCEPT_APPLICATION = "accept_application"
    REJECT_APPLICATION = "reject_application"
    SUBMIT = "submit"
    APPROVE = "approve"
    REQUEST_CHANGES = "request_changes"
    DELETE_PROJECT = "delete_project"
    SUSPEND = "suspend"
    RESUME = "resume"


ROLE_CAPABILITIES: dict[UserRole, frozenset[Action]] = {
    UserRole.CLIENT: frozenset(
        {
            Action.CREATE_PROJECT,
            Action.ACCEPT_APPLICATION,
            Action.REJECT_APPLICATION,
            Action.APPROVE,
            Action.REQUEST_CHANGES,
            Action.DELETE_PROJECT,
        }
    ),
    UserRole.FREELANCER: frozenset(
        {
            Action.APPLY,
            Action.SUBMIT,
        }
    ),
    UserRole.ADMIN: frozenset(
        {
            Action.SUSPEND,
            Action.RESUME,
        }
    ),
}


def get_role_capabilities(role: str) -> frozenset[Action]:
    """Return the actions a role may perform. Unknown roles get nothing."""
    try:
        return ROLE_CAPABILITIES[UserRole(role)]
    except ValueError:
        return frozenset()


def has_capability(role: str, action: Action) -> bool:
    return action in get_role_capabilities(role)


def require_capability(role: str, action: Action) -> None:
    """Raise Forbidden unless ``role`` may perform ``action``."""
    if not has_capability(role, action):
        raise Forbidden(f"Role '{role}' is not allowed to {action.value.replace('_', ' ')}")


def is_project_participant(project: Project, user: User) -> bool:
    """Owning client, assigned freelancer, or any admin."""
    if user.role == UserRole.ADMIN.value:
        return True
    return user.id in (project.client_id, project.freelancer_id)
