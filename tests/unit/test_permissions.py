"""Tests for role capabilities and room participation (src/app/core/permissions.py)."""

import pytest

from src.app.core.exceptions import Forbidden
from src.app.core.permissions import (
    ROLE_CAPABILITIES,
    Action,
    get_role_capabilities,
    has_capability,
    is_project_participant,
    require_capability,
)
from src.app.models import UserRole
from tests.factories import ProjectFactory, UserFactory

pytestmark = pytest.mark.unit


class TestRoleCapabilities:
    def test_every_role_has_an_entry(self):
        assert set(ROLE_CAPABILITIES) == set(UserRole)

    def test_no_action_is_shared_between_roles(self):
        """Each lifecycle action belongs to exactly one role."""
        seen: set[Action] = set()
        for actions in ROLE_CAPABILITIES.values():
            assert not (seen & actions)
            seen |= actions
        assert seen == set(Action)

    @pytest.mark.parametrize(
        ("role", "action"),
        [
            ("client", Action.CREATE_PROJECT),
            ("client", Action.ACCEPT_APPLICATION),
            ("client", Action.APPROVE),
            ("client", Action.DELETE_PROJECT),
            ("freelancer", Action.APPLY),
            ("freelancer", Action.SUBMIT),
            ("admin", Action.SUSPEND),
            ("admin", Action.RESUME),
        ],
    )
    def test_granted(self, role: str, action: Action):
        assert has_capability(role, action)
        require_capability(role, action)

    @pytest.mark.parametrize(
        ("role", "action"),
        [
            ("freelancer", Action.ACCEPT_APPLICATION),
            ("freelancer", Action.APPROVE),
            ("client", Action.SUBMIT),
            ("client", Action.SUSPEND),
            ("admin", Action.APPROVE),
        ],
    )
    def test_denied(self, role: str, action: Action):
        assert not has_capability(role, action)
        with pytest.raises(Forbidden, match="not allowed"):
            require_capability(role, action)

    def test_unknown_role_has_nothing(self):
        assert get_role_capabilities("superuser") == frozenset()
        with pytest.raises(Forbidden):
            require_capability("superuser", Action.APPROVE)


class TestProjectParticipant:
    def test_client_and_assigned_freelancer_participate(self):
        client = UserFactory.client()
        freelancer = UserFactory.freelancer()
        project = ProjectFactory.active(client_id=client.id, freelancer_id=freelancer.id)

        assert is_project_participant(project, client)
        assert is_project_participant(project, freelancer)

    def test_outsider_does_not_participate(self):
        client = UserFactory.client()
        project = ProjectFactory.build(client_id=client.id)

        assert not is_project_participant(project, UserFactory.freelancer())
        assert not is_project_participant(project, UserFactory.client())

    def test_admin_participates_everywhere(self):
        project = ProjectFactory.build(client_id=UserFactory.client().id)
        assert is_project_participant(project, UserFactory.admin())
