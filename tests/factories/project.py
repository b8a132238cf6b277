"""Project, application and message factories."""

from polyfactory import Use

from src.app.models import (
    Application,
    ApplicationStatus,
    Message,
    MessageType,
    Project,
    ProjectStatus,
)
from tests.factories.base import BaseFactory, generate_uuid, utc_now


class ProjectFactory(BaseFactory):
    """Factory for Project. ``client_id`` must be set explicitly."""

    __model__ = Project

    id = Use(generate_uuid)
    client_id = None
    freelancer_id = None
    title = "Landing page redesign"
    description = "Rebuild the marketing site with the new brand."
    budget = 1500.0
    skills = Use(lambda: ["figma", "react"])
    status = ProjectStatus.OPEN.value
    last_message_seq = 0
    created_at = Use(utc_now)
    updated_at = Use(utc_now)

    @classmethod
    def active(cls, **kwargs):
        """Create a project with an assigned freelancer (pass freelancer_id)."""
        return cls.build(status=ProjectStatus.ACTIVE.value, **kwargs)


class ApplicationFactory(BaseFactory):
    """Factory for Application. ``project_id`` and ``freelancer_id`` must be set."""

    __model__ = Application

    id = Use(generate_uuid)
    project_id = None
    freelancer_id = None
    proposal = "I have shipped a dozen sites like this one."
    proposed_budget = 1400.0
    status = ApplicationStatus.PENDING.value
    created_at = Use(utc_now)
    updated_at = Use(utc_now)


class MessageFactory(BaseFactory):
    """Factory for Message. ``project_id``, ``sender_id`` and ``seq`` must be set."""

    __model__ = Message

    id = Use(generate_uuid)
    project_id = None
    sender_id = None
    seq = 1
    message_type = MessageType.TEXT.value
    text = "Hello"
    file_url = None
    file_name = None
    created_at = Use(utc_now)
