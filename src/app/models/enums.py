"""Shared enums for models.

Status values are the exact strings stored and sent on the wire; clients
branch on them, so they must not change.
"""

from enum import Enum


class UserRole(str, Enum):
    """Marketplace role of a user."""

    CLIENT = "client"
    FREELANCER = "freelancer"
    ADMIN = "admin"


class ProjectStatus(str, Enum):
    """Project lifecycle status."""

    OPEN = "Open"
    ACTIVE = "Active"
    PENDING_APPROVAL = "Pending Approval"
    COMPLETED = "Completed"
    SUSPENDED = "Suspended"


# Statuses in which a project must have an assigned freelancer
ASSIGNED_STATUSES = frozenset(
    {ProjectStatus.ACTIVE, ProjectStatus.PENDING_APPROVAL, ProjectStatus.COMPLETED}
)


class ApplicationStatus(str, Enum):
    """Freelancer application status."""

    PENDING = "Pending"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"


class MessageType(str, Enum):
    """Message payload tag."""

    TEXT = "text"
    IMAGE = "image"
    FILE = "file"
