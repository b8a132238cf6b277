"""Authentication dependencies.

Tokens are issued by the identity service; here they are only verified and
resolved to an active user.
"""

from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy.exc import SQLAlchemyError

from src.app.api.dependencies.repositories import UserRepo
from src.app.core.exceptions import Forbidden, PersistenceFailure, Unauthenticated
from src.app.core.logging import bind_user_context
from src.app.core.security import extract_bearer_token, verify_access_token
from src.app.models import User, UserRole


async def get_current_user(
    user_repo: UserRepo,
    authorization: Annotated[str | None, Header()] = None,
) -> User:
    """Validate the Bearer token and return the caller."""
    user_id = verify_access_token(extract_bearer_token(authorization))

    try:
        user = await user_repo.get_by_id(user_id)
    except SQLAlchemyError as e:
        raise PersistenceFailure("Could not verify user") from e

    if user is None or not user.is_active:
        raise Unauthenticated("User not found or inactive")

    bind_user_context(user.id, user.role)
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


async def require_admin(user: CurrentUser) -> User:
    """Require the platform admin role."""
    if user.role != UserRole.ADMIN.value:
        raise Forbidden("Admin role required for this operation")
    return user


AdminUser = Annotated[User, Depends(require_admin)]
