import logging
from typing import Awaitable, Callable

from fastapi import Depends

from leadflow.domains.authorization.constants import KnownPermission
from leadflow.domains.authorization.dependencies import (
    get_authorization_service,
    get_global_authorization_service,
)
from leadflow.domains.authorization.service import AuthorizationService
from leadflow.shared.exceptions import NotAuthorizedError

logger = logging.getLogger(__name__)


def require_permission(
    permission: str | KnownPermission, allow_org_admin: bool = True
) -> Callable[..., Awaitable[AuthorizationService]]:
    """
    Dependency factory for permission-based authorization.

    Args:
        permission: The permission name required to access the endpoint
        allow_org_admin: Whether org-admin standing satisfies the check on
            its own, without an explicit grant

    Returns:
        Async dependency function that validates the permission and returns
        the caller's loaded authorization service
    """
    name = permission.value if isinstance(permission, KnownPermission) else permission

    async def check_permission(
        service: AuthorizationService = Depends(get_authorization_service),
    ) -> AuthorizationService:
        view = service.view
        if view.has_permission(name) or (allow_org_admin and view.is_org_admin):
            return service

        logger.info(
            f"User {service.user_id} denied {name} in organization "
            f"{service.organization_id}"
        )
        raise NotAuthorizedError(f"Insufficient permissions: {name} required")

    return check_permission


def require_org_admin() -> Callable[..., Awaitable[AuthorizationService]]:
    """Dependency factory requiring org-admin standing (or the bypass role)."""

    async def check_org_admin(
        service: AuthorizationService = Depends(get_authorization_service),
    ) -> AuthorizationService:
        if not service.view.is_org_admin:
            raise NotAuthorizedError("Organization admin required")
        return service

    return check_org_admin


def require_super_admin() -> Callable[..., Awaitable[AuthorizationService]]:
    """Dependency factory requiring the system-wide bypass role."""

    async def check_super_admin(
        service: AuthorizationService = Depends(get_global_authorization_service),
    ) -> AuthorizationService:
        if not service.view.is_super_admin:
            raise NotAuthorizedError("Super admin required")
        return service

    return check_super_admin
