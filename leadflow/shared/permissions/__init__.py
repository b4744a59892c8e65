"""
Shared permission dependencies for runtime role-based access control.

Roles and permissions are catalog rows, so routes declare the permission
name they need and the caller's resolved role is checked at request time.

Usage:
    from leadflow.shared.permissions import KnownPermission, require_permission

    @router.put("/{org_id}/resource")
    async def update_resource(
        service: AuthorizationService = Depends(
            require_permission(KnownPermission.ROLES_MANAGE)
        )
    ):
        pass
"""

from leadflow.domains.authorization.constants import KnownPermission

from .dependencies import require_org_admin, require_permission, require_super_admin

__all__ = [
    "KnownPermission",
    "require_org_admin",
    "require_permission",
    "require_super_admin",
]
