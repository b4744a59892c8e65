# leadflow/domains/authorization/routes.py
import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from leadflow.core.database import GatewayError
from leadflow.domains.authorization.constants import Table
from leadflow.domains.authorization.dependencies import get_authorization_service
from leadflow.domains.authorization.models import (
    AuthorizationSessionState,
    MutationResponse,
    MutationResult,
    PageVisibilityUpdate,
    Permission,
    PhoneFormatRequest,
    PhoneFormatResponse,
    PhoneVisibilityUpdate,
    Role,
    RoleAssignmentRequest,
    RoleCreate,
    RolePermissionsUpdate,
    RoleUpdate,
    RoleWithPermissions,
)
from leadflow.domains.authorization.service import AuthorizationService
from leadflow.shared.exceptions import (
    NotAuthorizedError,
    RemoteOperationError,
    RoleNotFoundError,
)
from leadflow.shared.notifications import CollectingNotifier
from leadflow.shared.permissions import (
    KnownPermission,
    require_org_admin,
    require_permission,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/organizations/{org_id}/authorization", tags=["Authorization"]
)


def _to_response(
    service: AuthorizationService, result: MutationResult
) -> MutationResponse:
    """Raise for a failed mutation, otherwise return its notifications."""
    if result.error is not None:
        if isinstance(result.error, HTTPException):
            raise result.error
        raise RemoteOperationError(str(result.error))

    notifications = (
        service.notifier.notifications
        if isinstance(service.notifier, CollectingNotifier)
        else []
    )
    role = result.data if isinstance(result.data, Role) else None
    return MutationResponse(role=role, notifications=notifications)


async def _load_target_role(
    service: AuthorizationService,
    org_id: UUID,
    role_id: str,
    allow_system_role: bool = False,
) -> Role:
    """
    Load the role a request acts on.

    Roles outside the path organization are reported as missing unless the
    caller holds the bypass role. System roles count as outside unless
    ``allow_system_role`` is set.
    """
    try:
        row = await service.gateway.select_one(Table.ROLES, {"id": role_id})
    except GatewayError as e:
        raise RemoteOperationError(str(e)) from e

    if row is None:
        raise RoleNotFoundError()
    role = Role(**row)
    in_scope = role.organization_id == str(org_id) or (
        allow_system_role and role.organization_id is None
    )
    if not service.view.is_super_admin and not in_scope:
        logger.info(
            f"User {service.user_id} denied access to role {role_id} "
            f"from organization {org_id}"
        )
        raise RoleNotFoundError()
    return role


@router.get(
    "/session",
    response_model=AuthorizationSessionState,
    operation_id="getAuthorizationSession",
)
async def get_session(
    org_id: UUID,
    service: AuthorizationService = Depends(get_authorization_service),
) -> AuthorizationSessionState:
    """
    Get the caller's resolved authorization in the organization.

    Returns the role, permission names, admin flags, phone visibility mode and
    the navigation pages the caller may see.
    """
    return service.context.snapshot()


@router.get(
    "/permissions",
    response_model=List[Permission],
    operation_id="listPermissions",
)
async def list_permissions(
    org_id: UUID,
    service: AuthorizationService = Depends(require_org_admin()),
) -> List[Permission]:
    await service.catalog.refresh_permissions()
    return list(service.catalog.permissions)


@router.get(
    "/roles",
    response_model=List[RoleWithPermissions],
    operation_id="listRoles",
)
async def list_roles(
    org_id: UUID,
    service: AuthorizationService = Depends(require_org_admin()),
) -> List[RoleWithPermissions]:
    """List system roles and the organization's roles with their grants."""
    await service.catalog.refresh_roles()
    return list(service.catalog.roles)


@router.post(
    "/roles",
    response_model=MutationResponse,
    status_code=status.HTTP_201_CREATED,
    operation_id="createRole",
)
async def create_role(
    org_id: UUID,
    role_data: RoleCreate,
    service: AuthorizationService = Depends(
        require_permission(KnownPermission.ROLES_MANAGE)
    ),
) -> MutationResponse:
    """
    Create a role in the organization.

    Only the bypass role may create system roles or roles for another
    organization.
    """
    if not service.view.is_super_admin:
        role_data = role_data.model_copy(
            update={"organization_id": str(org_id), "is_system_role": False}
        )
    result = await service.create_role(role_data)
    return _to_response(service, result)


@router.patch(
    "/roles/{role_id}",
    response_model=MutationResponse,
    operation_id="updateRole",
)
async def update_role(
    org_id: UUID,
    role_id: str,
    updates: RoleUpdate,
    service: AuthorizationService = Depends(
        require_permission(KnownPermission.ROLES_MANAGE)
    ),
) -> MutationResponse:
    await _load_target_role(service, org_id, role_id)
    result = await service.update_role(role_id, updates)
    return _to_response(service, result)


@router.delete(
    "/roles/{role_id}",
    response_model=MutationResponse,
    operation_id="deleteRole",
)
async def delete_role(
    org_id: UUID,
    role_id: str,
    service: AuthorizationService = Depends(
        require_permission(KnownPermission.ROLES_MANAGE)
    ),
) -> MutationResponse:
    await _load_target_role(service, org_id, role_id)
    result = await service.delete_role(role_id)
    return _to_response(service, result)


@router.put(
    "/roles/{role_id}/permissions",
    response_model=MutationResponse,
    operation_id="setRolePermissions",
)
async def set_role_permissions(
    org_id: UUID,
    role_id: str,
    request: RolePermissionsUpdate,
    service: AuthorizationService = Depends(
        require_permission(KnownPermission.ROLES_MANAGE)
    ),
) -> MutationResponse:
    """Replace every permission granted to the role. An empty list revokes all."""
    await _load_target_role(service, org_id, role_id)
    result = await service.set_role_permissions(role_id, request.permission_ids)
    return _to_response(service, result)


@router.put(
    "/roles/{role_id}/pages",
    response_model=MutationResponse,
    operation_id="setPageVisibility",
)
async def set_page_visibility(
    org_id: UUID,
    role_id: str,
    request: PageVisibilityUpdate,
    service: AuthorizationService = Depends(
        require_permission(KnownPermission.ROLES_MANAGE)
    ),
) -> MutationResponse:
    await _load_target_role(service, org_id, role_id)
    result = await service.set_page_visibility(
        role_id, request.page_path, request.is_visible
    )
    return _to_response(service, result)


@router.put(
    "/roles/{role_id}/phone-visibility",
    response_model=MutationResponse,
    operation_id="setPhoneVisibility",
)
async def set_phone_visibility(
    org_id: UUID,
    role_id: str,
    request: PhoneVisibilityUpdate,
    service: AuthorizationService = Depends(
        require_permission(KnownPermission.SETTINGS_PHONE_VISIBILITY)
    ),
) -> MutationResponse:
    await _load_target_role(service, org_id, role_id)
    result = await service.set_phone_visibility(role_id, request.visibility_mode)
    return _to_response(service, result)


@router.put(
    "/users/{user_id}/role",
    response_model=MutationResponse,
    operation_id="assignRoleToUser",
)
async def assign_role_to_user(
    org_id: UUID,
    user_id: str,
    request: RoleAssignmentRequest,
    service: AuthorizationService = Depends(
        require_permission(KnownPermission.USERS_MANAGE)
    ),
) -> MutationResponse:
    """
    Give the user exactly one role in the organization, replacing any other.

    System roles can only be handed out by the bypass role, and a role from
    another organization never can.
    """
    role = await _load_target_role(
        service, org_id, request.role_id, allow_system_role=True
    )
    if role.organization_id is None and not service.view.is_super_admin:
        raise NotAuthorizedError("Only a super admin can assign system roles")
    if role.organization_id not in (None, str(org_id)):
        raise RoleNotFoundError()
    result = await service.assign_role_to_user(user_id, request.role_id, str(org_id))
    return _to_response(service, result)


@router.post(
    "/phone/format",
    response_model=PhoneFormatResponse,
    operation_id="formatPhoneNumbers",
)
async def format_phone_numbers(
    org_id: UUID,
    request: PhoneFormatRequest,
    service: AuthorizationService = Depends(get_authorization_service),
) -> PhoneFormatResponse:
    view = service.view
    return PhoneFormatResponse(
        visibility_mode=view.visibility_mode(),
        phones=[view.format_phone_number(phone) for phone in request.phones],
    )
