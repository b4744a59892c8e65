# leadflow/domains/organizations/routes.py
from uuid import UUID

from fastapi import APIRouter, Depends, status

from leadflow.core.database import GatewayError, RowGateway, get_gateway
from leadflow.domains.authorization.dependencies import get_authorization_service
from leadflow.domains.authorization.models import (
    AuthorizationSessionState,
    ResolutionState,
)
from leadflow.domains.authorization.service import AuthorizationService
from leadflow.domains.organizations.models import (
    CreateOrganizationResponse,
    OrganizationCreate,
)
from leadflow.domains.organizations.service import OrganizationService
from leadflow.shared.exceptions import NotAuthorizedError, RemoteOperationError
from leadflow.shared.permissions import require_super_admin

router = APIRouter(prefix="/organizations", tags=["Organizations"])


@router.post(
    "/",
    response_model=CreateOrganizationResponse,
    status_code=status.HTTP_201_CREATED,
    operation_id="createOrganization",
)
async def create_organization(
    organization_data: OrganizationCreate,
    service: AuthorizationService = Depends(require_super_admin()),
    gateway: RowGateway = Depends(get_gateway),
) -> CreateOrganizationResponse:
    """
    Create a new organization with the default admin, manager and agent roles.

    Restricted to the super admin.
    """
    organization_service = OrganizationService(gateway)
    try:
        return await organization_service.create_organization(organization_data)
    except GatewayError as e:
        raise RemoteOperationError(str(e))


@router.post(
    "/switch/{org_id}",
    response_model=AuthorizationSessionState,
    operation_id="switchOrganization",
)
async def switch_organization(
    org_id: UUID,
    service: AuthorizationService = Depends(get_authorization_service),
) -> AuthorizationSessionState:
    """
    Resolve the caller's authorization for another organization.

    Nothing resolved for the previous organization is carried over. The
    caller must hold a role in the target organization or be super admin.
    """
    if service.context.state != ResolutionState.resolved:
        raise NotAuthorizedError("No role in organization")
    return service.context.snapshot()
