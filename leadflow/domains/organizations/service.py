# leadflow/domains/organizations/service.py
import logging

from leadflow.core.database import GatewayError, RowGateway
from leadflow.domains.authorization.constants import DEFAULT_ORG_ROLES, Table
from leadflow.domains.authorization.models import Role
from leadflow.domains.organizations.models import (
    CreateOrganizationResponse,
    OrganizationCreate,
    OrganizationResponse,
)

logger = logging.getLogger(__name__)

ORGANIZATIONS_TABLE = "organizations"
ORGANIZATION_SETTINGS_TABLE = "organization_settings"


class OrganizationService:
    def __init__(self, gateway: RowGateway):
        self.gateway = gateway

    async def create_organization(
        self, organization_data: OrganizationCreate
    ) -> CreateOrganizationResponse:
        """
        Create an organization with its settings row and default roles.

        Seeding the admin, manager and agent roles happens here and only here;
        loading the role catalog never creates roles.

        Raises:
            GatewayError: If any insert fails
        """
        rows = await self.gateway.insert(
            ORGANIZATIONS_TABLE,
            {"name": organization_data.name, "slug": organization_data.slug},
        )
        if not rows:
            raise GatewayError(ORGANIZATIONS_TABLE, "insert", "No row returned")
        organization = OrganizationResponse(**rows[0])

        await self.gateway.insert(
            ORGANIZATION_SETTINGS_TABLE, {"organization_id": organization.id}
        )

        role_rows = await self.gateway.insert(
            Table.ROLES,
            [
                {**default_role, "organization_id": organization.id}
                for default_role in DEFAULT_ORG_ROLES
            ],
        )
        logger.info(
            f"Created organization {organization.id} with "
            f"{len(role_rows)} default roles"
        )

        return CreateOrganizationResponse(
            organization=organization,
            roles=[Role(**row) for row in role_rows],
        )
