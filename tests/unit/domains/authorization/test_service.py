"""
Tests for the authorization orchestrator in
leadflow/domains/authorization/service.py
"""

from unittest.mock import AsyncMock, patch

import pytest

from leadflow.core.database import GatewayError
from leadflow.domains.authorization.masking import PhoneVisibilityMode
from leadflow.domains.authorization.models import (
    ResolutionState,
    Role,
    RoleCreate,
    RoleUpdate,
)
from leadflow.domains.authorization.service import AuthorizationService
from leadflow.shared.exceptions import NoOrganizationForRoleError
from leadflow.shared.notifications import CollectingNotifier, NotificationVariant
from tests.fixtures.authorization_fixtures import (
    AGENT_ROLE_ID,
    MANAGER_ROLE_ID,
    ORG_ID,
    OTHER_ORG_ID,
    OTHER_ORG_ROLE_ID,
    SUPER_ADMIN_ROLE_ID,
)
from tests.helpers.in_memory_gateway import InMemoryGateway


async def loaded_service(
    gateway: InMemoryGateway, user_id: str = "user-admin", organization_id=ORG_ID
) -> AuthorizationService:
    service = AuthorizationService(
        gateway, user_id, organization_id, notifier=CollectingNotifier()
    )
    await service.load(include_catalog=True)
    return service


class TestLoading:
    """Test loading and tenant switching."""

    @pytest.mark.asyncio
    async def test_load_without_catalog_skips_role_listing(
        self, gateway: InMemoryGateway
    ):
        service = AuthorizationService(gateway, "user-manager", ORG_ID)

        await service.load()

        assert service.context.state == ResolutionState.resolved
        assert ("dynamic_roles", "select") not in gateway.calls
        assert ("permissions", "select") not in gateway.calls
        assert service.catalog.roles == ()

    @pytest.mark.asyncio
    async def test_refetch_loads_everything(self, gateway: InMemoryGateway):
        service = AuthorizationService(gateway, "user-admin", ORG_ID)

        await service.refetch()

        assert service.catalog.roles
        assert service.catalog.permissions
        assert service.rules.page_rules

    @pytest.mark.asyncio
    async def test_switch_organization_reresolves(self, gateway: InMemoryGateway):
        service = await loaded_service(gateway, "user-manager")
        assert service.view.role.id == MANAGER_ROLE_ID

        await service.switch_organization(OTHER_ORG_ID)

        assert service.organization_id == OTHER_ORG_ID
        assert service.view.role.id == OTHER_ORG_ROLE_ID
        assert service.view.can_view_page("/reports") is True
        assert service.view.visibility_mode() == PhoneVisibilityMode.masked
        assert service.catalog.roles == ()

    @pytest.mark.asyncio
    async def test_switch_to_tenant_without_role(self, gateway: InMemoryGateway):
        service = await loaded_service(gateway, "user-agent")

        await service.switch_organization(OTHER_ORG_ID)

        assert service.context.state == ResolutionState.no_role
        assert service.view.has_permission("leads.view") is False

    @pytest.mark.asyncio
    async def test_view_is_shared_by_reference(self, gateway: InMemoryGateway):
        """Consumers holding the view observe refreshed state."""
        service = await loaded_service(gateway, "user-manager")
        view = service.view

        await service.set_page_visibility(MANAGER_ROLE_ID, "/leads", False)

        assert view.can_view_page("/leads") is False


class TestRoleMutations:
    """Test role mutations and their refreshes."""

    @pytest.mark.asyncio
    async def test_create_role_refreshes_catalog(self, gateway: InMemoryGateway):
        service = await loaded_service(gateway)

        result = await service.create_role(
            RoleCreate(name="supervisor", display_name="Supervisor")
        )

        assert result.ok
        assert isinstance(result.data, Role)
        assert service.catalog.get_role(result.data.id) is not None
        assert service.notifier.notifications[-1].title == "Role created successfully"

    @pytest.mark.asyncio
    async def test_create_role_failure_notifies_and_keeps_state(
        self, gateway: InMemoryGateway
    ):
        service = await loaded_service(gateway)
        roles_before = service.catalog.roles
        gateway.fail("dynamic_roles", "insert")

        result = await service.create_role(
            RoleCreate(name="supervisor", display_name="Supervisor")
        )

        assert not result.ok
        assert isinstance(result.error, GatewayError)
        assert service.catalog.roles == roles_before
        notification = service.notifier.notifications[-1]
        assert notification.title == "Error creating role"
        assert notification.variant == NotificationVariant.destructive

    @pytest.mark.asyncio
    async def test_update_role(self, gateway: InMemoryGateway):
        service = await loaded_service(gateway)

        result = await service.update_role(
            AGENT_ROLE_ID, RoleUpdate(display_name="Sales Agent")
        )

        assert result.ok
        assert service.catalog.get_role(AGENT_ROLE_ID).display_name == "Sales Agent"

    @pytest.mark.asyncio
    async def test_updating_own_role_reresolves_context(
        self, gateway: InMemoryGateway
    ):
        service = await loaded_service(gateway, "user-manager")
        assert service.view.is_org_admin is False

        await service.update_role(MANAGER_ROLE_ID, RoleUpdate(is_org_admin=True))

        assert service.view.is_org_admin is True

    @pytest.mark.asyncio
    async def test_deleting_own_role_moves_to_no_role(
        self, gateway: InMemoryGateway
    ):
        service = await loaded_service(gateway, "user-agent")

        result = await service.delete_role(AGENT_ROLE_ID)

        assert result.ok
        assert service.catalog.get_role(AGENT_ROLE_ID) is None
        assert service.context.state == ResolutionState.no_role

    @pytest.mark.asyncio
    async def test_delete_failure_is_not_raised(self, gateway: InMemoryGateway):
        service = await loaded_service(gateway)
        gateway.fail("dynamic_roles", "delete")

        result = await service.delete_role(AGENT_ROLE_ID)

        assert not result.ok
        assert service.catalog.get_role(AGENT_ROLE_ID) is not None


class TestSetRolePermissions:
    """Test replacing a role's grants."""

    @pytest.mark.asyncio
    async def test_empty_list_revokes_everything(self, gateway: InMemoryGateway):
        service = await loaded_service(gateway)

        result = await service.set_role_permissions(AGENT_ROLE_ID, [])

        assert result.ok
        assert result.error is None
        assert gateway.count("role_permissions", role_id=AGENT_ROLE_ID) == 0
        assert service.catalog.get_role(AGENT_ROLE_ID).permissions == []

    @pytest.mark.asyncio
    async def test_own_role_grants_are_reresolved(self, gateway: InMemoryGateway):
        service = await loaded_service(gateway, "user-manager")

        await service.set_role_permissions(
            MANAGER_ROLE_ID, ["perm-leads-view", "perm-leads-delete"]
        )

        assert service.view.has_permission("leads.delete") is True

    @pytest.mark.asyncio
    async def test_other_role_does_not_reresolve_context(
        self, gateway: InMemoryGateway
    ):
        service = await loaded_service(gateway, "user-manager")

        with patch.object(
            service.context, "resolve", new=AsyncMock()
        ) as mock_resolve:
            await service.set_role_permissions(AGENT_ROLE_ID, ["perm-leads-view"])

        mock_resolve.assert_not_awaited()


class TestVisibilityMutations:
    """Test page and phone visibility toggles."""

    @pytest.mark.asyncio
    async def test_page_toggle_affects_only_target_role(
        self, gateway: InMemoryGateway
    ):
        manager = await loaded_service(gateway, "user-manager")

        result = await manager.set_page_visibility(MANAGER_ROLE_ID, "/leads", False)
        agent = await loaded_service(gateway, "user-agent")

        assert result.ok
        assert manager.view.can_view_page("/leads") is False
        assert agent.view.can_view_page("/leads") is True

    @pytest.mark.asyncio
    async def test_page_toggle_for_system_role_is_skipped(
        self, gateway: InMemoryGateway
    ):
        service = await loaded_service(gateway)

        result = await service.set_page_visibility(SUPER_ADMIN_ROLE_ID, "/leads", False)

        assert isinstance(result.error, NoOrganizationForRoleError)
        assert ("page_visibility", "insert") not in gateway.calls
        assert (
            service.notifier.notifications[-1].title
            == "Error updating page visibility"
        )

    @pytest.mark.asyncio
    async def test_phone_toggle_is_idempotent(self, gateway: InMemoryGateway):
        service = await loaded_service(gateway)

        first = await service.set_phone_visibility(
            MANAGER_ROLE_ID, PhoneVisibilityMode.masked
        )
        second = await service.set_phone_visibility(
            MANAGER_ROLE_ID, PhoneVisibilityMode.masked
        )

        assert first.ok and second.ok
        assert (
            gateway.count(
                "phone_visibility_settings",
                role_id=MANAGER_ROLE_ID,
                organization_id=ORG_ID,
            )
            == 1
        )

    @pytest.mark.asyncio
    async def test_phone_toggle_reaches_consumers(self, gateway: InMemoryGateway):
        service = await loaded_service(gateway, "user-manager")

        await service.set_phone_visibility(MANAGER_ROLE_ID, PhoneVisibilityMode.hidden)

        assert service.view.format_phone_number("+15551234567") == "•" * 10

    @pytest.mark.asyncio
    async def test_phone_toggle_failure_keeps_previous_mode(
        self, gateway: InMemoryGateway
    ):
        service = await loaded_service(gateway, "user-agent")
        gateway.fail("phone_visibility_settings", "update")

        result = await service.set_phone_visibility(
            AGENT_ROLE_ID, PhoneVisibilityMode.hidden
        )

        assert not result.ok
        assert service.view.visibility_mode() == PhoneVisibilityMode.full


class TestAssignRoleToUser:
    """Test the role assignment upsert."""

    @pytest.mark.asyncio
    async def test_first_assignment_inserts(self, gateway: InMemoryGateway):
        service = await loaded_service(gateway)

        result = await service.assign_role_to_user("user-new", AGENT_ROLE_ID, ORG_ID)

        assert result.ok
        assert gateway.count("user_dynamic_roles", user_id="user-new") == 1

    @pytest.mark.asyncio
    async def test_reassignment_updates_in_place(self, gateway: InMemoryGateway):
        service = await loaded_service(gateway)

        await service.assign_role_to_user("user-agent", MANAGER_ROLE_ID, ORG_ID)
        await service.assign_role_to_user("user-agent", AGENT_ROLE_ID, ORG_ID)
        await service.assign_role_to_user("user-agent", MANAGER_ROLE_ID, ORG_ID)

        rows = [
            row
            for row in gateway.tables["user_dynamic_roles"]
            if row["user_id"] == "user-agent"
        ]
        assert len(rows) == 1
        assert rows[0]["role_id"] == MANAGER_ROLE_ID
        assert ("user_dynamic_roles", "insert") not in gateway.calls

    @pytest.mark.asyncio
    async def test_assignments_are_per_tenant(self, gateway: InMemoryGateway):
        service = await loaded_service(gateway)

        await service.assign_role_to_user("user-agent", OTHER_ORG_ROLE_ID, OTHER_ORG_ID)

        assert gateway.count("user_dynamic_roles", user_id="user-agent") == 2

    @pytest.mark.asyncio
    async def test_own_assignment_reresolves_context(
        self, gateway: InMemoryGateway
    ):
        service = await loaded_service(gateway, "user-agent")

        await service.assign_role_to_user("user-agent", MANAGER_ROLE_ID, ORG_ID)

        assert service.view.role.id == MANAGER_ROLE_ID
        assert service.view.has_permission("click_to_call") is False

    @pytest.mark.asyncio
    async def test_failure_returns_error(self, gateway: InMemoryGateway):
        service = await loaded_service(gateway)
        gateway.fail("user_dynamic_roles", "insert")

        result = await service.assign_role_to_user("user-new", AGENT_ROLE_ID, ORG_ID)

        assert isinstance(result.error, GatewayError)
        assert service.notifier.notifications[-1].title == "Error assigning role"
