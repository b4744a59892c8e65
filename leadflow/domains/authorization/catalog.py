# leadflow/domains/authorization/catalog.py
import asyncio
import logging
from collections import defaultdict
from typing import Iterable, Optional

from pydantic import ValidationError

from leadflow.core.database import GatewayError, Row, RowGateway
from leadflow.domains.authorization.constants import Table
from leadflow.domains.authorization.models import (
    Permission,
    Role,
    RoleCreate,
    RoleUpdate,
    RoleWithPermissions,
)
from leadflow.shared.exceptions import RoleNotFoundError

logger = logging.getLogger(__name__)


def group_role_permissions(
    role_rows: Iterable[Row],
    edge_rows: Iterable[Row],
    permissions: Iterable[Permission],
) -> list[RoleWithPermissions]:
    """
    Attach granted permissions to each role.

    Joins in memory so that loading the catalog costs a fixed number of
    requests regardless of how many roles exist. Edges pointing at unknown
    permissions are ignored.
    """
    by_id = {permission.id: permission for permission in permissions}
    granted: dict[str, dict[str, Permission]] = defaultdict(dict)
    for edge in edge_rows:
        permission = by_id.get(edge["permission_id"])
        if permission:
            granted[edge["role_id"]][permission.id] = permission

    return [
        RoleWithPermissions(
            **role, permissions=list(granted.get(role["id"], {}).values())
        )
        for role in role_rows
    ]


class RoleCatalog:
    """
    Permission catalog and the roles visible to one tenant.

    Snapshots are replaced wholesale on refresh, never patched in place.
    """

    def __init__(
        self,
        gateway: RowGateway,
        organization_id: Optional[str],
        insert_retries: int = 1,
    ):
        self.gateway = gateway
        self.organization_id = organization_id
        self.insert_retries = insert_retries
        self._permissions: tuple[Permission, ...] = ()
        self._roles: tuple[RoleWithPermissions, ...] = ()

    @property
    def permissions(self) -> tuple[Permission, ...]:
        return self._permissions

    @property
    def roles(self) -> tuple[RoleWithPermissions, ...]:
        return self._roles

    def get_role(self, role_id: str) -> Optional[RoleWithPermissions]:
        return next((role for role in self._roles if role.id == role_id), None)

    def switch_organization(self, organization_id: Optional[str]) -> None:
        self.organization_id = organization_id
        self._roles = ()

    async def refresh(self) -> None:
        await asyncio.gather(self.refresh_permissions(), self.refresh_roles())

    async def refresh_permissions(self) -> None:
        try:
            rows = await self.gateway.select(Table.PERMISSIONS, order="category")
            self._permissions = tuple(Permission(**row) for row in rows)
        except (GatewayError, ValidationError) as e:
            logger.error(f"Error fetching permissions: {e}")

    async def refresh_roles(self) -> None:
        """
        Reload roles with their grants: one request each for roles, edges and
        permissions. Only system roles and the active tenant's roles are
        read, and only their edges. On failure the previous snapshot is kept.
        """
        try:
            role_rows, permission_rows = await asyncio.gather(
                self.gateway.select(
                    Table.ROLES,
                    {"organization_id": [self.organization_id, None]},
                    order="created_at",
                ),
                self.gateway.select(Table.PERMISSIONS),
            )
            edge_rows = (
                await self.gateway.select(
                    Table.ROLE_PERMISSIONS,
                    {"role_id": [row["id"] for row in role_rows]},
                    columns="role_id, permission_id",
                )
                if role_rows
                else []
            )
            self._roles = tuple(
                group_role_permissions(
                    role_rows,
                    edge_rows,
                    [Permission(**row) for row in permission_rows],
                )
            )
        except (GatewayError, ValidationError) as e:
            logger.error(
                f"Error fetching roles for organization {self.organization_id}: {e}"
            )

    async def create_role(self, role_data: RoleCreate) -> Role:
        """
        Insert a role and reload the roles.

        System roles are never organization-scoped. Other roles default to the
        active tenant when no organization is given.
        """
        if role_data.is_system_role:
            organization_id = None
        else:
            organization_id = role_data.organization_id or self.organization_id

        rows = await self.gateway.insert(
            Table.ROLES,
            {
                "name": role_data.name,
                "display_name": role_data.display_name,
                "description": role_data.description,
                "organization_id": organization_id,
                "is_system_role": role_data.is_system_role,
                "is_org_admin": role_data.is_org_admin,
            },
        )
        if not rows:
            raise GatewayError(Table.ROLES, "insert", "No row returned")

        await self.refresh_roles()
        return Role(**rows[0])

    async def update_role(self, role_id: str, updates: RoleUpdate) -> None:
        rows = await self.gateway.update(
            Table.ROLES, {"id": role_id}, updates.model_dump(exclude_unset=True)
        )
        if not rows:
            raise RoleNotFoundError()
        await self.refresh_roles()

    async def delete_role(self, role_id: str) -> None:
        await self.gateway.delete(Table.ROLES, {"id": role_id})
        await self.refresh_roles()

    async def set_role_permissions(
        self, role_id: str, permission_ids: list[str]
    ) -> None:
        """
        Replace every grant of ``role_id`` with ``permission_ids``.

        Runs as delete-then-insert. An empty list only deletes. If the insert
        fails while the role is left with no grants, the insert is attempted
        again up to ``insert_retries`` times before the error propagates.
        """
        await self.gateway.delete(Table.ROLE_PERMISSIONS, {"role_id": role_id})

        # Duplicate edges collapse to one
        unique_ids = list(dict.fromkeys(permission_ids))
        if unique_ids:
            await self._insert_grants(
                role_id,
                [
                    {"role_id": role_id, "permission_id": permission_id}
                    for permission_id in unique_ids
                ],
            )

        await self.refresh_roles()

    async def _insert_grants(self, role_id: str, edges: list[Row]) -> None:
        attempt = 0
        while True:
            try:
                await self.gateway.insert(Table.ROLE_PERMISSIONS, edges)
                return
            except GatewayError as e:
                if attempt >= self.insert_retries:
                    raise
                remaining = await self.gateway.select(
                    Table.ROLE_PERMISSIONS, {"role_id": role_id}, columns="role_id"
                )
                if remaining:
                    raise
                attempt += 1
                logger.warning(
                    f"Retrying grant insert for role {role_id} "
                    f"(attempt {attempt}): {e}"
                )
