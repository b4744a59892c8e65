# leadflow/domains/authorization/service.py
import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from fastapi import HTTPException

from leadflow.core.database import GatewayError, RowGateway
from leadflow.core.settings import settings
from leadflow.domains.authorization.catalog import RoleCatalog
from leadflow.domains.authorization.constants import Table
from leadflow.domains.authorization.context import (
    AuthorizationReader,
    UserAuthorizationContext,
)
from leadflow.domains.authorization.masking import PhoneVisibilityMode
from leadflow.domains.authorization.models import (
    MutationResult,
    RoleCreate,
    RoleUpdate,
)
from leadflow.domains.authorization.visibility import VisibilityRuleStore
from leadflow.shared.notifications import (
    LoggingNotifier,
    Notification,
    NotificationVariant,
    Notifier,
)

logger = logging.getLogger(__name__)


class AuthorizationService:
    """
    Owner of one user's authorization state within one tenant.

    Consumers read through ``view``; every mutation goes through this class,
    which issues the remote write and then refreshes exactly the state the
    write could have invalidated. Mutations never raise on remote or
    precondition failures: they notify and return a ``MutationResult``.
    """

    def __init__(
        self,
        gateway: RowGateway,
        user_id: str,
        organization_id: Optional[str],
        notifier: Optional[Notifier] = None,
    ):
        self.gateway = gateway
        self.notifier: Notifier = notifier or LoggingNotifier()
        self.rules = VisibilityRuleStore(gateway, organization_id)
        self.catalog = RoleCatalog(
            gateway,
            organization_id,
            insert_retries=settings.ROLE_PERMISSION_INSERT_RETRIES,
        )
        self.context = UserAuthorizationContext(
            gateway,
            self.rules,
            user_id,
            organization_id,
            mask_char=settings.PHONE_MASK_CHAR,
            hidden_length=settings.HIDDEN_PHONE_LENGTH,
        )

    @property
    def user_id(self) -> str:
        return self.context.user_id

    @property
    def organization_id(self) -> Optional[str]:
        return self.context.organization_id

    @property
    def view(self) -> AuthorizationReader:
        return self.context

    async def load(self, include_catalog: bool = False) -> None:
        """Resolve the user and load the tenant's rules, optionally the catalog."""
        loads: list[Awaitable[Any]] = [self.context.resolve(), self.rules.refresh()]
        if include_catalog:
            loads.append(self.catalog.refresh())
        await asyncio.gather(*loads)

    async def refetch(self) -> None:
        await self.load(include_catalog=True)

    async def switch_organization(
        self, organization_id: Optional[str], user_id: Optional[str] = None
    ) -> None:
        """Discard all tenant state and resolve again for ``organization_id``."""
        self.context.reset(user_id or self.user_id, organization_id)
        self.rules.switch_organization(organization_id)
        self.catalog.switch_organization(organization_id)
        await self.load()

    async def create_role(self, role_data: RoleCreate) -> MutationResult:
        return await self._mutate(
            lambda: self.catalog.create_role(role_data),
            success="Role created successfully",
            failure="Error creating role",
        )

    async def update_role(self, role_id: str, updates: RoleUpdate) -> MutationResult:
        async def run() -> None:
            await self.catalog.update_role(role_id, updates)
            await self._resolve_if_own_role(role_id)

        return await self._mutate(
            run, success="Role updated successfully", failure="Error updating role"
        )

    async def delete_role(self, role_id: str) -> MutationResult:
        async def run() -> None:
            await self.catalog.delete_role(role_id)
            await self._resolve_if_own_role(role_id)

        return await self._mutate(
            run, success="Role deleted successfully", failure="Error deleting role"
        )

    async def set_role_permissions(
        self, role_id: str, permission_ids: list[str]
    ) -> MutationResult:
        async def run() -> None:
            await self.catalog.set_role_permissions(role_id, permission_ids)
            await self._resolve_if_own_role(role_id)

        return await self._mutate(
            run,
            success="Permissions updated successfully",
            failure="Error updating permissions",
        )

    async def set_page_visibility(
        self, role_id: str, page_path: str, is_visible: bool
    ) -> MutationResult:
        return await self._mutate(
            lambda: self.rules.set_page_visibility(role_id, page_path, is_visible),
            success="Page visibility updated",
            failure="Error updating page visibility",
        )

    async def set_phone_visibility(
        self, role_id: str, mode: PhoneVisibilityMode
    ) -> MutationResult:
        return await self._mutate(
            lambda: self.rules.set_phone_visibility(role_id, mode),
            success="Phone visibility updated",
            failure="Error updating visibility",
        )

    async def assign_role_to_user(
        self, user_id: str, role_id: str, organization_id: str
    ) -> MutationResult:
        async def run() -> None:
            existing = await self.gateway.select_one(
                Table.USER_ROLES,
                {"user_id": user_id, "organization_id": organization_id},
                columns="id",
            )
            if existing:
                await self.gateway.update(
                    Table.USER_ROLES, {"id": existing["id"]}, {"role_id": role_id}
                )
            else:
                await self.gateway.insert(
                    Table.USER_ROLES,
                    {
                        "user_id": user_id,
                        "role_id": role_id,
                        "organization_id": organization_id,
                    },
                )

            if user_id == self.user_id and organization_id == self.organization_id:
                await self.context.resolve()

        return await self._mutate(
            run, success="Role assigned successfully", failure="Error assigning role"
        )

    async def _resolve_if_own_role(self, role_id: str) -> None:
        role = self.context.role
        if role is not None and role.id == role_id:
            await self.context.resolve()

    async def _mutate(
        self,
        operation: Callable[[], Awaitable[Any]],
        success: str,
        failure: str,
    ) -> MutationResult:
        try:
            data = await operation()
        except (GatewayError, HTTPException) as e:
            description = str(e.detail) if isinstance(e, HTTPException) else str(e)
            logger.error(f"{failure}: {description}")
            self.notifier.notify(
                Notification(
                    title=failure,
                    description=description,
                    variant=NotificationVariant.destructive,
                )
            )
            return MutationResult(error=e)

        self.notifier.notify(Notification(title=success))
        return MutationResult(data=data)
