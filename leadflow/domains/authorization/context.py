# leadflow/domains/authorization/context.py
import logging
from enum import Enum
from typing import Optional, Protocol

from pydantic import ValidationError

from leadflow.core.database import GatewayError, Row, RowGateway
from leadflow.domains.authorization.constants import (
    SUPER_ADMIN_ROLE_NAME,
    SYSTEM_PAGES,
    KnownPermission,
    Table,
)
from leadflow.domains.authorization.masking import (
    HIDDEN_PHONE_LENGTH,
    MASK_CHAR,
    PhoneVisibilityMode,
    mask_phone_number,
)
from leadflow.domains.authorization.models import (
    AuthorizationSessionState,
    NavigationPage,
    ResolutionState,
    Role,
)
from leadflow.domains.authorization.visibility import VisibilityRuleStore

logger = logging.getLogger(__name__)


class AuthorizationReader(Protocol):
    """Read-only view of a user's authorization handed to consumers."""

    @property
    def role(self) -> Optional[Role]: ...

    @property
    def is_super_admin(self) -> bool: ...

    @property
    def is_org_admin(self) -> bool: ...

    def has_permission(self, permission: str | KnownPermission) -> bool: ...

    def can_view_page(self, page_path: str) -> bool: ...

    def visibility_mode(self) -> PhoneVisibilityMode: ...

    def format_phone_number(self, phone: Optional[str]) -> str: ...


class UserAuthorizationContext:
    """
    The signed-in user's single role in the active tenant and its permission
    names.

    Resolution needs two requests: the assignment (with its role embedded)
    and the role's permission names. It never loads the full role catalog.
    Every query method is a pure function of the resolved state and the
    cached visibility rules.
    """

    def __init__(
        self,
        gateway: RowGateway,
        rules: VisibilityRuleStore,
        user_id: str,
        organization_id: Optional[str],
        mask_char: str = MASK_CHAR,
        hidden_length: int = HIDDEN_PHONE_LENGTH,
    ):
        self.gateway = gateway
        self.rules = rules
        self.user_id = user_id
        self.organization_id = organization_id
        self.mask_char = mask_char
        self.hidden_length = hidden_length
        self._state = ResolutionState.unresolved
        self._role: Optional[Role] = None
        self._permission_names: frozenset[str] = frozenset()

    @property
    def state(self) -> ResolutionState:
        return self._state

    @property
    def role(self) -> Optional[Role]:
        return self._role

    @property
    def permission_names(self) -> frozenset[str]:
        return self._permission_names

    def reset(self, user_id: str, organization_id: Optional[str]) -> None:
        """Forget the resolved role, e.g. after re-authentication or a tenant switch."""
        self.user_id = user_id
        self.organization_id = organization_id
        self._state = ResolutionState.unresolved
        self._role = None
        self._permission_names = frozenset()

    async def resolve(self) -> ResolutionState:
        """
        Resolve the user's role and permission names.

        A missing assignment moves to ``no_role``. A remote failure keeps
        whatever was resolved before.
        """
        try:
            assignment = await self._find_assignment()
            role_row = assignment.get("role") if assignment else None
            if not role_row:
                self._set_no_role()
                return self._state

            role = Role(**role_row)
            names = await self._fetch_permission_names(role.id)
        except (GatewayError, ValidationError) as e:
            logger.error(
                f"Error resolving role for user {self.user_id} in organization "
                f"{self.organization_id}: {e}"
            )
            return self._state

        self._role = role
        self._permission_names = names
        self._state = ResolutionState.resolved
        logger.debug(
            f"User {self.user_id} resolved to role {role.name} "
            f"with {len(names)} permissions"
        )
        return self._state

    async def _find_assignment(self) -> Optional[Row]:
        rows = await self.gateway.select(
            Table.USER_ROLES,
            {"user_id": self.user_id},
            columns="organization_id, role_id, role:dynamic_roles(*)",
        )
        for row in rows:
            if self.organization_id and row.get("organization_id") == self.organization_id:
                return row

        # Only the bypass role follows the user across tenants
        for row in rows:
            role = row.get("role") or {}
            if (
                role.get("name") == SUPER_ADMIN_ROLE_NAME
                and role.get("is_system_role")
                and role.get("organization_id") is None
            ):
                return row
        return None

    async def _fetch_permission_names(self, role_id: str) -> frozenset[str]:
        rows = await self.gateway.select(
            Table.ROLE_PERMISSIONS,
            {"role_id": role_id},
            columns="permission:permissions(name)",
        )
        return frozenset(
            row["permission"]["name"] for row in rows if row.get("permission")
        )

    def _set_no_role(self) -> None:
        logger.info(
            f"No role assigned to user {self.user_id} in organization "
            f"{self.organization_id}"
        )
        self._role = None
        self._permission_names = frozenset()
        self._state = ResolutionState.no_role

    @property
    def is_super_admin(self) -> bool:
        return self._role is not None and self._role.is_super_admin

    @property
    def is_org_admin(self) -> bool:
        return self.is_super_admin or (
            self._role is not None and self._role.is_org_admin is True
        )

    def has_permission(self, permission: str | KnownPermission) -> bool:
        if self.is_super_admin:
            return True
        name = permission.value if isinstance(permission, Enum) else permission
        return name in self._permission_names

    def can_view_page(self, page_path: str) -> bool:
        if self.is_super_admin:
            return True
        if self._role is None:
            return True
        return self.rules.get_page_visibility(self._role.id, page_path)

    def visible_pages(self) -> list[NavigationPage]:
        return [
            NavigationPage(path=path, label=label)
            for path, label in SYSTEM_PAGES
            if self.can_view_page(path)
        ]

    def visibility_mode(self) -> PhoneVisibilityMode:
        if self.is_super_admin:
            return PhoneVisibilityMode.full
        if self._role is None or not self.organization_id:
            return PhoneVisibilityMode.masked
        return self.rules.get_phone_visibility_mode(self._role.id)

    def can_see_full_number(self) -> bool:
        return self.visibility_mode() == PhoneVisibilityMode.full

    def can_make_calls(self) -> bool:
        return (
            self.has_permission(KnownPermission.CLICK_TO_CALL)
            and self.can_see_full_number()
        )

    def format_phone_number(self, phone: Optional[str]) -> str:
        return mask_phone_number(
            phone,
            self.visibility_mode(),
            mask_char=self.mask_char,
            hidden_length=self.hidden_length,
        )

    def get_role_visibility(self, role_id: str) -> PhoneVisibilityMode:
        """Phone mode configured for any role of the active tenant."""
        return self.rules.get_phone_visibility_mode(role_id)

    def snapshot(self) -> AuthorizationSessionState:
        return AuthorizationSessionState(
            user_id=self.user_id,
            organization_id=self.organization_id,
            state=self._state,
            role=self._role,
            permissions=sorted(self._permission_names),
            is_super_admin=self.is_super_admin,
            is_org_admin=self.is_org_admin,
            phone_visibility_mode=self.visibility_mode(),
            can_see_full_number=self.can_see_full_number(),
            can_make_calls=self.can_make_calls(),
            visible_pages=self.visible_pages(),
        )
