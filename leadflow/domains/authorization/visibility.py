# leadflow/domains/authorization/visibility.py
import asyncio
import logging
from typing import Optional

from pydantic import ValidationError

from leadflow.core.database import GatewayError, RowGateway
from leadflow.domains.authorization.constants import Table
from leadflow.domains.authorization.masking import PhoneVisibilityMode
from leadflow.domains.authorization.models import (
    PageVisibilityRule,
    PhoneVisibilitySetting,
)
from leadflow.shared.exceptions import (
    NoActiveOrganizationError,
    NoOrganizationForRoleError,
)

logger = logging.getLogger(__name__)


class VisibilityRuleStore:
    """
    Cached page-visibility and phone-visibility rules for one tenant.

    Lookups never touch the network. The two rule sets deliberately default
    in opposite directions: a page without a rule is visible, a role without
    a phone setting sees masked numbers.
    """

    def __init__(self, gateway: RowGateway, organization_id: Optional[str]):
        self.gateway = gateway
        self.organization_id = organization_id
        self._page_rules: tuple[PageVisibilityRule, ...] = ()
        self._phone_settings: tuple[PhoneVisibilitySetting, ...] = ()

    @property
    def page_rules(self) -> tuple[PageVisibilityRule, ...]:
        return self._page_rules

    @property
    def phone_settings(self) -> tuple[PhoneVisibilitySetting, ...]:
        return self._phone_settings

    def switch_organization(self, organization_id: Optional[str]) -> None:
        """Drop every cached rule; the caller must refresh for the new tenant."""
        self.organization_id = organization_id
        self._page_rules = ()
        self._phone_settings = ()

    async def refresh(self) -> None:
        await asyncio.gather(self.refresh_page_rules(), self.refresh_phone_settings())

    async def refresh_page_rules(self) -> None:
        """Reload page rules. On failure the previous rules are kept."""
        if not self.organization_id:
            self._page_rules = ()
            return

        try:
            rows = await self.gateway.select(
                Table.PAGE_VISIBILITY, {"organization_id": self.organization_id}
            )
            self._page_rules = tuple(PageVisibilityRule(**row) for row in rows)
        except (GatewayError, ValidationError) as e:
            logger.error(
                f"Error fetching page visibility for organization "
                f"{self.organization_id}: {e}"
            )

    async def refresh_phone_settings(self) -> None:
        """Reload phone settings. On failure the previous settings are kept."""
        if not self.organization_id:
            self._phone_settings = ()
            return

        try:
            rows = await self.gateway.select(
                Table.PHONE_VISIBILITY, {"organization_id": self.organization_id}
            )
            self._phone_settings = tuple(PhoneVisibilitySetting(**row) for row in rows)
        except (GatewayError, ValidationError) as e:
            logger.error(
                f"Error fetching phone visibility settings for organization "
                f"{self.organization_id}: {e}"
            )

    def get_page_visibility(self, role_id: str, page_path: str) -> bool:
        for rule in self._page_rules:
            if rule.role_id == role_id and rule.page_path == page_path:
                return rule.is_visible
        return True

    def get_phone_visibility_mode(self, role_id: str) -> PhoneVisibilityMode:
        """Mode for ``role_id`` in the active tenant, masked when unset."""
        for setting in self._phone_settings:
            if (
                setting.role_id == role_id
                and setting.organization_id == self.organization_id
            ):
                return setting.visibility_mode
        return PhoneVisibilityMode.masked

    async def set_page_visibility(
        self, role_id: str, page_path: str, is_visible: bool
    ) -> None:
        """
        Upsert the rule for ``(role_id, page_path)`` and reload the rules.

        A new rule takes its organization from the role, so system roles
        cannot carry page rules.

        Raises:
            NoOrganizationForRoleError: If the role has no organization
            GatewayError: If a remote call fails
        """
        existing = await self.gateway.select_one(
            Table.PAGE_VISIBILITY,
            {"role_id": role_id, "page_path": page_path},
            columns="id",
        )

        if existing:
            await self.gateway.update(
                Table.PAGE_VISIBILITY,
                {"id": existing["id"]},
                {"is_visible": is_visible},
            )
        else:
            role = await self.gateway.select_one(
                Table.ROLES, {"id": role_id}, columns="organization_id"
            )
            if not role or not role.get("organization_id"):
                logger.warning(
                    f"Skipping page visibility for {page_path}: "
                    f"role {role_id} has no organization"
                )
                raise NoOrganizationForRoleError(role_id)

            await self.gateway.insert(
                Table.PAGE_VISIBILITY,
                {
                    "organization_id": role["organization_id"],
                    "role_id": role_id,
                    "page_path": page_path,
                    "is_visible": is_visible,
                },
            )

        await self.refresh_page_rules()

    async def set_phone_visibility(
        self, role_id: str, mode: PhoneVisibilityMode
    ) -> None:
        """
        Upsert the active tenant's phone setting for ``role_id`` and reload.

        Raises:
            NoActiveOrganizationError: If no tenant is active
            GatewayError: If a remote call fails
        """
        if not self.organization_id:
            raise NoActiveOrganizationError()

        mode = PhoneVisibilityMode(mode)
        existing = await self.gateway.select_one(
            Table.PHONE_VISIBILITY,
            {"role_id": role_id, "organization_id": self.organization_id},
            columns="id",
        )

        if existing:
            await self.gateway.update(
                Table.PHONE_VISIBILITY,
                {"id": existing["id"]},
                {"visibility_mode": mode.value},
            )
        else:
            await self.gateway.insert(
                Table.PHONE_VISIBILITY,
                {
                    "organization_id": self.organization_id,
                    "role_id": role_id,
                    "visibility_mode": mode.value,
                },
            )

        await self.refresh_phone_settings()
