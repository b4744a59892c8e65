# leadflow/domains/authorization/models.py
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator

from leadflow.domains.authorization.constants import SUPER_ADMIN_ROLE_NAME
from leadflow.domains.authorization.masking import PhoneVisibilityMode
from leadflow.shared.notifications import Notification


# Rows
class Permission(BaseModel):
    id: str
    name: str
    display_name: str
    category: str
    description: Optional[str] = None


class Role(BaseModel):
    id: str
    organization_id: Optional[str] = None
    name: str
    display_name: str
    description: Optional[str] = None
    is_system_role: bool = False
    is_org_admin: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def is_super_admin(self) -> bool:
        # Organization-scoped roles never qualify, whatever their name
        return self.name == SUPER_ADMIN_ROLE_NAME and self.is_system_role is True


class RoleWithPermissions(Role):
    permissions: list[Permission] = Field(default_factory=list)


class RolePermission(BaseModel):
    role_id: str
    permission_id: str


class UserRoleAssignment(BaseModel):
    id: Optional[str] = None
    user_id: str
    organization_id: str
    role_id: str


class PageVisibilityRule(BaseModel):
    id: Optional[str] = None
    organization_id: str
    role_id: str
    page_path: str
    is_visible: bool


class PhoneVisibilitySetting(BaseModel):
    id: Optional[str] = None
    organization_id: str
    role_id: str
    visibility_mode: PhoneVisibilityMode


class NavigationPage(BaseModel):
    path: str
    label: str


# Requests
class RoleCreate(BaseModel):
    name: str
    display_name: str
    description: Optional[str] = None
    organization_id: Optional[str] = None
    is_system_role: bool = False
    is_org_admin: bool = False


class RoleUpdate(BaseModel):
    name: Optional[str] = None
    display_name: Optional[str] = None
    description: Optional[str] = None
    is_org_admin: Optional[bool] = None

    @model_validator(mode="after")
    def validate_has_update(self) -> "RoleUpdate":
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided for update")
        return self


class RolePermissionsUpdate(BaseModel):
    permission_ids: list[str]


class PageVisibilityUpdate(BaseModel):
    page_path: str
    is_visible: bool


class PhoneVisibilityUpdate(BaseModel):
    visibility_mode: PhoneVisibilityMode


class RoleAssignmentRequest(BaseModel):
    role_id: str


class PhoneFormatRequest(BaseModel):
    phones: list[Optional[str]]


# Responses
class ResolutionState(str, Enum):
    unresolved = "unresolved"
    resolved = "resolved"
    no_role = "no_role"


class AuthorizationSessionState(BaseModel):
    user_id: str
    organization_id: Optional[str]
    state: ResolutionState
    role: Optional[Role]
    permissions: list[str]
    is_super_admin: bool
    is_org_admin: bool
    phone_visibility_mode: PhoneVisibilityMode
    can_see_full_number: bool
    can_make_calls: bool
    visible_pages: list[NavigationPage]


class PhoneFormatResponse(BaseModel):
    visibility_mode: PhoneVisibilityMode
    phones: list[str]


class MutationResponse(BaseModel):
    role: Optional[Role] = None
    notifications: list[Notification] = Field(default_factory=list)


@dataclass
class MutationResult:
    """Outcome of an orchestrated mutation. Failures are carried, not raised."""

    data: Optional[Any] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None
