# leadflow/domains/organizations/models.py
from typing import Optional

from pydantic import BaseModel, field_validator

from leadflow.domains.authorization.models import Role


class OrganizationCreate(BaseModel):
    name: str
    slug: str

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v: str) -> str:
        v = v.strip().lower()
        if not v or " " in v:
            raise ValueError("Slug must be a non-empty string without spaces")
        return v


class OrganizationResponse(BaseModel):
    id: str
    name: str
    slug: str
    logo_url: Optional[str] = None
    created_at: Optional[str] = None


class CreateOrganizationResponse(BaseModel):
    organization: OrganizationResponse
    roles: list[Role]
