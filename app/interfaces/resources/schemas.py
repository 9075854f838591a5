"""
Pydantic schemas for resource API request/response validation.

These schemas enforce input validation and define the API contract.
Persistence rules (such as non-blank names) are checked again by the
ORM model. No business logic belongs here.
"""

from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

ResourceStatus = Literal["active", "archived"]


class CreateResourceRequest(BaseModel):
    """Request body for creating a resource."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    status: Optional[ResourceStatus] = None


class UpdateResourceRequest(BaseModel):
    """Request body for a partial update. Omitted fields are left unchanged."""

    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    status: Optional[ResourceStatus] = None


class ListResourcesQuery(BaseModel):
    """Query parameters for listing resources."""

    status: Optional[ResourceStatus] = None
    q: Optional[str] = Field(None, min_length=1)
    created_from: Optional[datetime] = Field(None, alias="createdFrom")
    created_to: Optional[datetime] = Field(None, alias="createdTo")
    limit: int = Field(50, ge=1, le=200)
    offset: int = Field(0, ge=0)


class ResourceResponse(BaseModel):
    """A single resource as returned by the API."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    name: str
    description: Optional[str]
    status: ResourceStatus
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    @field_serializer("created_at", "updated_at")
    def _as_utc(self, value: datetime) -> str:
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


class ResourceListResponse(BaseModel):
    """One page of resources."""

    data: list[ResourceResponse]
    limit: int
    offset: int
    count: int


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
