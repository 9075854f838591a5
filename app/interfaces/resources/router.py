"""
FastAPI router for the resources collection.

Routes delegate to the repository. Input validation is handled by
Pydantic schemas; failures are raised (HttpError, validation and
persistence errors) and rendered by the centralized error handlers.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Request, Response, status

from app.infrastructure.resources.repository import ResourceFilter, ResourceRepository
from app.interfaces.resources.dependencies import get_resource_repository
from app.interfaces.resources.schemas import (
    CreateResourceRequest,
    ListResourcesQuery,
    ResourceListResponse,
    ResourceResponse,
    UpdateResourceRequest,
)
from app.shared.errors import HttpError

router = APIRouter(prefix="/resources", tags=["resources"])

ResourceId = Annotated[int, Path(gt=0, description="Resource identifier")]


@router.post(
    "",
    response_model=ResourceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a resource",
)
def create_resource(
    body: CreateResourceRequest,
    repo: ResourceRepository = Depends(get_resource_repository),
) -> ResourceResponse:
    created = repo.create(
        name=body.name,
        description=body.description,
        status=body.status or "active",
    )
    return ResourceResponse.model_validate(created)


@router.get(
    "",
    response_model=ResourceListResponse,
    summary="List resources",
    description="Filter by status, name substring and creation window; newest first.",
)
def list_resources(
    request: Request,
    repo: ResourceRepository = Depends(get_resource_repository),
) -> ResourceListResponse:
    query = ListResourcesQuery.model_validate(dict(request.query_params))
    rows, count = repo.list(
        ResourceFilter(
            status=query.status,
            q=query.q,
            created_from=query.created_from,
            created_to=query.created_to,
            limit=query.limit,
            offset=query.offset,
        )
    )
    return ResourceListResponse(
        data=[ResourceResponse.model_validate(row) for row in rows],
        limit=query.limit,
        offset=query.offset,
        count=count,
    )


@router.get("/{resource_id}", response_model=ResourceResponse, summary="Get a resource")
def get_resource(
    resource_id: ResourceId,
    repo: ResourceRepository = Depends(get_resource_repository),
) -> ResourceResponse:
    resource = repo.get(resource_id)
    if resource is None:
        raise HttpError(404, "Resource not found")
    return ResourceResponse.model_validate(resource)


@router.patch("/{resource_id}", response_model=ResourceResponse, summary="Update a resource")
def update_resource(
    body: UpdateResourceRequest,
    resource_id: ResourceId,
    repo: ResourceRepository = Depends(get_resource_repository),
) -> ResourceResponse:
    changes = body.model_dump(exclude_unset=True)
    if not changes:
        raise HttpError(400, "No fields provided to update")

    resource = repo.get(resource_id)
    if resource is None:
        raise HttpError(404, "Resource not found")

    return ResourceResponse.model_validate(repo.update(resource, changes))


@router.delete(
    "/{resource_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete a resource",
)
def delete_resource(
    resource_id: ResourceId,
    repo: ResourceRepository = Depends(get_resource_repository),
) -> Response:
    if not repo.delete(resource_id):
        raise HttpError(404, "Resource not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
