"""Collections API routes.

Provides endpoints for creating, inspecting, migrating and deleting
collections.
"""

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse, Response

from collectiondesk.core.logging import get_logger
from collectiondesk.infrastructure.api.dependencies import Manager
from collectiondesk.infrastructure.api.errors import error_response
from collectiondesk.infrastructure.api.schemas import (
    CollectionListResponse,
    CollectionResponse,
    CreateCollectionRequest,
    MigrationPlanResponse,
    MigrationReportResponse,
    MigrationRequest,
)

logger = get_logger(__name__)

router = APIRouter()


@router.get(
    "",
    status_code=status.HTTP_200_OK,
    response_model=CollectionListResponse,
)
async def list_collections(manager: Manager) -> CollectionListResponse | JSONResponse:
    """List all collections."""
    result = await manager.list_collections()
    if not result.ok:
        return error_response(result.error)

    items = [CollectionResponse.from_entity(schema) for schema in result.value]
    return CollectionListResponse(items=items, total=len(items))


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=CollectionResponse,
    responses={
        409: {"description": "Collection already exists"},
        422: {"description": "Invalid schema"},
    },
)
async def create_collection(
    request: CreateCollectionRequest, manager: Manager
) -> CollectionResponse | JSONResponse:
    """Create a new collection at schema version 1."""
    result = await manager.create_collection(
        request.slug, [f.to_entity() for f in request.fields]
    )
    if not result.ok:
        return error_response(result.error)

    logger.info("Collection created via API", collection_slug=request.slug)
    return CollectionResponse.from_entity(result.value)


@router.get(
    "/{slug}",
    status_code=status.HTTP_200_OK,
    response_model=CollectionResponse,
    responses={404: {"description": "Collection not found"}},
)
async def get_collection(slug: str, manager: Manager) -> CollectionResponse | JSONResponse:
    """Get the current schema of a collection."""
    result = await manager.get_collection_config(slug)
    if not result.ok:
        return error_response(result.error)
    return CollectionResponse.from_entity(result.value)


@router.delete(
    "/{slug}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        400: {"description": "Confirmation missing"},
        404: {"description": "Collection not found"},
    },
)
async def delete_collection(
    slug: str,
    manager: Manager,
    confirm: bool = Query(default=False, description="Must be true; deletes every record"),
) -> Response:
    """Delete a collection and all of its records. Irreversible."""
    result = await manager.delete_collection(slug, confirm=confirm)
    if not result.ok:
        return error_response(result.error)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{slug}/migration-plan",
    status_code=status.HTTP_200_OK,
    response_model=MigrationPlanResponse,
    responses={
        404: {"description": "Collection not found"},
        422: {"description": "Invalid target schema"},
    },
)
async def plan_migration(
    slug: str, request: MigrationRequest, manager: Manager
) -> MigrationPlanResponse | JSONResponse:
    """Compute the migration plan from the current schema to ``fields`` without applying it."""
    result = await manager.plan_migration(
        slug,
        [f.to_entity() for f in request.fields],
        renames=request.renames,
        conflict_policy=request.conflict_policy,
    )
    if not result.ok:
        return error_response(result.error)
    return MigrationPlanResponse(**result.value.to_dict())


@router.post(
    "/{slug}/migrations",
    status_code=status.HTTP_200_OK,
    response_model=MigrationReportResponse,
    responses={
        404: {"description": "Collection not found"},
        409: {"description": "Migration aborted or concurrent migration"},
        422: {"description": "Invalid target schema"},
        503: {"description": "Backend unavailable"},
    },
)
async def migrate_collection(
    slug: str, request: MigrationRequest, manager: Manager
) -> MigrationReportResponse | JSONResponse:
    """Plan and apply a migration to ``fields``."""
    result = await manager.update_collection_config(
        slug,
        [f.to_entity() for f in request.fields],
        renames=request.renames,
        conflict_policy=request.conflict_policy,
    )
    if not result.ok:
        return error_response(result.error)

    logger.info(
        "Collection migrated via API",
        collection_slug=slug,
        to_version=result.value.to_version,
    )
    return MigrationReportResponse(**result.value.to_dict())
