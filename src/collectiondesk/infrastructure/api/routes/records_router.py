"""Record API routes.

Provides CRUD endpoints for the records of a collection plus bulk
delete, duplicate, update and export.
"""

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse, Response

from collectiondesk.core.logging import get_logger
from collectiondesk.domain.entities.filter_state import (
    DEFAULT_CATEGORY,
    DEFAULT_FILTER,
    DEFAULT_QUERY,
    DEFAULT_SORT,
    FilterState,
)
from collectiondesk.infrastructure.api.dependencies import Manager
from collectiondesk.infrastructure.api.errors import error_response, status_for
from collectiondesk.infrastructure.api.schemas import (
    BulkOperationRequestSchema,
    BulkOperationResponse,
    CountResponse,
    RecordListResponse,
    RecordResponse,
    RecordValuesRequest,
)

logger = get_logger(__name__)

router = APIRouter()


@router.get(
    "/{slug}/records",
    status_code=status.HTTP_200_OK,
    response_model=RecordListResponse,
    responses={
        400: {"description": "Invalid filter expression"},
        404: {"description": "Collection not found"},
    },
)
async def list_records(
    slug: str,
    manager: Manager,
    q: str = Query(default=DEFAULT_QUERY, description="Free-text search"),
    filter: str = Query(default=DEFAULT_FILTER, description="field=value conditions, comma separated"),
    category: str = Query(default=DEFAULT_CATEGORY, description="Field the search is scoped to"),
    page: int = Query(default=1, ge=1, description="Page number"),
    sort: str = Query(
        default=DEFAULT_SORT, description="Field to order by, prefixed with - for descending"
    ),
) -> RecordListResponse | JSONResponse:
    """List records of a collection using the view filter parameters."""
    state = FilterState(query=q, filter=filter, category=category, page=page, sort=sort)
    result = await manager.find_for_view(slug, state)
    if not result.ok:
        return error_response(result.error)
    return RecordListResponse.from_page(result.value, state.to_query_string())


@router.get(
    "/{slug}/records/count",
    status_code=status.HTTP_200_OK,
    response_model=CountResponse,
    responses={404: {"description": "Collection not found"}},
)
async def count_records(slug: str, manager: Manager) -> CountResponse | JSONResponse:
    """Count all records of a collection."""
    result = await manager.count(slug)
    if not result.ok:
        return error_response(result.error)
    return CountResponse(count=result.value)


@router.post(
    "/{slug}/records",
    status_code=status.HTTP_201_CREATED,
    response_model=RecordResponse,
    responses={
        404: {"description": "Collection not found"},
        422: {"description": "Values do not match the schema"},
    },
)
async def create_record(
    slug: str, request: RecordValuesRequest, manager: Manager
) -> RecordResponse | JSONResponse:
    """Create a record."""
    result = await manager.create_record(slug, request.values)
    if not result.ok:
        return error_response(result.error)
    return RecordResponse.from_entity(result.value)


@router.put(
    "/{slug}/records/{record_id}",
    status_code=status.HTTP_200_OK,
    response_model=RecordResponse,
    responses={
        404: {"description": "Collection or record not found"},
        422: {"description": "Values do not match the schema"},
    },
)
async def update_record(
    slug: str, record_id: str, request: RecordValuesRequest, manager: Manager
) -> RecordResponse | JSONResponse:
    """Replace a record's values."""
    result = await manager.update_record(slug, record_id, request.values)
    if not result.ok:
        return error_response(result.error)
    return RecordResponse.from_entity(result.value)


@router.delete(
    "/{slug}/records/{record_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"description": "Collection or record not found"}},
)
async def delete_record(slug: str, record_id: str, manager: Manager) -> Response:
    """Delete a record."""
    result = await manager.delete_record(slug, record_id)
    if not result.ok:
        return error_response(result.error)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{slug}/records/bulk",
    status_code=status.HTTP_200_OK,
    response_model=BulkOperationResponse,
    responses={
        207: {"description": "Some ids failed; see 'failed'"},
        404: {"description": "Collection not found"},
        409: {"description": "Collection is being migrated"},
    },
)
async def bulk_operation(
    slug: str, request: BulkOperationRequestSchema, manager: Manager
) -> BulkOperationResponse | JSONResponse:
    """Run delete, duplicate, update or export over a set of record ids.

    Returns 207 with the full per-id accounting when some ids failed.
    """
    result = await manager.execute_bulk_operation(
        slug,
        request.ids,
        request.kind,
        export_format=request.export_format,
        values=request.values,
    )
    if result.value is None:
        return error_response(result.error)

    response = BulkOperationResponse.from_result(result.value)
    if not result.ok:
        logger.info(
            "Bulk operation partially failed",
            collection_slug=slug,
            kind=request.kind,
            failed_count=response.failed_count,
        )
        return JSONResponse(
            status_code=status_for(result.error),
            content=response.model_dump(),
        )
    return response
