"""Translation of façade errors into HTTP responses."""

from fastapi import status
from fastapi.responses import JSONResponse

from collectiondesk.application.services.collection_manager import ErrorInfo

UNPROCESSABLE = 422

STATUS_BY_CODE = {
    "NotFound": status.HTTP_404_NOT_FOUND,
    "Conflict": status.HTTP_409_CONFLICT,
    "VersionMismatch": status.HTTP_409_CONFLICT,
    "MigrationAborted": status.HTTP_409_CONFLICT,
    "MigrationCancelled": status.HTTP_409_CONFLICT,
    "InvalidSchema": UNPROCESSABLE,
    "InvalidRecord": UNPROCESSABLE,
    "CoercionFailure": UNPROCESSABLE,
    "InvalidRequest": status.HTTP_400_BAD_REQUEST,
    "PartialFailure": status.HTTP_207_MULTI_STATUS,
    "GatewayUnavailable": status.HTTP_503_SERVICE_UNAVAILABLE,
    "PartialWrite": status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_for(error: ErrorInfo) -> int:
    return STATUS_BY_CODE.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR)


def error_response(error: ErrorInfo) -> JSONResponse:
    """Render an ErrorInfo as ``{"error", "message", "details"}``."""
    return JSONResponse(
        status_code=status_for(error),
        content={
            "error": error.code,
            "message": error.message,
            "details": error.details,
        },
    )
