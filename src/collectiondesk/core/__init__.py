"""Core CollectionDesk utilities.

This module exports core utilities for use throughout the application.
"""

from collectiondesk.core.config import Settings, get_settings
from collectiondesk.core.exceptions import (
    CoercionFailure,
    CollectionDeskError,
    Conflict,
    GatewayUnavailable,
    InvalidRecord,
    InvalidRequest,
    InvalidSchema,
    MigrationAborted,
    MigrationCancelled,
    NotFound,
    PartialFailure,
    PartialWriteError,
    VersionMismatch,
)
from collectiondesk.core.logging import (
    LoggingContext,
    bind_correlation_id,
    clear_context,
    configure_logging,
    get_logger,
)

__all__ = [
    "CoercionFailure",
    "CollectionDeskError",
    "Conflict",
    "GatewayUnavailable",
    "InvalidRecord",
    "InvalidRequest",
    "InvalidSchema",
    "LoggingContext",
    "MigrationAborted",
    "MigrationCancelled",
    "NotFound",
    "PartialFailure",
    "PartialWriteError",
    "Settings",
    "VersionMismatch",
    "bind_correlation_id",
    "clear_context",
    "configure_logging",
    "get_logger",
    "get_settings",
]
