"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ConflictError,
    ExternalServiceError,

    # Upload / mapping
    CSVParseError,
    MappingIncompleteError,
    InvalidColumnError,
    LocationRequiredError,
    NothingToUpdateError,

    # Catalog gateway
    CatalogGatewayError,
    GatewayTransportError,
    GatewayResponseError,
    CatalogLookupError,

    # Workflow
    SessionNotFoundError,
    ReconciledItemNotFoundError,
    CommitInProgressError,
    InvalidWorkflowStepError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "ExternalServiceError",

    # Upload / mapping
    "CSVParseError",
    "MappingIncompleteError",
    "InvalidColumnError",
    "LocationRequiredError",
    "NothingToUpdateError",

    # Catalog gateway
    "CatalogGatewayError",
    "GatewayTransportError",
    "GatewayResponseError",
    "CatalogLookupError",

    # Workflow
    "SessionNotFoundError",
    "ReconciledItemNotFoundError",
    "CommitInProgressError",
    "InvalidWorkflowStepError",
]
