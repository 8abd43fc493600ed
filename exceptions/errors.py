"""
Custom exception classes for the application.

Input errors surface as 4xx, catalog gateway failures as 503.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "MAPPING_INCOMPLETE")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ConflictError(AppError):
    """Conflict with current state (409)."""

    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details
        )


class ExternalServiceError(AppError):
    """External service failure (503)."""

    def __init__(
        self,
        service: str,
        message: str,
        details: Optional[dict] = None,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{service.upper()}_ERROR",
            message=message,
            status_code=503,
            details={"service": service, **(details or {})}
        )


# ===================
# UPLOAD / MAPPING ERRORS
# ===================

class CSVParseError(ValidationError):
    """Uploaded supplier file could not be turned into rows."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="CSV_PARSE_ERROR",
            message=message,
            details=details
        )


class MappingIncompleteError(ValidationError):
    """Column mapping is missing required fields."""

    def __init__(self, missing: list[str]):
        super().__init__(
            code="MAPPING_INCOMPLETE",
            message=f"Select a column for: {', '.join(missing)}",
            details={"missing": missing}
        )


class InvalidColumnError(ValidationError):
    """Mapped column index does not exist in the uploaded file."""

    def __init__(self, field: str, value: Any, column_count: int):
        super().__init__(
            code="INVALID_COLUMN",
            message=f"Column {value} is not available for {field}",
            details={"field": field, "value": value, "column_count": column_count}
        )


class LocationRequiredError(ValidationError):
    """An inventory location is needed but none was chosen."""

    def __init__(self):
        super().__init__(
            code="LOCATION_REQUIRED",
            message="Please select a location to update."
        )


class NothingToUpdateError(ValidationError):
    """Commit requested with no items selected."""

    def __init__(self):
        super().__init__(
            code="NOTHING_TO_UPDATE",
            message="No products selected for update"
        )


# ===================
# CATALOG GATEWAY ERRORS
# ===================

class CatalogGatewayError(ExternalServiceError):
    """Catalog gateway call failed before returning a usable response."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None,
        code: str = "CATALOG_GATEWAY_ERROR"
    ):
        self.operation = operation
        super().__init__(
            service="catalog",
            message=message,
            details={"operation": operation, **(details or {})},
            code=code
        )


class GatewayTransportError(CatalogGatewayError):
    """Network, timeout or HTTP status failure."""

    def __init__(self, operation: str, message: str, details: Optional[dict] = None):
        super().__init__(
            operation=operation,
            message=message,
            details=details,
            code="CATALOG_TRANSPORT_ERROR"
        )


class GatewayResponseError(CatalogGatewayError):
    """Response arrived but lacked the expected payload."""

    def __init__(self, operation: str, message: str, details: Optional[dict] = None):
        super().__init__(
            operation=operation,
            message=message,
            details=details,
            code="CATALOG_RESPONSE_ERROR"
        )


class CatalogLookupError(ExternalServiceError):
    """Matching supplier SKUs against the catalog failed."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            service="catalog",
            message=f"Product lookup failed: {message}",
            details=details,
            code="CATALOG_LOOKUP_FAILED"
        )


# ===================
# WORKFLOW ERRORS
# ===================

class SessionNotFoundError(NotFoundError):
    """Workflow session expired or never existed."""

    def __init__(self, session_id: str):
        super().__init__(
            resource="Session",
            identifier=session_id,
            code="SESSION_NOT_FOUND"
        )


class ReconciledItemNotFoundError(NotFoundError):
    """No reconciled item with this variant id."""

    def __init__(self, variant_id: str):
        super().__init__(
            resource="Reconciled item",
            identifier=variant_id,
            code="RECONCILED_ITEM_NOT_FOUND"
        )


class CommitInProgressError(ConflictError):
    """Items cannot change while a commit run is in flight."""

    def __init__(self):
        super().__init__(
            code="COMMIT_IN_PROGRESS",
            message="An update run is in progress; wait for it to finish"
        )


class InvalidWorkflowStepError(ConflictError):
    """Operation not allowed at the current workflow step."""

    def __init__(self, current_step: str, required_step: str):
        super().__init__(
            code="INVALID_WORKFLOW_STEP",
            message=f"Cannot do this at step '{current_step}'",
            details={"current_step": current_step, "required_step": required_step}
        )
