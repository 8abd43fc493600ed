"""
Request and response schemas for the supplier update API.
"""

from typing import Optional

from pydantic import Field

from models.base import BaseSchema
from models.catalog import Location
from models.reconciliation import (
    BatchRunState,
    FilterType,
    ReconciledItem,
    ReconciliationStats,
    UpdateOutcome,
    UpdateType,
    WorkflowStep,
)
from models.supplier import ColumnMapping


# ===================
# SESSION
# ===================

class SessionResponse(BaseSchema):
    """Current state of a workflow session."""

    session_id: str
    step: WorkflowStep
    file_name: str = ""
    headers: list[str] = Field(default_factory=list)
    row_count: int = Field(0, description="Data rows, header excluded")
    preview_rows: list[list[str]] = Field(default_factory=list)
    mapping: ColumnMapping
    mapping_complete: bool = False
    available_update_types: list[UpdateType] = Field(default_factory=list)
    location_id: Optional[str] = None
    update_type: Optional[UpdateType] = None
    threshold: float
    running: bool = False


class LocationListResponse(BaseSchema):
    data: list[Location]
    default_location_id: Optional[str] = None


# ===================
# LOOKUP & REVIEW
# ===================

class LookupRequest(BaseSchema):
    threshold: Optional[float] = Field(None, ge=0, description="Margin threshold %")
    location_id: Optional[str] = Field(None, description="Defaults to the first active location")
    update_type: UpdateType = UpdateType.PRICING


class LookupResponse(BaseSchema):
    items: list[ReconciledItem]
    not_found: list[str]
    stats: ReconciliationStats


class ItemListResponse(BaseSchema):
    data: list[ReconciledItem]
    total: int
    filter: FilterType


class ItemUpdate(BaseSchema):
    """Edit one reconciled item. Omitted fields are left unchanged."""

    price: Optional[float] = Field(None, ge=0)
    include_in_update: Optional[bool] = None


class SelectionUpdate(BaseSchema):
    """Replace the included set: exactly these variants are included."""

    variant_ids: list[str]


class SelectionResponse(BaseSchema):
    included: int
    stats: ReconciliationStats


class ThresholdUpdate(BaseSchema):
    threshold: float = Field(..., ge=0)


# ===================
# COMMIT
# ===================

class CommitRequest(BaseSchema):
    update_type: Optional[UpdateType] = Field(None, description="Defaults to the type chosen at lookup")


class CommitStatusResponse(BaseSchema):
    running: bool
    cancelled: bool
    error: Optional[str] = None
    current_batch_index: int
    total_batches: int
    progress: int = Field(..., description="Percent of progress batches reached")
    updated_count: int
    not_updated_count: int
    outcomes: list[UpdateOutcome]

    @classmethod
    def from_state(cls, state: BatchRunState) -> "CommitStatusResponse":
        return cls(
            running=state.running,
            cancelled=state.cancelled,
            error=state.error,
            current_batch_index=state.current_batch_index,
            total_batches=state.total_batches,
            progress=state.progress,
            updated_count=state.updated_count,
            not_updated_count=state.not_updated_count,
            outcomes=state.outcomes,
        )
