"""
Reconciliation schemas: reconciled items, update outcomes, batch run state.
"""

from enum import Enum
from typing import Optional

from pydantic import Field

from models.base import BaseSchema


class MarginStatus(str, Enum):
    """Margin classification against the current threshold."""
    GOOD = "good"
    MEDIUM = "medium"
    NEGATIVE = "negative"


class FilterType(str, Enum):
    """Preview table filter."""
    ALL = "all"
    MEDIUM = "medium"
    NEGATIVE = "negative"


class UpdateType(str, Enum):
    """Which commit flow the user picked."""
    STOCK = "stock"
    PRICING = "pricing"


class WorkflowStep(str, Enum):
    CSV = "csv"
    MAPPING = "mapping"
    ACTIONS = "actions"


class ReconciledItem(BaseSchema):
    """
    A matched (supplier record, catalog variant) pair.

    The working unit of the preview and commit stages. margin_status is
    kept consistent with (price, new_cost, threshold) by the store.
    """

    # Identity
    parent_id: str = Field(..., description="Parent product id")
    variant_id: str
    inventory_record_id: str
    sku: str
    display_name: str = ""
    image_url: str = ""

    # Current snapshot
    current_cost: float = 0.0
    current_price: float = 0.0
    current_quantity: int = 0

    # Incoming values
    new_cost: float = 0.0
    new_quantity: int = 0

    # Derived
    margin_percent: float = 0.0
    margin_status: MarginStatus = MarginStatus.GOOD

    # Editable state
    include_in_update: bool = True
    price: float = Field(0.0, description="Price to write; starts at current_price")

    @property
    def quantity_delta(self) -> int:
        """Signed stock change the inventory adjustment must apply."""
        return self.new_quantity - self.current_quantity


class ReconciliationStats(BaseSchema):
    total: int = 0
    good: int = 0
    medium: int = 0
    negative: int = 0
    to_update: int = 0


class LookupResult(BaseSchema):
    """Output of matching supplier records against the catalog."""

    items: list[ReconciledItem] = Field(default_factory=list)
    not_found: list[str] = Field(default_factory=list)


class UpdateOutcome(BaseSchema):
    """Per-item result of a commit attempt."""

    sku: str
    updated: bool
    message: str
    error: Optional[str] = None


class BatchRunState(BaseSchema):
    """
    Observable progress of one commit run.

    current_batch_index only moves forward within a run and outcomes only
    grow; reset() is called before each new run.
    """

    current_batch_index: int = 0
    total_batches: int = 0
    outcomes: list[UpdateOutcome] = Field(default_factory=list)
    running: bool = False
    cancelled: bool = False
    error: Optional[str] = None

    def reset(self) -> None:
        self.current_batch_index = 0
        self.total_batches = 0
        self.outcomes = []
        self.running = False
        self.cancelled = False
        self.error = None

    def begin(self, total_batches: int) -> None:
        """Start a fresh run over total_batches progress batches."""
        self.reset()
        self.total_batches = total_batches
        self.running = True

    def advance_to(self, batch_index: int) -> None:
        if batch_index < self.current_batch_index:
            raise ValueError(
                f"Batch index cannot move backwards ({self.current_batch_index} -> {batch_index})"
            )
        self.current_batch_index = batch_index

    def add_outcomes(self, outcomes: list[UpdateOutcome]) -> None:
        self.outcomes.extend(outcomes)

    def finish(self) -> None:
        self.running = False

    @property
    def progress(self) -> int:
        """Percent of progress batches reached, rounded."""
        if self.total_batches == 0:
            return 0
        return round(self.current_batch_index / self.total_batches * 100)

    @property
    def updated_count(self) -> int:
        return sum(1 for o in self.outcomes if o.updated)

    @property
    def not_updated_count(self) -> int:
        return sum(1 for o in self.outcomes if not o.updated)


class UpdateReport(BaseSchema):
    """Summary of a finished (or stopped) commit run."""

    file_name: str = ""
    update_type: Optional[UpdateType] = None
    checked: int = Field(0, description="Supplier records extracted from the file")
    found: int = 0
    updated: int = 0
    not_updated: int = 0
    skipped: int = Field(0, description="Matched items left out of the update")
    cancelled: bool = False
    error: Optional[str] = None
    outcomes: list[UpdateOutcome] = Field(default_factory=list)
    skipped_items: list[UpdateOutcome] = Field(default_factory=list)
    not_found: list[str] = Field(default_factory=list)
