"""
Pydantic models for validation and serialization.
"""

from models.base import BaseSchema
from models.supplier import (
    STOCK_NONE,
    ColumnValue,
    MappingField,
    ColumnMapping,
    MappingCommand,
    SupplierRecord,
)
from models.catalog import (
    CatalogVariant,
    CatalogProduct,
    Location,
    FieldError,
    InventoryChange,
    VariantPriceInput,
    InventoryAdjustResult,
    VariantsUpdateResult,
    CostUpdateResult,
)
from models.reconciliation import (
    MarginStatus,
    FilterType,
    UpdateType,
    WorkflowStep,
    ReconciledItem,
    ReconciliationStats,
    LookupResult,
    UpdateOutcome,
    BatchRunState,
    UpdateReport,
)

__all__ = [
    # Base
    "BaseSchema",

    # Supplier file
    "STOCK_NONE",
    "ColumnValue",
    "MappingField",
    "ColumnMapping",
    "MappingCommand",
    "SupplierRecord",

    # Catalog
    "CatalogVariant",
    "CatalogProduct",
    "Location",
    "FieldError",
    "InventoryChange",
    "VariantPriceInput",
    "InventoryAdjustResult",
    "VariantsUpdateResult",
    "CostUpdateResult",

    # Reconciliation
    "MarginStatus",
    "FilterType",
    "UpdateType",
    "WorkflowStep",
    "ReconciledItem",
    "ReconciliationStats",
    "LookupResult",
    "UpdateOutcome",
    "BatchRunState",
    "UpdateReport",
]
