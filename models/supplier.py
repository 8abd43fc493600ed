"""
Supplier file schemas: column mapping and extracted records.
"""

from enum import Enum
from typing import Literal, Optional, Union

from pydantic import ConfigDict, Field

from models.base import BaseSchema

# Stock slot value meaning "this file has no stock column"
STOCK_NONE = "none"

ColumnValue = Optional[Union[int, Literal["none"]]]


class MappingField(str, Enum):
    """Semantic fields a supplier column can be assigned to."""
    IDENTIFIER = "identifier"
    COST = "cost"
    STOCK = "stock"


class ColumnMapping(BaseSchema):
    """
    User assignment of semantic fields to column indices.

    identifier_column and cost_column are required for extraction.
    stock_column may be an index, "none" (no stock update), or unset.
    """

    identifier_column: Optional[int] = Field(None, ge=0, description="SKU column index")
    cost_column: Optional[int] = Field(None, ge=0, description="Cost column index")
    stock_column: ColumnValue = Field(None, description="Stock on hand column index or 'none'")

    @property
    def has_stock_column(self) -> bool:
        """True when a real stock column is mapped."""
        return isinstance(self.stock_column, int)


class MappingCommand(BaseSchema):
    """Single typed mapping change from the host UI."""

    field: MappingField
    value: ColumnValue = None


class SupplierRecord(BaseSchema):
    """One row of supplier truth. Immutable once extracted."""

    model_config = ConfigDict(frozen=True)

    sku: str = Field(..., min_length=1)
    cost: float = 0.0
    stock_on_hand: Optional[int] = Field(
        None,
        description="Absent when no stock column is mapped"
    )
