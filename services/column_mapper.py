"""
Column mapping state for an uploaded supplier file.
"""

from typing import Optional

import structlog

from exceptions import InvalidColumnError, MappingIncompleteError, ValidationError
from models.supplier import STOCK_NONE, ColumnMapping, ColumnValue, MappingField

logger = structlog.get_logger(__name__)

FIELD_LABELS = {
    MappingField.IDENTIFIER: "SKU Column",
    MappingField.COST: "Cost Column",
    MappingField.STOCK: "Stock on Hand Column",
}


class ColumnMapper:
    """
    Holds the user's assignment of semantic fields to columns.

    Identifier and cost take a column index or None. Stock additionally
    accepts "none", meaning the file intentionally has no stock column.
    """

    def __init__(self, column_count: Optional[int] = None):
        self.column_count = column_count
        self.mapping = ColumnMapping()

    def set_field(self, field: MappingField, value: ColumnValue) -> ColumnMapping:
        """
        Assign a column (or unset it) for one field.

        Raises:
            ValidationError: "none" given for a field other than stock
            InvalidColumnError: Index outside the uploaded header
        """
        field = MappingField(field)

        if value == STOCK_NONE and field != MappingField.STOCK:
            raise ValidationError(
                message=f"{FIELD_LABELS[field]} must be a column",
                code="INVALID_MAPPING_VALUE",
                details={"field": field.value, "value": value}
            )

        if isinstance(value, int) and self.column_count is not None:
            if value < 0 or value >= self.column_count:
                raise InvalidColumnError(field.value, value, self.column_count)

        if field == MappingField.IDENTIFIER:
            self.mapping.identifier_column = value
        elif field == MappingField.COST:
            self.mapping.cost_column = value
        else:
            self.mapping.stock_column = value

        logger.debug("mapping_field_set", field=field.value, value=value)
        return self.mapping

    def reset(self) -> None:
        """Clear every slot (workflow restart)."""
        self.mapping = ColumnMapping()

    def is_complete(self) -> bool:
        """Identifier and cost are set; enough to extract records."""
        return self.mapping.identifier_column is not None and self.mapping.cost_column is not None

    def is_ready(self, require_stock: bool = True) -> bool:
        """
        Whether the workflow may move past mapping.

        With require_stock the stock slot must also be resolved, either to
        a column index or to "none".
        """
        if not self.is_complete():
            return False
        if require_stock:
            return self.mapping.stock_column is not None
        return True

    def missing_fields(self, require_stock: bool = True) -> list[str]:
        missing = []
        if self.mapping.identifier_column is None:
            missing.append(FIELD_LABELS[MappingField.IDENTIFIER])
        if self.mapping.cost_column is None:
            missing.append(FIELD_LABELS[MappingField.COST])
        if require_stock and self.mapping.stock_column is None:
            missing.append(FIELD_LABELS[MappingField.STOCK])
        return missing

    def ensure_ready(self, require_stock: bool = True) -> ColumnMapping:
        """
        Return the mapping, or raise if the workflow cannot advance.

        Raises:
            MappingIncompleteError: Listing the unresolved fields
        """
        if not self.is_ready(require_stock):
            raise MappingIncompleteError(self.missing_fields(require_stock))
        return self.mapping
