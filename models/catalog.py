"""
Catalog gateway schemas.

Platform-agnostic shapes for what the remote commerce catalog returns and
accepts. The Shopify adapter translates GraphQL payloads into these.
"""

from typing import Optional

from pydantic import Field

from models.base import BaseSchema


# ===================
# READ MODELS
# ===================

class CatalogVariant(BaseSchema):
    """A product variant as returned by SKU lookup."""

    variant_id: str
    sku: Optional[str] = None
    price: float = 0.0
    unit_cost: Optional[float] = Field(None, description="Absent when never set")
    inventory_record_id: str
    inventory_quantity: int = Field(0, description="Aggregate quantity across locations")
    level_location_id: Optional[str] = Field(
        None,
        description="Location of the returned inventory level, if any"
    )
    level_available: Optional[int] = Field(
        None,
        description="'available' quantity of the returned inventory level"
    )


class CatalogProduct(BaseSchema):
    """Parent product with its variants."""

    product_id: str
    title: str = ""
    image_url: str = ""
    variants: list[CatalogVariant] = Field(default_factory=list)


class Location(BaseSchema):
    """Inventory location."""

    id: str
    name: str
    is_active: bool = True


# ===================
# WRITE MODELS
# ===================

class FieldError(BaseSchema):
    """Application-level rejection reported by a write call."""

    field: list[str] = Field(default_factory=list)
    message: str

    @property
    def field_path(self) -> str:
        return ".".join(self.field)


class InventoryChange(BaseSchema):
    """Signed stock adjustment for one inventory record at one location."""

    inventory_record_id: str
    location_id: str
    delta: int


class VariantPriceInput(BaseSchema):
    """Price (and optionally cost) write for one variant."""

    variant_id: str
    price: float
    cost: Optional[float] = None


class InventoryAdjustResult(BaseSchema):
    applied_changes: list[dict] = Field(default_factory=list)
    field_errors: list[FieldError] = Field(default_factory=list)


class VariantsUpdateResult(BaseSchema):
    updated_variant_ids: list[str] = Field(default_factory=list)
    field_errors: list[FieldError] = Field(default_factory=list)


class CostUpdateResult(BaseSchema):
    updated: bool = False
    field_errors: list[FieldError] = Field(default_factory=list)
