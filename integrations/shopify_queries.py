"""
GraphQL documents for the Shopify Admin API.
"""

PRODUCT_FIELDS = """
        id
        title
        featuredMedia {
          preview {
            image {
              url(transform: { maxWidth: 40, maxHeight: 40 })
            }
          }
        }
"""

GET_PRODUCTS_BY_SKU = """
query getProductsBySku($query: String!) {
  products(first: 100, query: $query) {
    nodes {
%s
      variants(first: 100) {
        nodes {
          id
          sku
          price
          inventoryItem {
            id
            unitCost {
              amount
              currencyCode
            }
          }
          inventoryQuantity
        }
      }
    }
  }
}
""" % PRODUCT_FIELDS

# Same lookup, plus the inventory level at one location
GET_PRODUCTS_BY_SKU_AT_LOCATION = """
query getProductsBySkuAtLocation($query: String!, $locationId: ID!) {
  products(first: 100, query: $query) {
    nodes {
%s
      variants(first: 100) {
        nodes {
          id
          sku
          price
          inventoryItem {
            id
            unitCost {
              amount
              currencyCode
            }
            inventoryLevel(locationId: $locationId) {
              location {
                id
              }
              quantities(names: ["available"]) {
                name
                quantity
              }
            }
          }
          inventoryQuantity
        }
      }
    }
  }
}
""" % PRODUCT_FIELDS

GET_LOCATIONS = """
query getLocations {
  locations(first: 10, includeLegacy: true, includeInactive: false) {
    nodes {
      id
      name
      isActive
    }
  }
}
"""

# Uses delta (difference), not absolute quantities
INVENTORY_ADJUST_QUANTITIES = """
mutation inventoryAdjustQuantities($input: InventoryAdjustQuantitiesInput!) {
  inventoryAdjustQuantities(input: $input) {
    inventoryAdjustmentGroup {
      createdAt
      reason
      changes {
        name
        delta
        quantityAfterChange
      }
    }
    userErrors {
      field
      message
    }
  }
}
"""

PRODUCT_VARIANTS_BULK_UPDATE = """
mutation productVariantsBulkUpdate($productId: ID!, $variants: [ProductVariantsBulkInput!]!) {
  productVariantsBulkUpdate(productId: $productId, variants: $variants) {
    product {
      id
    }
    productVariants {
      id
      price
    }
    userErrors {
      field
      message
    }
  }
}
"""

INVENTORY_ITEM_UPDATE = """
mutation inventoryItemUpdate($id: ID!, $input: InventoryItemInput!) {
  inventoryItemUpdate(id: $id, input: $input) {
    inventoryItem {
      id
      unitCost {
        amount
      }
    }
    userErrors {
      field
      message
    }
  }
}
"""
