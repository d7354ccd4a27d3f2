"""
Core GraphQL queries used across multiple domains.

Shop information, locations and sales channel publications are needed by
several migrations (inventory quantities, publishing products/collections).
"""

# Shop information query (connection test)
SHOP_INFO_QUERY = """
query GetShopInfo {
  shop {
    id
    name
    myshopifyDomain
    currencyCode
  }
}
"""

# Locations query for inventory mapping
LOCATIONS_QUERY = """
query GetLocations($first: Int!, $after: String) {
  locations(first: $first, after: $after) {
    edges {
      node {
        id
        name
        isActive
        fulfillsOnlineOrders
      }
    }
    pageInfo {
      hasNextPage
      endCursor
    }
  }
}
"""

# Sales channel publications
PUBLICATIONS_QUERY = """
query GetPublications($first: Int!, $after: String) {
  publications(first: $first, after: $after) {
    edges {
      node {
        id
        name
        catalog {
          title
        }
        app {
          handle
          title
        }
      }
    }
    pageInfo {
      hasNextPage
      endCursor
    }
  }
}
"""

PUBLISHABLE_PUBLISH_MUTATION = """
mutation PublishablePublish($id: ID!, $input: [PublicationInput!]!) {
  publishablePublish(id: $id, input: $input) {
    publishable {
      ... on Product {
        id
      }
      ... on Collection {
        id
      }
    }
    userErrors {
      field
      message
    }
  }
}
"""

__all__ = [
    "SHOP_INFO_QUERY",
    "LOCATIONS_QUERY",
    "PUBLICATIONS_QUERY",
    "PUBLISHABLE_PUBLISH_MUTATION",
]
