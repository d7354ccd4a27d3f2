"""
Collection-related GraphQL queries and mutations.
"""

# Source collections with rules, metafields and publications
SOURCE_COLLECTIONS_QUERY = """
query GetSourceCollections($first: Int!, $after: String) {
  collections(first: $first, after: $after) {
    edges {
      cursor
      node {
        id
        title
        handle
        descriptionHtml
        sortOrder
        templateSuffix
        seo {
          title
          description
        }
        image {
          url
          altText
        }
        metafields(first: 250) {
          nodes {
            namespace
            key
            type
            value
          }
        }
        ruleSet {
          appliedDisjunctively
          rules {
            column
            relation
            condition
          }
        }
        resourcePublicationsV2(first: 250) {
          nodes {
            publication {
              id
              app {
                handle
              }
            }
          }
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

# handle -> id map of target collections
COLLECTION_HANDLES_QUERY = """
query ListCollectionHandles($first: Int!, $after: String) {
  collections(first: $first, after: $after) {
    edges {
      cursor
      node {
        id
        handle
      }
    }
    pageInfo {
      hasNextPage
      endCursor
    }
  }
}
"""

COLLECTION_BY_HANDLE_QUERY = """
query CollectionByHandle($handle: String!) {
  collectionByHandle(handle: $handle) {
    id
    handle
    title
  }
}
"""

COLLECTION_SEARCH_QUERY = """
query CollectionSearch($query: String!) {
  collections(first: 1, query: $query) {
    nodes {
      id
      handle
      title
    }
  }
}
"""

CREATE_COLLECTION_MUTATION = """
mutation CollectionCreate($input: CollectionInput!) {
  collectionCreate(input: $input) {
    collection {
      id
      title
      handle
    }
    userErrors {
      field
      message
    }
  }
}
"""

COLLECTION_ADD_PRODUCTS_MUTATION = """
mutation CollectionAddProducts($id: ID!, $productIds: [ID!]!) {
  collectionAddProducts(id: $id, productIds: $productIds) {
    collection {
      id
    }
    userErrors {
      field
      message
    }
  }
}
"""

__all__ = [
    "SOURCE_COLLECTIONS_QUERY",
    "COLLECTION_HANDLES_QUERY",
    "COLLECTION_BY_HANDLE_QUERY",
    "COLLECTION_SEARCH_QUERY",
    "CREATE_COLLECTION_MUTATION",
    "COLLECTION_ADD_PRODUCTS_MUTATION",
]
