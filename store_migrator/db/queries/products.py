"""
Product-related GraphQL queries and mutations.

Products are written with productSet, which creates or updates a product
together with its options, variants, media and metafields in one call.
"""

# Source products for store-to-store sync
SOURCE_PRODUCTS_QUERY = """
query GetSourceProducts($first: Int!, $after: String, $query: String) {
  products(first: $first, after: $after, query: $query) {
    edges {
      cursor
      node {
        id
        title
        handle
        descriptionHtml
        isGiftCard
        productType
        vendor
        status
        tags
        templateSuffix
        seo {
          title
          description
        }
        metafields(first: 250) {
          nodes {
            namespace
            key
            type
            value
          }
        }
        options(first: 10) {
          name
          position
          values
        }
        media(first: 50) {
          nodes {
            alt
            mediaContentType
            ... on MediaImage {
              originalSource {
                url
              }
            }
          }
        }
        variants(first: 250) {
          nodes {
            id
            sku
            title
            barcode
            position
            price
            compareAtPrice
            taxable
            selectedOptions {
              name
              value
            }
            metafields(first: 100) {
              nodes {
                namespace
                key
                type
                value
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

# Target product with variants (order line item resolution)
PRODUCT_BY_HANDLE_QUERY = """
query GetProductByHandle($handle: String!) {
  productByHandle(handle: $handle) {
    id
    handle
    title
    variants(first: 250) {
      nodes {
        id
        sku
        title
        displayName
      }
    }
  }
}
"""

PRODUCT_SEARCH_QUERY = """
query ProductSearch($query: String!) {
  products(first: 1, query: $query) {
    nodes {
      id
      handle
      title
    }
  }
}
"""

VARIANT_SEARCH_QUERY = """
query VariantSearch($query: String!) {
  productVariants(first: 1, query: $query) {
    nodes {
      id
      sku
      title
    }
  }
}
"""

PRODUCT_SET_MUTATION = """
mutation ProductSet($identifier: ProductSetIdentifiers, $input: ProductSetInput!, $synchronous: Boolean!) {
  productSet(identifier: $identifier, input: $input, synchronous: $synchronous) {
    product {
      id
      title
      handle
      status
    }
    productSetOperation {
      id
      status
    }
    userErrors {
      field
      message
      code
    }
  }
}
"""

__all__ = [
    "SOURCE_PRODUCTS_QUERY",
    "PRODUCT_BY_HANDLE_QUERY",
    "PRODUCT_SEARCH_QUERY",
    "VARIANT_SEARCH_QUERY",
    "PRODUCT_SET_MUTATION",
]
