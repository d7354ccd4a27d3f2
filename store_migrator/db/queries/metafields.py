"""
Metafield definition and metafield value GraphQL operations.
"""

METAFIELD_DEFINITIONS_QUERY = """
query GetMetafieldDefinitions($ownerType: MetafieldOwnerType!, $first: Int!, $after: String) {
  metafieldDefinitions(first: $first, after: $after, ownerType: $ownerType) {
    edges {
      cursor
      node {
        id
        name
        namespace
        key
        type {
          name
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

# Used by smart collection rules on "Metafield: ns.key" columns
METAFIELD_DEFINITION_LOOKUP_QUERY = """
query MetafieldDefinitionLookup($ownerType: MetafieldOwnerType!, $namespace: String!, $key: String!) {
  metafieldDefinitions(first: 1, ownerType: $ownerType, namespace: $namespace, key: $key) {
    nodes {
      id
      namespace
      key
      useAsCollectionCondition
      type {
        name
      }
    }
  }
}
"""

METAFIELD_DEFINITION_CREATE_MUTATION = """
mutation MetafieldDefinitionCreate($definition: MetafieldDefinitionInput!) {
  metafieldDefinitionCreate(definition: $definition) {
    createdDefinition {
      id
      namespace
      key
      type {
        name
      }
    }
    userErrors {
      field
      message
      code
    }
  }
}
"""

METAFIELD_DEFINITION_DELETE_MUTATION = """
mutation DeleteMetafieldDefinition($id: ID!, $deleteAllAssociatedMetafields: Boolean!) {
  metafieldDefinitionDelete(id: $id, deleteAllAssociatedMetafields: $deleteAllAssociatedMetafields) {
    deletedDefinitionId
    userErrors {
      field
      message
      code
    }
  }
}
"""

METAFIELDS_SET_MUTATION = """
mutation MetafieldsSet($metafields: [MetafieldsSetInput!]!) {
  metafieldsSet(metafields: $metafields) {
    metafields {
      id
      namespace
      key
      value
      updatedAt
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
    "METAFIELD_DEFINITIONS_QUERY",
    "METAFIELD_DEFINITION_LOOKUP_QUERY",
    "METAFIELD_DEFINITION_CREATE_MUTATION",
    "METAFIELD_DEFINITION_DELETE_MUTATION",
    "METAFIELDS_SET_MUTATION",
]
