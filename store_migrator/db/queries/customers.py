"""
Customer-related GraphQL queries and mutations.
"""

# Target customers with their B2B company (email -> customer map for orders)
CUSTOMERS_WITH_COMPANY_QUERY = """
query GetCustomersWithCompany($first: Int!, $after: String) {
  customers(first: $first, after: $after) {
    edges {
      cursor
      node {
        id
        email
        firstName
        lastName
        companyContactProfiles {
          company {
            id
            name
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

# Search by "email:..." / "phone:..."
CUSTOMER_SEARCH_QUERY = """
query CustomerSearch($query: String!) {
  customers(first: 1, query: $query) {
    nodes {
      id
      email
      phone
    }
  }
}
"""

CUSTOMER_CREATE_MUTATION = """
mutation CustomerCreate($input: CustomerInput!) {
  customerCreate(input: $input) {
    customer {
      id
      email
      phone
      taxExempt
      firstName
      lastName
    }
    userErrors {
      field
      message
    }
  }
}
"""

CUSTOMER_UPDATE_MUTATION = """
mutation CustomerUpdate($input: CustomerInput!) {
  customerUpdate(input: $input) {
    customer {
      id
      email
      tags
    }
    userErrors {
      field
      message
    }
  }
}
"""

CUSTOMER_EMAIL_MARKETING_CONSENT_UPDATE_MUTATION = """
mutation CustomerEmailMarketingConsentUpdate($input: CustomerEmailMarketingConsentUpdateInput!) {
  customerEmailMarketingConsentUpdate(input: $input) {
    customer {
      id
    }
    userErrors {
      field
      message
    }
  }
}
"""

CUSTOMER_SMS_MARKETING_CONSENT_UPDATE_MUTATION = """
mutation CustomerSmsMarketingConsentUpdate($input: CustomerSmsMarketingConsentUpdateInput!) {
  customerSmsMarketingConsentUpdate(input: $input) {
    customer {
      id
    }
    userErrors {
      field
      message
    }
  }
}
"""

CUSTOMER_METAFIELDS_QUERY = """
query CustomerMetafields($id: ID!) {
  customer(id: $id) {
    id
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
"""

SEGMENT_SEARCH_QUERY = """
query SegmentSearch($query: String!) {
  segments(first: 1, query: $query) {
    nodes {
      id
      name
    }
  }
}
"""

__all__ = [
    "CUSTOMERS_WITH_COMPANY_QUERY",
    "CUSTOMER_SEARCH_QUERY",
    "CUSTOMER_CREATE_MUTATION",
    "CUSTOMER_UPDATE_MUTATION",
    "CUSTOMER_EMAIL_MARKETING_CONSENT_UPDATE_MUTATION",
    "CUSTOMER_SMS_MARKETING_CONSENT_UPDATE_MUTATION",
    "CUSTOMER_METAFIELDS_QUERY",
    "SEGMENT_SEARCH_QUERY",
]
