"""
B2B company GraphQL queries and mutations.

Companies are looked up by externalId, which is set to the sheet company ID
on creation so repeated imports resolve the same company.
"""

_COMPANY_FIELDS = """
    id
    name
    externalId
    mainContact {
      id
      customer {
        id
        email
      }
    }
    contactRoles(first: 50) {
      edges {
        node {
          id
          name
        }
      }
    }
    locations(first: 250) {
      edges {
        node {
          id
          name
          externalId
        }
      }
    }
    contacts(first: 250) {
      edges {
        node {
          id
          isMainContact
          customer {
            id
            email
          }
        }
      }
    }
"""

COMPANY_BY_EXTERNAL_ID_QUERY = (
    """
query CompaniesByExternalId($query: String!) {
  companies(first: 1, query: $query) {
    edges {
      node {"""
    + _COMPANY_FIELDS
    + """      }
    }
  }
}
"""
)

COMPANY_BY_ID_QUERY = (
    """
query CompanyById($id: ID!) {
  company(id: $id) {"""
    + _COMPANY_FIELDS
    + """  }
}
"""
)

COMPANY_CREATE_MUTATION = """
mutation CompanyCreate($input: CompanyCreateInput!) {
  companyCreate(input: $input) {
    company {
      id
      name
      externalId
      contactRoles(first: 50) {
        edges {
          node {
            id
            name
          }
        }
      }
      locations(first: 50) {
        edges {
          node {
            id
            name
            externalId
          }
        }
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

COMPANY_LOCATION_CREATE_MUTATION = """
mutation CompanyLocationCreate($companyId: ID!, $input: CompanyLocationInput!) {
  companyLocationCreate(companyId: $companyId, input: $input) {
    companyLocation {
      id
      name
      externalId
    }
    userErrors {
      field
      message
      code
    }
  }
}
"""

COMPANY_ASSIGN_CUSTOMER_AS_CONTACT_MUTATION = """
mutation CompanyAssignCustomerAsContact($companyId: ID!, $customerId: ID!) {
  companyAssignCustomerAsContact(companyId: $companyId, customerId: $customerId) {
    companyContact {
      id
      isMainContact
      customer {
        id
        email
      }
    }
    userErrors {
      field
      message
    }
  }
}
"""

COMPANY_ASSIGN_MAIN_CONTACT_MUTATION = """
mutation CompanyAssignMainContact($companyId: ID!, $companyContactId: ID!) {
  companyAssignMainContact(companyId: $companyId, companyContactId: $companyContactId) {
    company {
      id
      name
    }
    userErrors {
      field
      message
    }
  }
}
"""

COMPANY_LOCATION_ASSIGN_ROLES_MUTATION = """
mutation CompanyLocationAssignRoles($companyLocationId: ID!, $rolesToAssign: [CompanyLocationRoleAssign!]!) {
  companyLocationAssignRoles(companyLocationId: $companyLocationId, rolesToAssign: $rolesToAssign) {
    roleAssignments {
      id
    }
    userErrors {
      field
      message
    }
  }
}
"""

PAYMENT_TERMS_TEMPLATES_QUERY = """
query PaymentTermsTemplates {
  paymentTermsTemplates {
    id
    name
    paymentTermsType
    dueInDays
    translatedName
  }
}
"""

_ADDRESS_FIELDS = """
          firstName
          lastName
          address1
          address2
          city
          zip
          countryCode
          zoneCode
          phone
          recipient
"""

# Full company from the source store (store-to-store sync)
SOURCE_COMPANY_QUERY = (
    """
query SourceCompany($id: ID!) {
  company(id: $id) {
    id
    name
    externalId
    note
    customerSince
    metafields(first: 250) {
      nodes {
        namespace
        key
        type
        value
      }
      pageInfo {
        hasNextPage
      }
    }
    contactRoles(first: 50) {
      edges {
        node {
          id
          name
        }
      }
    }
    locations(first: 50) {
      edges {
        node {
          id
          name
          externalId
          note
          phone
          locale
          taxSettings {
            taxExempt
            taxExemptions
            taxRegistrationId
          }
          buyerExperienceConfiguration {
            checkoutToDraft
            editableShippingAddress
            deposit {
              ... on DepositPercentage {
                __typename
                percentage
              }
            }
            paymentTermsTemplate {
              id
              name
            }
          }
          shippingAddress {"""
    + _ADDRESS_FIELDS
    + """          }
          billingAddress {"""
    + _ADDRESS_FIELDS
    + """          }
        }
      }
    }
    contacts(first: 100) {
      edges {
        node {
          id
          isMainContact
          customer {
            id
            email
            phone
            firstName
            lastName
            note
            tags
            defaultAddress {
              address1
              address2
              city
              provinceCode
              countryCodeV2
              zip
              phone
              firstName
              lastName
              company
            }
            metafields(first: 50) {
              nodes {
                namespace
                key
                type
                value
              }
            }
            emailMarketingConsent {
              marketingState
              marketingOptInLevel
              consentUpdatedAt
            }
            smsMarketingConsent {
              marketingState
              marketingOptInLevel
              consentUpdatedAt
            }
            companyContactProfiles {
              company {
                id
              }
              roleAssignments(first: 50) {
                nodes {
                  companyLocation {
                    id
                    name
                  }
                  role {
                    id
                    name
                  }
                }
              }
            }
          }
        }
      }
    }
  }
}
"""
)

# B2B orders of a company (tier calculation)
COMPANY_ORDERS_QUERY = """
query CompanyOrders($id: ID!, $first: Int!, $after: String) {
  company(id: $id) {
    orders(first: $first, after: $after) {
      nodes {
        id
        name
        createdAt
        displayFulfillmentStatus
        cancelledAt
        closedAt
        tags
      }
      pageInfo {
        hasNextPage
        endCursor
      }
    }
  }
}
"""

COMPANY_METAFIELDS_QUERY = """
query CompanyMetafields($id: ID!) {
  company(id: $id) {
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

COMPANY_UPDATE_MUTATION = """
mutation CompanyUpdate($companyId: ID!, $input: CompanyInput!) {
  companyUpdate(companyId: $companyId, input: $input) {
    company {
      id
      name
      externalId
    }
    userErrors {
      field
      message
    }
  }
}
"""

COMPANY_LOCATION_UPDATE_MUTATION = """
mutation CompanyLocationUpdate($companyLocationId: ID!, $input: CompanyLocationUpdateInput!) {
  companyLocationUpdate(companyLocationId: $companyLocationId, input: $input) {
    companyLocation {
      id
      name
      externalId
    }
    userErrors {
      field
      message
    }
  }
}
"""

COMPANY_LOCATION_ASSIGN_ADDRESS_MUTATION = """
mutation CompanyLocationAssignAddress(
  $locationId: ID!
  $address: CompanyAddressInput!
  $addressTypes: [CompanyAddressType!]!
) {
  companyLocationAssignAddress(locationId: $locationId, address: $address, addressTypes: $addressTypes) {
    addresses {
      id
    }
    userErrors {
      field
      message
    }
  }
}
"""

COMPANY_LOCATION_TAX_SETTINGS_QUERY = """
query CompanyLocationTaxSettings($id: ID!) {
  companyLocation(id: $id) {
    id
    taxSettings {
      taxExempt
      taxExemptions
      taxRegistrationId
    }
  }
}
"""

COMPANY_LOCATION_TAX_SETTINGS_UPDATE_MUTATION = """
mutation CompanyLocationTaxSettingsUpdate(
  $companyLocationId: ID!
  $taxRegistrationId: String
  $taxExempt: Boolean
  $exemptionsToAssign: [TaxExemption!]
  $exemptionsToRemove: [TaxExemption!]
) {
  companyLocationTaxSettingsUpdate(
    companyLocationId: $companyLocationId
    taxRegistrationId: $taxRegistrationId
    taxExempt: $taxExempt
    exemptionsToAssign: $exemptionsToAssign
    exemptionsToRemove: $exemptionsToRemove
  ) {
    companyLocation {
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
    "COMPANY_BY_EXTERNAL_ID_QUERY",
    "COMPANY_BY_ID_QUERY",
    "COMPANY_CREATE_MUTATION",
    "COMPANY_LOCATION_CREATE_MUTATION",
    "COMPANY_ASSIGN_CUSTOMER_AS_CONTACT_MUTATION",
    "COMPANY_ASSIGN_MAIN_CONTACT_MUTATION",
    "COMPANY_LOCATION_ASSIGN_ROLES_MUTATION",
    "PAYMENT_TERMS_TEMPLATES_QUERY",
    "SOURCE_COMPANY_QUERY",
    "COMPANY_ORDERS_QUERY",
    "COMPANY_METAFIELDS_QUERY",
    "COMPANY_UPDATE_MUTATION",
    "COMPANY_LOCATION_UPDATE_MUTATION",
    "COMPANY_LOCATION_ASSIGN_ADDRESS_MUTATION",
    "COMPANY_LOCATION_TAX_SETTINGS_QUERY",
    "COMPANY_LOCATION_TAX_SETTINGS_UPDATE_MUTATION",
]
