"""
Order-related GraphQL queries and mutations.

Covers reading source orders (with fulfillments and refunds), draft order
creation/completion on the target store, fulfillment orders (holds and
fulfillments), refunds and order deletion.
"""

MONEY_BAG_FRAGMENT = """
fragment MoneyBagFields on MoneyBag {
  shopMoney {
    amount
    currencyCode
  }
  presentmentMoney {
    amount
    currencyCode
  }
}
"""

# Source orders with everything needed to rebuild them on the target store
SOURCE_ORDERS_QUERY = (
    """
query GetSourceOrders($first: Int!, $after: String, $query: String) {
  orders(first: $first, after: $after, query: $query, sortKey: CREATED_AT) {
    edges {
      cursor
      node {
        id
        name
        email
        createdAt
        displayFinancialStatus
        displayFulfillmentStatus
        fullyPaid
        note
        tags
        currencyCode
        totalPriceSet {
          ...MoneyBagFields
        }
        customAttributes {
          key
          value
        }
        customer {
          id
          email
          firstName
          lastName
          phone
        }
        billingAddress {
          address1
          address2
          city
          province
          country
          zip
          firstName
          lastName
          company
          phone
        }
        shippingAddress {
          address1
          address2
          city
          province
          country
          zip
          firstName
          lastName
          company
          phone
        }
        lineItems(first: 250) {
          nodes {
            id
            title
            name
            quantity
            currentQuantity
            sku
            customAttributes {
              key
              value
            }
            variant {
              id
              sku
              title
              displayName
              product {
                id
                handle
              }
            }
            originalUnitPriceSet {
              ...MoneyBagFields
            }
          }
        }
        shippingLines(first: 10) {
          nodes {
            title
            originalPriceSet {
              ...MoneyBagFields
            }
          }
        }
        discountApplications(first: 250) {
          nodes {
            ... on DiscountCodeApplication {
              code
              value {
                ... on MoneyV2 {
                  amount
                  currencyCode
                }
                ... on PricingPercentageValue {
                  percentage
                }
              }
            }
          }
        }
        fulfillments(first: 250) {
          id
          status
          displayStatus
          fulfillmentLineItems(first: 250) {
            nodes {
              id
              quantity
              lineItem {
                id
                sku
                title
                variant {
                  id
                  sku
                  title
                }
              }
            }
          }
        }
        refunds(first: 50) {
          id
          note
          createdAt
          refundLineItems(first: 250) {
            nodes {
              quantity
              lineItem {
                id
                sku
                title
                variant {
                  id
                  sku
                  title
                }
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
    + MONEY_BAG_FRAGMENT
)

# Lightweight order listing (order deletion)
ORDER_IDS_QUERY = """
query ListOrderIds($first: Int!, $after: String) {
  orders(first: $first, after: $after, sortKey: CREATED_AT) {
    edges {
      cursor
      node {
        id
        name
      }
    }
    pageInfo {
      hasNextPage
      endCursor
    }
  }
}
"""

CREATE_DRAFT_ORDER_MUTATION = """
mutation DraftOrderCreate($input: DraftOrderInput!) {
  draftOrderCreate(input: $input) {
    draftOrder {
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

COMPLETE_DRAFT_ORDER_MUTATION = """
mutation DraftOrderComplete($id: ID!, $paymentPending: Boolean) {
  draftOrderComplete(id: $id, paymentPending: $paymentPending) {
    draftOrder {
      id
      order {
        id
        name
      }
    }
    userErrors {
      field
      message
    }
  }
}
"""

DELETE_DRAFT_ORDER_MUTATION = """
mutation DraftOrderDelete($input: DraftOrderDeleteInput!) {
  draftOrderDelete(input: $input) {
    deletedId
    userErrors {
      field
      message
    }
  }
}
"""

FULFILLMENT_ORDERS_QUERY = """
query GetFulfillmentOrders($orderId: ID!) {
  order(id: $orderId) {
    id
    name
    fulfillmentOrders(first: 10) {
      edges {
        node {
          id
          status
          fulfillmentHolds {
            reason
            reasonNotes
          }
          lineItems(first: 100) {
            edges {
              node {
                id
                remainingQuantity
                lineItem {
                  id
                  sku
                  title
                  variantTitle
                  variant {
                    id
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

CREATE_FULFILLMENT_MUTATION = """
mutation FulfillmentCreateV2($fulfillment: FulfillmentV2Input!, $message: String) {
  fulfillmentCreateV2(fulfillment: $fulfillment, message: $message) {
    fulfillment {
      id
      status
      displayStatus
    }
    userErrors {
      field
      message
    }
  }
}
"""

FULFILLMENT_ORDER_HOLD_MUTATION = """
mutation FulfillmentOrderHold($fulfillmentHold: FulfillmentOrderHoldInput!, $id: ID!) {
  fulfillmentOrderHold(fulfillmentHold: $fulfillmentHold, id: $id) {
    fulfillmentOrder {
      id
      status
    }
    userErrors {
      field
      message
    }
  }
}
"""

# Target order line items with refundable quantities
ORDER_LINE_ITEMS_QUERY = """
query GetOrderLineItems($orderId: ID!) {
  order(id: $orderId) {
    id
    name
    lineItems(first: 250) {
      nodes {
        id
        sku
        title
        quantity
        refundableQuantity
        variant {
          id
          sku
          title
        }
      }
    }
  }
}
"""

REFUND_CREATE_MUTATION = """
mutation RefundCreate($input: RefundInput!) {
  refundCreate(input: $input) {
    refund {
      id
    }
    userErrors {
      field
      message
    }
  }
}
"""

DELETE_ORDER_MUTATION = """
mutation OrderDelete($orderId: ID!) {
  orderDelete(orderId: $orderId) {
    deletedId
    userErrors {
      field
      message
      code
    }
  }
}
"""

__all__ = [
    "SOURCE_ORDERS_QUERY",
    "ORDER_IDS_QUERY",
    "CREATE_DRAFT_ORDER_MUTATION",
    "COMPLETE_DRAFT_ORDER_MUTATION",
    "DELETE_DRAFT_ORDER_MUTATION",
    "FULFILLMENT_ORDERS_QUERY",
    "CREATE_FULFILLMENT_MUTATION",
    "FULFILLMENT_ORDER_HOLD_MUTATION",
    "ORDER_LINE_ITEMS_QUERY",
    "REFUND_CREATE_MUTATION",
    "DELETE_ORDER_MUTATION",
]
