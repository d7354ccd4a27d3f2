"""
Discount-related GraphQL queries and mutations.

Basic, Buy X Get Y and free shipping discounts can be created either as
code discounts or automatic discounts.
"""

CODE_DISCOUNTS_QUERY = """
query GetCodeDiscounts($first: Int!, $after: String) {
  codeDiscountNodes(first: $first, after: $after) {
    edges {
      cursor
      node {
        id
        codeDiscount {
          ... on DiscountCodeBasic {
            title
            codes(first: 1) {
              nodes {
                code
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

CODE_DISCOUNT_BY_CODE_QUERY = """
query CodeDiscountNodeByCode($code: String!) {
  codeDiscountNodeByCode(code: $code) {
    id
  }
}
"""

AUTOMATIC_DISCOUNTS_BY_TITLE_QUERY = """
query AutomaticDiscountNodesByTitle($query: String!) {
  automaticDiscountNodes(first: 5, query: $query) {
    nodes {
      id
      automaticDiscount {
        ... on DiscountAutomaticApp {
          title
        }
        ... on DiscountAutomaticBasic {
          title
        }
        ... on DiscountAutomaticBxgy {
          title
        }
        ... on DiscountAutomaticFreeShipping {
          title
        }
      }
    }
  }
}
"""

DISCOUNT_CODE_BASIC_CREATE_MUTATION = """
mutation DiscountCodeBasicCreate($basicCodeDiscount: DiscountCodeBasicInput!) {
  discountCodeBasicCreate(basicCodeDiscount: $basicCodeDiscount) {
    codeDiscountNode {
      id
    }
    userErrors {
      field
      message
      code
    }
  }
}
"""

DISCOUNT_CODE_BXGY_CREATE_MUTATION = """
mutation DiscountCodeBxgyCreate($bxgyCodeDiscount: DiscountCodeBxgyInput!) {
  discountCodeBxgyCreate(bxgyCodeDiscount: $bxgyCodeDiscount) {
    codeDiscountNode {
      id
    }
    userErrors {
      field
      message
      code
    }
  }
}
"""

DISCOUNT_CODE_FREE_SHIPPING_CREATE_MUTATION = """
mutation DiscountCodeFreeShippingCreate($freeShippingCodeDiscount: DiscountCodeFreeShippingInput!) {
  discountCodeFreeShippingCreate(freeShippingCodeDiscount: $freeShippingCodeDiscount) {
    codeDiscountNode {
      id
    }
    userErrors {
      field
      message
      code
    }
  }
}
"""

DISCOUNT_AUTOMATIC_BASIC_CREATE_MUTATION = """
mutation DiscountAutomaticBasicCreate($automaticBasicDiscount: DiscountAutomaticBasicInput!) {
  discountAutomaticBasicCreate(automaticBasicDiscount: $automaticBasicDiscount) {
    automaticDiscountNode {
      id
    }
    userErrors {
      field
      message
      code
    }
  }
}
"""

DISCOUNT_AUTOMATIC_BXGY_CREATE_MUTATION = """
mutation DiscountAutomaticBxgyCreate($automaticBxgyDiscount: DiscountAutomaticBxgyInput!) {
  discountAutomaticBxgyCreate(automaticBxgyDiscount: $automaticBxgyDiscount) {
    automaticDiscountNode {
      id
    }
    userErrors {
      field
      message
    }
  }
}
"""

DISCOUNT_AUTOMATIC_FREE_SHIPPING_CREATE_MUTATION = """
mutation DiscountAutomaticFreeShippingCreate($freeShippingAutomaticDiscount: DiscountAutomaticFreeShippingInput!) {
  discountAutomaticFreeShippingCreate(freeShippingAutomaticDiscount: $freeShippingAutomaticDiscount) {
    automaticDiscountNode {
      id
    }
    userErrors {
      field
      message
    }
  }
}
"""

# mutation name -> (document, variable name, payload node key)
DISCOUNT_CREATE_MUTATIONS = {
    "discountCodeBasicCreate": (DISCOUNT_CODE_BASIC_CREATE_MUTATION, "basicCodeDiscount", "codeDiscountNode"),
    "discountCodeBxgyCreate": (DISCOUNT_CODE_BXGY_CREATE_MUTATION, "bxgyCodeDiscount", "codeDiscountNode"),
    "discountCodeFreeShippingCreate": (
        DISCOUNT_CODE_FREE_SHIPPING_CREATE_MUTATION,
        "freeShippingCodeDiscount",
        "codeDiscountNode",
    ),
    "discountAutomaticBasicCreate": (
        DISCOUNT_AUTOMATIC_BASIC_CREATE_MUTATION,
        "automaticBasicDiscount",
        "automaticDiscountNode",
    ),
    "discountAutomaticBxgyCreate": (
        DISCOUNT_AUTOMATIC_BXGY_CREATE_MUTATION,
        "automaticBxgyDiscount",
        "automaticDiscountNode",
    ),
    "discountAutomaticFreeShippingCreate": (
        DISCOUNT_AUTOMATIC_FREE_SHIPPING_CREATE_MUTATION,
        "freeShippingAutomaticDiscount",
        "automaticDiscountNode",
    ),
}

__all__ = [
    "CODE_DISCOUNTS_QUERY",
    "CODE_DISCOUNT_BY_CODE_QUERY",
    "AUTOMATIC_DISCOUNTS_BY_TITLE_QUERY",
    "DISCOUNT_CODE_BASIC_CREATE_MUTATION",
    "DISCOUNT_CODE_BXGY_CREATE_MUTATION",
    "DISCOUNT_CODE_FREE_SHIPPING_CREATE_MUTATION",
    "DISCOUNT_AUTOMATIC_BASIC_CREATE_MUTATION",
    "DISCOUNT_AUTOMATIC_BXGY_CREATE_MUTATION",
    "DISCOUNT_AUTOMATIC_FREE_SHIPPING_CREATE_MUTATION",
    "DISCOUNT_CREATE_MUTATIONS",
]
