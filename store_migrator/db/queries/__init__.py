"""
GraphQL queries and mutations for the Shopify Admin API, organized by domain.

Structure:
- core: shop, locations, publications
- orders: source orders, draft orders, fulfillments, holds, refunds
- customers / companies: customer and B2B company operations
- discounts: code and automatic discounts
- products / collections: catalog operations
- content: blogs, articles, comments, pages
- metafields: definitions and metafieldsSet
- files: staged uploads and file creation
"""

from .collections import *  # noqa: F403
from .companies import *  # noqa: F403
from .content import *  # noqa: F403
from .core import *  # noqa: F403
from .customers import *  # noqa: F403
from .discounts import *  # noqa: F403
from .files import *  # noqa: F403
from .metafields import *  # noqa: F403
from .orders import *  # noqa: F403
from .products import *  # noqa: F403

__all__ = [
    # Core
    "SHOP_INFO_QUERY",  # noqa: F405
    "LOCATIONS_QUERY",  # noqa: F405
    "PUBLICATIONS_QUERY",  # noqa: F405
    "PUBLISHABLE_PUBLISH_MUTATION",  # noqa: F405
    # Orders
    "SOURCE_ORDERS_QUERY",  # noqa: F405
    "ORDER_IDS_QUERY",  # noqa: F405
    "CREATE_DRAFT_ORDER_MUTATION",  # noqa: F405
    "COMPLETE_DRAFT_ORDER_MUTATION",  # noqa: F405
    "DELETE_DRAFT_ORDER_MUTATION",  # noqa: F405
    "FULFILLMENT_ORDERS_QUERY",  # noqa: F405
    "CREATE_FULFILLMENT_MUTATION",  # noqa: F405
    "FULFILLMENT_ORDER_HOLD_MUTATION",  # noqa: F405
    "ORDER_LINE_ITEMS_QUERY",  # noqa: F405
    "REFUND_CREATE_MUTATION",  # noqa: F405
    "DELETE_ORDER_MUTATION",  # noqa: F405
    # Customers
    "CUSTOMERS_WITH_COMPANY_QUERY",  # noqa: F405
    "CUSTOMER_SEARCH_QUERY",  # noqa: F405
    "CUSTOMER_CREATE_MUTATION",  # noqa: F405
    "CUSTOMER_UPDATE_MUTATION",  # noqa: F405
    "CUSTOMER_EMAIL_MARKETING_CONSENT_UPDATE_MUTATION",  # noqa: F405
    "CUSTOMER_SMS_MARKETING_CONSENT_UPDATE_MUTATION",  # noqa: F405
    "CUSTOMER_METAFIELDS_QUERY",  # noqa: F405
    "SEGMENT_SEARCH_QUERY",  # noqa: F405
    # Companies
    "COMPANY_BY_EXTERNAL_ID_QUERY",  # noqa: F405
    "COMPANY_BY_ID_QUERY",  # noqa: F405
    "COMPANY_CREATE_MUTATION",  # noqa: F405
    "COMPANY_LOCATION_CREATE_MUTATION",  # noqa: F405
    "COMPANY_ASSIGN_CUSTOMER_AS_CONTACT_MUTATION",  # noqa: F405
    "COMPANY_ASSIGN_MAIN_CONTACT_MUTATION",  # noqa: F405
    "COMPANY_LOCATION_ASSIGN_ROLES_MUTATION",  # noqa: F405
    "PAYMENT_TERMS_TEMPLATES_QUERY",  # noqa: F405
    "SOURCE_COMPANY_QUERY",  # noqa: F405
    "COMPANY_ORDERS_QUERY",  # noqa: F405
    "COMPANY_METAFIELDS_QUERY",  # noqa: F405
    "COMPANY_UPDATE_MUTATION",  # noqa: F405
    "COMPANY_LOCATION_UPDATE_MUTATION",  # noqa: F405
    "COMPANY_LOCATION_ASSIGN_ADDRESS_MUTATION",  # noqa: F405
    "COMPANY_LOCATION_TAX_SETTINGS_QUERY",  # noqa: F405
    "COMPANY_LOCATION_TAX_SETTINGS_UPDATE_MUTATION",  # noqa: F405
    # Discounts
    "CODE_DISCOUNTS_QUERY",  # noqa: F405
    "CODE_DISCOUNT_BY_CODE_QUERY",  # noqa: F405
    "AUTOMATIC_DISCOUNTS_BY_TITLE_QUERY",  # noqa: F405
    "DISCOUNT_CODE_BASIC_CREATE_MUTATION",  # noqa: F405
    "DISCOUNT_CODE_BXGY_CREATE_MUTATION",  # noqa: F405
    "DISCOUNT_CODE_FREE_SHIPPING_CREATE_MUTATION",  # noqa: F405
    "DISCOUNT_AUTOMATIC_BASIC_CREATE_MUTATION",  # noqa: F405
    "DISCOUNT_AUTOMATIC_BXGY_CREATE_MUTATION",  # noqa: F405
    "DISCOUNT_AUTOMATIC_FREE_SHIPPING_CREATE_MUTATION",  # noqa: F405
    "DISCOUNT_CREATE_MUTATIONS",  # noqa: F405
    # Products
    "SOURCE_PRODUCTS_QUERY",  # noqa: F405
    "PRODUCT_BY_HANDLE_QUERY",  # noqa: F405
    "PRODUCT_SEARCH_QUERY",  # noqa: F405
    "VARIANT_SEARCH_QUERY",  # noqa: F405
    "PRODUCT_SET_MUTATION",  # noqa: F405
    # Collections
    "SOURCE_COLLECTIONS_QUERY",  # noqa: F405
    "COLLECTION_HANDLES_QUERY",  # noqa: F405
    "COLLECTION_BY_HANDLE_QUERY",  # noqa: F405
    "COLLECTION_SEARCH_QUERY",  # noqa: F405
    "CREATE_COLLECTION_MUTATION",  # noqa: F405
    "COLLECTION_ADD_PRODUCTS_MUTATION",  # noqa: F405
    # Content
    "BLOGS_QUERY",  # noqa: F405
    "BLOG_CREATE_MUTATION",  # noqa: F405
    "ARTICLE_SEARCH_QUERY",  # noqa: F405
    "ARTICLE_CREATE_MUTATION",  # noqa: F405
    "ARTICLE_UPDATE_MUTATION",  # noqa: F405
    "COMMENT_APPROVE_MUTATION",  # noqa: F405
    "COMMENT_SPAM_MUTATION",  # noqa: F405
    "PAGE_SEARCH_QUERY",  # noqa: F405
    "PAGE_CREATE_MUTATION",  # noqa: F405
    "PAGE_UPDATE_MUTATION",  # noqa: F405
    # Metafields
    "METAFIELD_DEFINITIONS_QUERY",  # noqa: F405
    "METAFIELD_DEFINITION_LOOKUP_QUERY",  # noqa: F405
    "METAFIELD_DEFINITION_CREATE_MUTATION",  # noqa: F405
    "METAFIELD_DEFINITION_DELETE_MUTATION",  # noqa: F405
    "METAFIELDS_SET_MUTATION",  # noqa: F405
    # Files
    "STAGED_UPLOADS_CREATE_MUTATION",  # noqa: F405
    "FILE_CREATE_MUTATION",  # noqa: F405
    "GENERIC_FILE_STATUS_QUERY",  # noqa: F405
]
