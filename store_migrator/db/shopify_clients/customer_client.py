"""
Shopify GraphQL client for customer operations.
"""

import logging
from typing import Any, AsyncIterator, Dict, List, Optional

from store_migrator.db.queries import (
    CUSTOMER_CREATE_MUTATION,
    CUSTOMER_EMAIL_MARKETING_CONSENT_UPDATE_MUTATION,
    CUSTOMER_METAFIELDS_QUERY,
    CUSTOMER_SEARCH_QUERY,
    CUSTOMER_SMS_MARKETING_CONSENT_UPDATE_MUTATION,
    CUSTOMER_UPDATE_MUTATION,
    CUSTOMERS_WITH_COMPANY_QUERY,
    SEGMENT_SEARCH_QUERY,
)
from store_migrator.utils.error_handler import ShopifyAPIException

from .base_client import BaseShopifyGraphQLClient

logger = logging.getLogger(__name__)


class ShopifyCustomerClient(BaseShopifyGraphQLClient):
    """
    Specialized client for Shopify customer operations.
    """

    def iter_customers(self, page_size: int = 250) -> AsyncIterator[Dict[str, Any]]:
        """Iterate over customers with their company contact profiles."""
        return self._paginate(CUSTOMERS_WITH_COMPANY_QUERY, "customers", page_size=page_size, label="customers")

    async def find_customer(self, search: str) -> Optional[Dict[str, Any]]:
        """
        Find the first customer matching a search query.

        Args:
            search: Shopify search syntax (e.g. 'email:"a@b.com"', "phone:+34...")

        Returns:
            Customer dict or None if not found
        """
        try:
            result = await self._execute_query(CUSTOMER_SEARCH_QUERY, {"query": search}, "customerSearch")
            nodes = (result.get("customers") or {}).get("nodes") or []
            return nodes[0] if nodes else None

        except Exception as e:
            logger.error(f"Error searching customer '{search}': {e}")
            raise ShopifyAPIException(f"Failed to search customer: {str(e)}") from e

    async def find_customer_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        """Find a customer by e-mail address."""
        return await self.find_customer(f'email:"{email}"')

    async def create_customer(self, customer_input: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a customer.

        Returns:
            Dict: Created customer

        Raises:
            ShopifyAPIException: On userErrors or request failure
        """
        result = await self._execute_query(CUSTOMER_CREATE_MUTATION, {"input": customer_input}, "customerCreate")
        payload = result.get("customerCreate")
        self._handle_user_errors(payload, "customerCreate")
        customer = payload.get("customer") or {}
        logger.info(f"✅ Created customer {customer.get('email') or customer.get('phone')} ({customer.get('id')})")
        return customer

    async def update_customer(self, customer_input: Dict[str, Any]) -> Dict[str, Any]:
        """Update a customer (CustomerInput with id)."""
        result = await self._execute_query(CUSTOMER_UPDATE_MUTATION, {"input": customer_input}, "customerUpdate")
        payload = result.get("customerUpdate")
        self._handle_user_errors(payload, "customerUpdate")
        return payload.get("customer") or {}

    async def update_email_marketing_consent(self, customer_id: str, consent: Dict[str, Any]) -> None:
        """Set the e-mail marketing consent of a customer."""
        variables = {"input": {"customerId": customer_id, "emailMarketingConsent": consent}}
        result = await self._execute_query(
            CUSTOMER_EMAIL_MARKETING_CONSENT_UPDATE_MUTATION, variables, "customerEmailMarketingConsentUpdate"
        )
        self._handle_user_errors(
            result.get("customerEmailMarketingConsentUpdate"), "customerEmailMarketingConsentUpdate"
        )

    async def update_sms_marketing_consent(self, customer_id: str, consent: Dict[str, Any]) -> None:
        """Set the SMS marketing consent of a customer."""
        variables = {"input": {"customerId": customer_id, "smsMarketingConsent": consent}}
        result = await self._execute_query(
            CUSTOMER_SMS_MARKETING_CONSENT_UPDATE_MUTATION, variables, "customerSmsMarketingConsentUpdate"
        )
        self._handle_user_errors(result.get("customerSmsMarketingConsentUpdate"), "customerSmsMarketingConsentUpdate")

    async def get_customer_metafields(self, customer_id: str) -> List[Dict[str, Any]]:
        """Metafields currently set on a customer."""
        result = await self._execute_query(CUSTOMER_METAFIELDS_QUERY, {"id": customer_id}, "customerMetafields")
        return ((result.get("customer") or {}).get("metafields") or {}).get("nodes") or []

    async def find_segment_id(self, name: str) -> Optional[str]:
        """Find a customer segment id by name."""
        result = await self._execute_query(SEGMENT_SEARCH_QUERY, {"query": f"name:{name}"}, "segmentSearch")
        nodes = (result.get("segments") or {}).get("nodes") or []
        return nodes[0].get("id") if nodes else None
