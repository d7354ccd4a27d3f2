"""
Shopify GraphQL client for B2B company operations.
"""

import logging
from typing import Any, AsyncIterator, Dict, List, Optional

from store_migrator.db.queries import (
    COMPANY_ASSIGN_CUSTOMER_AS_CONTACT_MUTATION,
    COMPANY_ASSIGN_MAIN_CONTACT_MUTATION,
    COMPANY_BY_EXTERNAL_ID_QUERY,
    COMPANY_BY_ID_QUERY,
    COMPANY_CREATE_MUTATION,
    COMPANY_LOCATION_ASSIGN_ADDRESS_MUTATION,
    COMPANY_LOCATION_ASSIGN_ROLES_MUTATION,
    COMPANY_LOCATION_CREATE_MUTATION,
    COMPANY_LOCATION_TAX_SETTINGS_QUERY,
    COMPANY_LOCATION_TAX_SETTINGS_UPDATE_MUTATION,
    COMPANY_LOCATION_UPDATE_MUTATION,
    COMPANY_METAFIELDS_QUERY,
    COMPANY_ORDERS_QUERY,
    COMPANY_UPDATE_MUTATION,
    PAYMENT_TERMS_TEMPLATES_QUERY,
    SOURCE_COMPANY_QUERY,
)
from store_migrator.utils.error_handler import ShopifyAPIException

from .base_client import BaseShopifyGraphQLClient

logger = logging.getLogger(__name__)


def _flatten_company(company: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Flatten the edges of contactRoles, locations and contacts into lists."""
    if not company:
        return None
    flat = dict(company)
    for field in ("contactRoles", "locations", "contacts"):
        connection = flat.get(field) or {}
        flat[field] = [edge.get("node") for edge in connection.get("edges") or [] if edge.get("node")]
    return flat


class ShopifyCompanyClient(BaseShopifyGraphQLClient):
    """
    Specialized client for companies, company locations and contacts.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._payment_terms: Optional[List[Dict[str, Any]]] = None

    async def find_company_by_external_id(self, external_id: str) -> Optional[Dict[str, Any]]:
        """
        Find a company by externalId.

        Returns:
            Company dict with contactRoles/locations/contacts as lists, or None
        """
        try:
            query = f'external_id:"{external_id}"'
            result = await self._execute_query(COMPANY_BY_EXTERNAL_ID_QUERY, {"query": query}, "companyByExternalId")
            edges = (result.get("companies") or {}).get("edges") or []
            return _flatten_company(edges[0].get("node")) if edges else None

        except Exception as e:
            logger.error(f"Error searching company by external id '{external_id}': {e}")
            raise ShopifyAPIException(f"Failed to search company: {str(e)}") from e

    async def get_company(self, company_id: str) -> Optional[Dict[str, Any]]:
        """Fetch a company by id (lists flattened)."""
        result = await self._execute_query(COMPANY_BY_ID_QUERY, {"id": company_id}, "companyById")
        return _flatten_company(result.get("company"))

    async def create_company(self, company_input: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a company with its first location (CompanyCreateInput).

        Returns:
            Dict: Created company (lists flattened)
        """
        result = await self._execute_query(COMPANY_CREATE_MUTATION, {"input": company_input}, "companyCreate")
        payload = result.get("companyCreate")
        self._handle_user_errors(payload, "companyCreate")
        return _flatten_company(payload.get("company")) or {}

    async def create_location(self, company_id: str, location_input: Dict[str, Any]) -> Dict[str, Any]:
        """Create a company location (CompanyLocationInput)."""
        variables = {"companyId": company_id, "input": location_input}
        result = await self._execute_query(COMPANY_LOCATION_CREATE_MUTATION, variables, "companyLocationCreate")
        payload = result.get("companyLocationCreate")
        self._handle_user_errors(payload, "companyLocationCreate")
        return payload.get("companyLocation") or {}

    async def assign_customer_as_contact(self, company_id: str, customer_id: str) -> Dict[str, Any]:
        """Link a customer to a company as a contact. Returns the company contact."""
        variables = {"companyId": company_id, "customerId": customer_id}
        result = await self._execute_query(
            COMPANY_ASSIGN_CUSTOMER_AS_CONTACT_MUTATION, variables, "companyAssignCustomerAsContact"
        )
        payload = result.get("companyAssignCustomerAsContact")
        self._handle_user_errors(payload, "companyAssignCustomerAsContact")
        return payload.get("companyContact") or {}

    async def assign_main_contact(self, company_id: str, company_contact_id: str) -> Dict[str, Any]:
        """Set the main contact of a company."""
        variables = {"companyId": company_id, "companyContactId": company_contact_id}
        result = await self._execute_query(COMPANY_ASSIGN_MAIN_CONTACT_MUTATION, variables, "companyAssignMainContact")
        payload = result.get("companyAssignMainContact")
        self._handle_user_errors(payload, "companyAssignMainContact")
        return payload.get("company") or {}

    async def assign_location_roles(
        self, company_location_id: str, roles_to_assign: List[Dict[str, str]]
    ) -> List[Dict[str, Any]]:
        """
        Assign contact roles at a company location.

        Args:
            company_location_id: Company location GID
            roles_to_assign: [{companyContactRoleId, companyContactId}]

        Returns:
            List of userErrors (callers decide which ones are tolerable)
        """
        variables = {"companyLocationId": company_location_id, "rolesToAssign": roles_to_assign}
        result = await self._execute_query(
            COMPANY_LOCATION_ASSIGN_ROLES_MUTATION, variables, "companyLocationAssignRoles"
        )
        payload = result.get("companyLocationAssignRoles") or {}
        return payload.get("userErrors") or []

    async def get_payment_terms_template_id(self, name: str) -> Optional[str]:
        """
        Resolve a payment terms template by name (case-insensitive, cached).

        Returns:
            Template GID or None if no template matches
        """
        if self._payment_terms is None:
            result = await self._execute_query(PAYMENT_TERMS_TEMPLATES_QUERY, label="paymentTermsTemplates")
            self._payment_terms = result.get("paymentTermsTemplates") or []

        wanted = str(name).strip().lower()
        for template in self._payment_terms:
            if str(template.get("name", "")).strip().lower() == wanted:
                return template.get("id")
            if str(template.get("translatedName", "")).strip().lower() == wanted:
                return template.get("id")
        logger.warning(f"⚠️ Payment terms template not found: {name}")
        return None

    async def get_source_company(self, company_id: str) -> Optional[Dict[str, Any]]:
        """
        Fetch a company with everything needed to copy it to another store.

        Returns:
            Company dict (lists flattened, metafields as a list) or None
        """
        result = await self._execute_query(SOURCE_COMPANY_QUERY, {"id": company_id}, "sourceCompany")
        company = _flatten_company(result.get("company"))
        if company is None:
            return None
        metafields = company.get("metafields") or {}
        if (metafields.get("pageInfo") or {}).get("hasNextPage"):
            logger.warning(f"⚠️ Company {company_id} has more than 250 metafields, only the first page is copied")
        company["metafields"] = metafields.get("nodes") or []
        return company

    def iter_company_orders(self, company_id: str, page_size: int = 100) -> AsyncIterator[Dict[str, Any]]:
        """Iterate over the B2B orders of a company."""
        return self._paginate(
            COMPANY_ORDERS_QUERY,
            "company.orders",
            variables={"id": company_id},
            page_size=page_size,
            label="companyOrders",
        )

    async def get_company_metafields(self, company_id: str) -> List[Dict[str, Any]]:
        """Metafields currently set on a company."""
        result = await self._execute_query(COMPANY_METAFIELDS_QUERY, {"id": company_id}, "companyMetafields")
        return ((result.get("company") or {}).get("metafields") or {}).get("nodes") or []

    async def update_company(self, company_id: str, company_input: Dict[str, Any]) -> Dict[str, Any]:
        """Update company fields (CompanyInput)."""
        variables = {"companyId": company_id, "input": company_input}
        result = await self._execute_query(COMPANY_UPDATE_MUTATION, variables, "companyUpdate")
        payload = result.get("companyUpdate")
        self._handle_user_errors(payload, "companyUpdate")
        return payload.get("company") or {}

    async def update_location(self, company_location_id: str, location_input: Dict[str, Any]) -> Dict[str, Any]:
        """Update a company location (CompanyLocationUpdateInput)."""
        variables = {"companyLocationId": company_location_id, "input": location_input}
        result = await self._execute_query(COMPANY_LOCATION_UPDATE_MUTATION, variables, "companyLocationUpdate")
        payload = result.get("companyLocationUpdate")
        self._handle_user_errors(payload, "companyLocationUpdate")
        return payload.get("companyLocation") or {}

    async def assign_location_address(
        self, company_location_id: str, address: Dict[str, Any], address_types: List[str]
    ) -> List[Dict[str, Any]]:
        """
        Set the shipping and/or billing address of a company location.

        Args:
            company_location_id: Company location GID
            address: CompanyAddressInput
            address_types: ["SHIPPING"], ["BILLING"] or both

        Returns:
            List of assigned addresses
        """
        variables = {"locationId": company_location_id, "address": address, "addressTypes": address_types}
        result = await self._execute_query(
            COMPANY_LOCATION_ASSIGN_ADDRESS_MUTATION, variables, "companyLocationAssignAddress"
        )
        payload = result.get("companyLocationAssignAddress")
        self._handle_user_errors(payload, "companyLocationAssignAddress")
        return payload.get("addresses") or []

    async def get_location_tax_settings(self, company_location_id: str) -> Dict[str, Any]:
        """Current tax settings of a company location."""
        result = await self._execute_query(
            COMPANY_LOCATION_TAX_SETTINGS_QUERY, {"id": company_location_id}, "companyLocationTaxSettings"
        )
        return (result.get("companyLocation") or {}).get("taxSettings") or {}

    async def update_location_tax_settings(self, company_location_id: str, **settings: Any) -> Dict[str, Any]:
        """
        Update tax settings of a company location.

        Args:
            company_location_id: Company location GID
            **settings: taxRegistrationId, taxExempt, exemptionsToAssign, exemptionsToRemove
        """
        variables = {"companyLocationId": company_location_id, **settings}
        result = await self._execute_query(
            COMPANY_LOCATION_TAX_SETTINGS_UPDATE_MUTATION, variables, "companyLocationTaxSettingsUpdate"
        )
        payload = result.get("companyLocationTaxSettingsUpdate")
        self._handle_user_errors(payload, "companyLocationTaxSettingsUpdate")
        return payload.get("companyLocation") or {}
