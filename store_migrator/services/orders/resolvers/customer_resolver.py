"""TargetCustomerResolver - clientes de la tienda destino por e-mail."""

import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class TargetCustomerResolver:
    """Resuelve el cliente (y su empresa B2B) de destino para un pedido origen."""

    def __init__(self, customer_client):
        """
        Args:
            customer_client: ShopifyCustomerClient de la tienda destino
        """
        self.customer_client = customer_client
        self.customers: Dict[str, Dict[str, Any]] = {}

    async def load(self) -> Dict[str, Dict[str, Any]]:
        """
        Carga todos los clientes de destino.

        Returns:
            Dict: email en minúsculas -> {customerId, companyId, companyName}
        """
        customers: Dict[str, Dict[str, Any]] = {}
        async for customer in self.customer_client.iter_customers(page_size=250):
            email = customer.get("email")
            if not email:
                continue

            profiles = customer.get("companyContactProfiles") or []
            company = (profiles[0].get("company") or {}) if profiles else {}

            customers[email.lower()] = {
                "customerId": customer.get("id"),
                "companyId": company.get("id"),
                "companyName": company.get("name"),
            }

        self.customers = customers
        logger.info(f"✅ Loaded {len(customers)} target customers")
        return customers

    def resolve(self, email: Optional[str]) -> Optional[Dict[str, Any]]:
        """Busca el cliente de destino por e-mail (sin distinguir mayúsculas)."""
        if not email:
            return None
        return self.customers.get(email.lower())
