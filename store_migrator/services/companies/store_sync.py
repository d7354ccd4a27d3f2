"""
Copia de compañías B2B y sus clientes entre tiendas (origen → destino).

Flujo por compañía:
1. Leer la compañía completa en origen y calcular su nivel (tier) con las
   órdenes B2B del año en curso
2. Buscar en destino por externalId (el de origen, o su GID si está vacío)
3. Si existe: actualizar campos y hacer upsert de ubicaciones (por
   externalId y luego por nombre); si no: crearla con todas sus ubicaciones
4. Guardar metafields de origen más custom.source_company_id,
   custom.isActive y custom.level
5. Por cada contacto: upsert del cliente por e-mail (tags Tier_<nivel>,
   dirección, consentimientos, metafields), vincularlo como contacto,
   contacto principal y roles por ubicación
"""

import asyncio
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from store_migrator.core.config import get_settings
from store_migrator.core.logging_config import LogContext, log_migration_operation
from store_migrator.db.shopify_clients import ShopifyStoreClient, create_source_client, create_target_client
from store_migrator.services.common import MigrationProgressTracker, report_timestamp, write_json_report
from store_migrator.utils.error_handler import (
    AppException,
    ErrorAggregator,
    ShopifyAPIException,
    ValidationException,
    format_user_errors,
)
from store_migrator.utils.id_utils import rest_to_graphql_id

from .importer import DUPLICATE_ROLE_MESSAGE
from .sheet_parser import build_company_address_input

logger = logging.getLogger(__name__)

DEFAULT_IDS_FILE = "companies.json"
TIER_EXCLUDE_TAG = "tier_exclude"


def company_tier(order_count: int) -> str:
    """Nivel de la compañía según sus órdenes del año: >25, >10, >5 o el resto."""
    if order_count > 25:
        return "Platinum"
    if order_count > 10:
        return "Gold"
    if order_count > 5:
        return "Silver"
    return "Bronze"


def is_qualifying_order(order: Dict[str, Any], year: int) -> bool:
    """Orden del año indicado, cumplida, cerrada, no cancelada y sin tag tier_exclude."""
    created_at = order.get("createdAt") or ""
    if not created_at.startswith(f"{year}-"):
        return False
    return (
        order.get("displayFulfillmentStatus") == "FULFILLED"
        and order.get("cancelledAt") is None
        and order.get("closedAt") is not None
        and TIER_EXCLUDE_TAG not in (order.get("tags") or [])
    )


def build_buyer_experience_input(config: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """buyerExperienceConfiguration de origen → BuyerExperienceConfigurationInput."""
    if not config:
        return None

    buyer_input: Dict[str, Any] = {}
    for field in ("checkoutToDraft", "editableShippingAddress"):
        if isinstance(config.get(field), bool):
            buyer_input[field] = config[field]

    deposit = config.get("deposit") or {}
    if deposit.get("__typename") == "DepositPercentage" and isinstance(deposit.get("percentage"), (int, float)):
        buyer_input["deposit"] = {"percentage": deposit["percentage"]}

    template_id = (config.get("paymentTermsTemplate") or {}).get("id")
    if template_id:
        buyer_input["paymentTermsTemplateId"] = template_id

    return buyer_input or None


def build_location_input(location: Dict[str, Any], company_name: str) -> Optional[Dict[str, Any]]:
    """
    Ubicación de origen → CompanyLocationInput.

    Returns:
        None si la ubicación no tiene dirección de envío (no se puede crear)
    """
    shipping = build_company_address_input(location.get("shippingAddress"))
    if shipping is None:
        return None
    billing = build_company_address_input(location.get("billingAddress"))

    location_input: Dict[str, Any] = {
        "name": location.get("name") or company_name,
        "externalId": location.get("externalId"),
        "shippingAddress": shipping,
        "billingSameAsShipping": billing is None,
    }
    if billing:
        location_input["billingAddress"] = billing
    for field in ("note", "phone"):
        if location.get(field):
            location_input[field] = location[field]

    tax = location.get("taxSettings")
    if tax:
        location_input["taxExempt"] = bool(tax.get("taxExempt"))
        if isinstance(tax.get("taxExemptions"), list):
            location_input["taxExemptions"] = tax["taxExemptions"]
        if tax.get("taxRegistrationId"):
            location_input["taxRegistrationId"] = tax["taxRegistrationId"]

    buyer_experience = build_buyer_experience_input(location.get("buyerExperienceConfiguration"))
    if buyer_experience:
        location_input["buyerExperienceConfiguration"] = buyer_experience
    return location_input


def _metafield_map(metafields: List[Dict[str, Any]]) -> Dict[Tuple[str, str], Dict[str, Any]]:
    by_key = {}
    for metafield in metafields or []:
        if not metafield.get("namespace") or not metafield.get("key") or not metafield.get("type"):
            continue
        if metafield.get("value") is None:
            continue
        by_key[(metafield["namespace"], metafield["key"])] = {
            "namespace": metafield["namespace"],
            "key": metafield["key"],
            "type": metafield["type"],
            "value": str(metafield["value"]),
        }
    return by_key


def merge_metafields(
    source: List[Dict[str, Any]], target: List[Dict[str, Any]], owner_id: str
) -> List[Dict[str, Any]]:
    """Metafields de destino con los de origen encima (origen gana), listos para metafieldsSet."""
    merged = _metafield_map(target)
    merged.update(_metafield_map(source))
    return [{**metafield, "ownerId": owner_id} for metafield in merged.values()]


def tracking_metafields(source_company_id: str, tier: str) -> List[Dict[str, Any]]:
    return [
        {
            "namespace": "custom",
            "key": "source_company_id",
            "type": "single_line_text_field",
            "value": source_company_id,
        },
        {"namespace": "custom", "key": "isActive", "type": "boolean", "value": "true"},
        {"namespace": "custom", "key": "level", "type": "single_line_text_field", "value": tier},
    ]


def build_customer_address(customer: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """defaultAddress del cliente de origen → MailingAddressInput."""
    address = customer.get("defaultAddress")
    if not address:
        return None
    return {
        "address1": address.get("address1"),
        "address2": address.get("address2"),
        "city": address.get("city"),
        "countryCode": address.get("countryCodeV2"),
        "provinceCode": address.get("provinceCode"),
        "zip": address.get("zip"),
        "phone": address.get("phone"),
        "firstName": address.get("firstName") or customer.get("firstName"),
        "lastName": address.get("lastName") or customer.get("lastName"),
        "company": address.get("company"),
    }


def customer_tags(customer: Dict[str, Any], tier: str) -> List[str]:
    """Tags de origen más Tier_<nivel> (sin duplicar)."""
    tags = list(customer.get("tags") or [])
    tier_tag = f"Tier_{tier}"
    if tier_tag not in tags:
        tags.append(tier_tag)
    return tags


def build_consent_input(consent: Optional[Dict[str, Any]], with_timestamp: bool = True) -> Optional[Dict[str, Any]]:
    """
    Consentimiento de marketing de origen → input de destino.

    NOT_SUBSCRIBED no se acepta como entrada y se envía como UNSUBSCRIBED.
    """
    if not consent or not consent.get("marketingState"):
        return None
    state = consent["marketingState"]
    consent_input: Dict[str, Any] = {"marketingState": "UNSUBSCRIBED" if state == "NOT_SUBSCRIBED" else state}
    if consent.get("marketingOptInLevel"):
        consent_input["marketingOptInLevel"] = consent["marketingOptInLevel"]
    if with_timestamp and consent.get("consentUpdatedAt"):
        consent_input["consentUpdatedAt"] = consent["consentUpdatedAt"]
    return consent_input


def load_company_ids(path: Optional[str] = None) -> List[str]:
    """
    Lee los IDs de compañía de un JSON {"companies": [...]}.

    Raises:
        ValidationException: Archivo inexistente, JSON inválido o sin IDs
    """
    ids_path = Path(path or DEFAULT_IDS_FILE)
    if not ids_path.is_file():
        raise ValidationException(f"Company IDs file not found: {ids_path}", field="ids_file")

    try:
        with open(ids_path, encoding="utf-8") as handle:
            data = json.load(handle)
    except json.JSONDecodeError as e:
        raise ValidationException(f"Invalid JSON in {ids_path}: {e}", field="ids_file") from e

    companies = data.get("companies") if isinstance(data, dict) else None
    if not isinstance(companies, list):
        raise ValidationException(
            f'{ids_path} must contain {{"companies": [...]}}', field="ids_file", expected_format="JSON object"
        )
    return [str(company_id).strip() for company_id in companies if str(company_id).strip()]


class CompanyStoreSync:
    """Crea o actualiza en destino las compañías de origen, con sus clientes y roles."""

    def __init__(self, source_client: ShopifyStoreClient, target_client: ShopifyStoreClient):
        self.source_client = source_client
        self.target_client = target_client
        self.settings = get_settings()
        self.error_aggregator = ErrorAggregator()
        self._contact_cache: Dict[str, str] = {}

    async def count_qualifying_orders(self, company_id: str, year: Optional[int] = None) -> int:
        """Órdenes B2B de la compañía en origen que cuentan para el nivel."""
        year = year or datetime.now(timezone.utc).year
        count = 0
        async for order in self.source_client.companies.iter_company_orders(company_id):
            if is_qualifying_order(order, year):
                count += 1
        return count

    async def create_company(self, source: Dict[str, Any]) -> Tuple[Dict[str, Any], Dict[str, str]]:
        """
        Crea la compañía con su primera ubicación y luego el resto.

        Returns:
            Tuple: (compañía creada, mapa ubicación origen → ubicación destino)
        """
        name = source.get("name")
        company_input: Dict[str, Any] = {"name": name, "externalId": source.get("externalId") or source["id"]}
        if source.get("note"):
            company_input["note"] = source["note"]

        locations = source.get("locations") or []
        create_input: Dict[str, Any] = {"company": company_input}
        first_location = build_location_input(locations[0], name) if locations else None
        if locations and first_location is None:
            logger.warning(f"⚠️ First location {locations[0].get('id')} has no shipping address, skipped")
        if first_location:
            create_input["companyLocation"] = first_location

        company = await self.target_client.companies.create_company(create_input)
        logger.info(f"🏢 Created company on target: {name} ({company.get('id')})")

        location_map: Dict[str, str] = {}
        created_locations = company.get("locations") or []
        if first_location and created_locations:
            location_map[locations[0]["id"]] = created_locations[0]["id"]

        for location in locations[1:]:
            location_input = build_location_input(location, name)
            if location_input is None:
                logger.warning(f"⚠️ Skipping location {location.get('id')}: no shipping address")
                continue
            created = await self.target_client.companies.create_location(company["id"], location_input)
            location_map[location["id"]] = created.get("id")
            logger.info(f"🏬 Location mapped: {location.get('name')} ({location['id']}) → {created.get('id')}")

        return company, location_map

    async def sync_location_tax_settings(self, target_location_id: str, tax: Optional[Dict[str, Any]]):
        """Deja las exenciones de la ubicación destino iguales a las de origen."""
        if not tax:
            return
        current = await self.target_client.companies.get_location_tax_settings(target_location_id)
        source_exemptions = tax.get("taxExemptions") or []
        target_exemptions = current.get("taxExemptions") or []
        await self.target_client.companies.update_location_tax_settings(
            target_location_id,
            taxRegistrationId=tax.get("taxRegistrationId"),
            taxExempt=tax.get("taxExempt") if isinstance(tax.get("taxExempt"), bool) else None,
            exemptionsToAssign=[item for item in source_exemptions if item not in target_exemptions],
            exemptionsToRemove=[item for item in target_exemptions if item not in source_exemptions],
        )

    async def update_location(self, target_location_id: str, location: Dict[str, Any], company_name: str):
        """Actualiza una ubicación existente: campos, direcciones y tax settings."""
        update_input: Dict[str, Any] = {
            "name": location.get("name") or company_name,
            "externalId": location.get("externalId"),
        }
        for field in ("note", "phone", "locale"):
            if location.get(field):
                update_input[field] = location[field]
        buyer_experience = build_buyer_experience_input(location.get("buyerExperienceConfiguration"))
        if buyer_experience:
            update_input["buyerExperienceConfiguration"] = buyer_experience
        await self.target_client.companies.update_location(target_location_id, update_input)

        shipping = build_company_address_input(location.get("shippingAddress"))
        billing = build_company_address_input(location.get("billingAddress"))
        if shipping:
            types = ["SHIPPING"] if billing else ["SHIPPING", "BILLING"]
            await self.target_client.companies.assign_location_address(target_location_id, shipping, types)
        if billing:
            await self.target_client.companies.assign_location_address(target_location_id, billing, ["BILLING"])

        await self.sync_location_tax_settings(target_location_id, location.get("taxSettings"))

    async def upsert_locations(self, source: Dict[str, Any], target: Dict[str, Any]) -> Dict[str, str]:
        """
        Ubicaciones de una compañía ya existente en destino.

        Se empareja por externalId y, si no, por nombre. Las emparejadas se
        actualizan; el resto se crea si tiene dirección de envío.

        Returns:
            Dict: ubicación origen → ubicación destino
        """
        by_external_id = {
            str(location["externalId"]).strip(): location
            for location in target.get("locations") or []
            if location.get("externalId")
        }
        target_locations = target.get("locations") or []
        by_name = {location.get("name"): location for location in target_locations if location.get("name")}

        location_map: Dict[str, str] = {}
        for location in source.get("locations") or []:
            external_id = str(location["externalId"]).strip() if location.get("externalId") else None
            match = by_external_id.get(external_id) if external_id else None
            match = match or by_name.get(location.get("name"))

            if match:
                await self.update_location(match["id"], location, source.get("name"))
                location_map[location["id"]] = match["id"]
                logger.info(f"🔁 Updated location {location.get('name')} → {match['id']}")
                continue

            location_input = build_location_input(location, source.get("name"))
            if location_input is None:
                logger.warning(f"⚠️ Skipping location {location.get('id')}: no shipping address")
                continue
            created = await self.target_client.companies.create_location(target["id"], location_input)
            location_map[location["id"]] = created.get("id")
            logger.info(f"🏬 Created location {location.get('name')} → {created.get('id')}")

        return location_map

    async def update_company(self, source: Dict[str, Any], target: Dict[str, Any]) -> Dict[str, str]:
        """
        Actualiza una compañía existente y sus ubicaciones.

        Los errores de companyUpdate o del upsert de ubicaciones se registran
        sin detener la sincronización de contactos.
        """
        company_input: Dict[str, Any] = {
            "name": source.get("name"),
            "externalId": source.get("externalId") or source["id"],
            "note": source.get("note"),
        }
        try:
            await self.target_client.companies.update_company(target["id"], company_input)
            logger.info(f"🔁 Updated company {source.get('name')} ({target['id']})")
        except ShopifyAPIException as e:
            logger.error(f"❌ companyUpdate failed for {target['id']}: {e.message}")

        try:
            return await self.upsert_locations(source, target)
        except ShopifyAPIException as e:
            logger.error(f"⚠️ Location upsert failed for existing company {target['id']}: {e.message}")
            return {}

    async def set_company_metafields(self, source: Dict[str, Any], company_id: str, tier: str, existing: bool):
        target_metafields = await self.target_client.companies.get_company_metafields(company_id) if existing else []
        metafields = merge_metafields(
            (source.get("metafields") or []) + tracking_metafields(source["id"], tier), target_metafields, company_id
        )
        await self.target_client.metafields.set_metafields(metafields)
        logger.info(f"🏷️ Set {len(metafields)} company metafield(s) on {company_id}")

    async def upsert_customer(self, source_customer: Dict[str, Any], tier: str) -> Optional[Dict[str, Any]]:
        """
        Crea o actualiza el cliente de destino con el mismo e-mail.

        Returns:
            Cliente de destino, o None si el de origen no tiene e-mail
        """
        email = (source_customer.get("email") or "").strip()
        if not email:
            logger.warning(f"⚠️ Skipping source customer without email: {source_customer.get('id')}")
            return None

        customers = self.target_client.customers
        address = build_customer_address(source_customer)
        target_customer = await customers.find_customer_by_email(email)

        if target_customer:
            update_input: Dict[str, Any] = {
                "id": target_customer["id"],
                "firstName": source_customer.get("firstName") or None,
                "lastName": source_customer.get("lastName") or None,
                "phone": source_customer.get("phone") or None,
                "note": source_customer.get("note") or None,
                "tags": customer_tags(source_customer, tier),
            }
            if address:
                update_input["addresses"] = [address]
            await customers.update_customer(update_input)
            logger.info(f"🔁 Updated existing customer {email} ({target_customer['id']})")

            email_consent = build_consent_input(source_customer.get("emailMarketingConsent"))
            if email_consent:
                try:
                    await customers.update_email_marketing_consent(target_customer["id"], email_consent)
                except ShopifyAPIException as e:
                    logger.warning(f"⚠️ Email consent sync failed for {email}: {e.message}")
            sms_consent = build_consent_input(source_customer.get("smsMarketingConsent"))
            if sms_consent:
                try:
                    await customers.update_sms_marketing_consent(target_customer["id"], sms_consent)
                except ShopifyAPIException as e:
                    logger.warning(f"⚠️ SMS consent sync failed for {email}: {e.message}")
            target_metafields = await customers.get_customer_metafields(target_customer["id"])
        else:
            create_input: Dict[str, Any] = {"email": email, "tags": customer_tags(source_customer, tier)}
            for field in ("firstName", "lastName", "phone", "note"):
                if source_customer.get(field):
                    create_input[field] = source_customer[field]
            email_consent = build_consent_input(source_customer.get("emailMarketingConsent"), with_timestamp=False)
            if email_consent:
                create_input["emailMarketingConsent"] = email_consent
            sms_consent = build_consent_input(source_customer.get("smsMarketingConsent"), with_timestamp=False)
            if sms_consent:
                create_input["smsMarketingConsent"] = sms_consent
            if address:
                create_input["addresses"] = [address]
            target_customer = await customers.create_customer(create_input)
            target_metafields = []

        metafields = merge_metafields(
            source_customer.get("metafields") or [], target_metafields, target_customer["id"]
        )
        if metafields:
            await self.target_client.metafields.set_metafields(metafields)
        return target_customer

    async def ensure_contact(self, company: Dict[str, Any], customer_id: str) -> str:
        """ID del companyContact del cliente en la compañía, vinculándolo si hace falta."""
        key = f"{company['id']}:{customer_id}"
        if key in self._contact_cache:
            return self._contact_cache[key]

        for contact in company.get("contacts") or []:
            if (contact.get("customer") or {}).get("id") == customer_id:
                self._contact_cache[key] = contact["id"]
                return contact["id"]

        contact = await self.target_client.companies.assign_customer_as_contact(company["id"], customer_id)
        logger.info(f"👥 Linked customer {customer_id} as contact {contact.get('id')}")
        self._contact_cache[key] = contact.get("id")
        return contact.get("id")

    async def sync_contact_roles(
        self,
        source: Dict[str, Any],
        source_customer: Dict[str, Any],
        contact_id: str,
        location_map: Dict[str, str],
        role_ids: Dict[str, str],
    ) -> int:
        """
        Asigna en destino los roles por ubicación que el cliente tiene en origen.

        Returns:
            int: Roles asignados (los ya existentes no cuentan)
        """
        profile = next(
            (
                profile
                for profile in source_customer.get("companyContactProfiles") or []
                if (profile.get("company") or {}).get("id") == source["id"]
            ),
            None,
        )
        assignments = ((profile or {}).get("roleAssignments") or {}).get("nodes") or []
        if not assignments:
            logger.info(f"ℹ️ No role assignments for customer {source_customer.get('id')}")
            return 0

        assigned = 0
        for assignment in assignments:
            source_location = assignment.get("companyLocation") or {}
            role_name = (assignment.get("role") or {}).get("name")
            target_location_id = location_map.get(source_location.get("id"))
            if not target_location_id:
                logger.warning(f"⚠️ No mapped target location for {source_location.get('id')}, skipping role")
                continue
            role_id = role_ids.get(role_name)
            if not role_id:
                logger.warning(f"⚠️ No role '{role_name}' on target company, skipping")
                continue

            user_errors = await self.target_client.companies.assign_location_roles(
                target_location_id, [{"companyContactRoleId": role_id, "companyContactId": contact_id}]
            )
            if user_errors and all(DUPLICATE_ROLE_MESSAGE in str(e.get("message")) for e in user_errors):
                logger.info(f"🎭 Role '{role_name}' already assigned at {target_location_id}")
                continue
            if user_errors:
                raise ShopifyAPIException(
                    f"companyLocationAssignRoles failed: {format_user_errors(user_errors)}", user_errors=user_errors
                )
            assigned += 1
            logger.info(f"🎭 Assigned role '{role_name}' to {contact_id} at {target_location_id}")
        return assigned

    async def sync_company(self, company_id: str) -> Dict[str, Any]:
        """
        Sincroniza una compañía de origen (ID numérico o GID).

        Raises:
            ShopifyAPIException: La compañía no existe en origen o falló una mutación
        """
        company_gid = rest_to_graphql_id(company_id, "Company")
        source = await self.source_client.companies.get_source_company(company_gid)
        if not source:
            raise ShopifyAPIException(f"Company not found on source: {company_gid}", endpoint="sourceCompany")

        order_count = await self.count_qualifying_orders(company_gid)
        tier = company_tier(order_count)
        logger.info(f"📦 {source.get('name')}: {order_count} qualifying order(s) this year → {tier}")

        external_id = source.get("externalId") or source["id"]
        target = await self.target_client.companies.find_company_by_external_id(external_id)
        if target:
            logger.info(f"🏢 Company already exists on target: {target.get('name')} ({target['id']})")
            location_map = await self.update_company(source, target)
            status = "updated"
        else:
            target, location_map = await self.create_company(source)
            status = "created"

        await self.set_company_metafields(source, target["id"], tier, existing=status == "updated")
        role_ids = {role["name"]: role["id"] for role in target.get("contactRoles") or [] if role.get("name")}

        customers = 0
        roles = 0
        for contact in source.get("contacts") or []:
            source_customer = contact.get("customer")
            if not source_customer:
                logger.warning(f"⚠️ Company contact {contact.get('id')} has no customer, skipping")
                continue

            target_customer = await self.upsert_customer(source_customer, tier)
            if not target_customer:
                continue
            customers += 1
            contact_id = await self.ensure_contact(target, target_customer["id"])

            if contact.get("isMainContact"):
                try:
                    await self.target_client.companies.assign_main_contact(target["id"], contact_id)
                    logger.info(f"⭐ Assigned main contact {contact_id}")
                except ShopifyAPIException as e:
                    logger.error(f"⚠️ companyAssignMainContact failed for {target['id']}: {e.message}")

            roles += await self.sync_contact_roles(source, source_customer, contact_id, location_map, role_ids)

        return {
            "companyId": company_gid,
            "name": source.get("name"),
            "status": status,
            "targetCompanyId": target["id"],
            "tier": tier,
            "orderCount": order_count,
            "locations": len(location_map),
            "customers": customers,
            "rolesAssigned": roles,
        }

    async def run(self, company_ids: List[str]) -> Dict[str, Any]:
        """
        Sincroniza las compañías indicadas.

        Returns:
            Dict: Resumen (total, created, updated, failed, results, reportPath)
        """
        job_id = f"companies_sync_{report_timestamp()}"

        with LogContext(job_id=job_id, operation="companies_sync"):
            logger.info(f"🚀 Starting companies sync (source → target): {len(company_ids)} company(ies)")
            log_migration_operation("companies_sync_start", "source", job_id=job_id, companies=len(company_ids))

            tracker = MigrationProgressTracker(
                total_items=len(company_ids), operation_name="Companies sync", job_id=job_id
            )
            results = []
            for company_id in company_ids:
                self.error_aggregator.increment_processed()
                logger.info(f"➡️ Syncing company {company_id}")
                try:
                    result = await self.sync_company(company_id)
                    logger.info(f"✅ Finished {result['name']} ({result['status']})")
                except Exception as e:
                    reason = e.message if isinstance(e, AppException) else str(e)
                    logger.error(f"❌ Failed company {company_id}: {reason}")
                    self.error_aggregator.add_error(e, {"companyId": company_id})
                    result = {"companyId": company_id, "status": "failed", "reason": reason}

                results.append(result)
                tracker.update(
                    created=int(result["status"] == "created"),
                    updated=int(result["status"] == "updated"),
                    errors=int(result["status"] == "failed"),
                )
                if tracker.should_log_progress():
                    tracker.log_progress()
                await asyncio.sleep(self.settings.COMPANY_DELAY)

            tracker.log_progress(prefix="🏁 ")
            summary = {
                "job_id": job_id,
                "ok": tracker.stats["errors"] == 0,
                "total": len(company_ids),
                "created": tracker.stats["created"],
                "updated": tracker.stats["updated"],
                "failed": tracker.stats["errors"],
                "results": results,
                "errors": self.error_aggregator.get_summary(),
            }
            summary["reportPath"] = str(write_json_report("companies_sync_report", summary))

        return summary


async def sync_companies_store_to_store(
    company_ids: Optional[List[str]] = None, ids_file: Optional[str] = None
) -> Dict[str, Any]:
    """Punto de entrada: compañías de origen a destino (IDs dados o leídos de companies.json)."""
    ids = list(company_ids or []) or load_company_ids(ids_file)
    if not ids:
        raise ValidationException("No company IDs to sync", field="company_ids")

    source_client = create_source_client()
    target_client = create_target_client()
    try:
        await source_client.initialize()
        await target_client.initialize()
        return await CompanyStoreSync(source_client, target_client).run(ids)
    finally:
        await source_client.close()
        await target_client.close()
