"""
Importación de compañías B2B desde hoja.

Flujo por compañía:
1. Buscar por externalId (External ID de la hoja, o su ID si está vacío)
2. Crear la compañía con su primera ubicación si no existe
3. Crear las ubicaciones que falten (externalId = Location: ID)
4. Vincular clientes existentes como contactos y asignarles roles por ubicación
5. Asignar el contacto principal
6. Guardar metafields de la compañía
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from store_migrator.core.config import get_settings
from store_migrator.core.logging_config import LogContext, log_migration_operation
from store_migrator.db.shopify_clients import ShopifyStoreClient, create_target_client
from store_migrator.services.common import (
    MigrationProgressTracker,
    ensure_metafield_definitions,
    report_timestamp,
    write_json_report,
)
from store_migrator.utils.error_handler import (
    AppException,
    ErrorAggregator,
    ShopifyAPIException,
    ValidationException,
    format_user_errors,
)
from store_migrator.utils.sheet_utils import SheetSource, read_sheet_rows, to_datetime_iso

from .sheet_parser import CompanySheetParser, build_company_address_input, normalize_email

logger = logging.getLogger(__name__)

DUPLICATE_ROLE_MESSAGE = "already been assigned a role"


def company_external_id(company: Dict[str, Any]) -> str:
    """Identificador usado tanto para buscar como para crear la compañía."""
    return company.get("externalId") or company["id"]


def _location_maps(company_node: Dict[str, Any]) -> Dict[str, Dict[str, str]]:
    by_external_id = {}
    by_name = {}
    for location in company_node.get("locations") or []:
        if not location.get("id"):
            continue
        if location.get("externalId"):
            by_external_id[str(location["externalId"])] = location["id"]
        if location.get("name"):
            by_name[location["name"]] = location["id"]
    return {"externalId": by_external_id, "name": by_name}


def _contacts_by_email(company_node: Dict[str, Any]) -> Dict[str, str]:
    contacts = {}
    for contact in company_node.get("contacts") or []:
        email = normalize_email((contact.get("customer") or {}).get("email"))
        if email and contact.get("id"):
            contacts[email] = contact["id"]
    return contacts


def _roles_by_name(company_node: Dict[str, Any]) -> Dict[str, str]:
    return {
        role["name"]: role["id"] for role in company_node.get("contactRoles") or [] if role.get("name") and role.get("id")
    }


class CompanySheetImporter:
    """Crea o completa compañías B2B en la tienda destino."""

    def __init__(self, target_client: ShopifyStoreClient):
        self.target_client = target_client
        self.settings = get_settings()
        self.error_aggregator = ErrorAggregator()
        self._customer_ids: Dict[str, Optional[str]] = {}

    async def build_location_input(self, location: Dict[str, Any], company_name: str) -> Dict[str, Any]:
        """
        CompanyLocationInput a partir de una ubicación de la hoja.

        El depósito solo se envía si hay plantilla de términos de pago.
        """
        payment_terms_id = None
        if location.get("paymentTerms"):
            payment_terms_id = await self.target_client.companies.get_payment_terms_template_id(
                location["paymentTerms"]
            )

        buyer_experience: Dict[str, Any] = {
            "checkoutToDraft": location.get("checkoutToDraft"),
            "editableShippingAddress": location.get("editableShippingAddress"),
            "paymentTermsTemplateId": payment_terms_id,
        }
        if payment_terms_id and location.get("depositPercentage") is not None:
            buyer_experience["deposit"] = {"percentage": location["depositPercentage"]}

        location_input: Dict[str, Any] = {
            "name": location.get("name") or company_name,
            "phone": location.get("phone"),
            "note": location.get("note"),
            "taxExempt": location.get("taxExempt"),
            "taxRegistrationId": location.get("taxRegistrationId"),
            "buyerExperienceConfiguration": buyer_experience,
            "externalId": location.get("externalId") or location["id"],
        }
        if location.get("taxExemptions"):
            location_input["taxExemptions"] = location["taxExemptions"]

        shipping = build_company_address_input(location.get("shipping"))
        billing = build_company_address_input(location.get("billing"))
        if shipping:
            location_input["shippingAddress"] = shipping
        if billing:
            location_input["billingAddress"] = billing
        if shipping:
            location_input["billingSameAsShipping"] = billing is None

        return location_input

    async def build_company_input(self, company: Dict[str, Any]) -> Dict[str, Any]:
        """CompanyCreateInput con la primera ubicación de la hoja."""
        company_fields: Dict[str, Any] = {"name": company["name"], "externalId": company_external_id(company)}
        if company.get("notes"):
            company_fields["note"] = company["notes"]
        customer_since = to_datetime_iso(company.get("customerSince"))
        if customer_since:
            company_fields["customerSince"] = customer_since

        company_input: Dict[str, Any] = {"company": company_fields}
        if company.get("locations"):
            company_input["companyLocation"] = await self.build_location_input(
                company["locations"][0], company["name"]
            )
        return company_input

    async def find_customer_id(self, email: str) -> Optional[str]:
        if email not in self._customer_ids:
            customer = await self.target_client.customers.find_customer_by_email(email)
            self._customer_ids[email] = (customer or {}).get("id")
        return self._customer_ids[email]

    async def ensure_locations(self, company: Dict[str, Any], company_node: Dict[str, Any]) -> Dict[str, str]:
        """
        Crea las ubicaciones que falten.

        Returns:
            Dict[str, str]: Location: ID de la hoja → ID de ubicación en destino
        """
        maps = _location_maps(company_node)
        resolved: Dict[str, str] = {}

        for location in company.get("locations") or []:
            external_id = location.get("externalId") or location["id"]
            target_id = maps["externalId"].get(external_id) or maps["name"].get(location.get("name"))
            if target_id:
                resolved[location["id"]] = target_id
                continue

            location_input = await self.build_location_input(location, company["name"])
            created = await self.target_client.companies.create_location(company_node["id"], location_input)
            resolved[location["id"]] = created["id"]
            logger.info(f"🏬 Created location: {created.get('name')} (sheet id={location['id']}) id={created['id']}")
            await asyncio.sleep(self.settings.COMPANY_DELAY)

        return resolved

    async def ensure_contact(self, company_id: str, email: str, contacts: Dict[str, str]) -> Optional[str]:
        """ID del contacto de la compañía para el email; vincula al cliente si hace falta."""
        if email in contacts:
            return contacts[email]

        customer_id = await self.find_customer_id(email)
        if not customer_id:
            logger.warning(f"⚠️ Customer not found on target for {email}, cannot link as company contact")
            return None

        contact = await self.target_client.companies.assign_customer_as_contact(company_id, customer_id)
        contacts[email] = contact["id"]
        logger.info(f"👥 Linked customer as company contact: {email} contactId={contact['id']}")
        return contact["id"]

    async def assign_roles(
        self,
        company: Dict[str, Any],
        company_id: str,
        contacts: Dict[str, str],
        roles: Dict[str, str],
        locations: Dict[str, str],
    ) -> int:
        """
        Asigna el rol de cada fila de contacto en la ubicación de la misma fila.

        Returns:
            int: Roles asignados
        """
        assigned = 0
        for contact_row in company.get("contactRows") or []:
            email = contact_row["email"]
            contact_id = await self.ensure_contact(company_id, email, contacts)
            if not contact_id or not contact_row.get("roleName") or not contact_row.get("locationId"):
                continue

            role_id = roles.get(contact_row["roleName"])
            if not role_id:
                logger.warning(f"⚠️ Role '{contact_row['roleName']}' not found on target company ({email})")
                continue
            location_id = locations.get(contact_row["locationId"])
            if not location_id:
                logger.warning(f"⚠️ Location not resolved for sheet Location: ID={contact_row['locationId']} ({email})")
                continue

            user_errors = await self.target_client.companies.assign_location_roles(
                location_id, [{"companyContactRoleId": role_id, "companyContactId": contact_id}]
            )
            if user_errors and not all(DUPLICATE_ROLE_MESSAGE in str(e.get("message")) for e in user_errors):
                raise ShopifyAPIException(
                    f"companyLocationAssignRoles failed: {format_user_errors(user_errors)}", user_errors=user_errors
                )
            if not user_errors:
                assigned += 1
                logger.info(f"🎭 Assigned '{contact_row['roleName']}' to {email} at {location_id}")
            await asyncio.sleep(self.settings.COMPANY_DELAY)
        return assigned

    async def import_company(self, company: Dict[str, Any]) -> Dict[str, Any]:
        """
        Crea o completa una compañía.

        Returns:
            Dict: {"companyId", "status": created|updated, "locations", "rolesAssigned"}
        """
        external_id = company_external_id(company)
        existing = await self.target_client.companies.find_company_by_external_id(external_id)

        if existing:
            company_id = existing["id"]
            status = "updated"
            logger.info(f"🟡 Company exists: {existing.get('name')} (externalId={external_id}) id={company_id}")
        else:
            created = await self.target_client.companies.create_company(await self.build_company_input(company))
            company_id = created["id"]
            status = "created"
            logger.info(f"🏢 Created company: {company['name']} (externalId={external_id}) id={company_id}")
            await asyncio.sleep(self.settings.COMPANY_DELAY)

        company_node = await self.target_client.companies.get_company(company_id) or {"id": company_id}
        locations = await self.ensure_locations(company, company_node)

        refreshed = await self.target_client.companies.get_company(company_id) or company_node
        contacts = _contacts_by_email(refreshed)
        roles = _roles_by_name(refreshed)

        main_email = company.get("mainContactEmail")
        if main_email:
            await self.ensure_contact(company_id, main_email, contacts)
        roles_assigned = await self.assign_roles(company, company_id, contacts, roles, locations)

        if main_email:
            main_contact_id = contacts.get(main_email)
            if main_contact_id:
                await self.target_client.companies.assign_main_contact(company_id, main_contact_id)
                logger.info(f"⭐ Set main contact: {main_email} contactId={main_contact_id}")
            else:
                logger.warning(f"⚠️ Main contact email not linked as company contact: {main_email}")

        metafields = [{**metafield, "ownerId": company_id} for metafield in company.get("metafields") or []]
        if metafields:
            await self.target_client.metafields.set_metafields(metafields)
            logger.info(f"🏷️ Set {len(metafields)} company metafield(s)")

        return {"companyId": company_id, "status": status, "locations": len(locations), "rolesAssigned": roles_assigned}

    async def run(self, rows: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Importa todas las compañías de la hoja.

        Returns:
            Dict: ok, okCount, failedCount, results, reportPath
        """
        if not rows:
            raise ValidationException("Sheet has no rows", field="file")

        job_id = f"companies_{report_timestamp()}"
        parser = CompanySheetParser.from_rows(rows)

        with LogContext(job_id=job_id, operation="companies"):
            logger.info("🚀 Starting companies import (sheet → target)...")
            await ensure_metafield_definitions(self.target_client.metafields, "COMPANY", parser.metafield_columns)
            companies = parser.parse(rows)
            log_migration_operation("companies_start", "target", job_id=job_id, companies=len(companies))

            tracker = MigrationProgressTracker(total_items=len(companies), operation_name="Companies", job_id=job_id)
            results = []
            for index, company in enumerate(companies, start=1):
                label = f"#{index} '{company['name']}' (sheet ID: {company['id']})"
                logger.info(f"➡️ Processing {label}")
                self.error_aggregator.increment_processed()

                try:
                    result = await self.import_company(company)
                except Exception as e:
                    reason = e.message if isinstance(e, AppException) else str(e)
                    logger.error(f"❌ Failed {label}: {reason}")
                    self.error_aggregator.add_error(e, {"company": company["id"]})
                    result = {"status": "failed", "reason": reason}

                results.append({"id": company["id"], "name": company["name"], **result})
                tracker.update(
                    created=int(result["status"] == "created"),
                    updated=int(result["status"] == "updated"),
                    errors=int(result["status"] == "failed"),
                )
                if tracker.should_log_progress():
                    tracker.log_progress()
                await asyncio.sleep(self.settings.COMPANY_DELAY)

            tracker.log_progress(prefix="🏁 ")
            failed = tracker.stats["errors"]
            summary = {
                "job_id": job_id,
                "ok": failed == 0,
                "okCount": len(companies) - failed,
                "failedCount": failed,
                "results": results,
                "errors": self.error_aggregator.get_summary(),
            }
            summary["reportPath"] = str(write_json_report("companies_report", summary))

        return summary


async def import_companies(
    source: SheetSource,
    filename: Optional[str] = None,
    sheet_name: Optional[str] = None,
) -> Dict[str, Any]:
    """Punto de entrada: compañías B2B desde hoja."""
    sheet = sheet_name or get_settings().COMPANY_SHEET_NAME
    rows = await read_sheet_rows(source, sheet_name=sheet, filename=filename)
    target_client = create_target_client()
    try:
        await target_client.initialize()
        return await CompanySheetImporter(target_client).run(rows)
    finally:
        await target_client.close()
