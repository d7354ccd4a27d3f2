"""
Importación de clientes desde la hoja "Customers" (solo creación).

Las filas se agrupan por cliente (ID → Email → Phone → nombre); cada fila
puede aportar una dirección. Los clientes que ya existen en destino (por
email y luego por teléfono) se omiten.
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
from store_migrator.utils.error_handler import AppException, ErrorAggregator
from store_migrator.utils.metafield_utils import build_metafields_from_row, detect_metafield_columns, sanitize_metafields
from store_migrator.utils.sheet_utils import (
    SheetSource,
    is_empty,
    normalize_phone,
    read_sheet_rows,
    sheet_headers,
    split_list,
    to_bool,
    to_datetime_iso,
    to_optional_str,
    to_str,
)

logger = logging.getLogger(__name__)

EMAIL_MARKETING_STATES = {"invalid", "not_subscribed", "pending", "redacted", "subscribed", "unsubscribed"}
SMS_MARKETING_STATES = {"not_subscribed", "pending", "redacted", "subscribed", "unsubscribed"}
OPT_IN_LEVELS = {"confirmed_opt_in", "single_opt_in", "unknown"}

# Campo del cliente -> columna de la hoja (el primer valor no vacío gana)
_BASE_FIELDS = {
    "email": "Email",
    "firstName": "First Name",
    "lastName": "Last Name",
    "locale": "Language",
    "note": "Note",
    "tags": "Tags",
    "multipassIdentifier": "Multipass Identifier",
    "emailMarketingStatus": "Email Marketing: Status",
    "emailMarketingLevel": "Email Marketing: Level",
    "emailMarketingUpdatedAt": "Email Marketing: Updated At",
    "smsMarketingStatus": "SMS Marketing: Status",
    "smsMarketingLevel": "SMS Marketing: Level",
    "smsMarketingUpdatedAt": "SMS Marketing: Updated At",
}

# MailingAddressInput -> columna de la hoja
_ADDRESS_FIELDS = {
    "company": "Address Company",
    "address1": "Address Line 1",
    "address2": "Address Line 2",
    "city": "Address City",
    "provinceCode": "Address Province Code",
    "countryCode": "Address Country Code",
    "zip": "Address Zip",
}
_ADDRESS_COLUMNS = (*_ADDRESS_FIELDS.values(), "Address Phone", "Address First Name", "Address Last Name")


def _enum_value(value: Any, allowed: set) -> Optional[str]:
    text = to_str(value).lower()
    return text.upper() if text in allowed else None


def customer_key(row: Dict[str, Any]) -> Optional[str]:
    """Clave de agrupación: ID, email, teléfono o nombre."""
    if not is_empty(row.get("ID")):
        return f"id:{to_str(row['ID'])}"
    if not is_empty(row.get("Email")):
        return f"email:{to_str(row['Email']).lower()}"
    phone = normalize_phone(row.get("Phone"))
    if phone:
        return f"phone:{phone}"
    if not is_empty(row.get("First Name")) or not is_empty(row.get("Last Name")):
        return f"name:{to_str(row.get('First Name')).lower()}::{to_str(row.get('Last Name')).lower()}"
    return None


def parse_address(row: Dict[str, Any], customer: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Dirección de la fila; nombre y teléfono se heredan del cliente si faltan."""
    if all(is_empty(row.get(column)) for column in _ADDRESS_COLUMNS):
        return None

    address: Dict[str, Any] = {
        "firstName": to_optional_str(row.get("Address First Name")) or customer.get("firstName"),
        "lastName": to_optional_str(row.get("Address Last Name")) or customer.get("lastName"),
        "phone": normalize_phone(row.get("Address Phone")) or customer.get("phone"),
    }
    for field, column in _ADDRESS_FIELDS.items():
        address[field] = to_optional_str(row.get(column))

    address = {key: value for key, value in address.items() if value}
    if not address:
        return None
    address["_isDefault"] = to_bool(row.get("Address Is Default")) is True
    return address


def group_customers(rows: List[Dict[str, Any]], metafield_columns: List[Dict[str, str]]) -> List[Dict[str, Any]]:
    """
    Agrupa las filas de la hoja en clientes.

    Filas posteriores completan campos vacíos; para metafields gana el último valor.
    """
    customers: Dict[str, Dict[str, Any]] = {}

    for row in rows:
        key = customer_key(row)
        if not key:
            continue

        customer = customers.get(key)
        if customer is None:
            customer = {"key": key, "phone": None, "taxExempt": None, "addresses": [], "metafields": {}}
            customer.update({field: None for field in _BASE_FIELDS})
            customers[key] = customer

        for field, column in _BASE_FIELDS.items():
            if customer[field] is None:
                customer[field] = to_optional_str(row.get(column))
        if not customer["phone"]:
            customer["phone"] = normalize_phone(row.get("Phone"))
        if customer["taxExempt"] is None:
            customer["taxExempt"] = to_bool(row.get("Tax Exempt"))

        for metafield in build_metafields_from_row(row, metafield_columns):
            customer["metafields"][f"{metafield['namespace']}.{metafield['key']}"] = metafield

        address = parse_address(row, customer)
        if address:
            customer["addresses"].append(address)

    return list(customers.values())


def _marketing_consent(state: Optional[str], level: Any, updated_at: Any) -> Optional[Dict[str, Any]]:
    if not state:
        return None
    consent: Dict[str, Any] = {"marketingState": state}
    opt_in_level = _enum_value(level, OPT_IN_LEVELS)
    if opt_in_level:
        consent["marketingOptInLevel"] = opt_in_level
    consent_updated_at = to_datetime_iso(updated_at)
    if consent_updated_at:
        consent["consentUpdatedAt"] = consent_updated_at
    return consent


def build_customer_input(customer: Dict[str, Any]) -> Dict[str, Any]:
    """Cliente agrupado → CustomerInput (direcciones por defecto primero)."""
    customer_input: Dict[str, Any] = {}
    for field in ("email", "firstName", "lastName", "phone", "locale", "note", "multipassIdentifier"):
        if customer.get(field):
            customer_input[field] = customer[field]
    if customer.get("taxExempt") is not None:
        customer_input["taxExempt"] = customer["taxExempt"]

    tags = split_list(customer.get("tags"))
    if tags:
        customer_input["tags"] = tags

    email_consent = _marketing_consent(
        _enum_value(customer.get("emailMarketingStatus"), EMAIL_MARKETING_STATES),
        customer.get("emailMarketingLevel"),
        customer.get("emailMarketingUpdatedAt"),
    )
    if email_consent:
        customer_input["emailMarketingConsent"] = email_consent

    sms_consent = _marketing_consent(
        _enum_value(customer.get("smsMarketingStatus"), SMS_MARKETING_STATES),
        customer.get("smsMarketingLevel"),
        customer.get("smsMarketingUpdatedAt"),
    )
    if sms_consent:
        customer_input["smsMarketingConsent"] = sms_consent

    entity_label = customer.get("email") or customer.get("phone") or customer["key"]
    metafields = sanitize_metafields(list(customer.get("metafields", {}).values()), "CUSTOMER", entity_label)
    if metafields:
        customer_input["metafields"] = metafields

    addresses = sorted(customer.get("addresses") or [], key=lambda address: not address.get("_isDefault"))
    if addresses:
        customer_input["addresses"] = [
            {key: value for key, value in address.items() if key != "_isDefault"} for address in addresses
        ]

    return customer_input


class CustomerSheetImporter:
    """Crea en destino los clientes de la hoja que aún no existen."""

    def __init__(self, target_client: ShopifyStoreClient):
        self.target_client = target_client
        self.settings = get_settings()
        self.error_aggregator = ErrorAggregator()

    async def find_existing_id(self, customer: Dict[str, Any]) -> Optional[str]:
        existing = None
        if customer.get("email"):
            existing = await self.target_client.customers.find_customer_by_email(customer["email"])
        if not existing and customer.get("phone"):
            existing = await self.target_client.customers.find_customer(f"phone:{customer['phone']}")
        return (existing or {}).get("id")

    async def import_customer(self, customer: Dict[str, Any]) -> Dict[str, Any]:
        """
        Crea un cliente si tiene email o teléfono y no existe.

        Returns:
            Dict: {"status": created|skipped, ...}
        """
        if not customer.get("email") and not customer.get("phone"):
            logger.info("🟡 Skipping customer without email and phone (cannot check existence)")
            return {"status": "skipped", "reason": "Missing email and phone"}

        existing_id = await self.find_existing_id(customer)
        if existing_id:
            logger.info(f"🟡 Customer already exists → {existing_id} (skipping)")
            return {"status": "skipped", "reason": "Already exists", "customerId": existing_id}

        created = await self.target_client.customers.create_customer(build_customer_input(customer))
        return {"status": "created", "customerId": created.get("id")}

    async def run(self, rows: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Importa los clientes de la hoja.

        Returns:
            Dict: ok, createdCount, skippedCount, failedCount, reportPath
        """
        job_id = f"customers_{report_timestamp()}"
        metafield_columns = detect_metafield_columns(sheet_headers(rows))

        with LogContext(job_id=job_id, operation="customers"):
            logger.info(f"🚀 Starting customers import: {len(metafield_columns)} metafield column(s) detected")
            await ensure_metafield_definitions(self.target_client.metafields, "CUSTOMER", metafield_columns)
            customers = group_customers(rows, metafield_columns)
            log_migration_operation("customers_start", "target", job_id=job_id, customers=len(customers))

            tracker = MigrationProgressTracker(total_items=len(customers), operation_name="Customers", job_id=job_id)
            results = []
            for index, customer in enumerate(customers, start=1):
                label = f"#{index} ({customer.get('email') or 'no-email'}, {customer.get('phone') or 'no-phone'})"
                logger.info(f"➡️ Processing {label}")
                self.error_aggregator.increment_processed()

                try:
                    result = await self.import_customer(customer)
                except Exception as e:
                    reason = e.message if isinstance(e, AppException) else str(e)
                    logger.error(f"❌ Failed {label}: {reason}")
                    self.error_aggregator.add_error(e, {"customer": customer["key"]})
                    result = {"status": "failed", "reason": reason}

                results.append({"key": customer["key"], **result})
                tracker.update(
                    created=int(result["status"] == "created"),
                    skipped=int(result["status"] == "skipped"),
                    errors=int(result["status"] == "failed"),
                )
                if tracker.should_log_progress():
                    tracker.log_progress()
                await asyncio.sleep(self.settings.ROW_DELAY)

            tracker.log_progress(prefix="🏁 ")
            summary = {
                "job_id": job_id,
                "ok": tracker.stats["errors"] == 0,
                "createdCount": tracker.stats["created"],
                "skippedCount": tracker.stats["skipped"],
                "failedCount": tracker.stats["errors"],
                "results": results,
                "errors": self.error_aggregator.get_summary(),
            }
            summary["reportPath"] = str(write_json_report("customers_report", summary))

        return summary


async def import_customers(
    source: SheetSource,
    filename: Optional[str] = None,
    sheet_name: Optional[str] = None,
) -> Dict[str, Any]:
    """Punto de entrada: clientes desde la hoja "Customers"."""
    sheet = sheet_name or get_settings().customer_sheet_names
    rows = await read_sheet_rows(source, sheet_name=sheet, filename=filename)
    target_client = create_target_client()
    try:
        await target_client.initialize()
        return await CustomerSheetImporter(target_client).run(rows)
    finally:
        await target_client.close()
