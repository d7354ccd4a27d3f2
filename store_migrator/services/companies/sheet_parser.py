"""
Lectura de la hoja de compañías B2B (formato Matrixify).

Columnas por grupo:
- Compañía: ID, Name, External ID, Notes, Customer Since, Main Contact: Customer Email
- Ubicación: Location: ID, Location: Name, Location: Tax Setting, Location: Checkout ...,
  Location: Shipping ... / Location: Billing ...
- Contactos: Customer: Email, Customer: Location Role (la ubicación es la de la misma fila)
"""

import logging
from typing import Any, Dict, List, Optional

from store_migrator.utils.metafield_utils import build_metafields_from_row, detect_metafield_columns
from store_migrator.utils.sheet_utils import (
    is_empty,
    normalize_phone,
    sheet_headers,
    split_list,
    to_bool,
    to_float,
    to_optional_str,
    to_str,
)

logger = logging.getLogger(__name__)

_ADDRESS_FIELDS = {
    "firstName": "First Name",
    "lastName": "Last Name",
    "address1": "Address 1",
    "address2": "Address 2",
    "city": "City",
    "zoneCode": "Province Code",
    "zip": "Zip",
    "countryCode": "Country Code",
    "phone": "Phone",
}


def normalize_email(value: Any) -> str:
    return to_str(value).lower()


def normalize_tax_setting(value: Any) -> Optional[bool]:
    """Location: Tax Setting → taxExempt ("collect" = False, "do not collect" = True)."""
    text = to_str(value).lower()
    if text == "collect":
        return False
    if text == "do not collect":
        return True
    return None


def parse_address(row: Dict[str, Any], kind: str) -> Dict[str, Optional[str]]:
    """Dirección Shipping/Billing de la ubicación tal cual viene en la hoja."""
    prefix = f"Location: {kind}"
    address = {field: to_optional_str(row.get(f"{prefix} {column}")) for field, column in _ADDRESS_FIELDS.items()}
    address["recipient"] = (
        to_optional_str(row.get(f"{prefix} Recipient")) or address["firstName"] or address["lastName"]
    )
    return address


def build_company_address_input(address: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """CompanyAddressInput; requiere address1 y countryCode."""
    if not address or not address.get("address1") or not address.get("countryCode"):
        return None
    return {key: address.get(key) for key in (*_ADDRESS_FIELDS, "recipient")}


def _parse_location(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": to_str(row.get("Location: ID")),
        "externalId": to_optional_str(row.get("Location: External ID")),
        "name": to_str(row.get("Location: Name")),
        "phone": normalize_phone(row.get("Location: Phone")),
        "note": to_optional_str(row.get("Location: Notes")),
        "taxExempt": normalize_tax_setting(row.get("Location: Tax Setting")),
        "taxExemptions": split_list(row.get("Location: Tax Exemptions")) or None,
        "taxRegistrationId": to_optional_str(row.get("Location: Tax ID")),
        "editableShippingAddress": to_bool(row.get("Location: Allow Shipping To Any Address")),
        "checkoutToDraft": to_bool(row.get("Location: Checkout To Draft")),
        "paymentTerms": to_optional_str(row.get("Location: Checkout Payment Terms")),
        "depositPercentage": to_float(row.get("Location: Checkout Payment Deposit")),
        "shipping": parse_address(row, "Shipping"),
        "billing": parse_address(row, "Billing"),
    }


class CompanySheetParser:
    """Agrupa las filas de la hoja por el ID de compañía."""

    def __init__(self, headers: List[str]):
        self.metafield_columns = detect_metafield_columns(headers)

    @classmethod
    def from_rows(cls, rows: List[Dict[str, Any]]) -> "CompanySheetParser":
        return cls(sheet_headers(rows))

    def parse(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Agrupa filas en compañías.

        Las filas sin ID o sin Name se ignoran. Filas posteriores de la misma
        compañía pueden completar notas y contacto principal.

        Returns:
            List[Dict]: Compañías con locations, contactRows y metafields
        """
        companies: Dict[str, Dict[str, Any]] = {}

        for row in rows:
            company_id = to_str(row.get("ID"))
            name = to_str(row.get("Name"))
            if not company_id or not name:
                continue

            company = companies.get(company_id)
            if company is None:
                company = {
                    "id": company_id,
                    "name": name,
                    "externalId": to_optional_str(row.get("External ID")),
                    "notes": to_optional_str(row.get("Notes")),
                    "customerSince": row.get("Customer Since"),
                    "mainContactEmail": normalize_email(row.get("Main Contact: Customer Email")),
                    "locations": {},
                    "contactRows": [],
                    "metafields": {},
                }
                companies[company_id] = company

            if not company["notes"] and not is_empty(row.get("Notes")):
                company["notes"] = to_str(row.get("Notes"))
            if not company["mainContactEmail"]:
                company["mainContactEmail"] = normalize_email(row.get("Main Contact: Customer Email"))

            location_id = to_str(row.get("Location: ID"))
            if location_id and not is_empty(row.get("Location: Name")) and location_id not in company["locations"]:
                company["locations"][location_id] = _parse_location(row)

            email = normalize_email(row.get("Customer: Email"))
            if email:
                company["contactRows"].append(
                    {
                        "email": email,
                        "roleName": to_optional_str(row.get("Customer: Location Role")),
                        "locationId": location_id or None,
                    }
                )

            for metafield in build_metafields_from_row(row, self.metafield_columns):
                company["metafields"][f"{metafield['namespace']}.{metafield['key']}"] = metafield

        parsed = []
        for company in companies.values():
            company["locations"] = list(company["locations"].values())
            company["metafields"] = list(company["metafields"].values())
            parsed.append(company)

        logger.info(f"✅ Parsed {len(parsed)} compan{'y' if len(parsed) == 1 else 'ies'} from sheet")
        return parsed
