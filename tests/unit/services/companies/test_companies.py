"""Tests unitarios para la importación de compañías B2B."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from store_migrator.services.companies.importer import CompanySheetImporter, company_external_id
from store_migrator.services.companies.sheet_parser import (
    CompanySheetParser,
    build_company_address_input,
    normalize_tax_setting,
)
from store_migrator.utils.error_handler import ShopifyAPIException

IMPORTER = "store_migrator.services.companies.importer"


def _rows():
    base = {
        "ID": 101,
        "Name": "Acme",
        "External ID": None,
        "Notes": None,
        "Customer Since": None,
        "Main Contact: Customer Email": "Boss@Acme.com",
        "Location: ID": 1,
        "Location: Name": "HQ",
        "Location: Tax Setting": "do not collect",
        "Location: Tax Exemptions": "CA_STATUS_CARD_EXEMPTION, CA_DIPLOMAT_EXEMPTION",
        "Location: Checkout To Draft": "FALSE",
        "Location: Allow Shipping To Any Address": "TRUE",
        "Location: Checkout Payment Terms": "Net 30",
        "Location: Checkout Payment Deposit": 25,
        "Location: Shipping Address 1": "1 Main St",
        "Location: Shipping Country Code": "US",
        "Location: Shipping First Name": "Ana",
        "Location: Phone": "(555) 123-4567",
        "Customer: Email": "boss@acme.com",
        "Customer: Location Role": "Location admin",
        "Metafield: custom.tier [single_line_text_field]": "gold",
    }
    second = {
        **{key: None for key in base},
        "ID": 101,
        "Name": "Acme",
        "Notes": "Key account",
        "Location: ID": 2,
        "Location: Name": "Warehouse",
        "Customer: Email": "buyer@acme.com",
        "Customer: Location Role": "Ordering only",
    }
    return [base, second, {**{key: None for key in base}, "Name": "No id"}]


def _target_client():
    client = MagicMock()
    company = {
        "id": "gid://shopify/Company/1",
        "name": "Acme",
        "locations": [{"id": "gid://shopify/CompanyLocation/11", "name": "HQ", "externalId": "1"}],
        "contactRoles": [
            {"id": "gid://shopify/CompanyContactRole/1", "name": "Location admin"},
            {"id": "gid://shopify/CompanyContactRole/2", "name": "Ordering only"},
        ],
        "contacts": [],
    }
    client.companies.find_company_by_external_id = AsyncMock(return_value=None)
    client.companies.create_company = AsyncMock(return_value={"id": "gid://shopify/Company/1"})
    client.companies.get_company = AsyncMock(return_value=company)
    client.companies.create_location = AsyncMock(
        return_value={"id": "gid://shopify/CompanyLocation/12", "name": "Warehouse"}
    )
    client.companies.get_payment_terms_template_id = AsyncMock(return_value="gid://shopify/PaymentTermsTemplate/4")
    client.companies.assign_customer_as_contact = AsyncMock(
        side_effect=lambda company_id, customer_id: {"id": f"contact-{customer_id}"}
    )
    client.companies.assign_location_roles = AsyncMock(return_value=[])
    client.companies.assign_main_contact = AsyncMock(return_value={})
    client.customers.find_customer_by_email = AsyncMock(side_effect=lambda email: {"id": f"customer-{email}"})
    client.metafields.set_metafields = AsyncMock(return_value=[])
    return client


class TestCompanySheetParser:
    """Tests para la agrupación de la hoja de compañías."""

    def test_normalizers(self):
        """Debe traducir la configuración de impuestos y validar direcciones."""
        assert normalize_tax_setting("Collect") is False
        assert normalize_tax_setting("do not collect") is True
        assert normalize_tax_setting("maybe") is None
        assert build_company_address_input({"address1": "1 Main St", "countryCode": None}) is None
        address = build_company_address_input({"address1": "1 Main St", "countryCode": "US", "recipient": "Ana"})
        assert address["recipient"] == "Ana"
        assert address["zoneCode"] is None

    def test_groups_locations_contacts_and_metafields(self):
        """Debe agrupar por ID, completar notas y asociar contactos a la ubicación de su fila."""
        rows = _rows()

        companies = CompanySheetParser.from_rows(rows).parse(rows)

        assert len(companies) == 1
        company = companies[0]
        assert company["id"] == "101"
        assert company["notes"] == "Key account"
        assert company["mainContactEmail"] == "boss@acme.com"
        assert [location["name"] for location in company["locations"]] == ["HQ", "Warehouse"]
        hq = company["locations"][0]
        assert hq["taxExempt"] is True
        assert hq["taxExemptions"] == ["CA_STATUS_CARD_EXEMPTION", "CA_DIPLOMAT_EXEMPTION"]
        assert hq["phone"] == "+5551234567"
        assert hq["shipping"]["recipient"] == "Ana"
        assert company["contactRows"] == [
            {"email": "boss@acme.com", "roleName": "Location admin", "locationId": "1"},
            {"email": "buyer@acme.com", "roleName": "Ordering only", "locationId": "2"},
        ]
        assert company["metafields"] == [
            {"namespace": "custom", "key": "tier", "type": "single_line_text_field", "value": "gold"}
        ]


class TestCompanySheetImporter:
    """Tests para CompanySheetImporter."""

    def test_external_id_is_used_for_lookup_and_creation(self):
        """Debe preferir External ID y caer al ID de la hoja."""
        assert company_external_id({"id": "101", "externalId": "ACME-1"}) == "ACME-1"
        assert company_external_id({"id": "101", "externalId": None}) == "101"

    @pytest.mark.asyncio
    async def test_company_input_with_first_location(self):
        """Debe construir la compañía con su primera ubicación y el depósito."""
        rows = _rows()
        company = CompanySheetParser.from_rows(rows).parse(rows)[0]
        importer = CompanySheetImporter(_target_client())

        company_input = await importer.build_company_input(company)

        assert company_input["company"] == {"name": "Acme", "externalId": "101", "note": "Key account"}
        location = company_input["companyLocation"]
        assert location["externalId"] == "1"
        assert location["buyerExperienceConfiguration"] == {
            "checkoutToDraft": False,
            "editableShippingAddress": True,
            "paymentTermsTemplateId": "gid://shopify/PaymentTermsTemplate/4",
            "deposit": {"percentage": 25.0},
        }
        assert location["shippingAddress"]["address1"] == "1 Main St"
        assert location["billingSameAsShipping"] is True
        assert "billingAddress" not in location

    @pytest.mark.asyncio
    async def test_import_company_creates_locations_contacts_and_roles(self):
        """Debe crear la compañía, la ubicación faltante, los contactos, los roles y el contacto principal."""
        rows = _rows()
        company = CompanySheetParser.from_rows(rows).parse(rows)[0]
        client = _target_client()
        importer = CompanySheetImporter(client)

        with patch(f"{IMPORTER}.asyncio.sleep", new=AsyncMock()):
            result = await importer.import_company(company)

        assert result["status"] == "created"
        assert result["locations"] == 2
        assert result["rolesAssigned"] == 2
        client.companies.create_location.assert_awaited_once()
        assert client.companies.create_location.call_args.args[1]["externalId"] == "2"
        assert client.companies.assign_customer_as_contact.await_count == 2
        client.companies.assign_location_roles.assert_any_await(
            "gid://shopify/CompanyLocation/12",
            [
                {
                    "companyContactRoleId": "gid://shopify/CompanyContactRole/2",
                    "companyContactId": "contact-customer-buyer@acme.com",
                }
            ],
        )
        client.companies.assign_main_contact.assert_awaited_once_with(
            "gid://shopify/Company/1", "contact-customer-boss@acme.com"
        )
        metafields = client.metafields.set_metafields.call_args.args[0]
        assert metafields[0]["ownerId"] == "gid://shopify/Company/1"

    @pytest.mark.asyncio
    async def test_duplicate_role_errors_are_tolerated(self):
        """Debe ignorar el error de rol ya asignado y fallar con cualquier otro."""
        rows = _rows()
        company = CompanySheetParser.from_rows(rows).parse(rows)[0]
        client = _target_client()
        client.companies.find_company_by_external_id.return_value = {"id": "gid://shopify/Company/1", "name": "Acme"}
        client.companies.assign_location_roles.return_value = [
            {"field": ["rolesToAssign"], "message": "Contact has already been assigned a role at this location"}
        ]
        importer = CompanySheetImporter(client)

        with patch(f"{IMPORTER}.asyncio.sleep", new=AsyncMock()):
            result = await importer.import_company(company)

        assert result["status"] == "updated"
        assert result["rolesAssigned"] == 0
        client.companies.create_company.assert_not_called()

        client.companies.assign_location_roles.return_value = [{"field": None, "message": "Role is invalid"}]
        with patch(f"{IMPORTER}.asyncio.sleep", new=AsyncMock()):
            with pytest.raises(ShopifyAPIException):
                await importer.import_company(company)

    @pytest.mark.asyncio
    async def test_run_summary(self, tmp_path):
        """Debe contar compañías correctas y fallidas."""
        client = _target_client()
        client.companies.create_company.side_effect = ShopifyAPIException("companyCreate failed")

        with patch(f"{IMPORTER}.asyncio.sleep", new=AsyncMock()), patch(
            f"{IMPORTER}.ensure_metafield_definitions", new=AsyncMock(return_value={})
        ), patch(f"{IMPORTER}.write_json_report", return_value=tmp_path / "companies.json"):
            summary = await CompanySheetImporter(client).run(_rows())

        assert summary["ok"] is False
        assert summary["okCount"] == 0
        assert summary["failedCount"] == 1
        assert summary["results"][0]["reason"] == "companyCreate failed"
        assert summary["reportPath"] == str(tmp_path / "companies.json")
