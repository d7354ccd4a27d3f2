"""Tests unitarios para la construcción del DraftOrderInput."""

from store_migrator.services.orders.converters import build_draft_order_input


def _order(**overrides):
    order = {
        "name": "#1001",
        "email": "buyer@example.com",
        "note": None,
        "tags": ["vip"],
        "customAttributes": [{"key": "po", "value": "123"}],
        "customer": {"firstName": "Ana", "lastName": "Mora", "phone": "+50688887777"},
        "billingAddress": {
            "address1": "Calle 1",
            "city": "San José",
            "country": "Costa Rica",
            "firstName": None,
            "lastName": "Billing",
            "phone": None,
        },
        "shippingAddress": None,
        "shippingLines": {
            "nodes": [{"title": "Express", "originalPriceSet": {"presentmentMoney": {"amount": "12.00"}}}]
        },
    }
    order.update(overrides)
    return order


class TestBuildDraftOrderInput:
    """Tests para build_draft_order_input."""

    def test_basic_fields(self):
        """Debe copiar e-mail, nota por defecto, tags y atributos."""
        result = build_draft_order_input(_order(), {"customerId": "c1", "companyId": None}, [{"variantId": "v"}])

        assert result["email"] == "buyer@example.com"
        assert result["note"] == "Migrated from #1001"
        assert result["tags"] == ["vip", "migrated"]
        assert result["customAttributes"] == [{"key": "po", "value": "123"}]
        assert result["customerId"] == "c1"
        assert "purchasingEntity" not in result
        assert result["lineItems"] == [{"variantId": "v"}]
        assert "appliedDiscount" not in result

    def test_b2b_purchasing_entity(self):
        """Debe usar purchasingEntity cuando el cliente pertenece a una empresa."""
        result = build_draft_order_input(_order(), {"customerId": "c1", "companyId": "co1"}, [])

        assert result["purchasingEntity"] == {"customerId": "c1", "companyId": "co1"}
        assert "customerId" not in result

    def test_address_names_and_phone_fallback(self):
        """Debe completar nombres y teléfono faltantes con los del cliente."""
        result = build_draft_order_input(_order(), None, [])

        billing = result["billingAddress"]
        assert billing["firstName"] == "Ana"
        assert billing["lastName"] == "Billing"
        assert billing["phone"] == "+50688887777"
        assert "shippingAddress" not in result

    def test_shipping_line_and_discount_codes(self):
        """Debe tomar la primera línea de envío y describir los códigos aplicados."""
        result = build_draft_order_input(_order(note="Keep"), None, [], ["A", "B"])

        assert result["note"] == "Keep"
        assert result["shippingLine"] == {"title": "Express", "price": "12.00"}
        assert result["appliedDiscount"] == {
            "description": "Migrated discount: A, B",
            "value": 0,
            "valueType": "PERCENTAGE",
        }
