"""Tests unitarios para el parseo de hojas de productos."""

from store_migrator.services.products.sheet_parser import (
    ProductSheetParser,
    detect_inventory_columns,
    normalize_category_id,
    normalize_inventory_policy,
    normalize_status,
    normalize_weight_unit,
)


def _rows():
    return [
        {
            "Handle": "classic-shirt",
            "Title": "Classic Shirt",
            "Body HTML": "<p>Cotton</p>",
            "Vendor": "Acme",
            "Type": "Shirts",
            "Tags": "cotton, summer",
            "Status": "Live",
            "Published": "TRUE",
            "Published Scope": "Web",
            "Custom Collections": "shirts,summer",
            "Category: ID": "aa-1-13",
            "Metafield: title_tag [string]": "Classic Shirt | Acme",
            "Metafield: custom.fabric [single_line_text_field]": "Cotton",
            "Metafield: custom.hs [single_line_text_field]": None,
            "Option1 Name": "Size",
            "Option1 Value": "S",
            "Variant ID": 101,
            "Variant SKU": "CS-S",
            "Variant Price": 19.99,
            "Variant Inventory Policy": "deny",
            "Variant Inventory Tracker": "shopify",
            "Variant Weight": 200.0,
            "Variant Weight Unit": "g",
            "Variant Metafield: custom.color [single_line_text_field]": "Blue",
            "Inventory Available: Main Warehouse": 5.0,
            "Inventory On Hand: Main Warehouse": 7.0,
            "Image Src": "https://cdn.example.com/shirt.jpg",
            "Image Alt Text": "Front",
            "Image Position": 1,
        },
        {
            "Handle": "classic-shirt",
            "Title": None,
            "Option1 Name": None,
            "Option1 Value": "M",
            "Variant ID": 102,
            "Variant SKU": "CS-M",
            "Variant Price": 21.0,
            "Inventory Available: Main Warehouse": 3.0,
            "Inventory On Hand: Main Warehouse": None,
            "Image Src": "https://cdn.example.com/shirt.jpg",
            "Image Alt Text": "Front",
            "Image Position": 1,
        },
        {
            "Handle": "classic-shirt",
            "Option1 Value": "M",
            "Variant ID": 102,
            "Variant SKU": "CS-M",
            "Image Src": "https://cdn.example.com/shirt-back.jpg",
            "Image Position": 2,
        },
        {
            "Handle": "gift-card",
            "Title": "Gift Card",
            "Gift Card": "TRUE",
            "Option1 Name": "Title",
            "Option1 Value": "Default Title",
            "Variant Price": 50,
        },
        {
            "Handle": "gift-card",
            "Option1 Name": "Title",
            "Option1 Value": "Default Title",
            "Variant Price": 100,
        },
    ]


class TestNormalizers:
    """Tests para los normalizadores de valores de hoja."""

    def test_category_id(self):
        """Debe construir el gid de categoría y respetar gids existentes."""
        assert normalize_category_id("aa-1-13") == "gid://shopify/TaxonomyCategory/aa-1-13"
        assert normalize_category_id("gid://shopify/TaxonomyCategory/x") == "gid://shopify/TaxonomyCategory/x"
        assert normalize_category_id(None) is None

    def test_weight_unit(self):
        """Debe normalizar unidades de peso conocidas."""
        assert normalize_weight_unit("g") == "GRAMS"
        assert normalize_weight_unit("Kg") == "KILOGRAMS"
        assert normalize_weight_unit("lbs") == "POUNDS"
        assert normalize_weight_unit("ounce") == "OUNCES"
        assert normalize_weight_unit("stone") is None

    def test_status_and_policy(self):
        """Debe traducir LIVE a ACTIVE y las políticas de inventario."""
        assert normalize_status("live") == "ACTIVE"
        assert normalize_status("draft") == "DRAFT"
        assert normalize_status(None) is None
        assert normalize_inventory_policy("denied") == "DENY"
        assert normalize_inventory_policy("yes") == "CONTINUE"


class TestDetectInventoryColumns:
    """Tests para detect_inventory_columns."""

    def test_groups_by_location(self):
        """Debe agrupar columnas Available/On Hand por ubicación."""
        columns = detect_inventory_columns(
            ["Handle", "Inventory Available: Main", "Inventory On Hand: Main", "Inventory Available: Outlet"]
        )

        assert columns == {
            "Main": {"available": "Inventory Available: Main", "on_hand": "Inventory On Hand: Main"},
            "Outlet": {"available": "Inventory Available: Outlet"},
        }


class TestProductSheetParser:
    """Tests para ProductSheetParser.parse."""

    def _parse(self):
        return ProductSheetParser({"Main Warehouse": "gid://shopify/Location/1"}).parse(_rows())

    def test_groups_rows_by_handle(self):
        """Debe producir un producto por handle en orden de aparición."""
        products = self._parse()

        assert [product["handle"] for product in products] == ["classic-shirt", "gift-card"]

    def test_product_fields(self):
        """Debe tomar los campos del producto de la primera fila con valor."""
        product = self._parse()[0]

        assert product["title"] == "Classic Shirt"
        assert product["status"] == "ACTIVE"
        assert product["tags"] == ["cotton", "summer"]
        assert product["collections"] == ["shirts", "summer"]
        assert product["category"] == "gid://shopify/TaxonomyCategory/aa-1-13"
        assert product["published"] is True
        assert product["publishedScope"] == "web"
        assert product["seo"]["title"] == "Classic Shirt | Acme"
        assert product["metafields"] == [
            {"namespace": "custom", "key": "fabric", "type": "single_line_text_field", "value": "Cotton"}
        ]

    def test_media_deduplicated(self):
        """Debe deduplicar imágenes por src, alt y posición."""
        product = self._parse()[0]

        assert [media["src"] for media in product["media"]] == [
            "https://cdn.example.com/shirt.jpg",
            "https://cdn.example.com/shirt-back.jpg",
        ]
        # Sin alt se usa el título del producto
        assert product["media"][1]["alt"] == "Classic Shirt"

    def test_options_and_variants(self):
        """Debe reconstruir opciones y deduplicar variantes por Variant ID."""
        product = self._parse()[0]

        assert product["options"] == [{"name": "Size", "position": 1, "values": ["S", "M"]}]
        assert [variant["sku"] for variant in product["variants"]] == ["CS-S", "CS-M"]
        assert product["variants"][1]["optionValues"] == [{"optionName": "Size", "name": "M"}]

    def test_variant_fields(self):
        """Debe construir precio, inventario, peso y metafields de la variante."""
        variant = self._parse()[0]["variants"][0]

        assert variant["price"] == "19.99"
        assert variant["inventoryPolicy"] == "DENY"
        assert variant["inventoryItem"]["tracked"] is True
        assert variant["inventoryItem"]["sku"] == "CS-S"
        assert variant["inventoryItem"]["measurement"] == {"weight": {"value": 200.0, "unit": "GRAMS"}}
        assert variant["metafields"] == [
            {"namespace": "custom", "key": "color", "type": "single_line_text_field", "value": "Blue"}
        ]

    def test_inventory_prefers_on_hand(self):
        """Debe preferir On Hand sobre Available y caer a Available si está vacío."""
        variants = self._parse()[0]["variants"]

        assert variants[0]["inventoryQuantities"] == [
            {"locationId": "gid://shopify/Location/1", "name": "on_hand", "quantity": 7}
        ]
        assert variants[1]["inventoryQuantities"] == [
            {"locationId": "gid://shopify/Location/1", "name": "available", "quantity": 3}
        ]

    def test_default_title_only_once(self):
        """Debe crear una sola variante Default Title."""
        gift_card = self._parse()[1]

        assert gift_card["giftCard"] is True
        assert len(gift_card["variants"]) == 1
        assert gift_card["variants"][0]["price"] == "50"

    def test_unknown_location_ignored(self):
        """Debe ignorar columnas de inventario de ubicaciones desconocidas."""
        products = ProductSheetParser({}).parse(_rows())

        assert "inventoryQuantities" not in products[0]["variants"][0]
