"""Tests unitarios para la conversión Magento → hoja Shopify."""

from store_migrator.services.sheet_format.magento_converter import (
    MagentoSheetConverter,
    as_tags,
    normalize_image_url,
    normalize_list_text,
    normalize_parent_sku,
    parse_configurable_labels,
    parse_configurable_variations,
    slugify,
)

SPECS = {
    "product": [
        {"key": "made_in_usa", "type": "boolean", "source": "made_in_usa"},
        {"key": "product_certs", "type": "list.single_line_text_field", "source": "product_certs"},
        {"key": "main_product_sku", "type": "single_line_text_field", "source": "sku", "onlyForConfigurable": True},
    ],
    "variant": [
        {
            "key": "modal_number",
            "type": "single_line_text_field",
            "source": "modal_number",
            "fallbackSource": "model_number",
        },
    ],
}


def _converter():
    return MagentoSheetConverter(specs=SPECS, image_base_url="https://shop.example.com/media", namespace="magento")


class TestHelpers:
    """Tests para los normalizadores de la conversión."""

    def test_slugify(self):
        """Debe generar handles en minúsculas con guiones."""
        assert slugify("Ice Maker 500 lb's") == "ice-maker-500-lbs"
        assert slugify("  --Hello__World--  ") == "hello-world"

    def test_normalize_image_url(self):
        """Debe prefijar la base sólo a rutas relativas."""
        assert normalize_image_url("/a/b.jpg", "https://x.com/media/") == "https://x.com/media/a/b.jpg"
        assert normalize_image_url("https://cdn/b.jpg", "https://x.com") == "https://cdn/b.jpg"
        assert normalize_image_url("a.jpg", "") == "a.jpg"

    def test_normalize_parent_sku(self):
        """Debe usar el último parent_sku no vacío."""
        assert normalize_parent_sku("OLD-1, NEW-1") == "NEW-1"
        assert normalize_parent_sku("P-1") == "P-1"
        assert normalize_parent_sku(None) == ""

    def test_list_and_tags(self):
        """Debe deduplicar listas y tags manteniendo el orden."""
        assert normalize_list_text("UL|NSF, UL") == '["UL", "NSF"]'
        assert as_tags("Kitchen, Ice", "Ice,  Bar  Tools") == "Kitchen, Ice, Bar Tools"

    def test_parse_configurable_variations_with_commas_in_values(self):
        """Debe permitir comas dentro de los valores de atributo."""
        variations = parse_configurable_variations(
            "sku=A-1,color=Red, Dark,size=S|sku=A-2,color=Blue,size=M"
        )

        assert variations == {
            "A-1": {"color": "Red, Dark", "size": "S"},
            "A-2": {"color": "Blue", "size": "M"},
        }

    def test_parse_configurable_labels(self):
        """Debe parsear pares código=nombre."""
        assert parse_configurable_labels("color=Color,size=Size,bad") == [
            {"code": "color", "name": "Color"},
            {"code": "size", "name": "Size"},
        ]


class TestMagentoSheetConverter:
    """Tests para MagentoSheetConverter.convert."""

    def test_simple_product(self):
        """Debe escribir un producto simple con variante Default Title."""
        converter = _converter()

        rows = converter.convert(
            [
                {
                    "sku": "S-1",
                    "product_type": "simple",
                    "name": "Scoop",
                    "url_key": "ice-scoop",
                    "product_online": 1,
                    "special_price": 12.5,
                    "msrp_price": 0,
                    "qty": 4.0,
                    "weight": 2,
                    "base_image": "/s/c/scoop.jpg",
                    "made_in_usa": "yes",
                    "model_number": "MX-1",
                }
            ]
        )

        assert len(rows) == 1
        row = rows[0]
        assert row["Handle"] == "ice-scoop"
        assert row["Status"] == "active"
        assert row["Published"] == "TRUE"
        assert row["Option1 Value"] == "Default Title"
        assert row["Variant Price"] == "12.5"
        assert row["Variant Compare At Price"] == ""
        assert row["Inventory Available: Shop location"] == "4"
        assert row["Variant Weight Unit"] == "lb"
        assert row["Image Src"] == "https://shop.example.com/media/s/c/scoop.jpg"
        assert row["Metafield: magento.made_in_usa [boolean]"] == "TRUE"
        assert row["Metafield: magento.main_product_sku [single_line_text_field]"] == ""
        assert row["Variant Metafield: magento.modal_number [single_line_text_field]"] == "MX-1"

    def test_configurable_product_with_children(self):
        """Debe agrupar hijos bajo el padre con opciones e imágenes."""
        converter = _converter()
        parent = {
            "sku": "P-1",
            "product_type": "configurable",
            "name": "Ice Bin",
            "configurable_variation_labels": "size=Size",
            "configurable_variations": "sku=C-2,size=Large|sku=C-1,size=Small",
            "base_image": "https://cdn/parent.jpg",
        }
        children = [
            {"sku": "C-2", "product_type": "simple", "parent_sku": "P-1", "base_image": "https://cdn/c2.jpg"},
            {"sku": "C-1", "product_type": "simple", "parent_sku": "OLD,P-1", "base_image": "https://cdn/c1.jpg"},
        ]

        rows = converter.convert(children + [parent])

        handles = {row["Handle"] for row in rows}
        assert handles == {"ice-bin"}
        assert [row["Variant SKU"] for row in rows] == ["C-1", "", "C-2"]

        top = rows[0]
        assert top["Top Row"] == 1
        assert top["Title"] == "Ice Bin"
        assert top["Option1 Name"] == "Size"
        assert top["Option1 Value"] == "Small"
        assert top["Image Src"] == "https://cdn/parent.jpg"
        assert top["Variant Image"] == "https://cdn/c1.jpg"
        assert top["Metafield: magento.main_product_sku [single_line_text_field]"] == "P-1"

        # Fila sólo imagen con la imagen del primer hijo
        assert rows[1]["Image Src"] == "https://cdn/c1.jpg"
        assert rows[1]["Image Position"] == 2

        assert rows[2]["Option1 Value"] == "Large"
        assert rows[2]["Image Position"] == 3
        assert rows[2]["Title"] == ""
        assert any("parent_sku had multiple values" in line for line in converter.logs)

    def test_configurable_without_children(self):
        """Debe crear una variante Default Title con el SKU del padre."""
        converter = _converter()

        rows = converter.convert([{"sku": "P-9", "product_type": "configurable", "name": "Lonely"}])

        assert len(rows) == 1
        assert rows[0]["Variant SKU"] == "P-9"
        assert rows[0]["Type"] == "configurable"
        assert rows[0]["Option1 Value"] == "Default Title"

    def test_orphans_and_unknown_types_logged(self):
        """Debe registrar hijos huérfanos y tipos no soportados."""
        converter = _converter()

        rows = converter.convert(
            [
                {"sku": "C-1", "product_type": "simple", "parent_sku": "MISSING"},
                {"sku": "B-1", "product_type": "bundle"},
            ]
        )

        assert rows == []
        assert any("Orphan children" in line for line in converter.logs)
        assert any('Unhandled product_type="bundle"' in line for line in converter.logs)
