"""Tests unitarios para la construcción de ProductSetInput."""

from store_migrator.services.products.product_mapper import (
    build_product_set_input,
    build_product_set_input_from_source,
    map_source_metafields,
)


class TestBuildProductSetInputFromSheet:
    """Tests para build_product_set_input (productos agrupados desde hoja)."""

    def _product(self):
        return {
            "handle": "classic-shirt",
            "title": "Classic Shirt",
            "descriptionHtml": "<p>Cotton</p>",
            "productType": None,
            "vendor": "Acme",
            "status": "ACTIVE",
            "seo": {"title": "Shirt SEO", "description": None},
            "collections": ["shirts", "unknown"],
            "tags": ["cotton"],
            "templateSuffix": None,
            "giftCard": None,
            "category": None,
            "media": [{"src": "https://cdn.example.com/a.jpg", "alt": None}],
            "metafields": [
                {"namespace": "custom", "key": "fabric", "type": "single_line_text_field", "value": "Cotton"},
                {"namespace": "shopify", "key": "color-pattern", "type": "list.metaobject_reference", "value": "[]"},
            ],
            "options": [{"name": "Size", "position": 1, "values": ["S", "M"]}],
            "variants": [
                {
                    "sku": "CS-S",
                    "optionValues": [{"optionName": "Size", "name": "S"}],
                    "metafields": [
                        {"namespace": "custom", "key": "swatch", "type": "file_reference", "value": "gid://x"}
                    ],
                }
            ],
        }

    def test_maps_collections_and_drops_unknown(self):
        """Debe traducir handles de colecciones a ids y omitir los desconocidos."""
        product_input = build_product_set_input(self._product(), {"shirts": "gid://shopify/Collection/1"})

        assert product_input["collections"] == ["gid://shopify/Collection/1"]

    def test_sanitizes_metafields(self):
        """Debe omitir el namespace shopify y las referencias."""
        product_input = build_product_set_input(self._product(), {})

        assert product_input["metafields"] == [
            {"namespace": "custom", "key": "fabric", "type": "single_line_text_field", "value": "Cotton"}
        ]
        assert "metafields" not in product_input["variants"][0]

    def test_options_files_and_empty_fields(self):
        """Debe construir opciones y archivos, sin campos vacíos."""
        product_input = build_product_set_input(self._product(), {})

        assert product_input["productOptions"] == [
            {"name": "Size", "position": 1, "values": [{"name": "S"}, {"name": "M"}]}
        ]
        assert product_input["files"] == [{"contentType": "IMAGE", "originalSource": "https://cdn.example.com/a.jpg"}]
        assert product_input["seo"] == {"title": "Shirt SEO"}
        assert "productType" not in product_input
        assert "giftCard" not in product_input


class TestBuildProductSetInputFromSource:
    """Tests para build_product_set_input_from_source (tienda a tienda)."""

    def _source_product(self):
        return {
            "id": "gid://shopify/Product/1",
            "title": "Mug",
            "handle": "mug",
            "descriptionHtml": "<p>Mug</p>",
            "isGiftCard": False,
            "status": None,
            "tags": ["kitchen"],
            "seo": {"title": None, "description": "A mug"},
            "metafields": {
                "nodes": [
                    {"namespace": "custom", "key": "material", "type": "single_line_text_field", "value": "Ceramic"},
                    {"namespace": "custom", "key": "hs_code", "type": "single_line_text_field", "value": "6912"},
                ]
            },
            "options": [{"name": "Color", "position": 1, "values": ["White", "Black"]}],
            "media": {
                "nodes": [
                    {"alt": "", "mediaContentType": "IMAGE", "originalSource": {"url": "https://cdn/mug.jpg"}},
                    {"alt": "Video", "mediaContentType": "VIDEO"},
                ]
            },
            "variants": {
                "nodes": [
                    {
                        "sku": "MUG-W",
                        "barcode": None,
                        "taxable": True,
                        "position": None,
                        "price": "12.50",
                        "compareAtPrice": None,
                        "selectedOptions": [{"name": "Color", "value": "White"}],
                        "metafields": {"nodes": []},
                    }
                ]
            },
        }

    def test_product_fields(self):
        """Debe copiar los campos del producto con status ACTIVE por defecto."""
        product_input = build_product_set_input_from_source(self._source_product())

        assert product_input["handle"] == "mug"
        assert product_input["status"] == "ACTIVE"
        assert product_input["giftCard"] is False
        assert product_input["seo"] == {"description": "A mug"}

    def test_variants(self):
        """Debe mapear option values, posición por índice y precios como string."""
        variant = build_product_set_input_from_source(self._source_product())["variants"][0]

        assert variant == {
            "sku": "MUG-W",
            "taxable": True,
            "position": 1,
            "optionValues": [{"optionName": "Color", "name": "White"}],
            "price": "12.50",
        }

    def test_image_media_only(self):
        """Debe recrear sólo las imágenes, con alt por defecto al título."""
        files = build_product_set_input_from_source(self._source_product())["files"]

        assert files == [{"originalSource": "https://cdn/mug.jpg", "alt": "Mug", "contentType": "IMAGE"}]

    def test_blocked_metafields(self):
        """Debe omitir las claves de código arancelario."""
        metafields = build_product_set_input_from_source(self._source_product())["metafields"]

        assert [metafield["key"] for metafield in metafields] == ["material"]

    def test_map_source_metafields_skips_null_values(self):
        """Debe omitir metafields sin valor y convertir valores a string."""
        metafields = map_source_metafields(
            [
                {"namespace": "a", "key": "n", "type": "number_integer", "value": 3},
                {"namespace": "a", "key": "empty", "type": "single_line_text_field", "value": None},
            ]
        )

        assert metafields == [{"namespace": "a", "key": "n", "type": "number_integer", "value": "3"}]
