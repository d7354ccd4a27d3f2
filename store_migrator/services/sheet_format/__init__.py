"""
Conversión de exportaciones Magento a hojas de productos Shopify (Matrixify).
"""

from .magento_converter import MagentoSheetConverter, convert_magento_sheet, parse_configurable_variations

__all__ = [
    "MagentoSheetConverter",
    "convert_magento_sheet",
    "parse_configurable_variations",
]
