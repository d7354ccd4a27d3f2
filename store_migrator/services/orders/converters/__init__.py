"""
Converter services for transforming source orders into target inputs.
"""

from .draft_order_converter import build_address_input, build_applied_discount, build_draft_order_input

__all__ = ["build_address_input", "build_applied_discount", "build_draft_order_input"]
