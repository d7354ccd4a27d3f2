"""
ID format conversion utilities for Shopify GraphQL and REST API compatibility.

Shopify uses two ID formats:
- REST API IDs: numeric strings like "298548887612"
- GraphQL IDs: global IDs like "gid://shopify/Article/298548887612"

The blog comment endpoint is REST only, so article/blog ids fetched through
GraphQL have to be converted before posting comments.
"""

import logging
import re
from typing import Optional

logger = logging.getLogger(__name__)

_GID_PATTERN = re.compile(r"^gid://shopify/(\w+)/(\d+)")


def is_gid(value: Optional[str]) -> bool:
    """Return True if the value looks like a GraphQL global ID."""
    return bool(value) and str(value).startswith("gid://")


def rest_to_graphql_id(rest_id, resource_type: str) -> str:
    """
    Convert a REST API ID to a GraphQL global ID.

    Args:
        rest_id: Numeric REST ID (e.g., "298548887612"), int accepted
        resource_type: Resource type (e.g., "Comment", "Product", "TaxonomyCategory")

    Returns:
        GraphQL global ID (e.g., "gid://shopify/Comment/298548887612")
    """
    if rest_id is None or rest_id == "" or not resource_type:
        return ""

    value = str(rest_id).strip()
    if is_gid(value):
        return value

    return f"gid://shopify/{resource_type}/{value}"


def graphql_to_rest_id(graphql_id: Optional[str]) -> str:
    """
    Extract the numeric ID from a GraphQL global ID.

    Args:
        graphql_id: GraphQL global ID (e.g., "gid://shopify/Article/298548887612")

    Returns:
        Numeric REST ID (e.g., "298548887612")
    """
    if not graphql_id:
        return ""

    value = str(graphql_id).strip()
    if value.isdigit():
        return value

    match = _GID_PATTERN.match(value)
    if match:
        return match.group(2)

    logger.warning(f"Could not extract REST ID from: {graphql_id}")
    return value
