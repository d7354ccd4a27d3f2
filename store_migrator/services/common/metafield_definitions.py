"""
Creación de definiciones de metafields faltantes en la tienda destino.

Antes de importar valores de metafields desde una hoja, cada migración
asegura que exista la definición (ownerType + namespace.key). Las
definiciones existentes con otro tipo se reportan pero no se modifican.
"""

import asyncio
import logging
from typing import Any, Dict, Iterable, List

from store_migrator.core.config import get_settings
from store_migrator.utils.error_handler import ShopifyAPIException
from store_migrator.utils.metafield_utils import RESERVED_NAMESPACE

logger = logging.getLogger(__name__)


async def ensure_metafield_definitions(
    metafield_client,
    owner_type: str,
    metafields: Iterable[Dict[str, Any]],
) -> Dict[str, List[str]]:
    """
    Crea las definiciones de metafields que no existen en destino.

    Args:
        metafield_client: ShopifyMetafieldClient de la tienda destino
        owner_type: PRODUCT, PRODUCTVARIANT, COLLECTION, ARTICLE, CUSTOMER, COMPANY, ...
        metafields: Definiciones deseadas (namespace, key, type)

    Returns:
        Dict: created, existing, mismatched, failed ("namespace.key")
    """
    result: Dict[str, List[str]] = {"created": [], "existing": [], "mismatched": [], "failed": []}
    wanted = [mf for mf in metafields if mf.get("namespace") != RESERVED_NAMESPACE]
    if not wanted:
        return result

    existing = await metafield_client.get_definition_types(owner_type)
    delay = get_settings().DEFINITION_DELAY

    for metafield in wanted:
        definition_key = f"{metafield['namespace']}.{metafield['key']}"

        if definition_key in existing:
            result["existing"].append(definition_key)
            if existing[definition_key] != metafield["type"]:
                result["mismatched"].append(definition_key)
                logger.warning(
                    f"⚠️ Metafield type mismatch for {definition_key}: "
                    f"existing={existing[definition_key]}, sheet={metafield['type']}"
                )
            continue

        logger.info(f"➕ Creating {owner_type} metafield definition: {definition_key} [{metafield['type']}]")
        try:
            await metafield_client.create_definition(
                {
                    "ownerType": owner_type,
                    "namespace": metafield["namespace"],
                    "key": metafield["key"],
                    "type": metafield["type"],
                    "name": metafield["key"],
                    "pin": True,
                }
            )
            existing[definition_key] = metafield["type"]
            result["created"].append(definition_key)
        except ShopifyAPIException as e:
            result["failed"].append(definition_key)
            logger.error(f"❌ Could not create metafield definition {definition_key}: {e.message}")

        await asyncio.sleep(delay)

    return result
