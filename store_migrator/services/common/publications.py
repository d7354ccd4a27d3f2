"""
Canales de venta (publications) de la tienda destino.

Las hojas Matrixify indican "Published" y "Published Scope":
- web: sólo Online Store
- global: todas las publicaciones
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)

ONLINE_STORE_KEYS = ("Online Store", "online store", "online_store")


def build_publication_map(publications: Iterable[Dict[str, Any]]) -> Dict[str, str]:
    """
    Indexa publicaciones por app.handle, app.title y catalog.title.

    Gana la primera publicación para cada clave (salvo app.handle, que es único).

    Returns:
        Dict: clave -> publication id
    """
    mapping: Dict[str, str] = {}
    for publication in publications:
        publication_id = publication.get("id")
        if not publication_id:
            continue
        app = publication.get("app") or {}
        catalog = publication.get("catalog") or {}

        if app.get("handle"):
            mapping[app["handle"]] = publication_id
        for key in (app.get("title"), catalog.get("title")):
            if key and key not in mapping:
                mapping[key] = publication_id
        if catalog.get("title"):
            mapping.setdefault(str(catalog["title"]).lower(), publication_id)
    return mapping


def build_publication_inputs(
    published: Optional[bool],
    published_scope: Optional[str],
    publication_map: Dict[str, str],
) -> List[Dict[str, str]]:
    """
    Traduce Published / Published Scope a PublicationInput.

    Returns:
        List[Dict]: [{"publicationId": ...}] (vacía si no se publica o el scope es desconocido)
    """
    if published is not True:
        return []

    scope = str(published_scope or "web").strip().lower()

    if scope == "web":
        for key in ONLINE_STORE_KEYS:
            if publication_map.get(key):
                return [{"publicationId": publication_map[key]}]
        logger.warning("⚠️ Online Store publication not found on target")
        return []

    if scope == "global":
        unique_ids = []
        for publication_id in publication_map.values():
            if publication_id and publication_id not in unique_ids:
                unique_ids.append(publication_id)
        return [{"publicationId": publication_id} for publication_id in unique_ids]

    logger.debug(f"Unknown Published Scope '{published_scope}', not publishing")
    return []


def index_publications_by_app_handle(publications: Iterable[Dict[str, Any]]) -> Dict[str, List[str]]:
    """
    Agrupa publicaciones por app.handle (store-to-store).

    Returns:
        Dict: app handle -> [publication ids]
    """
    index: Dict[str, List[str]] = {}
    for publication in publications:
        handle = (publication.get("app") or {}).get("handle")
        if handle and publication.get("id"):
            index.setdefault(handle, []).append(publication["id"])
    return index
