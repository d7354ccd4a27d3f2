"""
API endpoints para lanzar los trabajos de migración.

Los trabajos basados en hojas reciben el archivo como multipart
(`file` + `sheet_name` opcional); los trabajos tienda a tienda y de
mantenimiento reciben un cuerpo JSON.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from fastapi import APIRouter, File, Form, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, Field

from store_migrator.services.collections.sheet_importer import import_custom_collections, import_smart_collections
from store_migrator.services.collections.store_sync import sync_collections_store_to_store
from store_migrator.services.companies.importer import import_companies
from store_migrator.services.companies.store_sync import sync_companies_store_to_store
from store_migrator.services.content.blog_importer import import_blog_articles
from store_migrator.services.content.page_importer import import_pages
from store_migrator.services.customers.sheet_importer import import_customers
from store_migrator.services.discounts.importer import import_discounts
from store_migrator.services.files.pdf_uploader import upload_pdf_files
from store_migrator.services.maintenance.metafield_cleanup import delete_metafield_definitions
from store_migrator.services.maintenance.order_cleanup import delete_orders
from store_migrator.services.orders.orchestrator import migrate_orders
from store_migrator.services.products.sheet_importer import migrate_products_from_sheet
from store_migrator.services.products.store_sync import sync_products_store_to_store
from store_migrator.services.sheet_format.magento_converter import convert_magento_sheet
from store_migrator.utils.error_handler import AppException

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/migrations", tags=["Migrations"])

SheetJob = Callable[..., Awaitable[Dict[str, Any]]]


class StoreSyncRequest(BaseModel):
    """Parámetros de los trabajos tienda a tienda."""

    limit: Optional[int] = Field(None, ge=1, description="Máximo de registros a migrar")
    query: Optional[str] = Field(None, description="Filtro de búsqueda Shopify sobre la tienda origen")


class CompanySyncRequest(BaseModel):
    """Compañías de origen a sincronizar; vacío usa companies.json."""

    company_ids: List[str] = Field(default_factory=list, description="IDs o GIDs de compañía en origen")


class MetafieldCleanupRequest(BaseModel):
    """Parámetros del borrado de metafield definitions."""

    owner_type: Optional[str] = Field(None, description="MetafieldOwnerType, por defecto METAFIELD_OWNER_TYPE")
    namespace: Optional[str] = None
    key_prefix: Optional[str] = None
    limit: Optional[int] = Field(None, ge=0)
    delete_values: Optional[bool] = None
    dry_run: bool = True


class OrderCleanupRequest(BaseModel):
    """Parámetros del borrado de pedidos en destino."""

    limit: Optional[int] = Field(None, ge=1)
    dry_run: bool = True


async def _run_sheet_job(label: str, job: SheetJob, file: UploadFile, sheet_name: Optional[str]) -> Dict[str, Any]:
    """
    Lee el archivo subido y ejecuta el trabajo de hoja.

    Las excepciones de la aplicación se propagan a sus manejadores; el
    resto se convierte en HTTP 500.
    """
    if not file.filename:
        raise HTTPException(status_code=400, detail="Debe adjuntar un archivo")

    try:
        logger.info(f"📥 {label}: archivo recibido {file.filename}")
        content = await file.read()
        result = await job(content, filename=file.filename, sheet_name=sheet_name or None)
        logger.info(f"✅ {label} completado")
        return result
    except AppException:
        raise
    except Exception as e:
        logger.error(f"❌ Error en {label}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error en {label}: {str(e)}")


@router.post("/products")
async def import_products(file: UploadFile = File(...), sheet_name: Optional[str] = Form(None)) -> Dict[str, Any]:
    """Crea productos en destino desde una hoja con formato de productos Shopify."""
    return await _run_sheet_job("products", migrate_products_from_sheet, file, sheet_name)


@router.post("/products/magento-convert")
async def convert_magento(file: UploadFile = File(...)) -> Dict[str, Any]:
    """
    Convierte una exportación Magento en una hoja de productos Shopify.

    No llama a Shopify; devuelve la ruta de la hoja generada y del log.
    """
    try:
        content = await file.read()
        return await run_in_threadpool(convert_magento_sheet, content, file.filename)
    except AppException:
        raise
    except Exception as e:
        logger.error(f"❌ Error convirtiendo hoja Magento: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error al convertir la hoja: {str(e)}")


@router.post("/collections/smart")
async def import_smart(file: UploadFile = File(...), sheet_name: Optional[str] = Form(None)) -> Dict[str, Any]:
    return await _run_sheet_job("smart collections", import_smart_collections, file, sheet_name)


@router.post("/collections/custom")
async def import_custom(file: UploadFile = File(...), sheet_name: Optional[str] = Form(None)) -> Dict[str, Any]:
    return await _run_sheet_job("custom collections", import_custom_collections, file, sheet_name)


@router.post("/blogs")
async def import_blogs(file: UploadFile = File(...), sheet_name: Optional[str] = Form(None)) -> Dict[str, Any]:
    """Crea blogs, artículos y comentarios desde la hoja de blogs."""
    return await _run_sheet_job("blogs", import_blog_articles, file, sheet_name)


@router.post("/pages")
async def import_pages_sheet(file: UploadFile = File(...), sheet_name: Optional[str] = Form(None)) -> Dict[str, Any]:
    return await _run_sheet_job("pages", import_pages, file, sheet_name)


@router.post("/companies")
async def import_companies_sheet(
    file: UploadFile = File(...), sheet_name: Optional[str] = Form(None)
) -> Dict[str, Any]:
    """Crea companies B2B con sus locations y contactos."""
    return await _run_sheet_job("companies", import_companies, file, sheet_name)


@router.post("/customers")
async def import_customers_sheet(
    file: UploadFile = File(...), sheet_name: Optional[str] = Form(None)
) -> Dict[str, Any]:
    return await _run_sheet_job("customers", import_customers, file, sheet_name)


@router.post("/discounts")
async def import_discounts_sheet(
    file: UploadFile = File(...), sheet_name: Optional[str] = Form(None)
) -> Dict[str, Any]:
    """Crea descuentos (código y automáticos) desde una exportación Matrixify."""
    return await _run_sheet_job("discounts", import_discounts, file, sheet_name)


@router.post("/files")
async def upload_files(file: UploadFile = File(...), sheet_name: Optional[str] = Form(None)) -> Dict[str, Any]:
    """Sube los PDFs referenciados en la hoja a Files."""
    return await _run_sheet_job("files", upload_pdf_files, file, sheet_name)


@router.post("/orders")
async def migrate_orders_endpoint(request: StoreSyncRequest) -> Dict[str, Any]:
    """
    Migra pedidos de la tienda origen a la destino.

    Cada pedido se recrea como draft order completado y después se
    replican holds, fulfillments y refunds.
    """
    try:
        logger.info(f"🔄 Iniciando migración de pedidos (limit={request.limit}, query={request.query})")
        return await migrate_orders(limit=request.limit, query=request.query)
    except AppException:
        raise
    except Exception as e:
        logger.error(f"❌ Error en migración de pedidos: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error al migrar pedidos: {str(e)}")


@router.post("/products/sync")
async def sync_products_endpoint(request: StoreSyncRequest) -> Dict[str, Any]:
    try:
        logger.info(f"🔄 Iniciando sincronización de productos (limit={request.limit})")
        return await sync_products_store_to_store(limit=request.limit, query=request.query)
    except AppException:
        raise
    except Exception as e:
        logger.error(f"❌ Error en sincronización de productos: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error al sincronizar productos: {str(e)}")


@router.post("/collections/sync")
async def sync_collections_endpoint(request: StoreSyncRequest) -> Dict[str, Any]:
    try:
        logger.info(f"🔄 Iniciando sincronización de collections (limit={request.limit})")
        return await sync_collections_store_to_store(limit=request.limit)
    except AppException:
        raise
    except Exception as e:
        logger.error(f"❌ Error en sincronización de collections: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error al sincronizar collections: {str(e)}")


@router.post("/companies/sync")
async def sync_companies_endpoint(request: CompanySyncRequest) -> Dict[str, Any]:
    try:
        logger.info(f"🔄 Iniciando sincronización de compañías (ids={len(request.company_ids)})")
        return await sync_companies_store_to_store(company_ids=request.company_ids)
    except AppException:
        raise
    except Exception as e:
        logger.error(f"❌ Error en sincronización de compañías: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error al sincronizar compañías: {str(e)}")


@router.post("/maintenance/metafield-definitions")
async def delete_metafield_definitions_endpoint(request: MetafieldCleanupRequest) -> Dict[str, Any]:
    """Borra metafield definitions en destino; por defecto solo lista (dry_run)."""
    try:
        return await delete_metafield_definitions(
            owner_type=request.owner_type,
            namespace=request.namespace,
            key_prefix=request.key_prefix,
            limit=request.limit,
            delete_values=request.delete_values,
            dry_run=request.dry_run,
        )
    except AppException:
        raise
    except Exception as e:
        logger.error(f"❌ Error borrando metafield definitions: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error al borrar definiciones: {str(e)}")


@router.post("/maintenance/orders")
async def delete_orders_endpoint(request: OrderCleanupRequest) -> Dict[str, Any]:
    """Borra los pedidos de la tienda destino; por defecto solo lista (dry_run)."""
    try:
        return await delete_orders(limit=request.limit, dry_run=request.dry_run)
    except AppException:
        raise
    except Exception as e:
        logger.error(f"❌ Error borrando pedidos: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error al borrar pedidos: {str(e)}")
