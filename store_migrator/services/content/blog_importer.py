"""
Importación de blogs, artículos y comentarios desde la hoja "Blog Posts".

La exportación Matrixify trae una fila "Top Row" por artículo y filas
anidadas con los comentarios. Por cada artículo:

1. Se resuelve el blog por handle (se crea si no existe)
2. Se busca el artículo por handle dentro del blog: se actualiza o se crea
3. Se crean sus comentarios por REST y se modera su estado
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

from store_migrator.core.config import get_settings
from store_migrator.core.logging_config import LogContext, log_migration_operation
from store_migrator.db.shopify_clients import ShopifyStoreClient, create_target_client
from store_migrator.services.common import (
    ExcelReportWriter,
    MigrationProgressTracker,
    ensure_metafield_definitions,
    report_timestamp,
)
from store_migrator.utils.error_handler import AppException, ErrorAggregator, ShopifyAPIException, ValidationException
from store_migrator.utils.metafield_utils import (
    build_metafields_from_row,
    detect_metafield_columns,
    sanitize_metafields,
)
from store_migrator.utils.sheet_utils import (
    SheetSource,
    first_value,
    is_empty,
    read_sheet_rows,
    sheet_headers,
    split_list,
    to_bool,
    to_datetime_iso,
    to_optional_str,
    to_str,
)

logger = logging.getLogger(__name__)

REPORT_COLUMNS = ["Status", "Reason", "NewBlogId", "NewArticleId", "CommentsCreated", "CommentsFailed"]
COMMENT_COLUMNS = ("Comment: Body", "Comment: Body HTML", "Comment: Author", "Comment: Email", "Comment: Status")

# Los metafields de estos namespaces pertenecen al SEO del artículo
BLOCKED_ARTICLE_NAMESPACES = frozenset({"global", "seo"})
PRODUCT_REFERENCE_TYPES = frozenset({"product_reference", "list.product_reference"})

DEFAULT_COMMENT_AUTHOR = "Anonymous"
DEFAULT_COMMENT_EMAIL = "no-reply@example.com"


def normalize_comment_policy(value: Any) -> Optional[str]:
    """Blog: Commentable → CommentPolicy (CLOSED, MODERATED, AUTO_PUBLISHED)."""
    if is_empty(value):
        return None
    text = to_str(value).lower()
    if text in ("no", "false", "closed", "0"):
        return "CLOSED"
    if text in ("moderated", "moderate", "1_moderated"):
        return "MODERATED"
    if text in ("yes", "true", "unmoderated", "1"):
        return "AUTO_PUBLISHED"
    return None


def normalize_comment_status(value: Any) -> Optional[str]:
    """Comment: Status → spam | published | unapproved."""
    if is_empty(value):
        return None
    text = to_str(value).lower()
    if text in ("spam", "spammed"):
        return "spam"
    if text in ("published", "approved", "approve"):
        return "published"
    if text in ("unapproved", "pending", "unapprove"):
        return "unapproved"
    return None


def is_top_row(row: Dict[str, Any]) -> bool:
    """Fila principal de un artículo (Top Row, o título + blog si la columna está vacía)."""
    value = row.get("Top Row")
    if is_empty(value):
        return not is_empty(row.get("Title")) and not is_empty(row.get("Blog: Handle"))
    return to_str(value).lower() in ("1", "true")


def is_comment_row(row: Dict[str, Any]) -> bool:
    return any(not is_empty(row.get(column)) for column in COMMENT_COLUMNS)


def comment_rows_for(rows: List[Dict[str, Any]], article_row: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Filas de comentario del mismo blog cuyo Handle o Title coincide con el artículo."""
    blog_handle = to_str(article_row.get("Blog: Handle")).lower()
    handle = to_str(article_row.get("Handle"))
    title = to_str(article_row.get("Title"))

    matches = []
    for row in rows:
        if to_str(row.get("Blog: Handle")).lower() != blog_handle:
            continue
        same_handle = bool(handle) and to_str(row.get("Handle")) == handle
        same_title = bool(title) and to_str(row.get("Title")) == title
        if (same_handle or same_title) and is_comment_row(row):
            matches.append(row)
    return matches


def build_comment_payload(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "body": to_optional_str(first_value(row, "Comment: Body", "Comment: Body HTML")),
        "author": to_str(row.get("Comment: Author")) or DEFAULT_COMMENT_AUTHOR,
        "email": to_str(row.get("Comment: Email")) or DEFAULT_COMMENT_EMAIL,
    }


class BlogArticleImporter:
    """Crea o actualiza artículos de blog (y sus comentarios) en la tienda destino."""

    def __init__(self, target_client: ShopifyStoreClient):
        self.target_client = target_client
        self.settings = get_settings()
        self.error_aggregator = ErrorAggregator()
        self.blogs_by_handle: Dict[str, Dict[str, Any]] = {}
        self.metafield_columns: List[Dict[str, str]] = []
        self._product_ids: Dict[str, Optional[str]] = {}
        self.stats = {"createdBlogs": 0, "createdArticles": 0, "updatedArticles": 0, "failed": 0}

    def detect_columns(self, headers: List[str]):
        self.metafield_columns = [
            column
            for column in detect_metafield_columns(headers)
            if column["namespace"].lower() not in BLOCKED_ARTICLE_NAMESPACES
        ]
        logger.info(f"🔎 Detected {len(self.metafield_columns)} ARTICLE metafield column(s)")

    async def load_blogs(self):
        blogs = await self.target_client.content.get_blogs()
        self.blogs_by_handle = {to_str(blog["handle"]).lower(): blog for blog in blogs if blog.get("handle")}

    async def resolve_blog(self, row: Dict[str, Any]) -> Dict[str, Any]:
        """Blog del artículo; se crea si no existe en destino."""
        handle = to_str(row.get("Blog: Handle"))
        blog = self.blogs_by_handle.get(handle.lower())
        if blog:
            return blog

        blog_input: Dict[str, Any] = {"title": to_str(row.get("Blog: Title")) or handle, "handle": handle}
        template_suffix = to_optional_str(row.get("Blog: Template Suffix"))
        if template_suffix:
            blog_input["templateSuffix"] = template_suffix
        comment_policy = normalize_comment_policy(row.get("Blog: Commentable"))
        if comment_policy:
            blog_input["commentPolicy"] = comment_policy

        logger.info(f"🆕 Blog '{handle}' not found, creating it")
        blog = await self.target_client.content.create_blog(blog_input)
        self.blogs_by_handle[handle.lower()] = blog
        self.stats["createdBlogs"] += 1
        return blog

    async def _product_reference_value(self, column: Dict[str, str], raw: Any) -> Optional[str]:
        product_ids = []
        for handle in split_list(raw):
            if handle not in self._product_ids:
                product = await self.target_client.products.get_product_by_handle(handle)
                self._product_ids[handle] = (product or {}).get("id")
            if self._product_ids[handle]:
                product_ids.append(self._product_ids[handle])

        if not product_ids:
            logger.warning(f"⚠️ No target products found for handles: {raw}")
            return None
        if column["type"] == "product_reference":
            return product_ids[0]
        return json.dumps(product_ids)

    async def build_metafields(self, row: Dict[str, Any]) -> List[Dict[str, Any]]:
        """
        Metafields del artículo.

        Las referencias a productos se resuelven por handle en destino; el
        resto de referencias se descarta.
        """
        entity_label = f"{row.get('Blog: Handle') or 'blog'}::{row.get('Handle') or row.get('Title') or 'row'}"
        plain_columns = [column for column in self.metafield_columns if column["type"] not in PRODUCT_REFERENCE_TYPES]
        metafields = sanitize_metafields(build_metafields_from_row(row, plain_columns), "ARTICLE", entity_label)

        for column in self.metafield_columns:
            if column["type"] not in PRODUCT_REFERENCE_TYPES or is_empty(row.get(column["column"])):
                continue
            value = await self._product_reference_value(column, row[column["column"]])
            if value:
                metafields.append(
                    {"namespace": column["namespace"], "key": column["key"], "type": column["type"], "value": value}
                )
        return metafields

    async def build_article_input(self, row: Dict[str, Any], blog_id: str) -> Dict[str, Any]:
        """Traduce una fila Top Row a ArticleCreateInput."""
        published = to_bool(row.get("Published"))
        article_input: Dict[str, Any] = {
            "blogId": blog_id,
            "title": to_str(row.get("Title")),
            "body": to_str(row.get("Body HTML")),
            "handle": to_str(row.get("Handle")),
            "tags": split_list(row.get("Tags")),
            "summary": to_optional_str(row.get("Summary HTML")),
            "templateSuffix": to_optional_str(row.get("Template Suffix")),
            "isPublished": bool(published),
        }
        if published:
            published_at = to_datetime_iso(row.get("Published At"))
            if published_at:
                article_input["publishDate"] = published_at

        author = to_optional_str(row.get("Author"))
        if author:
            article_input["author"] = {"name": author}

        image_src = to_optional_str(row.get("Image Src"))
        if image_src:
            article_input["image"] = {"url": image_src, "altText": to_optional_str(row.get("Image Alt Text"))}

        metafields = await self.build_metafields(row)
        if metafields:
            article_input["metafields"] = metafields

        seo_title = to_optional_str(row.get("Metafield: title_tag [string]"))
        seo_description = to_optional_str(row.get("Metafield: description_tag [string]"))
        if seo_title or seo_description:
            article_input["seo"] = {"title": seo_title, "description": seo_description}

        return article_input

    async def upsert_article(self, row: Dict[str, Any], blog: Dict[str, Any]) -> Dict[str, Any]:
        """
        Actualiza el artículo si su handle existe en el blog; si no, lo crea.

        Returns:
            Dict: {"article": ..., "action": created|updated}
        """
        article_input = await self.build_article_input(row, blog["id"])
        handle = to_str(row.get("Handle"))
        existing = await self.target_client.content.find_article(blog["id"], handle) if handle else None

        if existing:
            update_input = {key: value for key, value in article_input.items() if key not in ("blogId", "seo")}
            article = await self.target_client.content.update_article(existing["id"], update_input)
            self.stats["updatedArticles"] += 1
            logger.info(f"🔄 Updated article {article.get('id')} ({handle})")
            return {"article": article, "action": "updated"}

        article = await self.target_client.content.create_article(article_input)
        self.stats["createdArticles"] += 1
        logger.info(f"✅ Created article {article.get('id')} ({article.get('handle')})")
        return {"article": article, "action": "created"}

    async def apply_comment_status(self, comment_id: str, status: Any):
        normalized = normalize_comment_status(status)
        if normalized == "published":
            await self.target_client.content.approve_comment(comment_id)
        elif normalized == "spam":
            await self.target_client.content.mark_comment_as_spam(comment_id)

    async def create_comments(self, comment_rows: List[Dict[str, Any]], blog_id: str, article_id: str) -> Dict[str, int]:
        """
        Crea los comentarios del artículo y aplica su estado.

        Returns:
            Dict: created, failed
        """
        counts = {"created": 0, "failed": 0}
        if comment_rows:
            logger.info(f"💬 Creating {len(comment_rows)} comment(s)")

        for index, comment_row in enumerate(comment_rows, start=1):
            payload = build_comment_payload(comment_row)
            if not payload["body"]:
                counts["failed"] += 1
                logger.warning(f"⚠️ Comment #{index} skipped (missing body)")
                continue

            try:
                comment_id = await self.target_client.content.create_comment(blog_id, article_id, payload)
            except ShopifyAPIException as e:
                counts["failed"] += 1
                logger.error(f"❌ Comment #{index} failed: {e.message}")
                continue

            try:
                await self.apply_comment_status(comment_id, comment_row.get("Comment: Status"))
            except ShopifyAPIException as e:
                logger.warning(f"⚠️ Status not applied to comment {comment_id}: {e.message}")

            counts["created"] += 1
            await asyncio.sleep(self.settings.COMMENT_DELAY)
        return counts

    async def import_article(self, row: Dict[str, Any], rows: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Procesa una fila de artículo.

        Returns:
            Dict: {"action": created|updated, "report": columnas Status, Reason, NewBlogId, ...}
        """
        if is_empty(row.get("Blog: Handle")):
            raise ValidationException('Missing "Blog: Handle"', field="Blog: Handle")
        if is_empty(row.get("Title")) and is_empty(row.get("Body HTML")):
            raise ValidationException('Missing article content: "Title" and "Body HTML" are empty', field="Title")

        blog = await self.resolve_blog(row)
        outcome = await self.upsert_article(row, blog)
        article_id = outcome["article"].get("id")
        comments = await self.create_comments(comment_rows_for(rows, row), blog["id"], article_id)

        reason = ""
        if outcome["action"] == "updated":
            reason = "Article already exists on target store (updated by handle match)"
        return {
            "action": outcome["action"],
            "report": {
                "Status": "SUCCESS",
                "Reason": reason,
                "NewBlogId": blog["id"],
                "NewArticleId": article_id,
                "CommentsCreated": str(comments["created"]),
                "CommentsFailed": str(comments["failed"]),
            },
        }

    async def run(self, rows: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Importa todos los artículos de la hoja.

        Returns:
            Dict: ok, createdBlogs, createdArticles, updatedArticles, failedCount,
                totalProcessed, reportPath
        """
        job_id = f"blog_articles_{report_timestamp()}"
        top_rows = [row for row in rows if is_top_row(row)]
        report = ExcelReportWriter("blog_articles_sync_report", REPORT_COLUMNS, sheet_name="Blog Sync Report")

        with LogContext(job_id=job_id, operation="blog_articles"):
            logger.info(f"🚀 Loaded {len(rows)} rows, processing {len(top_rows)} top row(s)")
            log_migration_operation("blog_articles_start", "target", job_id=job_id, articles=len(top_rows))

            self.detect_columns(sheet_headers(top_rows))
            await ensure_metafield_definitions(self.target_client.metafields, "ARTICLE", self.metafield_columns)
            await self.load_blogs()

            tracker = MigrationProgressTracker(total_items=len(top_rows), operation_name="Blog articles", job_id=job_id)
            for index, row in enumerate(top_rows, start=1):
                article = row.get("Handle") or row.get("Title") or "n/a"
                label = f"#{index} blog={row.get('Blog: Handle') or 'n/a'} article={article}"
                logger.info(f"➡️ Processing {label}")
                self.error_aggregator.increment_processed()

                try:
                    result = await self.import_article(row, rows)
                except Exception as e:
                    reason = e.message if isinstance(e, AppException) else str(e)
                    self.stats["failed"] += 1
                    self.error_aggregator.add_error(e, {"row": index})
                    logger.error(f"❌ Failed {label}: {reason}")
                    result = {"action": "failed", "report": {"Status": "FAILED", "Reason": reason}}

                report.add_row({**row, **result["report"]})
                await report.save()
                tracker.update(
                    created=int(result["action"] == "created"),
                    updated=int(result["action"] == "updated"),
                    errors=int(result["action"] == "failed"),
                )
                if tracker.should_log_progress():
                    tracker.log_progress()
                await asyncio.sleep(self.settings.ROW_DELAY)

            tracker.log_progress(prefix="🏁 ")
            report_path = await report.save() if report.rows else None

        return {
            "ok": self.stats["failed"] == 0,
            "createdBlogs": self.stats["createdBlogs"],
            "createdArticles": self.stats["createdArticles"],
            "updatedArticles": self.stats["updatedArticles"],
            "failedCount": self.stats["failed"],
            "totalProcessed": len(top_rows),
            "reportCount": len(report.rows),
            "reportPath": str(report_path) if report_path else None,
            "errors": self.error_aggregator.get_summary(),
        }


async def import_blog_articles(
    source: SheetSource,
    filename: Optional[str] = None,
    sheet_name: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Punto de entrada: artículos (y comentarios) desde la hoja de blogs.
    """
    settings = get_settings()
    sheet = sheet_name or [settings.BLOG_SHEET_NAME, "Blog Posts"]
    rows = await read_sheet_rows(source, sheet_name=sheet, filename=filename)
    target_client = create_target_client()
    try:
        await target_client.initialize()
        return await BlogArticleImporter(target_client).run(rows)
    finally:
        await target_client.close()
