"""Tests unitarios para la importación de blogs y páginas."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from store_migrator.services.content.blog_importer import (
    BlogArticleImporter,
    build_comment_payload,
    comment_rows_for,
    is_top_row,
    normalize_comment_policy,
    normalize_comment_status,
)
from store_migrator.services.content.page_importer import PageImporter, build_page_input
from store_migrator.utils.error_handler import ShopifyAPIException, ValidationException

BLOG = "store_migrator.services.content.blog_importer"
PAGE = "store_migrator.services.content.page_importer"


def _article_row(**overrides):
    row = {
        "Top Row": "TRUE",
        "Blog: Handle": "news",
        "Blog: Title": "News",
        "Blog: Commentable": "moderated",
        "Handle": "launch",
        "Title": "Launch",
        "Body HTML": "<p>We launched</p>",
        "Tags": "launch, press",
        "Published": "FALSE",
        "Author": "Ana",
        "Image Src": None,
        "Comment: Body": None,
        "Comment: Author": None,
        "Comment: Email": None,
        "Comment: Status": None,
        "Metafield: title_tag [string]": "Launch SEO",
        "Metafield: custom.subtitle [single_line_text_field]": "Big day",
        "Metafield: custom.featured [product_reference]": "mug",
    }
    row.update(overrides)
    return row


def _comment_row(body, status="published"):
    return {
        "Top Row": None,
        "Blog: Handle": "news",
        "Handle": "launch",
        "Title": None,
        "Comment: Body": body,
        "Comment: Author": None,
        "Comment: Email": "reader@example.com",
        "Comment: Status": status,
    }


def _target_client():
    client = MagicMock()
    client.content.get_blogs = AsyncMock(return_value=[])
    client.content.create_blog = AsyncMock(return_value={"id": "gid://shopify/Blog/1", "handle": "news"})
    client.content.find_article = AsyncMock(return_value=None)
    client.content.create_article = AsyncMock(return_value={"id": "gid://shopify/Article/10", "handle": "launch"})
    client.content.update_article = AsyncMock(return_value={"id": "gid://shopify/Article/10", "handle": "launch"})
    client.content.create_comment = AsyncMock(return_value="gid://shopify/Comment/100")
    client.content.approve_comment = AsyncMock(return_value={})
    client.content.mark_comment_as_spam = AsyncMock(return_value={})
    client.content.find_page_by_handle = AsyncMock(return_value=None)
    client.content.create_page = AsyncMock(return_value={"id": "gid://shopify/Page/3", "handle": "about"})
    client.content.update_page = AsyncMock(return_value={"id": "gid://shopify/Page/3", "handle": "about"})
    client.products.get_product_by_handle = AsyncMock(
        side_effect=lambda handle: {"id": f"gid://shopify/Product/{handle}"} if handle != "missing" else None
    )
    return client


class TestBlogHelpers:
    """Tests para la normalización de filas de blog."""

    def test_comment_policy(self):
        """Debe traducir Blog: Commentable a CommentPolicy."""
        assert normalize_comment_policy("no") == "CLOSED"
        assert normalize_comment_policy("Moderated") == "MODERATED"
        assert normalize_comment_policy("yes") == "AUTO_PUBLISHED"
        assert normalize_comment_policy("maybe") is None
        assert normalize_comment_policy(None) is None

    def test_comment_status(self):
        """Debe normalizar el estado de los comentarios."""
        assert normalize_comment_status("Spam") == "spam"
        assert normalize_comment_status("approved") == "published"
        assert normalize_comment_status("pending") == "unapproved"
        assert normalize_comment_status("") is None

    def test_top_row_detection(self):
        """Debe usar Top Row y, si falta, exigir título y blog."""
        assert is_top_row({"Top Row": "TRUE"}) is True
        assert is_top_row({"Top Row": "FALSE", "Title": "x", "Blog: Handle": "news"}) is False
        assert is_top_row({"Top Row": None, "Title": "x", "Blog: Handle": "news"}) is True
        assert is_top_row({"Top Row": None, "Title": None, "Blog: Handle": "news"}) is False

    def test_comment_rows_match_article(self):
        """Debe tomar solo las filas de comentario del mismo blog y artículo."""
        article = _article_row()
        other_blog = {**_comment_row("elsewhere"), "Blog: Handle": "press"}
        other_article = {**_comment_row("elsewhere"), "Handle": "other-post"}
        rows = [article, _comment_row("first"), other_blog, other_article]

        matches = comment_rows_for(rows, article)

        assert [row["Comment: Body"] for row in matches] == ["first"]

    def test_comment_payload_defaults(self):
        """Debe completar autor y correo por defecto."""
        payload = build_comment_payload({"Comment: Body HTML": "<p>Hi</p>"})
        assert payload == {"body": "<p>Hi</p>", "author": "Anonymous", "email": "no-reply@example.com"}


class TestBlogArticleImporter:
    """Tests para BlogArticleImporter."""

    @pytest.mark.asyncio
    async def test_article_input_resolves_product_references(self):
        """Debe construir el input con SEO, metafields y referencias resueltas."""
        importer = BlogArticleImporter(_target_client())
        row = _article_row()
        importer.detect_columns(list(row.keys()))

        article_input = await importer.build_article_input(row, "gid://shopify/Blog/1")

        assert article_input["blogId"] == "gid://shopify/Blog/1"
        assert article_input["tags"] == ["launch", "press"]
        assert article_input["isPublished"] is False
        assert "publishDate" not in article_input
        assert article_input["author"] == {"name": "Ana"}
        assert article_input["seo"] == {"title": "Launch SEO", "description": None}
        assert {
            "namespace": "custom",
            "key": "featured",
            "type": "product_reference",
            "value": "gid://shopify/Product/mug",
        } in article_input["metafields"]
        assert {
            "namespace": "custom",
            "key": "subtitle",
            "type": "single_line_text_field",
            "value": "Big day",
        } in article_input["metafields"]

    @pytest.mark.asyncio
    async def test_upsert_updates_existing_without_blog_and_seo(self):
        """Debe actualizar el artículo existente sin enviar blogId ni seo."""
        client = _target_client()
        client.content.find_article.return_value = {"id": "gid://shopify/Article/10"}
        importer = BlogArticleImporter(client)
        importer.detect_columns(list(_article_row().keys()))

        outcome = await importer.upsert_article(_article_row(), {"id": "gid://shopify/Blog/1"})

        assert outcome["action"] == "updated"
        update_input = client.content.update_article.call_args.args[1]
        assert "blogId" not in update_input
        assert "seo" not in update_input
        client.content.create_article.assert_not_called()
        assert importer.stats["updatedArticles"] == 1

    @pytest.mark.asyncio
    async def test_create_comments_applies_status(self):
        """Debe crear comentarios, moderarlos y contar los fallidos."""
        client = _target_client()
        client.content.create_comment.side_effect = [
            "gid://shopify/Comment/1",
            ShopifyAPIException("rejected"),
            "gid://shopify/Comment/3",
        ]
        importer = BlogArticleImporter(client)
        rows = [
            _comment_row("ok", status="published"),
            _comment_row("bad"),
            _comment_row("junk", status="spam"),
            _comment_row(None),
        ]

        with patch(f"{BLOG}.asyncio.sleep", new=AsyncMock()):
            counts = await importer.create_comments(rows, "gid://shopify/Blog/1", "gid://shopify/Article/10")

        assert counts == {"created": 2, "failed": 2}
        client.content.approve_comment.assert_awaited_once_with("gid://shopify/Comment/1")
        client.content.mark_comment_as_spam.assert_awaited_once_with("gid://shopify/Comment/3")

    @pytest.mark.asyncio
    async def test_run_creates_blog_article_and_reports(self, tmp_path):
        """Debe crear blog y artículo y reportar las filas inválidas."""
        client = _target_client()
        importer = BlogArticleImporter(client)
        rows = [
            _article_row(),
            _comment_row("Nice post"),
            _article_row(**{"Blog: Handle": None, "Handle": "orphan"}),
        ]

        with patch(f"{BLOG}.asyncio.sleep", new=AsyncMock()), patch(
            f"{BLOG}.ensure_metafield_definitions", new=AsyncMock(return_value={})
        ), patch(f"{BLOG}.ExcelReportWriter") as writer_cls:
            writer = writer_cls.return_value
            writer.rows = []
            writer.add_row.side_effect = lambda row: writer.rows.append(row)
            writer.save = AsyncMock(return_value=tmp_path / "blog.xlsx")
            summary = await importer.run(rows)

        assert summary["createdBlogs"] == 1
        assert summary["createdArticles"] == 1
        assert summary["failedCount"] == 1
        assert summary["totalProcessed"] == 2
        assert summary["ok"] is False
        client.content.create_blog.assert_awaited_once()
        assert client.content.create_blog.call_args.args[0]["commentPolicy"] == "MODERATED"
        assert writer.rows[0]["Status"] == "SUCCESS"
        assert writer.rows[0]["CommentsCreated"] == "1"
        assert writer.rows[1]["Status"] == "FAILED"
        assert "Blog: Handle" in writer.rows[1]["Reason"]


class TestPageImporter:
    """Tests para PageImporter."""

    def test_page_input(self):
        """Debe publicar por defecto y mapear SEO y metafields."""
        row = {
            "Handle": "about",
            "Title": "About",
            "Body HTML": "<p>Us</p>",
            "Published": None,
            "Template Suffix": "wide",
            "Metafield: description_tag [string]": "About us",
            "Metafield: custom.tagline [single_line_text_field]": "Hello",
        }
        columns = [
            {"namespace": "custom", "key": "tagline", "type": "single_line_text_field",
             "column": "Metafield: custom.tagline [single_line_text_field]"}
        ]

        page_input = build_page_input(row, columns)

        assert page_input["isPublished"] is True
        assert page_input["templateSuffix"] == "wide"
        assert page_input["seo"] == {"title": None, "description": "About us"}
        assert page_input["metafields"] == [
            {"namespace": "custom", "key": "tagline", "type": "single_line_text_field", "value": "Hello"}
        ]

    @pytest.mark.asyncio
    async def test_import_page_creates_or_updates(self):
        """Debe actualizar si el handle existe y crear si no."""
        client = _target_client()
        importer = PageImporter(client)
        row = {"Handle": "about", "Title": "About", "Body HTML": "<p>Us</p>"}

        created = await importer.import_page(row)
        client.content.find_page_by_handle.return_value = {"id": "gid://shopify/Page/3"}
        updated = await importer.import_page(row)

        assert created["action"] == "created"
        assert updated["action"] == "updated"
        client.content.update_page.assert_awaited_once()
        assert client.content.update_page.call_args.args[0] == "gid://shopify/Page/3"

    @pytest.mark.asyncio
    async def test_import_page_validation(self):
        """Debe rechazar filas sin Handle o sin contenido."""
        importer = PageImporter(_target_client())

        with pytest.raises(ValidationException):
            await importer.import_page({"Handle": None, "Title": "About"})
        with pytest.raises(ValidationException):
            await importer.import_page({"Handle": "about", "Title": "", "Body HTML": None})

    @pytest.mark.asyncio
    async def test_run_summary(self, tmp_path):
        """Debe contar creadas, actualizadas y fallidas."""
        client = _target_client()
        client.content.find_page_by_handle.side_effect = [None, {"id": "gid://shopify/Page/9"}]
        rows = [
            {"Handle": "about", "Title": "About", "Body HTML": "x"},
            {"Handle": "faq", "Title": "FAQ", "Body HTML": "y"},
            {"Handle": "", "Title": "Broken", "Body HTML": "z"},
        ]

        with patch(f"{PAGE}.asyncio.sleep", new=AsyncMock()), patch(
            f"{PAGE}.ensure_metafield_definitions", new=AsyncMock(return_value={})
        ), patch(f"{PAGE}.ExcelReportWriter") as writer_cls:
            writer = writer_cls.return_value
            writer.rows = []
            writer.add_row.side_effect = lambda row: writer.rows.append(row)
            writer.save = AsyncMock(return_value=tmp_path / "pages.xlsx")
            summary = await PageImporter(client).run(rows)

        assert summary["createdPages"] == 1
        assert summary["updatedPages"] == 1
        assert summary["failedCount"] == 1
        assert summary["totalProcessed"] == 3
        assert summary["reportPath"] == str(tmp_path / "pages.xlsx")
        assert [row["Status"] for row in writer.rows] == ["SUCCESS", "SUCCESS", "FAILED"]
