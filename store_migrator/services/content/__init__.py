"""
Contenido de la tienda online: artículos de blog (con comentarios) y páginas.
"""

from .blog_importer import BlogArticleImporter, import_blog_articles, normalize_comment_policy
from .page_importer import PageImporter, build_page_input, import_pages

__all__ = [
    "BlogArticleImporter",
    "import_blog_articles",
    "normalize_comment_policy",
    "PageImporter",
    "build_page_input",
    "import_pages",
]
