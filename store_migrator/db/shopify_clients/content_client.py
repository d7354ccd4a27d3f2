"""
Shopify client for online store content: blogs, articles, comments and pages.

Comments are created through the Admin REST comments endpoint (GraphQL has
no comment creation mutation) and moderated through GraphQL.
"""

import logging
from typing import Any, Dict, List, Optional

from store_migrator.db.queries import (
    ARTICLE_CREATE_MUTATION,
    ARTICLE_SEARCH_QUERY,
    ARTICLE_UPDATE_MUTATION,
    BLOG_CREATE_MUTATION,
    BLOGS_QUERY,
    COMMENT_APPROVE_MUTATION,
    COMMENT_SPAM_MUTATION,
    PAGE_CREATE_MUTATION,
    PAGE_SEARCH_QUERY,
    PAGE_UPDATE_MUTATION,
)
from store_migrator.utils.error_handler import ShopifyAPIException
from store_migrator.utils.id_utils import graphql_to_rest_id, rest_to_graphql_id

from .base_client import BaseShopifyGraphQLClient

logger = logging.getLogger(__name__)


class ShopifyContentClient(BaseShopifyGraphQLClient):
    """
    Specialized client for blogs, articles, comments and pages.
    """

    # =============================================================================
    # BLOGS & ARTICLES
    # =============================================================================

    async def get_blogs(self) -> List[Dict[str, Any]]:
        """Fetch every blog of the store."""
        try:
            return [node async for node in self._paginate(BLOGS_QUERY, "blogs", label="blogs")]

        except Exception as e:
            logger.error(f"Error fetching blogs: {e}")
            raise ShopifyAPIException(f"Failed to fetch blogs: {str(e)}") from e

    async def create_blog(self, blog_input: Dict[str, Any]) -> Dict[str, Any]:
        """Create a blog (BlogCreateInput)."""
        result = await self._execute_query(BLOG_CREATE_MUTATION, {"blog": blog_input}, "blogCreate")
        payload = result.get("blogCreate")
        self._handle_user_errors(payload, "blogCreate")
        blog = payload.get("blog") or {}
        logger.info(f"✅ Created blog {blog.get('handle')} ({blog.get('id')})")
        return blog

    async def find_article(self, blog_id: str, handle: str) -> Optional[Dict[str, Any]]:
        """
        Find an article by handle inside a given blog.

        Returns:
            Article dict or None if not found
        """
        variables = {"first": 10, "query": f"handle:{handle}"}
        result = await self._execute_query(ARTICLE_SEARCH_QUERY, variables, "articleSearch")
        for node in (result.get("articles") or {}).get("nodes") or []:
            if node.get("handle") == handle and (node.get("blog") or {}).get("id") == blog_id:
                return node
        return None

    async def create_article(self, article_input: Dict[str, Any]) -> Dict[str, Any]:
        """Create an article (ArticleCreateInput)."""
        result = await self._execute_query(ARTICLE_CREATE_MUTATION, {"article": article_input}, "articleCreate")
        payload = result.get("articleCreate")
        self._handle_user_errors(payload, "articleCreate")
        return payload.get("article") or {}

    async def update_article(self, article_id: str, article_input: Dict[str, Any]) -> Dict[str, Any]:
        """Update an article (ArticleUpdateInput)."""
        variables = {"id": article_id, "article": article_input}
        result = await self._execute_query(ARTICLE_UPDATE_MUTATION, variables, "articleUpdate")
        payload = result.get("articleUpdate")
        self._handle_user_errors(payload, "articleUpdate")
        return payload.get("article") or {}

    # =============================================================================
    # COMMENTS
    # =============================================================================

    async def create_comment(self, blog_id: str, article_id: str, comment: Dict[str, Any]) -> str:
        """
        Create a comment on an article through the REST endpoint.

        Args:
            blog_id: Blog GID
            article_id: Article GID
            comment: body, author, email

        Returns:
            str: Comment GID
        """
        payload = {
            "comment": {
                **comment,
                "blog_id": int(graphql_to_rest_id(blog_id)),
                "article_id": int(graphql_to_rest_id(article_id)),
            }
        }
        data = await self._rest_request("POST", "comments.json", payload)
        comment_id = (data.get("comment") or {}).get("id")
        if not comment_id:
            raise ShopifyAPIException("Comment create returned no comment id", endpoint="comments.json")
        return rest_to_graphql_id(comment_id, "Comment")

    async def approve_comment(self, comment_id: str) -> Dict[str, Any]:
        """Publish a comment."""
        result = await self._execute_query(COMMENT_APPROVE_MUTATION, {"id": comment_id}, "commentApprove")
        payload = result.get("commentApprove")
        self._handle_user_errors(payload, "commentApprove")
        return payload.get("comment") or {}

    async def mark_comment_as_spam(self, comment_id: str) -> Dict[str, Any]:
        """Mark a comment as spam."""
        result = await self._execute_query(COMMENT_SPAM_MUTATION, {"id": comment_id}, "commentSpam")
        payload = result.get("commentSpam")
        self._handle_user_errors(payload, "commentSpam")
        return payload.get("comment") or {}

    # =============================================================================
    # PAGES
    # =============================================================================

    async def find_page_by_handle(self, handle: str) -> Optional[Dict[str, Any]]:
        """
        Find a page by handle (search plus exact handle comparison).

        Returns:
            Page dict or None if not found
        """
        try:
            result = await self._execute_query(PAGE_SEARCH_QUERY, {"query": f"handle:{handle}"}, "pageSearch")
            for node in (result.get("pages") or {}).get("nodes") or []:
                if node.get("handle") == handle:
                    return node
            return None

        except Exception as e:
            logger.error(f"Error searching page '{handle}': {e}")
            raise ShopifyAPIException(f"Failed to search page: {str(e)}") from e

    async def create_page(self, page_input: Dict[str, Any]) -> Dict[str, Any]:
        """Create a page (PageCreateInput)."""
        result = await self._execute_query(PAGE_CREATE_MUTATION, {"page": page_input}, "pageCreate")
        payload = result.get("pageCreate")
        self._handle_user_errors(payload, "pageCreate")
        return payload.get("page") or {}

    async def update_page(self, page_id: str, page_input: Dict[str, Any]) -> Dict[str, Any]:
        """Update a page (PageUpdateInput)."""
        result = await self._execute_query(PAGE_UPDATE_MUTATION, {"id": page_id, "page": page_input}, "pageUpdate")
        payload = result.get("pageUpdate")
        self._handle_user_errors(payload, "pageUpdate")
        return payload.get("page") or {}
