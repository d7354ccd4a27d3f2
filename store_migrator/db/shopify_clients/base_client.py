"""
Base Shopify GraphQL client with common functionality.

This module provides the foundation for all Shopify GraphQL clients,
including connection management, rate limiting, retries, pagination and
basic query execution. One client instance talks to one store (source or
target).
"""

import asyncio
import json
import logging
import time
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional

import aiohttp
from aiohttp import ClientTimeout

from store_migrator.core.config import get_settings
from store_migrator.core.logging_config import log_api_call
from store_migrator.utils.error_handler import RateLimitException, ShopifyAPIException, format_user_errors
from store_migrator.utils.retry_handler import RetryPolicy, parse_retry_after

logger = logging.getLogger(__name__)

THROTTLED_CODE = "THROTTLED"


class BaseShopifyGraphQLClient:
    """
    Base client for Shopify GraphQL API operations.

    Provides common functionality like connection management, rate limiting,
    retries, pagination and error handling that all specialized clients inherit.
    """

    def __init__(
        self,
        shop_url: Optional[str] = None,
        access_token: Optional[str] = None,
        api_version: Optional[str] = None,
        label: str = "store",
    ):
        """
        Initialize the base Shopify GraphQL client.

        Args:
            shop_url: Shop domain (e.g. my-store.myshopify.com)
            access_token: Admin API access token
            api_version: Admin API version (defaults to settings)
            label: Human readable store label used in logs ("source", "target")
        """
        self.settings = get_settings()
        self.label = label
        self.shop_url = (shop_url or "").replace("https://", "").replace("http://", "").rstrip("/")
        self.access_token = access_token
        self.api_version = api_version or self.settings.SHOPIFY_API_VERSION

        self.graphql_url = f"https://{self.shop_url}/admin/api/{self.api_version}/graphql.json"
        self.rest_base_url = f"https://{self.shop_url}/admin/api/{self.api_version}"

        # Session, retries and rate limiting
        self.session: Optional[aiohttp.ClientSession] = None
        self.retry_policy = RetryPolicy.from_settings()
        self._last_request_time = 0.0
        self._min_request_interval = self.settings.MIN_REQUEST_INTERVAL

    async def initialize(self, test_connection: bool = True):
        """
        Initialize the HTTP session and test the connection.

        Args:
            test_connection: Run the shop query after opening the session

        Raises:
            ShopifyAPIException: If initialization fails
        """
        try:
            timeout = ClientTimeout(total=self.settings.REQUEST_TIMEOUT, connect=self.settings.CONNECT_TIMEOUT)
            connector = aiohttp.TCPConnector(limit=100, limit_per_host=30)

            self.session = aiohttp.ClientSession(
                timeout=timeout,
                connector=connector,
                headers={"User-Agent": f"Shopify-Store-Migrator/{self.api_version}"},
            )

            if test_connection:
                await self.test_connection()
            logger.info(f"✅ Shopify GraphQL client initialized for {self.label} store {self.shop_url}")

        except Exception as e:
            logger.error(f"❌ Failed to initialize Shopify GraphQL client ({self.label}): {e}")
            if self.session:
                await self.session.close()
                self.session = None
            raise ShopifyAPIException(f"Client initialization failed: {str(e)}") from e

    async def close(self):
        """Close the HTTP session and clean up resources."""
        if self.session:
            await self.session.close()
            self.session = None
            logger.info(f"Shopify GraphQL client closed ({self.label})")

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "X-Shopify-Access-Token": self.access_token or "",
        }

    async def _execute_query(
        self,
        query: str,
        variables: Optional[Dict[str, Any]] = None,
        label: str = "graphql",
    ) -> Dict[str, Any]:
        """
        Execute a GraphQL query with rate limiting, retries and error handling.

        HTTP 429 and 5xx responses (and THROTTLED GraphQL errors) are retried
        with exponential backoff plus the Retry-After header.

        Args:
            query: GraphQL query string
            variables: Query variables
            label: Operation label for logs and errors

        Returns:
            Dict: Query response data

        Raises:
            ShopifyAPIException: If the query fails or retries are exhausted
        """
        if not self.session:
            raise ShopifyAPIException("Client not initialized. Call initialize() first.", endpoint=label)

        payload: Dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        return await self._with_retries(lambda: self._post_graphql(payload, label), label)

    async def _with_retries(self, send: Callable[[], Awaitable[Any]], label: str) -> Any:
        """
        Run a request coroutine under the retry policy.

        Args:
            send: Zero-argument callable returning the request coroutine
            label: Operation label for logs and errors

        Returns:
            Whatever the request returns

        Raises:
            RateLimitException: If still rate limited after the last attempt
            ShopifyAPIException: If the request fails or retries are exhausted
        """
        attempt = 0
        while True:
            attempt += 1
            await self._check_rate_limit()
            try:
                return await send()

            except ShopifyAPIException as e:
                if not self.retry_policy.should_retry(e, attempt):
                    if e.rate_limited and attempt >= self.retry_policy.max_attempts:
                        raise RateLimitException(
                            f"Rate limit still exceeded after {attempt} attempts ({label})",
                            retry_after=e.retry_after,
                            attempts=attempt,
                            endpoint=label,
                        ) from e
                    raise
                wait_time = self.retry_policy.calculate_delay(attempt, e.retry_after)
                logger.warning(
                    f"⚠️ [{self.label}] {label}: {e.message}, retrying in {wait_time:.2f}s "
                    f"(attempt {attempt}/{self.retry_policy.max_attempts})"
                )
                await asyncio.sleep(wait_time)

            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                if attempt >= self.retry_policy.max_attempts:
                    raise ShopifyAPIException(f"Network error: {str(e)}", endpoint=label) from e
                wait_time = self.retry_policy.calculate_delay(attempt)
                logger.warning(f"⚠️ [{self.label}] Network error on {label}, retrying in {wait_time:.2f}s: {e}")
                await asyncio.sleep(wait_time)

    async def _post_graphql(self, payload: Dict[str, Any], label: str) -> Dict[str, Any]:
        started = time.time()
        async with self.session.post(self.graphql_url, json=payload, headers=self._headers()) as response:
            self._last_request_time = time.time()
            status = response.status
            text = await response.text()
            log_api_call(label, self.graphql_url, status, time.time() - started, store=self.label)

            if RetryPolicy.is_retryable_status(status):
                raise ShopifyAPIException(
                    f"HTTP {status}",
                    api_response_code=status,
                    endpoint=label,
                    rate_limited=status == 429,
                    retry_after=parse_retry_after(response.headers.get("Retry-After")),
                )

            try:
                response_data = json.loads(text) if text else {}
            except json.JSONDecodeError as e:
                raise ShopifyAPIException(
                    f"Invalid JSON response ({label}): {text[:400]}",
                    api_response_code=status,
                    endpoint=label,
                ) from e

            if status < 200 or status >= 300:
                raise ShopifyAPIException(
                    f"HTTP {status}: {json.dumps(response_data)[:800]}",
                    api_response_code=status,
                    endpoint=label,
                )

            errors = response_data.get("errors")
            if errors:
                if isinstance(errors, list) and any(
                    (err.get("extensions") or {}).get("code") == THROTTLED_CODE for err in errors if isinstance(err, dict)
                ):
                    raise ShopifyAPIException(
                        "Throttled by Shopify",
                        api_response_code=status,
                        endpoint=label,
                        rate_limited=True,
                    )
                if isinstance(errors, list):
                    error_messages = [err.get("message", str(err)) if isinstance(err, dict) else str(err) for err in errors]
                else:
                    error_messages = [str(errors)]
                raise ShopifyAPIException(
                    f"GraphQL errors ({label}): {', '.join(error_messages)}",
                    api_response_code=status,
                    endpoint=label,
                )

            return response_data.get("data") or {}

    async def _check_rate_limit(self):
        """
        Implement basic rate limiting to avoid overwhelming Shopify's API.
        """
        current_time = time.time()
        time_since_last_request = current_time - self._last_request_time

        if time_since_last_request < self._min_request_interval:
            sleep_time = self._min_request_interval - time_since_last_request
            await asyncio.sleep(sleep_time)

    async def _paginate(
        self,
        query: str,
        connection_path: str,
        variables: Optional[Dict[str, Any]] = None,
        page_size: int = 250,
        label: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> AsyncIterator[Dict[str, Any]]:
        """
        Iterate over every node of a paginated connection.

        Args:
            query: Query with $first and $after variables
            connection_path: Dotted path to the connection (e.g. "orders", "order.lineItems")
            variables: Extra query variables
            page_size: Page size ($first)
            label: Operation label
            limit: Stop after this many nodes

        Yields:
            Dict: Connection nodes
        """
        cursor = None
        yielded = 0
        while True:
            page_variables = {**(variables or {}), "first": page_size, "after": cursor}
            data = await self._execute_query(query, page_variables, label or connection_path)

            connection: Any = data
            for part in connection_path.split("."):
                connection = (connection or {}).get(part)
            if not connection:
                return

            if "edges" in connection:
                nodes = [edge.get("node") for edge in connection.get("edges") or []]
            else:
                nodes = connection.get("nodes") or []

            for node in nodes:
                if node is None:
                    continue
                yield node
                yielded += 1
                if limit is not None and yielded >= limit:
                    return

            page_info = connection.get("pageInfo") or {}
            if not page_info.get("hasNextPage"):
                return
            cursor = page_info.get("endCursor")

    def _handle_user_errors(self, payload: Optional[Dict[str, Any]], operation: str = "operation"):
        """
        Handle mutation userErrors consistently across all clients.

        Args:
            payload: Mutation payload (e.g. data["productSet"])
            operation: Operation name for error context

        Raises:
            ShopifyAPIException: If the payload is missing or has userErrors
        """
        if payload is None:
            raise ShopifyAPIException(f"{operation} returned no payload", endpoint=operation)

        user_errors = payload.get("userErrors") or []
        if user_errors:
            raise ShopifyAPIException(
                f"{operation} failed: {format_user_errors(user_errors)}",
                endpoint=operation,
                user_errors=user_errors,
            )

    async def _rest_request(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Execute an Admin REST request (used where GraphQL has no equivalent).

        HTTP 429 and 5xx responses are retried with the same policy as
        GraphQL queries, honouring the Retry-After header.

        Args:
            method: HTTP method
            path: Path relative to /admin/api/{version}/ (e.g. "comments.json")
            payload: JSON body

        Returns:
            Dict: Parsed JSON response

        Raises:
            RateLimitException: If still rate limited after the last attempt
            ShopifyAPIException: On non-2xx responses or invalid JSON
        """
        if not self.session:
            raise ShopifyAPIException("Client not initialized. Call initialize() first.", endpoint=path)

        return await self._with_retries(lambda: self._send_rest(method, path, payload), f"REST {method} {path}")

    async def _send_rest(self, method: str, path: str, payload: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        url = f"{self.rest_base_url}/{path.lstrip('/')}"
        started = time.time()

        async with self.session.request(method, url, json=payload, headers=self._headers()) as response:
            self._last_request_time = time.time()
            status = response.status
            text = await response.text()
            log_api_call(f"REST {method} {path}", url, status, time.time() - started, store=self.label)

            try:
                data = json.loads(text) if text else {}
            except json.JSONDecodeError:
                data = None

            if status < 200 or status >= 300:
                detail = data.get("errors") if isinstance(data, dict) and data.get("errors") else text
                if not isinstance(detail, str):
                    detail = json.dumps(detail)
                raise ShopifyAPIException(
                    f"REST {method} {path} failed ({status}): {detail[:500]}",
                    api_response_code=status,
                    endpoint=path,
                    rate_limited=status == 429,
                    retry_after=parse_retry_after(response.headers.get("Retry-After")),
                )

            if data is None:
                raise ShopifyAPIException(f"Invalid JSON from REST {path}: {text[:300]}", endpoint=path)

            return data

    async def test_connection(self) -> Dict[str, Any]:
        """
        Test the connection to Shopify GraphQL API.

        Returns:
            Dict: Shop info (name, currency)

        Raises:
            ShopifyAPIException: If connection test fails
        """
        from store_migrator.db.queries import SHOP_INFO_QUERY

        try:
            result = await self._execute_query(SHOP_INFO_QUERY, label="shop")
            shop_info = result.get("shop") or {}
            shop_name = shop_info.get("name", "Unknown")
            currency = shop_info.get("currencyCode", "Unknown")

            logger.info(f"✅ Connected to {self.label} Shopify store: {shop_name} ({currency})")
            return shop_info

        except Exception as e:
            logger.error(f"❌ Connection test failed ({self.label}): {e}")
            raise ShopifyAPIException(f"Connection test failed: {str(e)}") from e

    async def get_locations(self) -> List[Dict[str, Any]]:
        """
        Get all locations for the shop.

        Returns:
            List of location dictionaries
        """
        from store_migrator.db.queries import LOCATIONS_QUERY

        try:
            return [node async for node in self._paginate(LOCATIONS_QUERY, "locations", label="locations")]

        except Exception as e:
            logger.error(f"Error fetching locations: {e}")
            raise ShopifyAPIException(f"Failed to fetch locations: {str(e)}") from e

    async def get_publications(self) -> List[Dict[str, Any]]:
        """
        Get all sales channel publications of the shop.

        Returns:
            List of publication dictionaries (id, name, catalog, app)
        """
        from store_migrator.db.queries import PUBLICATIONS_QUERY

        try:
            return [node async for node in self._paginate(PUBLICATIONS_QUERY, "publications", label="publications")]

        except Exception as e:
            logger.error(f"Error fetching publications: {e}")
            raise ShopifyAPIException(f"Failed to fetch publications: {str(e)}") from e

    async def publish(self, resource_id: str, publication_ids: List[str]) -> Dict[str, Any]:
        """
        Publish a product or collection to the given publications.

        Args:
            resource_id: Product or collection GID
            publication_ids: Publication GIDs

        Returns:
            Dict: publishablePublish payload
        """
        from store_migrator.db.queries import PUBLISHABLE_PUBLISH_MUTATION

        variables = {
            "id": resource_id,
            "input": [{"publicationId": publication_id} for publication_id in publication_ids],
        }
        result = await self._execute_query(PUBLISHABLE_PUBLISH_MUTATION, variables, "publishablePublish")
        payload = result.get("publishablePublish")
        self._handle_user_errors(payload, "publishablePublish")
        return payload

    def __str__(self):
        """String representation of the client."""
        return f"{self.__class__.__name__}(store={self.label}, shop={self.shop_url}, api_version={self.api_version})"

    def __repr__(self):
        """Detailed string representation of the client."""
        return (
            f"{self.__class__.__name__}("
            f"label='{self.label}', "
            f"shop_url='{self.shop_url}', "
            f"api_version='{self.api_version}', "
            f"initialized={self.session is not None})"
        )
