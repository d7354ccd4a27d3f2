"""
Shopify client for file uploads (Files section of the admin).

Flow: stagedUploadsCreate -> multipart POST of the bytes to the staged
target -> fileCreate -> poll until the file is READY.
"""

import logging
from typing import Any, Dict, Optional

import aiohttp
from aiohttp import ClientTimeout

from store_migrator.db.queries import (
    FILE_CREATE_MUTATION,
    GENERIC_FILE_STATUS_QUERY,
    STAGED_UPLOADS_CREATE_MUTATION,
)
from store_migrator.utils.error_handler import ShopifyAPIException

from .base_client import BaseShopifyGraphQLClient

logger = logging.getLogger(__name__)

STAGED_UPLOAD_TIMEOUT = 120


class ShopifyFileClient(BaseShopifyGraphQLClient):
    """
    Specialized client for staged uploads and generic files.
    """

    async def create_staged_upload(self, filename: str, mime_type: str, file_size: int) -> Dict[str, Any]:
        """
        Request a staged upload target.

        Returns:
            Dict: url, resourceUrl, parameters [{name, value}]
        """
        variables = {
            "input": [
                {
                    "filename": filename,
                    "httpMethod": "POST",
                    "mimeType": mime_type,
                    "resource": "FILE",
                    "fileSize": str(file_size),
                }
            ]
        }
        result = await self._execute_query(STAGED_UPLOADS_CREATE_MUTATION, variables, "stagedUploadsCreate")
        payload = result.get("stagedUploadsCreate")
        self._handle_user_errors(payload, "stagedUploadsCreate")

        targets = payload.get("stagedTargets") or []
        target = targets[0] if targets else {}
        if not target.get("url") or not target.get("resourceUrl"):
            raise ShopifyAPIException("Missing staged target info from Shopify", endpoint="stagedUploadsCreate")
        return target

    async def upload_to_staged_target(
        self, target: Dict[str, Any], content: bytes, filename: str, mime_type: str
    ) -> None:
        """
        POST the file bytes to the staged target as multipart form data.

        Uses its own session: the staged target is not a Shopify Admin
        endpoint and must not receive the access token.
        """
        form = aiohttp.FormData()
        for parameter in target.get("parameters") or []:
            form.add_field(parameter["name"], parameter["value"])
        form.add_field("file", content, filename=filename, content_type=mime_type)

        async with aiohttp.ClientSession(timeout=ClientTimeout(total=STAGED_UPLOAD_TIMEOUT)) as upload_session:
            async with upload_session.post(target["url"], data=form) as response:
                if response.status < 200 or response.status >= 400:
                    body = await response.text()
                    raise ShopifyAPIException(
                        f"Staged upload failed HTTP {response.status}: {body[:300]}",
                        api_response_code=response.status,
                        endpoint="stagedUpload",
                    )
        logger.debug(f"Uploaded {filename} to staged target ({len(content)} bytes)")

    async def create_file(self, resource_url: str, alt: Optional[str] = None, content_type: str = "FILE") -> Dict[str, Any]:
        """
        Create a file from a staged resource URL.

        Returns:
            Dict: id, fileStatus (url when already available)
        """
        variables = {"files": [{"alt": alt, "contentType": content_type, "originalSource": resource_url}]}
        result = await self._execute_query(FILE_CREATE_MUTATION, variables, "fileCreate")
        payload = result.get("fileCreate")
        self._handle_user_errors(payload, "fileCreate")

        files = payload.get("files") or []
        created = files[0] if files else {}
        if not created.get("id"):
            raise ShopifyAPIException("fileCreate did not return file id", endpoint="fileCreate")
        return created

    async def get_file_status(self, file_id: str) -> Dict[str, Any]:
        """
        Fetch the status of a generic file.

        Returns:
            Dict: fileStatus, url, fileErrors
        """
        result = await self._execute_query(GENERIC_FILE_STATUS_QUERY, {"id": file_id}, "fileStatus")
        node = result.get("node")
        if not node:
            raise ShopifyAPIException(f"node(id) returned null for {file_id}", endpoint="fileStatus")
        if node.get("__typename") != "GenericFile":
            raise ShopifyAPIException(f"Expected GenericFile but got {node.get('__typename')}", endpoint="fileStatus")
        return node
