"""
Resource Viewer Service Module

Fetches viewer content for chapter resources and caches it per resource
id, so deleted resources can be invalidated explicitly.

Features:
- PDF bytes from /api/content/serve-pdf
- Signed video URLs from /api/content/serve-video
- TTL cache shared with the upload service

Dependencies:
- aiohttp for async HTTP
- ResourceCache for caching

Author: CourseHub Development Team
"""

import asyncio
import logging
from typing import Optional, Union

import aiohttp

from coursehub.shared.api_client import ApiError
from coursehub.shared.config import API_TIMEOUT_SECONDS, API_TOKEN, CONTENT_BASE_URL
from coursehub.shared.models import FileRole
from coursehub.shared.resource_cache import ResourceCache

logger = logging.getLogger(__name__)

class ResourceViewerService:
    """
    Cached viewer content lookups.

    Attributes:
        cache: Content cache keyed by resource id
        base_url: Base URL of the content endpoints
        token: Bearer token forwarded to the content endpoints
    """

    def __init__(
        self,
        cache: Optional[ResourceCache] = None,
        base_url: Optional[str] = None,
        token: Optional[str] = None
    ):
        self.cache = cache if cache is not None else ResourceCache()
        self.base_url = CONTENT_BASE_URL if base_url is None else base_url
        self.token = API_TOKEN if token is None else token
        self.timeout = aiohttp.ClientTimeout(total=API_TIMEOUT_SECONDS)

    async def get_content(self, chapter_id: str, resource_id: str, kind: FileRole) -> Union[bytes, str]:
        """
        Get viewer content, from cache when available.

        Args:
            chapter_id: Chapter owning the resource
            resource_id: Resource identifier
            kind: pdf (returns bytes) or video (returns a signed URL)

        Raises:
            ApiError: If the content endpoint fails
        """
        cached = self.cache.get(resource_id, kind.value)
        if cached is not None:
            return cached

        if kind == FileRole.PDF:
            content = await self._fetch(chapter_id, resource_id, "serve-pdf", as_json=False)
        else:
            data = await self._fetch(chapter_id, resource_id, "serve-video", as_json=True)
            content = data.get("url") if isinstance(data, dict) else None
            if not content:
                raise ApiError("Failed to load video")

        self.cache.set(resource_id, kind.value, content)
        return content

    async def _fetch(self, chapter_id: str, resource_id: str, endpoint: str, as_json: bool):
        if not self.base_url:
            raise ApiError("Content base URL not configured")
        url = f"{self.base_url.rstrip('/')}/api/content/{endpoint}"
        params = {"id": resource_id, "chapterId": chapter_id}
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.get(url, params=params, headers=headers) as response:
                    if response.status != 200:
                        try:
                            error_data = await response.json(content_type=None)
                        except (aiohttp.ContentTypeError, ValueError):
                            error_data = {}
                        message = error_data.get("error") if isinstance(error_data, dict) else None
                        logger.error(f"{endpoint} returned {response.status} for resource {resource_id}")
                        raise ApiError(message or f"Failed to load {endpoint}", status=response.status)
                    if as_json:
                        return await response.json(content_type=None)
                    return await response.read()
        except aiohttp.ClientError as e:
            logger.error(f"Error fetching {endpoint} for {resource_id}: {str(e)}")
            raise ApiError(f"Request failed: {str(e)}") from e
        except asyncio.TimeoutError as e:
            raise ApiError("Request timed out") from e
