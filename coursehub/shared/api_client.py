"""
Platform API Client Module

This module provides the authenticated HTTP client used to talk to the
e-learning platform API (upload URL issuance, upload completion and
resource deletion).

Features:
- Bearer token headers
- Versioned base URL handling
- Response envelope unwrapping
- Error message extraction
- Timeouts

Data Model:
- Envelope: {success, data, error: {message, code}}
- 204 responses carry no data

Dependencies:
- aiohttp for async HTTP
- logging for tracking

Author: CourseHub Development Team
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp

from coursehub.shared.config import API_BASE_URL, API_TOKEN, API_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

class ApiError(Exception):
    """
    Platform API failure.

    Attributes:
        message: User-facing error message
        status: HTTP status code, None for transport failures
        code: Optional error code from the response envelope
    """

    def __init__(self, message: str, status: Optional[int] = None, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code

class ApiClient:
    """
    Platform API client.

    Attributes:
        base_url: API base URL, "/v1" is appended unless already present
        token: Bearer token sent with every request
        timeout: aiohttp timeout applied per request
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None
    ):
        self.base_url = API_BASE_URL if base_url is None else base_url
        self.token = API_TOKEN if token is None else token
        self.timeout = aiohttp.ClientTimeout(total=timeout or API_TIMEOUT_SECONDS)

    def build_url(self, endpoint: str) -> str:
        """
        Build the full URL for an API endpoint.

        Args:
            endpoint: Path starting with "/", e.g. "/upload"

        Returns:
            str: Absolute URL under the /v1 prefix

        Raises:
            ApiError: If no base URL is configured
        """
        if not self.base_url:
            raise ApiError("API base URL not configured")
        base = self.base_url.rstrip('/')
        if base.endswith('/v1'):
            return f"{base}{endpoint}"
        return f"{base}/v1{endpoint}"

    def get_auth_headers(self) -> Dict[str, str]:
        if not self.token:
            raise ApiError("No valid authentication token found")
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.token}"
        }

    @staticmethod
    async def _read_json(response: aiohttp.ClientResponse) -> Any:
        try:
            return await response.json(content_type=None)
        except (aiohttp.ContentTypeError, ValueError):
            return {}

    @staticmethod
    def _error_message(data: Any) -> Optional[str]:
        if not isinstance(data, dict):
            return None
        error = data.get("error")
        if isinstance(error, dict):
            return error.get("message")
        if isinstance(error, str):
            return error
        return None

    async def request(self, method: str, endpoint: str, payload: Optional[Dict] = None) -> Any:
        """
        Send a request to the platform API and unwrap the envelope.

        Args:
            method: HTTP method
            endpoint: API path
            payload: Optional JSON body

        Returns:
            The envelope's "data" member, or None for 204 responses

        Raises:
            ApiError: For non-2xx responses, unsuccessful envelopes
                and transport failures
        """
        url = self.build_url(endpoint)
        headers = self.get_auth_headers()
        logger.info(f"{method} {url}")

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.request(method, url, headers=headers, json=payload) as response:
                    if not 200 <= response.status < 300:
                        error_data = await self._read_json(response)
                        message = self._error_message(error_data) or f"Request failed: {response.reason}"
                        logger.error(f"{method} {url} returned {response.status}: {message}")
                        raise ApiError(message, status=response.status)

                    if response.status == 204:
                        return None

                    data = await self._read_json(response)
                    if not isinstance(data, dict) or not data.get("success"):
                        message = self._error_message(data) or "Request failed"
                        code = None
                        if isinstance(data, dict) and isinstance(data.get("error"), dict):
                            code = data["error"].get("code")
                        raise ApiError(message, status=response.status, code=code)

                    return data.get("data")
        except aiohttp.ClientError as e:
            logger.error(f"Transport error calling {url}: {str(e)}")
            raise ApiError(f"Request failed: {str(e)}") from e
        except asyncio.TimeoutError as e:
            logger.error(f"Timed out calling {url}")
            raise ApiError("Request timed out") from e

    async def post(self, endpoint: str, payload: Optional[Dict] = None) -> Any:
        return await self.request("POST", endpoint, payload)

    async def delete(self, endpoint: str) -> Any:
        return await self.request("DELETE", endpoint)
