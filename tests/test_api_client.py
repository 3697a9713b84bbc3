"""
Test Platform API Client

This module tests the shared API client including:
- Base URL handling
- Authentication headers
- Envelope unwrapping
- Error extraction
"""

import pytest

from coursehub.shared.api_client import ApiClient, ApiError
from tests.conftest import TEST_TOKEN

def test_build_url_appends_version():
    assert ApiClient(base_url="https://api.test", token="t").build_url("/upload") == "https://api.test/v1/upload"
    assert ApiClient(base_url="https://api.test/v1/", token="t").build_url("/upload") == "https://api.test/v1/upload"

def test_build_url_requires_base_url():
    with pytest.raises(ApiError) as exc_info:
        ApiClient(base_url="", token="t").build_url("/upload")
    assert exc_info.value.message == "API base URL not configured"

def test_auth_headers():
    headers = ApiClient(base_url="https://api.test", token="abc").get_auth_headers()
    assert headers["Authorization"] == "Bearer abc"

    with pytest.raises(ApiError) as exc_info:
        ApiClient(base_url="https://api.test", token="").get_auth_headers()
    assert exc_info.value.message == "No valid authentication token found"

@pytest.mark.asyncio
async def test_post_unwraps_envelope(platform):
    api = ApiClient(base_url=platform.base_url, token=TEST_TOKEN)
    data = await api.post("/upload/abc/complete", {"chapterId": "c", "completedFiles": []})
    assert data == {"uploadId": "abc"}

@pytest.mark.asyncio
async def test_error_message_from_envelope(platform):
    platform.upload_status = 404
    api = ApiClient(base_url=platform.base_url, token=TEST_TOKEN)

    with pytest.raises(ApiError) as exc_info:
        await api.post("/upload", {"chapterId": "c", "files": []})

    assert exc_info.value.status == 404
    assert exc_info.value.message == "Chapter not found"

@pytest.mark.asyncio
async def test_no_content_response(platform):
    api = ApiClient(base_url=platform.base_url, token=TEST_TOKEN)
    assert await api.delete("/chapters/c/resources/r") is None

@pytest.mark.asyncio
async def test_transport_failure():
    api = ApiClient(base_url="http://127.0.0.1:9", token=TEST_TOKEN, timeout=5)
    with pytest.raises(ApiError) as exc_info:
        await api.post("/upload", {})
    assert exc_info.value.status is None
    assert exc_info.value.message.startswith("Request")
