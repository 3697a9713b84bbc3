"""
Test Resource Cache and Viewer Service

This module tests cached viewer content including:
- TTL expiry
- Explicit invalidation
- Cache hits on repeated views
"""

import pytest

from coursehub.features.chapter_upload.viewer_service import ResourceViewerService
from coursehub.shared.models import FileRole
from coursehub.shared.resource_cache import ResourceCache
from tests.conftest import TEST_CHAPTER_ID, TEST_TOKEN

def test_get_and_set():
    cache = ResourceCache(ttl=60)
    cache.set("res-1", "pdf", b"%PDF")
    assert cache.get("res-1", "pdf") == b"%PDF"
    assert cache.get("res-1", "video") is None
    assert len(cache) == 1

def test_expired_entries_are_dropped():
    cache = ResourceCache(ttl=0)
    cache.set("res-1", "pdf", b"%PDF")
    assert cache.get("res-1", "pdf") is None
    assert len(cache) == 0

def test_writes_purge_expired_entries():
    """Expired entries for resources nobody reopens do not pile up"""
    cache = ResourceCache(ttl=0)
    for index in range(1000):
        cache.set(f"res-{index}", "pdf", b"%PDF")
    cache.set("res-last", "pdf", b"%PDF")
    assert len(cache) == 1

def test_oldest_entries_are_evicted():
    cache = ResourceCache(ttl=60, max_entries=2)
    cache.set("res-1", "pdf", b"1")
    cache.set("res-2", "pdf", b"2")
    cache.set("res-1", "pdf", b"1 again")
    cache.set("res-3", "pdf", b"3")

    assert len(cache) == 2
    assert "res-2" not in cache
    assert cache.get("res-1", "pdf") == b"1 again"
    assert cache.get("res-3", "pdf") == b"3"

def test_invalidate_only_touches_one_resource():
    cache = ResourceCache(ttl=60)
    cache.set("res-1", "pdf", b"%PDF")
    cache.set("res-1", "video", "https://cdn.test/1.mp4")
    cache.set("res-2", "pdf", b"%PDF")

    assert cache.invalidate("res-1") == 2
    assert "res-1" not in cache
    assert cache.get("res-2", "pdf") == b"%PDF"
    assert cache.invalidate("res-1") == 0

@pytest.mark.asyncio
async def test_viewer_caches_content(platform, cache):
    viewer = ResourceViewerService(cache=cache, base_url=platform.base_url, token=TEST_TOKEN)

    first = await viewer.get_content(TEST_CHAPTER_ID, "res-1", FileRole.PDF)
    second = await viewer.get_content(TEST_CHAPTER_ID, "res-1", FileRole.PDF)

    assert first == b"%PDF res-1"
    assert second == first
    assert platform.pdf_fetches == 1

@pytest.mark.asyncio
async def test_deleted_resource_is_fetched_again(upload_service, platform, cache):
    """Deleting a resource drops its cached content instead of reloading everything"""
    viewer = ResourceViewerService(cache=cache, base_url=platform.base_url, token=TEST_TOKEN)
    await viewer.get_content(TEST_CHAPTER_ID, "res-1", FileRole.PDF)
    url = await viewer.get_content(TEST_CHAPTER_ID, "res-1", FileRole.VIDEO)
    assert url == "https://cdn.test/res-1.mp4?sig=abc"

    await upload_service.delete_resource(TEST_CHAPTER_ID, "res-1")
    await viewer.get_content(TEST_CHAPTER_ID, "res-1", FileRole.PDF)

    assert platform.pdf_fetches == 2
