"""
Pytest Configuration File

This module provides fixtures and configuration for all tests.
"""

import asyncio
from pathlib import Path
from typing import Dict, List, Optional

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from coursehub.features.chapter_upload.models import CandidateFile, UploadConfig
from coursehub.features.chapter_upload.transfer import ParallelUploader
from coursehub.features.chapter_upload.upload_client import ChapterUploadClient
from coursehub.features.chapter_upload.upload_service import ChapterUploadService
from coursehub.shared.api_client import ApiClient
from coursehub.shared.resource_cache import ResourceCache

TEST_TOKEN = "test-token"
TEST_CHAPTER_ID = "chapter-1"
TEST_UPLOAD_ID = "upload-1"

def candidate(file_name: str, file_size: int = 1024, content_type: Optional[str] = None) -> CandidateFile:
    """Describe a file without writing it to disk"""
    if content_type is None:
        content_type = "application/pdf" if file_name.lower().endswith(".pdf") else "video/mp4"
    return CandidateFile(file_name=file_name, file_size=file_size, content_type=content_type)

class FakePlatform:
    """
    In-process stand-in for the platform API and the object store.

    Records every request; PUT responses and API failures are configurable
    per test.
    """

    def __init__(self):
        self.requests: List[Dict] = []
        self.manifest: List[Dict] = []
        self.stored: Dict[str, bytes] = {}
        self.put_status: Dict[str, int] = {}
        self.upload_status = 200
        self.upload_response: Optional[Dict] = None
        self.complete_status = 200
        self.delete_status = 204
        self.pdf_fetches = 0
        self.hold_puts = False
        self.release = asyncio.Event()
        self.puts_started = 0
        self.in_flight = 0
        self.max_in_flight = 0

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_post("/v1/upload", self.create_upload)
        app.router.add_post("/v1/upload/{upload_id}/complete", self.complete_upload)
        app.router.add_delete("/v1/chapters/{chapter_id}/resources/{resource_id}", self.delete_resource)
        app.router.add_put("/s3/{index}", self.put_object)
        app.router.add_get("/api/content/serve-pdf", self.serve_pdf)
        app.router.add_get("/api/content/serve-video", self.serve_video)
        return app

    def calls(self, method: str, prefix: str = "") -> List[Dict]:
        return [r for r in self.requests if r["method"] == method and r["path"].startswith(prefix)]

    async def record(self, request: web.Request) -> Dict:
        entry = {
            "method": request.method,
            "path": request.path,
            "authorization": request.headers.get("Authorization"),
            "json": await request.json() if request.can_read_body and request.method != "PUT" else None
        }
        self.requests.append(entry)
        return entry

    async def create_upload(self, request: web.Request) -> web.Response:
        entry = await self.record(request)
        if self.upload_status != 200:
            return web.json_response(
                {"success": False, "error": {"message": "Chapter not found", "code": "NOT_FOUND"}},
                status=self.upload_status
            )
        if self.upload_response is not None:
            return web.json_response({"success": True, "data": self.upload_response})

        self.manifest = entry["json"]["files"]
        origin = str(request.url.origin())
        urls = [
            {
                "fileId": f"file-{index}",
                "fileName": f["fileName"],
                "uploadUrl": f"{origin}/s3/{index}",
                "s3Key": f"chapters/{entry['json']['chapterId']}/{f['fileName']}",
                "expiresIn": 3600
            }
            for index, f in enumerate(self.manifest)
        ]
        return web.json_response({"success": True, "data": {"uploadId": TEST_UPLOAD_ID, "urls": urls}})

    async def put_object(self, request: web.Request) -> web.Response:
        await self.record(request)
        file_name = self.manifest[int(request.match_info["index"])]["fileName"]
        self.puts_started += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.hold_puts:
                await self.release.wait()
            body = await request.read()
        finally:
            self.in_flight -= 1
        status = self.put_status.get(file_name, 200)
        if status == 200:
            self.stored[file_name] = body
        return web.Response(status=status)

    async def complete_upload(self, request: web.Request) -> web.Response:
        await self.record(request)
        if self.complete_status != 200:
            return web.json_response(
                {"success": False, "error": {"message": "Upload session expired"}},
                status=self.complete_status
            )
        return web.json_response({"success": True, "data": {"uploadId": request.match_info["upload_id"]}})

    async def delete_resource(self, request: web.Request) -> web.Response:
        await self.record(request)
        if self.delete_status != 204:
            return web.json_response(
                {"success": False, "error": {"message": "Resource not found"}},
                status=self.delete_status
            )
        return web.Response(status=204)

    async def serve_pdf(self, request: web.Request) -> web.Response:
        self.pdf_fetches += 1
        return web.Response(body=f"%PDF {request.query['id']}".encode(), content_type="application/pdf")

    async def serve_video(self, request: web.Request) -> web.Response:
        return web.json_response({"url": f"https://cdn.test/{request.query['id']}.mp4?sig=abc"})

@pytest.fixture
def upload_config():
    """Fixture for the default upload configuration"""
    return UploadConfig()

@pytest.fixture
def make_file(tmp_path):
    """Fixture writing real files and returning their descriptions"""
    def _make_file(file_name: str, size: int = 2048, content_type: Optional[str] = None) -> CandidateFile:
        path = Path(tmp_path) / file_name
        path.write_bytes(bytes(index % 251 for index in range(size)))
        return candidate(file_name, size, content_type).model_copy(update={"path": path})
    return _make_file

@pytest_asyncio.fixture
async def platform():
    """Fixture serving a fake platform API and object store"""
    fake = FakePlatform()
    server = TestServer(fake.app())
    await server.start_server()
    fake.base_url = str(server.make_url("/")).rstrip("/")
    yield fake
    fake.release.set()
    await server.close()

@pytest.fixture
def cache():
    return ResourceCache(ttl=60)

@pytest.fixture
def upload_service(platform, cache):
    """Fixture for an upload service wired to the fake platform"""
    api = ApiClient(base_url=platform.base_url, token=TEST_TOKEN, timeout=10)
    return ChapterUploadService(
        client=ChapterUploadClient(api),
        uploader=ParallelUploader(max_concurrency=2, chunk_size=512, timeout=10),
        cache=cache
    )
