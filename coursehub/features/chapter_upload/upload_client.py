"""
Chapter Upload Client Module

Calls the platform API endpoints behind a chapter upload.

Features:
- Upload URL issuance (POST /upload)
- Upload completion (POST /upload/{uploadId}/complete)
- Resource deletion (DELETE /chapters/{chapterId}/resources/{resourceId})

Dependencies:
- ApiClient for authenticated aiohttp requests
- pydantic for response validation

Author: CourseHub Development Team
"""

import logging
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError

from coursehub.shared.api_client import ApiClient, ApiError
from .errors import CompletionError, RequestError
from .models import CompletedFile, FileManifestEntry, UploadSession

logger = logging.getLogger(__name__)

class ChapterUploadClient:
    """
    Platform API calls for chapter uploads.

    Attributes:
        api: Authenticated platform API client
    """

    def __init__(self, api: Optional[ApiClient] = None):
        self.api = api or ApiClient()

    async def generate_upload_urls(self, chapter_id: str, files: List[FileManifestEntry]) -> UploadSession:
        """
        Request one presigned upload URL per file.

        Args:
            chapter_id: Target chapter
            files: Upload manifest, in batch order

        Returns:
            UploadSession: uploadId plus one URL per manifest entry

        Raises:
            RequestError: If the call fails or the response is unusable
        """
        payload = {
            "chapterId": chapter_id,
            "files": [f.model_dump(by_alias=True, exclude_none=True, mode="json") for f in files]
        }
        try:
            data = await self.api.post("/upload", payload)
        except ApiError as e:
            logger.error(f"Error generating upload URLs: {e.message}")
            raise RequestError(e.message) from e

        try:
            session = UploadSession.model_validate(data)
        except PydanticValidationError as e:
            logger.error(f"Unusable upload URL response: {data}")
            raise RequestError("Upload URL response is missing uploadId or urls") from e

        if len(session.urls) != len(files):
            logger.error(f"Expected {len(files)} upload URLs, got {len(session.urls)}")
            raise RequestError(
                f"Upload URL response returned {len(session.urls)} URLs for {len(files)} files"
            )

        logger.info(f"Issued upload {session.upload_id} with {len(session.urls)} URLs")
        return session

    async def complete_upload(self, upload_id: str, chapter_id: str, completed_files: List[CompletedFile]) -> None:
        """
        Commit transferred files to the chapter.

        Raises:
            CompletionError: If the platform rejects the call
        """
        payload = {
            "chapterId": chapter_id,
            "completedFiles": [
                f.model_dump(by_alias=True, exclude_none=True, mode="json") for f in completed_files
            ]
        }
        try:
            await self.api.post(f"/upload/{upload_id}/complete", payload)
        except ApiError as e:
            logger.error(f"Error completing upload {upload_id}: {e.message}")
            raise CompletionError(e.message) from e
        logger.info(f"Completed upload {upload_id} ({len(completed_files)} files)")

    async def delete_resource(self, chapter_id: str, resource_id: str) -> None:
        """
        Delete one chapter resource.

        Raises:
            ApiError: If the platform rejects the call
        """
        await self.api.delete(f"/chapters/{chapter_id}/resources/{resource_id}")
        logger.info(f"Deleted resource {resource_id} from chapter {chapter_id}")
