"""
Chapter Upload Service Module

This module provides the business logic for uploading a batch of chapter
resources and deleting existing ones.

Features:
- Upload manifest building
- Upload URL issuance
- Parallel transfers with progress
- Upload completion
- Resource deletion with cache invalidation

Flow:
- Validated batch -> POST /upload -> PUT each file -> POST complete
- Each stage only runs if the previous one produced a usable result
- Every failure is converted to a user-facing message on the result;
  nothing is retried automatically

Dependencies:
- ChapterUploadClient for platform calls
- ParallelUploader for transfers
- ResourceCache for viewer content
- logging for tracking

Author: CourseHub Development Team
"""

import logging
from typing import List, Optional

from coursehub.shared.models import UploadStatus
from coursehub.shared.resource_cache import ResourceCache
from .constants import (
    CONTENT_TYPE_MP4,
    ERROR_BATCH_UPLOADING,
    ERROR_NO_FILES,
    ERROR_REMOVE_FAILED,
    ERROR_UPLOAD_CANCELLED,
    ERROR_UPLOAD_FAILED
)
from .errors import CompletionError, RequestError
from .grouping import standardized_file_name
from .models import CompletedFile, FileManifestEntry, UploadBatch, UploadResult
from .transfer import ParallelUploader, ProgressCallback
from .upload_client import ChapterUploadClient

logger = logging.getLogger(__name__)

def build_manifest(batch: UploadBatch) -> List[FileManifestEntry]:
    return [
        FileManifestEntry(
            file_name=standardized_file_name(pending),
            file_size=pending.file.file_size,
            content_type=pending.file.content_type,
            quality=pending.quality if pending.file.content_type == CONTENT_TYPE_MP4 else None
        )
        for pending in batch.files
    ]

class ChapterUploadService:
    """
    Upload orchestrator.

    Attributes:
        client: Platform API calls
        uploader: Concurrent transfer engine
        cache: Viewer content cache, invalidated on deletion
    """

    def __init__(
        self,
        client: Optional[ChapterUploadClient] = None,
        uploader: Optional[ParallelUploader] = None,
        cache: Optional[ResourceCache] = None
    ):
        self.client = client or ChapterUploadClient()
        self.uploader = uploader or ParallelUploader()
        self.cache = cache if cache is not None else ResourceCache()

    async def upload_batch(self, batch: UploadBatch, on_progress: Optional[ProgressCallback] = None) -> UploadResult:
        """
        Upload every file of a batch and commit them to its chapter.

        Args:
            batch: Batch to upload, updated in place
            on_progress: Optional callback (local file id, percent)

        Returns:
            UploadResult: success flag and user-facing error text

        Notes:
            - Request failures leave every file pending
            - Transfer failures mark only the failing files as error
            - Completion is called once, only if every transfer succeeded
        """
        if not batch.files:
            return UploadResult(success=False, error=ERROR_NO_FILES)
        if batch.uploading:
            return UploadResult(success=False, error=ERROR_BATCH_UPLOADING)
        if any(f.status == UploadStatus.ERROR for f in batch.files):
            batch.error = ERROR_REMOVE_FAILED
            return UploadResult(success=False, error=ERROR_REMOVE_FAILED)

        batch.uploading = True
        batch.error = None
        batch.clear_cancel()
        for pending in batch.files:
            pending.reset()

        try:
            return await self._run(batch, on_progress)
        except Exception as e:
            logger.exception(f"Unexpected error uploading batch {batch.batch_id}")
            batch.error = str(e) or ERROR_UPLOAD_FAILED
            return UploadResult(success=False, error=batch.error)
        finally:
            # Unsettled transfers go back to pending, also when the submit itself is cancelled
            for pending in batch.files:
                if pending.status == UploadStatus.UPLOADING:
                    pending.reset()
            batch.uploading = False

    async def _run(self, batch: UploadBatch, on_progress: Optional[ProgressCallback]) -> UploadResult:
        logger.info(f"Uploading batch {batch.batch_id}: {len(batch.files)} files to chapter {batch.chapter_id}")

        # Step 1: Generate upload URLs
        try:
            session = await self.client.generate_upload_urls(batch.chapter_id, build_manifest(batch))
        except RequestError as e:
            batch.error = e.message
            return UploadResult(success=False, error=e.message)

        # Step 2: Upload files
        pairs = list(zip(batch.files, session.urls))
        for pending, url in pairs:
            pending.upload_file_id = url.file_id
            pending.s3_key = url.s3_key
            pending.mark_uploading()

        outcome = await self.uploader.upload_all(pairs, on_progress, batch.cancel_event)
        completed = outcome["completed"]
        failed = outcome["failed"]
        result = UploadResult(
            success=False,
            upload_id=session.upload_id,
            completed_files=[f.id for f in completed],
            failed_files=[f.id for f in failed],
            cancelled=bool(outcome["cancelled"])
        )

        if result.cancelled:
            logger.info(f"Batch {batch.batch_id} cancelled, {len(outcome['cancelled'])} files rolled back")
            result.error = ERROR_UPLOAD_CANCELLED
            batch.error = result.error
            return result

        if failed:
            result.error = "\n".join(f.error or ERROR_UPLOAD_FAILED for f in failed)
            batch.error = result.error
            return result

        # Step 3: Complete upload
        completed_files = [
            CompletedFile(
                file_id=url.file_id,
                file_name=url.file_name,
                s3_key=url.s3_key,
                content_type=pending.file.content_type,
                quality=pending.quality if pending.is_video else None
            )
            for pending, url in pairs
        ]
        try:
            await self.client.complete_upload(session.upload_id, batch.chapter_id, completed_files)
        except CompletionError as e:
            logger.error(f"Upload {session.upload_id} transferred but not committed: {e.message}")
            result.error = e.message
            batch.error = e.message
            return result

        result.success = True
        return result

    async def delete_resource(self, chapter_id: str, resource_id: str) -> int:
        """
        Delete a chapter resource and drop its cached viewer content.

        Returns:
            int: Number of cache entries invalidated

        Raises:
            ApiError: If the platform rejects the deletion
        """
        await self.client.delete_resource(chapter_id, resource_id)
        return self.cache.invalidate(resource_id)
