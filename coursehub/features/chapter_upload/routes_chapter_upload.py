"""
Chapter Upload Routes Module

This module exposes the chapter resource uploader over HTTP: upload
batches, file selection, submission, cancellation, display grouping and
resource deletion.

Features:
- Batch lifecycle
- File selection and validation
- Quality changes
- Upload submission and cancellation
- Uploaded video grouping
- Resource deletion
- Cached viewer content

Security:
- File validation
- Size limits
- Type checking
- Busy batch protection

Dependencies:
- FastAPI for routing
- Pydantic for validation
- logging for tracking

Author: CourseHub Development Team
"""

import logging
import mimetypes
from typing import List, Optional

from fastapi import Depends, File, HTTPException, Request, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel

from coursehub.shared.api_client import ApiError
from coursehub.shared.models import FileRole, VideoQuality
from . import router
from .batch_store import BatchStore, add_files, change_quality, remove_file
from .errors import BatchBusy, BatchNotFound, FileNotInBatch, ValidationError
from .grouping import group_videos
from .models import ExistingResource, UploadBatch, UploadConfig
from .upload_service import ChapterUploadService
from .viewer_service import ResourceViewerService

logger = logging.getLogger(__name__)

class CreateBatchRequest(BaseModel):
    """
    Batch creation data model.

    Attributes:
        chapter_id (str): Target chapter
        upload_config (Optional[UploadConfig]): Overrides the default limits
    """
    chapter_id: str
    upload_config: Optional[UploadConfig] = None

class ChangeQualityRequest(BaseModel):
    quality: VideoQuality

class GroupResourcesRequest(BaseModel):
    videos: List[ExistingResource]

def get_batch_store(request: Request) -> BatchStore:
    return request.app.state.batch_store

def get_upload_service(request: Request) -> ChapterUploadService:
    return request.app.state.upload_service

def get_viewer_service(request: Request) -> ResourceViewerService:
    return request.app.state.viewer_service

def load_batch(store: BatchStore, batch_id: str) -> UploadBatch:
    try:
        return store.get(batch_id)
    except BatchNotFound as e:
        raise HTTPException(status_code=404, detail=e.message)

def to_http_error(e: ValidationError) -> HTTPException:
    if isinstance(e, BatchBusy):
        return HTTPException(status_code=409, detail=e.message)
    if isinstance(e, FileNotInBatch):
        return HTTPException(status_code=404, detail=e.message)
    return HTTPException(status_code=400, detail=e.message)

logger.info("Registering chapter upload routes...")
@router.post("/batches")
async def create_batch(body: CreateBatchRequest, store: BatchStore = Depends(get_batch_store)):
    """
    Open an empty upload batch for a chapter.

    Args:
        body (CreateBatchRequest): Chapter and optional limits

    Returns:
        dict: Batch state
    """
    batch = store.create(body.chapter_id, body.upload_config)
    return {"status": "success", "batch": batch.summary()}

@router.get("/batches/{batch_id}")
async def get_batch(batch_id: str, store: BatchStore = Depends(get_batch_store)):
    """Get batch state with per-file status and progress"""
    batch = load_batch(store, batch_id)
    return {"status": "success", "batch": batch.summary()}

@router.post("/batches/{batch_id}/files")
async def add_batch_files(
    batch_id: str,
    files: List[UploadFile] = File(...),
    store: BatchStore = Depends(get_batch_store)
):
    """
    Add selected files to a batch.

    Args:
        batch_id (str): Batch identifier
        files (List[UploadFile]): Selected files

    Returns:
        dict: Accepted files, rejection text and batch state

    Raises:
        HTTPException: Unknown batch or batch uploading

    Notes:
        - Rejections are reported in "message", not as errors
        - Rejected files are not kept
    """
    batch = load_batch(store, batch_id)
    if batch.uploading:
        raise HTTPException(status_code=409, detail="Upload already in progress")

    candidates = []
    try:
        for upload in files:
            file_name = upload.filename or "upload"
            content_type = upload.content_type or mimetypes.guess_type(file_name)[0] or "application/octet-stream"
            candidates.append(store.stage_file(batch, file_name, upload.file, content_type))
        accepted, message = add_files(batch, candidates)
    except ValidationError as e:
        raise to_http_error(e)
    finally:
        store.discard_unaccepted(batch, candidates)

    logger.info(f"Batch {batch_id}: accepted {len(accepted)} of {len(candidates)} files")
    return {
        "status": "success",
        "accepted": [f.summary() for f in accepted],
        "message": message,
        "batch": batch.summary()
    }

@router.patch("/batches/{batch_id}/files/{file_id}")
async def change_file_quality(
    batch_id: str,
    file_id: str,
    body: ChangeQualityRequest,
    store: BatchStore = Depends(get_batch_store)
):
    """Change the quality of a pending video"""
    batch = load_batch(store, batch_id)
    try:
        conflict = change_quality(batch, file_id, body.quality)
    except ValidationError as e:
        raise to_http_error(e)
    if conflict:
        raise HTTPException(status_code=409, detail=conflict)
    return {"status": "success", "batch": batch.summary()}

@router.delete("/batches/{batch_id}/files/{file_id}")
async def remove_batch_file(batch_id: str, file_id: str, store: BatchStore = Depends(get_batch_store)):
    """Remove a file from a batch before submission"""
    batch = load_batch(store, batch_id)
    try:
        remove_file(batch, file_id)
    except ValidationError as e:
        raise to_http_error(e)
    return {"status": "success", "batch": batch.summary()}

@router.post("/batches/{batch_id}/submit")
async def submit_batch(
    batch_id: str,
    store: BatchStore = Depends(get_batch_store),
    upload_service: ChapterUploadService = Depends(get_upload_service)
):
    """
    Upload every file of a batch.

    Returns:
        dict: Upload result and final batch state

    Notes:
        - The batch is discarded once the upload is committed
        - On failure the batch stays open with per-file status
    """
    batch = load_batch(store, batch_id)
    logger.info(f"Route hit: POST /batches/{batch_id}/submit")
    result = await upload_service.upload_batch(batch)
    summary = batch.summary()
    if result.success:
        store.discard(batch_id)
    else:
        logger.error(f"Upload of batch {batch_id} failed: {result.error}")
    return {
        "status": "success" if result.success else "error",
        "result": result.model_dump(),
        "batch": summary
    }

@router.post("/batches/{batch_id}/cancel")
async def cancel_batch(batch_id: str, store: BatchStore = Depends(get_batch_store)):
    """Abort the in-flight transfers of a batch"""
    batch = load_batch(store, batch_id)
    if not batch.uploading:
        raise HTTPException(status_code=409, detail="No upload in progress")
    batch.request_cancel()
    return {"status": "success"}

@router.delete("/batches/{batch_id}")
async def discard_batch(batch_id: str, store: BatchStore = Depends(get_batch_store)):
    """Close a batch; refused while uploading"""
    try:
        store.discard(batch_id)
    except BatchNotFound as e:
        raise HTTPException(status_code=404, detail=e.message)
    except BatchBusy as e:
        raise to_http_error(e)
    return {"status": "success"}

@router.post("/resources/group")
async def group_resources(body: GroupResourcesRequest):
    """
    Group uploaded videos by identity for display.

    Returns:
        dict: Groups, highest quality first, with the default selection
    """
    groups = group_videos(body.videos)
    return {
        "status": "success",
        "groups": [
            {
                "base_name": group.base_name,
                "default": group.default.id,
                "videos": [video.model_dump(by_alias=True) for video in group.videos]
            }
            for group in groups
        ]
    }

@router.delete("/chapters/{chapter_id}/resources/{resource_id}")
async def delete_resource(
    chapter_id: str,
    resource_id: str,
    upload_service: ChapterUploadService = Depends(get_upload_service)
):
    """Delete a chapter resource and invalidate its cached content"""
    try:
        invalidated = await upload_service.delete_resource(chapter_id, resource_id)
    except ApiError as e:
        logger.error(f"Error deleting resource {resource_id}: {e.message}")
        status_code = e.status if e.status and e.status < 500 else 502
        raise HTTPException(status_code=status_code, detail=e.message)
    return {"status": "success", "invalidated": invalidated}

@router.get("/chapters/{chapter_id}/resources/{resource_id}/content")
async def get_resource_content(
    chapter_id: str,
    resource_id: str,
    kind: FileRole,
    viewer_service: ResourceViewerService = Depends(get_viewer_service)
):
    """Serve cached PDF bytes or a signed video URL"""
    try:
        content = await viewer_service.get_content(chapter_id, resource_id, kind)
    except ApiError as e:
        logger.error(f"Error loading {kind.value} {resource_id}: {e.message}")
        status_code = e.status if e.status and e.status < 500 else 502
        raise HTTPException(status_code=status_code, detail=e.message)
    if kind == FileRole.PDF:
        return Response(content=content, media_type="application/pdf")
    return {"status": "success", "url": content}
