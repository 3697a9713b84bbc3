"""
Chapter Upload Models Module

This module defines the data models used by the chapter upload feature
for batches, pending files, upload sessions and display grouping.

Features:
- Upload configuration
- Pending file state machine
- Upload session (wire) models
- Orchestration results
- Display grouping models

Data Model:
- Wire models use camelCase aliases, Python code uses snake_case
- PendingFile status: pending -> uploading -> completed | error

Dependencies:
- pydantic for data validation
- typing for type hints
- pathlib for local file handles

Author: CourseHub Development Team
"""

import asyncio
import mimetypes
import uuid
import time
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from coursehub.shared.config import (
    UPLOAD_ALLOWED_FORMATS,
    UPLOAD_MAX_PDF_MB,
    UPLOAD_MAX_VIDEO_MB
)
from coursehub.shared.models import FileRole, UploadStatus, VideoQuality
from .constants import BYTES_PER_MB, ERROR_FILE_NOT_FOUND
from .errors import FileNotInBatch

class WireModel(BaseModel):
    """Base for models exchanged with the platform API."""
    model_config = ConfigDict(populate_by_name=True)

class MaxFileSizes(WireModel):
    """
    Per-type size ceilings in MB.

    Attributes:
        pdf (int): PDF ceiling, default 25MB
        video (int): Video ceiling, default 2048MB
    """
    pdf: int = UPLOAD_MAX_PDF_MB
    video: int = UPLOAD_MAX_VIDEO_MB

class UploadConfig(WireModel):
    """
    Caller-supplied validation configuration.

    Attributes:
        allowed_formats (List[str]): Allowed MIME types
        max_file_sizes (MaxFileSizes): Size ceilings in MB
    """
    allowed_formats: List[str] = Field(
        default_factory=lambda: list(UPLOAD_ALLOWED_FORMATS),
        alias="allowedFormats"
    )
    max_file_sizes: MaxFileSizes = Field(default_factory=MaxFileSizes, alias="maxFileSizes")

    def max_bytes(self, role: FileRole) -> int:
        limit = self.max_file_sizes.pdf if role == FileRole.PDF else self.max_file_sizes.video
        return limit * BYTES_PER_MB

class CandidateFile(BaseModel):
    """
    A file offered for upload, before validation.

    Attributes:
        file_name (str): Original file name
        file_size (int): Size in bytes
        content_type (str): Declared MIME type
        path (Optional[Path]): Local copy of the bytes
    """
    file_name: str
    file_size: int
    content_type: str
    path: Optional[Path] = None

    @classmethod
    def from_path(cls, path: Path, content_type: Optional[str] = None) -> "CandidateFile":
        """Describe a local file, guessing its MIME type from the extension."""
        path = Path(path)
        if content_type is None:
            content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        return cls(
            file_name=path.name,
            file_size=path.stat().st_size,
            content_type=content_type,
            path=path
        )

class PendingFile(BaseModel):
    """
    A validated file waiting in (or travelling through) an upload batch.

    Attributes:
        id (str): Local token, "{file_name}-{timestamp_ms}"
        file (CandidateFile): The underlying file
        role (FileRole): pdf or video
        quality (Optional[VideoQuality]): Video quality, videos only
        base_name (Optional[str]): Video identity key, videos only
        status (UploadStatus): Transfer state
        progress (int): 0-100
        error (Optional[str]): Last transfer error
        upload_file_id (Optional[str]): Server-issued file id
        s3_key (Optional[str]): Server-issued object key
    """
    id: str
    file: CandidateFile
    role: FileRole
    quality: Optional[VideoQuality] = None
    base_name: Optional[str] = None
    status: UploadStatus = UploadStatus.PENDING
    progress: int = 0
    error: Optional[str] = None
    upload_file_id: Optional[str] = None
    s3_key: Optional[str] = None

    @property
    def is_video(self) -> bool:
        return self.role == FileRole.VIDEO

    def update_progress(self, progress: int) -> int:
        # Displayed progress never regresses
        self.progress = max(self.progress, min(100, max(0, int(progress))))
        return self.progress

    def mark_uploading(self) -> None:
        self.status = UploadStatus.UPLOADING
        self.progress = 0
        self.error = None

    def mark_completed(self) -> None:
        self.status = UploadStatus.COMPLETED
        self.progress = 100

    def mark_error(self, message: str) -> None:
        self.status = UploadStatus.ERROR
        self.error = message

    def reset(self) -> None:
        self.status = UploadStatus.PENDING
        self.progress = 0
        self.error = None

    def summary(self) -> Dict:
        return {
            "id": self.id,
            "file_name": self.file.file_name,
            "file_size": self.file.file_size,
            "content_type": self.file.content_type,
            "role": self.role.value,
            "quality": self.quality.value if self.quality else None,
            "base_name": self.base_name,
            "status": self.status.value,
            "progress": self.progress,
            "error": self.error
        }

class UploadBatch:
    """
    Session-scoped set of files uploaded together to one chapter.

    The batch is handed to the orchestrator by reference; its files are
    mutated only by orchestrator callbacks and by user actions while the
    batch is not uploading.

    Attributes:
        batch_id (str): Batch identifier
        chapter_id (str): Target chapter
        config (UploadConfig): Validation configuration
        files (List[PendingFile]): Ordered pending files
        uploading (bool): True while a submit is running
        error (Optional[str]): Last user-facing message
        staging_dir (Optional[Path]): Directory holding staged file copies
    """

    def __init__(self, chapter_id: str, config: Optional[UploadConfig] = None, batch_id: Optional[str] = None):
        self.batch_id = batch_id or uuid.uuid4().hex
        self.chapter_id = chapter_id
        self.config = config or UploadConfig()
        self.files: List[PendingFile] = []
        self.uploading = False
        self.error: Optional[str] = None
        self.staging_dir: Optional[Path] = None
        self.cancel_event = asyncio.Event()
        self.last_touched = time.monotonic()

    def get_file(self, file_id: str) -> PendingFile:
        for pending in self.files:
            if pending.id == file_id:
                return pending
        raise FileNotInBatch(ERROR_FILE_NOT_FOUND.format(file_id=file_id))

    @property
    def pdf_files(self) -> List[PendingFile]:
        return [f for f in self.files if f.role == FileRole.PDF]

    @property
    def video_files(self) -> List[PendingFile]:
        return [f for f in self.files if f.is_video]

    @property
    def video_base_name(self) -> Optional[str]:
        videos = self.video_files
        return videos[0].base_name if videos else None

    def touch(self) -> None:
        self.last_touched = time.monotonic()

    def idle_for(self) -> float:
        return time.monotonic() - self.last_touched

    def request_cancel(self) -> None:
        self.cancel_event.set()

    def clear_cancel(self) -> None:
        # Fresh event per submit, bound to the running loop on first wait
        self.cancel_event = asyncio.Event()

    def summary(self) -> Dict:
        return {
            "batch_id": self.batch_id,
            "chapter_id": self.chapter_id,
            "uploading": self.uploading,
            "error": self.error,
            "video_base_name": self.video_base_name,
            "files": [f.summary() for f in self.files]
        }

class FileManifestEntry(WireModel):
    """One entry of the POST /upload manifest."""
    file_name: str = Field(alias="fileName")
    file_size: int = Field(alias="fileSize")
    content_type: str = Field(alias="contentType")
    quality: Optional[VideoQuality] = None

class UploadUrl(WireModel):
    """
    Presigned upload target issued for one file.

    Attributes:
        file_id (str): Server file id
        file_name (str): File name as registered
        upload_url (str): Write-once PUT URL
        s3_key (str): Object key
        expires_in (int): URL lifetime in seconds
    """
    file_id: str = Field(alias="fileId")
    file_name: str = Field(alias="fileName")
    upload_url: str = Field(alias="uploadUrl")
    s3_key: str = Field(alias="s3Key")
    expires_in: int = Field(default=0, alias="expiresIn")

class UploadSession(WireModel):
    """Server response to POST /upload."""
    upload_id: str = Field(alias="uploadId", min_length=1)
    urls: List[UploadUrl]

class CompletedFile(WireModel):
    """One entry of the POST /upload/{uploadId}/complete body."""
    file_id: str = Field(alias="fileId")
    file_name: str = Field(alias="fileName")
    s3_key: str = Field(alias="s3Key")
    content_type: str = Field(alias="contentType")
    quality: Optional[VideoQuality] = None

class UploadResult(BaseModel):
    """
    Outcome of one orchestrated upload.

    Attributes:
        success (bool): True once the complete call succeeded
        upload_id (Optional[str]): Server upload id, if one was issued
        completed_files (List[str]): Local ids of transferred files
        failed_files (List[str]): Local ids of failed transfers
        cancelled (bool): True if transfers were cancelled
        error (Optional[str]): User-facing message
    """
    success: bool
    upload_id: Optional[str] = None
    completed_files: List[str] = Field(default_factory=list)
    failed_files: List[str] = Field(default_factory=list)
    cancelled: bool = False
    error: Optional[str] = None

class ExistingResource(WireModel):
    """An uploaded chapter resource as listed for admins."""
    id: str
    filename: str
    uploaded_at: Optional[str] = Field(default=None, alias="uploadedAt")
    quality: Optional[str] = None

class VideoGroup(BaseModel):
    """
    Uploaded videos sharing one identity.

    Attributes:
        base_name (str): Identity shared by the group
        videos (List[ExistingResource]): Members, highest quality first
    """
    base_name: str
    videos: List[ExistingResource]

    @property
    def default(self) -> ExistingResource:
        return self.videos[0]
