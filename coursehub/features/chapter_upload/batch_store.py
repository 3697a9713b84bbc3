"""
Upload Batch Store Module

Keeps the open upload batches of one application instance and applies
user actions to them.

Features:
- Batch creation and lookup
- File staging to a per-batch temp directory
- Add / remove / change quality
- Discard with staged file cleanup
- Idle batch expiry and shutdown cleanup

User actions are refused while a batch is uploading.

Dependencies:
- tempfile / shutil for staged copies
- logging for tracking

Author: CourseHub Development Team
"""

import logging
import shutil
import tempfile
from pathlib import Path
from typing import BinaryIO, Dict, List, Optional, Tuple

from coursehub.shared.config import UPLOAD_BATCH_IDLE_SECONDS
from coursehub.shared.models import UploadStatus, VideoQuality
from .constants import ERROR_BATCH_UPLOADING
from .errors import BatchBusy, BatchNotFound, ValidationError
from .models import CandidateFile, PendingFile, UploadBatch, UploadConfig
from .validator import check_quality_change, validate_files

logger = logging.getLogger(__name__)

STAGING_CHUNK_SIZE = 1024 * 1024

def add_files(batch: UploadBatch, candidates: List[CandidateFile]) -> Tuple[List[PendingFile], Optional[str]]:
    """
    Validate and append newly selected files.

    Returns:
        tuple: (accepted files, rejection text or None)
    """
    ensure_idle(batch)
    accepted, message = validate_files(batch.files, candidates, batch.config)
    batch.files.extend(accepted)
    batch.error = message
    return accepted, message

def remove_file(batch: UploadBatch, file_id: str) -> PendingFile:
    ensure_idle(batch)
    pending = batch.get_file(file_id)
    batch.files.remove(pending)
    if pending.file.path is not None and batch.staging_dir is not None:
        Path(pending.file.path).unlink(missing_ok=True)
    return pending

def change_quality(batch: UploadBatch, file_id: str, quality: VideoQuality) -> Optional[str]:
    """
    Switch a pending video to another quality.

    Returns:
        Optional[str]: Conflict message, None if applied
    """
    ensure_idle(batch)
    pending = batch.get_file(file_id)
    if not pending.is_video:
        raise ValidationError("Only video files have a quality")
    conflict = check_quality_change(batch.files, pending, quality)
    if conflict:
        batch.error = conflict
        return conflict
    pending.quality = quality
    return None

def ensure_idle(batch: UploadBatch) -> None:
    if batch.uploading or any(f.status == UploadStatus.UPLOADING for f in batch.files):
        raise BatchBusy(ERROR_BATCH_UPLOADING)

class BatchStore:
    """
    Open upload batches keyed by batch id.

    Attributes:
        staging_root: Parent directory for staged file copies
    """

    def __init__(self, staging_root: Optional[str] = None, idle_timeout: Optional[float] = None):
        self.staging_root = staging_root
        self.idle_timeout = UPLOAD_BATCH_IDLE_SECONDS if idle_timeout is None else idle_timeout
        self._batches: Dict[str, UploadBatch] = {}

    def create(self, chapter_id: str, config: Optional[UploadConfig] = None) -> UploadBatch:
        self.expire_idle()
        batch = UploadBatch(chapter_id, config)
        self._batches[batch.batch_id] = batch
        logger.info(f"Opened upload batch {batch.batch_id} for chapter {chapter_id}")
        return batch

    def get(self, batch_id: str) -> UploadBatch:
        batch = self._batches.get(batch_id)
        if batch is None:
            raise BatchNotFound(f"Upload batch {batch_id} not found")
        batch.touch()
        return batch

    def expire_idle(self) -> int:
        """
        Drop batches untouched for longer than idle_timeout.

        Batches that are uploading are kept.

        Returns:
            int: Number of batches dropped
        """
        expired = [
            batch for batch in self._batches.values()
            if not batch.uploading and batch.idle_for() > self.idle_timeout
        ]
        for batch in expired:
            self._drop(batch)
            logger.info(f"Expired idle upload batch {batch.batch_id}")
        return len(expired)

    def close(self) -> None:
        """Drop every batch and its staged files"""
        for batch in list(self._batches.values()):
            self._drop(batch)
        logger.info("Closed upload batch store")

    def _drop(self, batch: UploadBatch) -> None:
        self._batches.pop(batch.batch_id, None)
        if batch.staging_dir is not None:
            shutil.rmtree(batch.staging_dir, ignore_errors=True)

    def stage_file(self, batch: UploadBatch, file_name: str, source: BinaryIO, content_type: str) -> CandidateFile:
        """
        Copy an incoming file into the batch's staging directory.

        Args:
            batch: Owning batch
            file_name: Original file name
            source: Readable binary stream
            content_type: Declared MIME type

        Returns:
            CandidateFile: Description of the staged copy
        """
        if batch.staging_dir is None:
            batch.staging_dir = Path(tempfile.mkdtemp(prefix=f"upload-{batch.batch_id}-", dir=self.staging_root))
        safe_name = Path(file_name).name or "upload"
        fd, staged_path = tempfile.mkstemp(suffix=f"-{safe_name}", dir=batch.staging_dir)
        size = 0
        with open(fd, 'wb') as target:
            while True:
                chunk = source.read(STAGING_CHUNK_SIZE)
                if not chunk:
                    break
                target.write(chunk)
                size += len(chunk)
        return CandidateFile(
            file_name=safe_name,
            file_size=size,
            content_type=content_type,
            path=Path(staged_path)
        )

    def discard_unaccepted(self, batch: UploadBatch, candidates: List[CandidateFile]) -> None:
        kept = {f.file.path for f in batch.files}
        for candidate in candidates:
            if candidate.path is not None and candidate.path not in kept:
                candidate.path.unlink(missing_ok=True)

    def discard(self, batch_id: str) -> None:
        """
        Close a batch and delete its staged files.

        Raises:
            BatchNotFound: Unknown batch
            ValidationError: Batch is uploading
        """
        batch = self.get(batch_id)
        ensure_idle(batch)
        self._drop(batch)
        logger.info(f"Discarded upload batch {batch_id}")

    def __len__(self) -> int:
        return len(self._batches)
