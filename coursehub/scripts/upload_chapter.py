"""
Chapter Upload Script

Uploads a lecture PDF and/or the qualities of one lecture video to a
chapter from the command line.

Usage:
    python -m coursehub.scripts.upload_chapter CHAPTER_ID FILE [FILE ...]

Features:
- Same validation as the web uploader
- Progress logging per file
- Non-zero exit status on failure

Dependencies:
- argparse: CLI interface
- asyncio: event loop

Author: CourseHub Development Team
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from coursehub.features.chapter_upload.batch_store import add_files
from coursehub.features.chapter_upload.models import CandidateFile, MaxFileSizes, UploadBatch, UploadConfig
from coursehub.features.chapter_upload.transfer import ParallelUploader
from coursehub.features.chapter_upload.upload_client import ChapterUploadClient
from coursehub.features.chapter_upload.upload_service import ChapterUploadService
from coursehub.shared.api_client import ApiClient
from coursehub.shared.config import UPLOAD_MAX_PDF_MB, UPLOAD_MAX_VIDEO_MB

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

PROGRESS_STEP = 25

def progress_logger(batch: UploadBatch):
    """Log each file's progress every PROGRESS_STEP percent."""
    names = {f.id: f.file.file_name for f in batch.files}
    last_logged: Dict[str, int] = {}

    def on_progress(file_id: str, progress: int) -> None:
        step = progress - progress % PROGRESS_STEP
        if step > last_logged.get(file_id, -1):
            last_logged[file_id] = step
            logger.info(f"{names.get(file_id, file_id)}: {progress}%")

    return on_progress

async def upload_chapter(
    chapter_id: str,
    paths: List[Path],
    api_base_url: Optional[str] = None,
    token: Optional[str] = None,
    max_concurrency: Optional[int] = None,
    max_pdf_mb: int = UPLOAD_MAX_PDF_MB,
    max_video_mb: int = UPLOAD_MAX_VIDEO_MB
) -> bool:
    """
    Validate and upload local files to a chapter.

    Returns:
        bool: True once the upload is committed
    """
    config = UploadConfig(max_file_sizes=MaxFileSizes(pdf=max_pdf_mb, video=max_video_mb))
    batch = UploadBatch(chapter_id, config)

    candidates = []
    for path in paths:
        if not path.is_file():
            logger.error(f"{path}: not a file")
            return False
        candidates.append(CandidateFile.from_path(path))

    accepted, message = add_files(batch, candidates)
    if message:
        logger.warning(message)
    if not accepted:
        logger.error("No valid files to upload")
        return False

    for pending in accepted:
        quality = f" ({pending.quality.value})" if pending.quality else ""
        logger.info(f"Queued {pending.file.file_name}{quality}")

    service = ChapterUploadService(
        client=ChapterUploadClient(ApiClient(base_url=api_base_url, token=token)),
        uploader=ParallelUploader(max_concurrency=max_concurrency)
    )
    result = await service.upload_batch(batch, progress_logger(batch))
    if not result.success:
        logger.error(f"Upload failed: {result.error}")
        return False

    logger.info(f"Upload {result.upload_id} committed to chapter {chapter_id}")
    return True

def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Upload lecture resources to a chapter")
    parser.add_argument("chapter_id", help="Target chapter id")
    parser.add_argument("files", nargs="+", type=Path, help="PDF and MP4 files to upload")
    parser.add_argument("--api-base-url", help="Platform API base URL (default: API_BASE_URL)")
    parser.add_argument("--token", help="Bearer token (default: API_TOKEN)")
    parser.add_argument("--max-concurrency", type=int, help="Maximum parallel transfers")
    parser.add_argument("--max-pdf-mb", type=int, default=UPLOAD_MAX_PDF_MB, help="PDF size ceiling in MB")
    parser.add_argument("--max-video-mb", type=int, default=UPLOAD_MAX_VIDEO_MB, help="Video size ceiling in MB")
    args = parser.parse_args(argv)

    logger.info(f"Starting upload of {len(args.files)} files to chapter {args.chapter_id}")
    success = asyncio.run(upload_chapter(
        args.chapter_id,
        args.files,
        api_base_url=args.api_base_url,
        token=args.token,
        max_concurrency=args.max_concurrency,
        max_pdf_mb=args.max_pdf_mb,
        max_video_mb=args.max_video_mb
    ))
    return 0 if success else 1

if __name__ == "__main__":
    sys.exit(main())
