"""
File Validator Module

Screens candidate files before they enter an upload batch.

Features:
- Content type allow-list
- Per-type size ceilings
- One PDF per batch
- One video identity per batch
- One file per video quality

Rejections are reported as newline-joined text, never raised, and a
rejected file never changes the batch.

Author: CourseHub Development Team
"""

import logging
import time
from typing import Iterable, List, Optional, Set, Tuple

from coursehub.shared.models import FileRole, VideoQuality
from .constants import (
    CONTENT_TYPE_MP4,
    CONTENT_TYPE_PDF,
    ERROR_DUPLICATE_QUALITY,
    ERROR_INVALID_FILE_TYPE,
    ERROR_PDF_TOO_LARGE,
    ERROR_QUALITY_TAKEN,
    ERROR_SECOND_PDF,
    ERROR_SECOND_VIDEO,
    ERROR_VIDEO_TOO_LARGE
)
from .grouping import identity_key, parse_video_name
from .models import CandidateFile, PendingFile, UploadConfig

logger = logging.getLogger(__name__)

def validate_file(candidate: CandidateFile, config: UploadConfig) -> Optional[str]:
    """
    Check a single file against the type allow-list and size ceilings.

    Args:
        candidate: File to check
        config: Allowed formats and size ceilings

    Returns:
        Optional[str]: Rejection message, None if the file is acceptable
    """
    if candidate.content_type not in config.allowed_formats:
        return ERROR_INVALID_FILE_TYPE

    if candidate.content_type == CONTENT_TYPE_PDF:
        if candidate.file_size > config.max_bytes(FileRole.PDF):
            return ERROR_PDF_TOO_LARGE.format(limit=config.max_file_sizes.pdf)
    elif candidate.content_type == CONTENT_TYPE_MP4:
        if candidate.file_size > config.max_bytes(FileRole.VIDEO):
            return ERROR_VIDEO_TOO_LARGE.format(limit=config.max_file_sizes.video)
    else:
        return ERROR_INVALID_FILE_TYPE

    return None

def make_file_id(file_name: str, taken: Set[str]) -> str:
    file_id = f"{file_name}-{int(time.time() * 1000)}"
    candidate_id = file_id
    suffix = 1
    while candidate_id in taken:
        candidate_id = f"{file_id}-{suffix}"
        suffix += 1
    taken.add(candidate_id)
    return candidate_id

def validate_files(
    existing: List[PendingFile],
    candidates: Iterable[CandidateFile],
    config: UploadConfig
) -> Tuple[List[PendingFile], Optional[str]]:
    """
    Validate newly selected files against a batch's current contents.

    Args:
        existing: Files already in the batch (not modified)
        candidates: Newly selected files
        config: Allowed formats and size ceilings

    Returns:
        tuple: (accepted pending files, newline-joined rejection text or None)

    Notes:
        - Existing files win quality conflicts
        - Earlier files in the same selection win over later ones
    """
    accepted: List[PendingFile] = []
    errors: List[str] = []
    taken_ids = {f.id for f in existing}
    pdf_count = len([f for f in existing if f.role == FileRole.PDF])
    identities = {identity_key(f.base_name) for f in existing if f.is_video}

    for candidate in candidates:
        error = validate_file(candidate, config)
        if error:
            errors.append(f"{candidate.file_name}: {error}")
            continue

        if candidate.content_type == CONTENT_TYPE_PDF:
            if pdf_count > 0:
                errors.append(ERROR_SECOND_PDF)
                continue
            pdf_count += 1
            accepted.append(PendingFile(
                id=make_file_id(candidate.file_name, taken_ids),
                file=candidate,
                role=FileRole.PDF
            ))
            continue

        quality, base_name = parse_video_name(candidate.file_name)
        key = identity_key(base_name)
        if identities and key not in identities:
            errors.append(ERROR_SECOND_VIDEO)
            continue
        identities.add(key)
        accepted.append(PendingFile(
            id=make_file_id(candidate.file_name, taken_ids),
            file=candidate,
            role=FileRole.VIDEO,
            quality=quality,
            base_name=base_name
        ))

    taken_qualities = [f.quality for f in existing if f.is_video]
    duplicates: List[VideoQuality] = []
    kept: List[PendingFile] = []
    for pending in accepted:
        if pending.is_video:
            if pending.quality in taken_qualities:
                if pending.quality not in duplicates:
                    duplicates.append(pending.quality)
                continue
            taken_qualities.append(pending.quality)
        kept.append(pending)

    if duplicates:
        errors.append(ERROR_DUPLICATE_QUALITY.format(
            qualities=", ".join(q.value for q in duplicates)
        ))

    message = "\n".join(errors) if errors else None
    if message:
        logger.info(f"Rejected {len(errors)} file selection issue(s): {message}")
    return kept, message

def check_quality_change(existing: List[PendingFile], pending: PendingFile, quality: VideoQuality) -> Optional[str]:
    """
    Check whether a pending file may switch to another quality.

    Returns:
        Optional[str]: Conflict message, None if the change is allowed
    """
    if not pending.is_video:
        return None
    others = [f.quality for f in existing if f.is_video and f.id != pending.id]
    if quality in others:
        return ERROR_QUALITY_TAKEN.format(quality=quality.value)
    return None
