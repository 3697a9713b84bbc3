"""
Video Grouping Module

Derives video quality and identity from file names, and groups already
uploaded videos for display.

Features:
- Quality suffix inference ("-720p.mp4", "_480p.MP4", ...)
- Identity (base name) extraction
- Upload file name standardisation
- Display grouping with quality ordering

Naming rules:
- Upload side: "[-_](720p|480p|360p).mp4" suffix, case-insensitive;
  no suffix means 720p
- Display side: "[-_](720|480|360)p?" with or without ".mp4", so
  "intro-360.mp4" and "intro-480p" both join the "intro" group

Author: CourseHub Development Team
"""

import re
from typing import Dict, Iterable, List, Optional, Tuple

from coursehub.shared.models import VideoQuality
from .constants import DEFAULT_VIDEO_QUALITY, QUALITY_ORDER
from .models import ExistingResource, PendingFile, VideoGroup

QUALITY_SUFFIX_PATTERN = re.compile(r'[-_](720p|480p|360p)\.mp4$', re.IGNORECASE)
EXTENSION_PATTERN = re.compile(r'\.mp4$', re.IGNORECASE)
DISPLAY_QUALITY_PATTERN = re.compile(r'[-_](720|480|360)p?(?:\.mp4)?$', re.IGNORECASE)

def parse_video_name(file_name: str) -> Tuple[VideoQuality, str]:
    """
    Infer quality and base name from a video file name.

    Args:
        file_name: e.g. "lecture-480p.mp4"

    Returns:
        tuple: (quality, base_name), e.g. (480p, "lecture")
    """
    match = QUALITY_SUFFIX_PATTERN.search(file_name)
    quality = VideoQuality(match.group(1).lower()) if match else DEFAULT_VIDEO_QUALITY
    base_name = EXTENSION_PATTERN.sub('', QUALITY_SUFFIX_PATTERN.sub('', file_name))
    return quality, base_name

def identity_key(base_name: Optional[str]) -> str:
    return (base_name or '').casefold()

def quality_rank(quality: Optional[str]) -> int:
    """Sort key placing 720p first; unknown qualities sort last."""
    for index, known in enumerate(QUALITY_ORDER):
        if quality == known.value:
            return index
    return len(QUALITY_ORDER)

def standardized_file_name(pending: PendingFile) -> str:
    """
    Name a file is registered under at upload time.

    Videos whose name does not mention their quality are renamed to
    "{base_name}-{quality}.{ext}" so all qualities of one video share
    the same naming scheme.
    """
    file_name = pending.file.file_name
    if not pending.is_video or not pending.base_name or not pending.quality:
        return file_name
    if pending.quality.value in file_name:
        return file_name
    extension = file_name.rsplit('.', 1)[-1] if '.' in file_name else 'mp4'
    return f"{pending.base_name}-{pending.quality.value}.{extension}"

def display_base_name(file_name: str) -> str:
    # Same suffix rule as display_quality
    return DISPLAY_QUALITY_PATTERN.sub('', EXTENSION_PATTERN.sub('', file_name))

def display_quality(resource: ExistingResource) -> Optional[str]:
    if resource.quality:
        return resource.quality.lower()
    match = DISPLAY_QUALITY_PATTERN.search(resource.filename)
    if match:
        return f"{match.group(1)}p"
    return None

def group_videos(resources: Iterable[ExistingResource]) -> List[VideoGroup]:
    """
    Collapse uploaded videos into one group per identity.

    Args:
        resources: Uploaded video resources

    Returns:
        List[VideoGroup]: Groups in order of first appearance, each sorted
            by quality descending so the first member is the default
            playback selection
    """
    groups: Dict[str, VideoGroup] = {}
    for resource in resources:
        base_name = display_base_name(resource.filename)
        member = resource.model_copy(update={"quality": display_quality(resource)})
        key = identity_key(base_name)
        if key not in groups:
            groups[key] = VideoGroup(base_name=base_name, videos=[])
        groups[key].videos.append(member)

    for group in groups.values():
        group.videos.sort(key=lambda video: quality_rank(video.quality))
    return list(groups.values())
