"""
Chapter Upload Constants Module

This module defines constants used throughout the chapter upload
feature for file handling, video qualities and user-facing messages.

Features:
- Content type definitions
- Quality ordering
- Size units
- Error messages

Dependencies:
- None (pure Python)

Author: CourseHub Development Team
"""

from coursehub.shared.models import VideoQuality

# File type definitions
CONTENT_TYPE_PDF = "application/pdf"  # Lecture notes
CONTENT_TYPE_MP4 = "video/mp4"  # Lecture videos

# Video qualities, highest first
QUALITY_ORDER = [VideoQuality.Q720, VideoQuality.Q480, VideoQuality.Q360]
DEFAULT_VIDEO_QUALITY = VideoQuality.Q720

# Size units
BYTES_PER_MB = 1024 * 1024

# Validation messages
ERROR_INVALID_FILE_TYPE = "Only PDF and MP4 files are allowed"
ERROR_PDF_TOO_LARGE = "PDF file size must be less than {limit}MB"
ERROR_VIDEO_TOO_LARGE = "Video file size must be less than {limit}MB"
ERROR_SECOND_PDF = "Only one PDF file is allowed per upload"
ERROR_SECOND_VIDEO = "Only one video (with multiple qualities) is allowed per upload"
ERROR_DUPLICATE_QUALITY = "Duplicate video quality detected: {qualities}. Each quality can only be uploaded once."
ERROR_QUALITY_TAKEN = "Quality {quality} is already selected for another video file"

# Batch messages
ERROR_NO_FILES = "No files to upload"
ERROR_BATCH_UPLOADING = "Upload already in progress"
ERROR_REMOVE_FAILED = "Remove failed files before uploading again"
ERROR_FILE_NOT_FOUND = "File {file_id} is not part of this upload"
ERROR_UPLOAD_FAILED = "Upload failed"
ERROR_UPLOAD_CANCELLED = "Upload cancelled"
