"""
Shared Models Module

This module contains shared enums used across the chapter upload
feature and the viewer cache.

Features:
- Status enums
- File roles
- Video qualities

Author: CourseHub Development Team
"""

from enum import Enum

class UploadStatus(str, Enum):
    """
    Pending file transfer status.
    
    Attributes:
        PENDING: Selected, not yet sent
        UPLOADING: Upload URL issued, transfer in flight
        COMPLETED: Transfer returned 2xx
        ERROR: Transfer failed, file must be removed and re-added
    """
    PENDING = "pending"
    UPLOADING = "uploading"
    COMPLETED = "completed"
    ERROR = "error"

class FileRole(str, Enum):
    """Role a file plays in a chapter upload batch."""
    PDF = "pdf"
    VIDEO = "video"

class VideoQuality(str, Enum):
    """
    Supported lecture video qualities.
    
    Attributes:
        Q720: 720p, the default when a filename carries no suffix
        Q480: 480p
        Q360: 360p
    """
    Q720 = "720p"
    Q480 = "480p"
    Q360 = "360p"
