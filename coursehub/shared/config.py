"""
Configuration Module

This module manages application configuration settings and environment
variables for the chapter upload service.

Features:
- Environment loading
- Platform API endpoints
- Upload limits
- Transfer tuning
- Cache settings

Data Model:
- API base URLs
- Tokens
- Size ceilings
- Concurrency limits
- Timeouts

Dependencies:
- os for env
- dotenv for loading

Author: CourseHub Development Team
"""

import os
from dotenv import load_dotenv

load_dotenv()

# Platform API Configuration
API_BASE_URL = os.getenv('API_BASE_URL', '')
API_TOKEN = os.getenv('API_TOKEN', '')
API_TIMEOUT_SECONDS = float(os.getenv('API_TIMEOUT_SECONDS', '30'))

# Viewer content (serve-pdf / serve-video) Configuration
CONTENT_BASE_URL = os.getenv('CONTENT_BASE_URL', '')
RESOURCE_CACHE_TTL_SECONDS = int(os.getenv('RESOURCE_CACHE_TTL_SECONDS', '900'))
RESOURCE_CACHE_MAX_ENTRIES = int(os.getenv('RESOURCE_CACHE_MAX_ENTRIES', '200'))

# Upload Configuration
UPLOAD_ALLOWED_FORMATS = [
    fmt.strip()
    for fmt in os.getenv('UPLOAD_ALLOWED_FORMATS', 'application/pdf,video/mp4').split(',')
    if fmt.strip()
]
UPLOAD_MAX_PDF_MB = int(os.getenv('UPLOAD_MAX_PDF_MB', '25'))
UPLOAD_MAX_VIDEO_MB = int(os.getenv('UPLOAD_MAX_VIDEO_MB', '2048'))
UPLOAD_MAX_CONCURRENCY = int(os.getenv('UPLOAD_MAX_CONCURRENCY', '3'))
UPLOAD_CHUNK_SIZE = int(os.getenv('UPLOAD_CHUNK_SIZE', str(1024 * 1024)))  # 1MB chunks
UPLOAD_TIMEOUT_SECONDS = float(os.getenv('UPLOAD_TIMEOUT_SECONDS', '3600'))
UPLOAD_BATCH_IDLE_SECONDS = int(os.getenv('UPLOAD_BATCH_IDLE_SECONDS', '7200'))

# Server Configuration
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv('CORS_ORIGINS', 'http://localhost:3000').split(',')
    if origin.strip()
]
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
