from fastapi import APIRouter

# Create router at module level with the correct prefix
router = APIRouter(prefix="/api/chapter-upload")

# Import routes to register them
from .routes_chapter_upload import *  # This will register the routes with our router
