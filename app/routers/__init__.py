"""
API Routers Package

Router Structure:
- reviews.py: review upserts/deletes, review listings and book rating statistics
- social.py: /api/v1/users/* follow graph endpoints
- feed.py: /api/v1/feed/* personal and global activity feeds
- marketplace.py: /api/v1/marketplace/* trending, categories, browse and search

Each router is imported and registered in main.py.
"""

from app.routers.feed import router as feed_router
from app.routers.marketplace import router as marketplace_router
from app.routers.reviews import router as reviews_router
from app.routers.social import router as social_router

__all__ = [
    "feed_router",
    "marketplace_router",
    "reviews_router",
    "social_router",
]
