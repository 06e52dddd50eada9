"""
Services Package

Business logic kept separate from HTTP handling (routers), so it can be
reused by scripts and tested in isolation.

Current services:
- activity.py: Activity recording (in-transaction and best-effort queued)
- cache.py: Bounded in-memory TTL cache
- feed.py: Personal and global activity feeds
- marketplace.py: Uncached browse (filters, sort) and text search over books
- pagination.py: Shared page/limit validation
- rate_limiter.py: Rate limiting with slowapi
- ratings.py: Book rating aggregation calculations
- reviews.py: Review upserts/deletes and rating statistics
- security.py: JWT access token verification
- social.py: Follow graph and writer summaries
- trending.py: Trending ranking and category listing
"""
