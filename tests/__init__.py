"""
Test Suite for Book Discovery API

Test Organization:
- conftest.py: Shared fixtures (test database, client, services, sample data)
- test_app.py: Health, authentication, errors and settings
- test_cache.py: In-memory TTL cache
- test_reviews.py: Reviews and rating aggregation
- test_social.py: Follow graph
- test_activity.py: Activity recorder
- test_feed.py: Personal and global feeds
- test_trending.py: Trending books and categories

Running Tests:
    # Run all tests
    pytest

    # Run specific file
    pytest tests/test_feed.py

    # Run with verbose output
    pytest -v
"""
