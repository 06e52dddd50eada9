"""
Book Discovery API Application Package

Discovery and social aggregation for the book marketplace: reviews and
rating aggregates, the follow graph, activity feeds and trending books.

Package Structure:
- config.py: Application configuration using Pydantic Settings
- database.py: SQLAlchemy database connection and session management
- exceptions.py: Service errors and their HTTP status codes
- main.py: FastAPI application factory and configuration
- dependencies.py: Dependency injection functions
- models/: SQLAlchemy ORM models
- schemas/: Pydantic request/response schemas
- routers/: API route handlers
- services/: Business logic (ratings, social graph, activities, feeds,
  trending, caching, rate limiting)
"""

__version__ = "1.0.0"
