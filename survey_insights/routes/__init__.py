"""Routes package for FastAPI endpoints.

This package contains all API route modules for the Survey Insights service.
"""

from survey_insights.routes import analytics, health, surveys

__all__ = ["analytics", "health", "surveys"]
