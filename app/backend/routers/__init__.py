"""
Routers package for FastAPI endpoints.

Organized by domain:
- health: Health and API key checks
- validate: Document validation against rules
"""

from . import health, validate

__all__ = ["health", "validate"]
