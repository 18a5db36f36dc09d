"""
API v1 package.

Contains versioned API routes for the request schema service.
"""

from payloadgate.api.v1.routes import router

__all__ = ["router"]
