"""
API Gateway endpoint routers — mounted by the main app.
"""

from services.api_gateway.endpoints.performance import router as performance_router
from services.api_gateway.endpoints.health import router as health_router

__all__ = [
    "performance_router",
    "health_router",
]
