"""
Main API v1 router
Combines all handlers
"""
from fastapi import APIRouter

from autorecognition.api.v1.handlers import health_handler, recognition_handler

# Main router for v1
api_router = APIRouter(prefix="/api/v1")

# Register all handlers
api_router.include_router(recognition_handler.router)
api_router.include_router(health_handler.router)
