"""
FastAPI dependencies
"""

from fastapi import Request
from services.space_data import SpaceDataService


def get_service(request: Request) -> SpaceDataService:
    """Service of the container created at startup"""
    return request.app.state.container.service
