"""
관리자 API 모듈
"""
from .router import create_admin_router
from .models import HealthResponse, StatusChangeRequest, CacheResponse, ErrorResponse

__all__ = [
    "create_admin_router",
    "HealthResponse",
    "StatusChangeRequest",
    "CacheResponse",
    "ErrorResponse",
]
