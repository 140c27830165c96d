"""
관리자 API 요청/응답 모델
"""

from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """헬스체크 응답"""
    status: str = Field(..., description="healthy / unhealthy")
    version: str
    timestamp: str
    cached_tenants: int = 0


class StatusChangeRequest(BaseModel):
    """상태 변경 요청"""
    reason: Optional[str] = Field(default=None, description="변경 사유")


class CacheResponse(BaseModel):
    """연결 캐시 현황"""
    size: int
    max_size: int
    ttl_seconds: float
    tenants: List[str]


class ErrorResponse(BaseModel):
    """에러 응답"""
    success: bool = Field(default=False, description="항상 False")
    error: str = Field(..., description="에러 코드")
    message: str = Field(..., description="에러 메시지")
    details: Optional[Dict[str, Any]] = Field(
        default=None,
        description="추가 에러 정보"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "success": False,
                "error": "TENANT_INACTIVE",
                "message": "Tenant acme is not active (status=inactive)",
                "details": None
            }
        }
