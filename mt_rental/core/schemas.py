"""
Pydantic 스키마 정의

레지스트리 조회 결과 및 테넌트 등록 요청 스키마
"""

from datetime import datetime
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field

from .models import TenantStatus, SubscriptionStatus


class TenantRecord(BaseModel):
    """
    레지스트리에서 읽은 테넌트 스냅샷

    읽기 전용으로 취급합니다. ORM 객체에서 model_validate로 생성됩니다.
    """
    id: str
    key: str = Field(..., description="테넌트 키 (서브도메인)")
    name: Optional[str] = None
    status: TenantStatus
    owner_merchant_id: Optional[int] = None
    database_url: str
    plan_id: Optional[int] = None
    subscription_status: Optional[SubscriptionStatus] = None
    trial_end: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    cancel_at_period_end: Optional[bool] = False
    provisioned_at: Optional[datetime] = None
    config: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        frozen = True

    @property
    def is_active(self) -> bool:
        return self.status == TenantStatus.ACTIVE


class TenantRegister(BaseModel):
    """테넌트(가맹점) 등록 요청"""
    business_name: str = Field(..., description="상호명")
    email: str = Field(..., description="가맹점 이메일")
    subdomain: Optional[str] = Field(default=None, description="희망 서브도메인 (없으면 상호명으로 생성)")
    owner_merchant_id: Optional[int] = Field(default=None, description="소유 가맹점 ID")
    phone: Optional[str] = None
    description: Optional[str] = None
    plan_id: Optional[int] = None
    trial_days: int = Field(default=14, ge=0, description="체험 기간 (일)")

    class Config:
        json_schema_extra = {
            "example": {
                "business_name": "Acme Rentals",
                "email": "owner@acme.example",
                "subdomain": "acme",
                "owner_merchant_id": 42,
            }
        }


class TenantResponse(BaseModel):
    """테넌트 응답 (연결 URL은 노출하지 않음)"""
    id: str
    key: str
    name: Optional[str] = None
    status: str
    owner_merchant_id: Optional[int] = None
    subscription_status: Optional[str] = None
    access_url: Optional[str] = None
    created_at: Optional[datetime] = None
    provisioned_at: Optional[datetime] = None
    config: Optional[Dict[str, Any]] = None
