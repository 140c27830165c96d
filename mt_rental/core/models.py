"""
Central DB 모델 정의

테넌트 레지스트리(메인 DB)에 저장되는 테넌트 메타정보 모델
"""
import uuid
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any
from sqlalchemy import (
    Column, String, Integer, DateTime, Text, Boolean,
    JSON, Enum as SQLEnum, Index
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class TenantStatus(str, Enum):
    """테넌트 상태"""
    PROVISIONING = "provisioning" # 테넌트 DB 생성 중
    ACTIVE = "active"             # 서비스 사용 가능
    INACTIVE = "inactive"         # 비활성화 (관리자/해지)
    SUSPENDED = "suspended"       # 일시 중지 (결제 미완료 등)


class SubscriptionStatus(str, Enum):
    """구독 상태"""
    TRIAL = "trial"
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELLED = "cancelled"
    PAUSED = "paused"
    EXPIRED = "expired"


def generate_tenant_id() -> str:
    return f"tenant_{uuid.uuid4().hex[:16]}"


class Tenant(Base):
    """
    테넌트 모델

    렌탈샵 가맹점 하나의 격리된 배포를 나타냅니다.
    subdomain이 테넌트 키이며 생성 후 바뀌지 않습니다.
    """
    __tablename__ = "tenants"

    id = Column(String(50), primary_key=True, default=generate_tenant_id)
    subdomain = Column(String(50), unique=True, nullable=False, index=True)
    name = Column(String(200), nullable=False)
    email = Column(String(200), unique=True, nullable=False)
    phone = Column(String(50))
    description = Column(Text)

    # 소유 가맹점
    owner_merchant_id = Column(Integer, nullable=True, index=True)

    # 테넌트 전용 DB 연결 URL
    database_url = Column(Text, nullable=False)

    # 상태
    status = Column(
        SQLEnum(TenantStatus, values_callable=lambda e: [m.value for m in e]),
        default=TenantStatus.PROVISIONING,
        nullable=False
    )

    # 구독
    plan_id = Column(Integer, nullable=True)
    subscription_status = Column(
        SQLEnum(SubscriptionStatus, values_callable=lambda e: [m.value for m in e]),
        default=SubscriptionStatus.TRIAL,
        nullable=True
    )
    trial_start = Column(DateTime, nullable=True)
    trial_end = Column(DateTime, nullable=True)
    current_period_start = Column(DateTime, nullable=True)
    current_period_end = Column(DateTime, nullable=True)
    cancel_at_period_end = Column(Boolean, default=False)
    canceled_at = Column(DateTime, nullable=True)
    cancel_reason = Column(Text, nullable=True)

    # 추가 설정 (JSON)
    config = Column(JSON, default=dict)

    # 타임스탬프
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    provisioned_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index('idx_tenant_status', 'status'),
        Index('idx_tenant_subscription', 'subscription_status'),
    )

    def __repr__(self):
        return f"<Tenant(id={self.id}, subdomain={self.subdomain}, status={self.status})>"

    @property
    def key(self) -> str:
        return self.subdomain

    @property
    def is_active(self) -> bool:
        return self.status == TenantStatus.ACTIVE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "key": self.subdomain,
            "name": self.name,
            "email": self.email,
            "status": self.status.value if self.status else None,
            "owner_merchant_id": self.owner_merchant_id,
            "subscription_status": (
                self.subscription_status.value if self.subscription_status else None
            ),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "provisioned_at": self.provisioned_at.isoformat() if self.provisioned_at else None,
        }
