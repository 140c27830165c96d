"""
구독 접근 제어

구독 상태로 테넌트 접근 가능 여부와 접근 수준을 결정합니다.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from .models import SubscriptionStatus
from .schemas import TenantRecord


class AccessLevel(str, Enum):
    FULL = "full"
    READONLY = "readonly"
    LIMITED = "limited"
    DENIED = "denied"


@dataclass(frozen=True)
class SubscriptionAccess:
    """구독 접근 판정 결과"""
    has_access: bool
    access_level: AccessLevel
    reason: Optional[str] = None
    requires_payment: bool = False
    upgrade_required: bool = False
    grace_period_ends: Optional[datetime] = None

    @property
    def can_write(self) -> bool:
        """생성/수정/삭제 가능 여부 (readonly, limited는 조회만 허용)"""
        return self.has_access and self.access_level == AccessLevel.FULL


def check_subscription_access(
    tenant: TenantRecord,
    now: Optional[datetime] = None,
) -> SubscriptionAccess:
    """
    구독 상태별 접근 판정

    - active: 전체 접근
    - trial: 체험 기간 내 전체 접근, 만료 시 차단
    - past_due: 제한 접근 (결제 필요)
    - cancelled: 기간 말 해지 예약이고 기간이 남아 있으면 제한 접근, 아니면 차단
    - paused: 읽기 전용
    - expired: 차단
    - 상태 없음: 구독 도입 이전 테넌트로 보고 전체 접근
    """
    now = now or datetime.utcnow()
    status = tenant.subscription_status

    if status is None or status == SubscriptionStatus.ACTIVE:
        return SubscriptionAccess(True, AccessLevel.FULL)

    if status == SubscriptionStatus.TRIAL:
        if tenant.trial_end and tenant.trial_end < now:
            return SubscriptionAccess(
                False,
                AccessLevel.DENIED,
                reason="Trial period has expired",
                upgrade_required=True,
            )
        return SubscriptionAccess(True, AccessLevel.FULL)

    if status == SubscriptionStatus.PAST_DUE:
        return SubscriptionAccess(
            True,
            AccessLevel.LIMITED,
            reason="Payment is past due",
            requires_payment=True,
            grace_period_ends=tenant.current_period_end,
        )

    if status == SubscriptionStatus.CANCELLED:
        if tenant.cancel_at_period_end and tenant.current_period_end and tenant.current_period_end > now:
            return SubscriptionAccess(
                True,
                AccessLevel.LIMITED,
                reason="Subscription cancelled - access until period end",
                grace_period_ends=tenant.current_period_end,
            )
        return SubscriptionAccess(False, AccessLevel.DENIED, reason="Subscription has been cancelled")

    if status == SubscriptionStatus.PAUSED:
        return SubscriptionAccess(True, AccessLevel.READONLY, reason="Subscription is paused")

    if status == SubscriptionStatus.EXPIRED:
        return SubscriptionAccess(
            False,
            AccessLevel.DENIED,
            reason="Subscription has expired",
            upgrade_required=True,
        )

    return SubscriptionAccess(False, AccessLevel.DENIED, reason="Unknown subscription status")
