"""
테넌트 생명주기 관리

가맹점 등록(레지스트리 등록 + DB 프로비저닝), 일시중지, 비활성화,
재활성화를 관리합니다. 상태나 연결 정보가 바뀌면 연결 캐시를 무효화합니다.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional, Dict, Callable, List
from enum import Enum

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from .cache import TenantConnectionCache
from .database import DatabaseManager
from .exceptions import (
    InvalidSubdomainError,
    ProvisioningError,
    TenantExistsError,
    TenantNotFoundError,
)
from .models import Tenant, TenantStatus, SubscriptionStatus
from .provisioner import TenantProvisioner
from .registry import TenantRegistry
from .schemas import TenantRecord, TenantRegister
from .subdomain import database_name_for, generate_subdomain, sanitize_subdomain, validate_subdomain

logger = logging.getLogger(__name__)


class LifecycleEvent(str, Enum):
    """생명주기 이벤트"""
    AFTER_REGISTER = "after_register"
    AFTER_PROVISION = "after_provision"
    AFTER_ACTIVATE = "after_activate"
    AFTER_SUSPEND = "after_suspend"
    AFTER_DEACTIVATE = "after_deactivate"
    AFTER_CONNECTION_CHANGE = "after_connection_change"


class TenantLifecycle:
    """
    테넌트 생명주기 관리자

    상태 전이: provisioning → active → (inactive | suspended) → active

    Example:
        lifecycle = TenantLifecycle(db_manager, registry, provisioner, cache)

        lifecycle.on(LifecycleEvent.AFTER_REGISTER, send_welcome_mail)

        tenant = await lifecycle.register(
            TenantRegister(business_name="Acme Rentals", email="owner@acme.example")
        )
    """

    def __init__(
        self,
        db_manager: DatabaseManager,
        registry: TenantRegistry,
        provisioner: TenantProvisioner,
        cache: Optional[TenantConnectionCache] = None,
    ):
        self.db = db_manager
        self.registry = registry
        self.provisioner = provisioner
        self.cache = cache
        self._hooks: Dict[LifecycleEvent, List[Callable]] = {
            event: [] for event in LifecycleEvent
        }

    def on(self, event: LifecycleEvent, handler: Callable) -> None:
        """이벤트 훅 등록"""
        self._hooks[event].append(handler)

    def off(self, event: LifecycleEvent, handler: Callable) -> None:
        """이벤트 훅 제거"""
        if handler in self._hooks[event]:
            self._hooks[event].remove(handler)

    async def _emit(self, event: LifecycleEvent, **kwargs) -> None:
        """이벤트 발생 (훅 실패는 기록만 하고 흐름은 계속)"""
        for handler in self._hooks[event]:
            try:
                result = handler(**kwargs)
                if hasattr(result, "__await__"):
                    await result
            except Exception:
                logger.exception(f"Hook error for {event.value}")

    async def _invalidate(self, tenant_key: str) -> None:
        if self.cache is not None:
            await self.cache.invalidate(tenant_key)

    @staticmethod
    async def _load(session, tenant_key: str) -> Tenant:
        result = await session.execute(
            select(Tenant).where(Tenant.subdomain == tenant_key.lower())
        )
        tenant = result.scalar_one_or_none()
        if tenant is None:
            raise TenantNotFoundError(tenant_key)
        return tenant

    # =========================================================================
    # 등록 (Register)
    # =========================================================================

    async def register(self, data: TenantRegister, now: Optional[datetime] = None) -> TenantRecord:
        """
        가맹점 등록

        1. 서브도메인 정리/검증
        2. 서브도메인·이메일 중복 확인 (새 테넌트임을 보장)
        3. provisioning 상태로 레지스트리에 등록
        4. 테넌트 DB 프로비저닝 후 active 전환

        Raises:
            InvalidSubdomainError: 형식 오류 또는 예약어
            TenantExistsError: 서브도메인/이메일 중복
            ProvisioningError: DB 생성 실패 (레코드는 provisioning 상태로 남음)
        """
        subdomain = sanitize_subdomain(data.subdomain) if data.subdomain else generate_subdomain(data.business_name)
        if not validate_subdomain(subdomain):
            raise InvalidSubdomainError(data.subdomain or data.business_name)

        if await self.registry.subdomain_exists(subdomain):
            raise TenantExistsError(subdomain)
        if await self.registry.email_exists(data.email):
            raise TenantExistsError(data.email)

        now = now or datetime.utcnow()
        try:
            async with self.db.get_central_session() as session:
                tenant = Tenant(
                    subdomain=subdomain,
                    name=data.business_name,
                    email=data.email,
                    phone=data.phone,
                    description=data.description,
                    owner_merchant_id=data.owner_merchant_id,
                    database_url=self.db.tenant_db_url(database_name_for(subdomain)),
                    status=TenantStatus.PROVISIONING,
                    plan_id=data.plan_id,
                    subscription_status=SubscriptionStatus.TRIAL,
                    trial_start=now,
                    trial_end=now + timedelta(days=data.trial_days),
                    config={},
                )
                session.add(tenant)
        except IntegrityError as e:
            # 중복 확인과 INSERT 사이의 경쟁
            raise TenantExistsError(subdomain) from e

        logger.info(f"Tenant registered: {subdomain}")

        record = await self.provision(subdomain)
        await self._emit(LifecycleEvent.AFTER_REGISTER, tenant=record)
        return record

    # =========================================================================
    # 프로비저닝 (Provision)
    # =========================================================================

    async def provision(self, tenant_key: str) -> TenantRecord:
        """
        provisioning 상태 테넌트의 DB 생성 및 활성화

        등록 중 프로비저닝이 실패한 테넌트를 다시 시도할 때도 사용합니다.
        이미 프로비저닝된 테넌트에는 DB 삭제를 막기 위해 거부합니다.
        """
        async with self.db.get_central_session() as session:
            tenant = await self._load(session, tenant_key)
            if tenant.status != TenantStatus.PROVISIONING:
                raise ProvisioningError(
                    database_name_for(tenant.subdomain),
                    f"tenant is {tenant.status.value}, not provisioning",
                )
            subdomain = tenant.subdomain
            merchant_id = tenant.owner_merchant_id

        database_url = await self.provisioner.provision(subdomain, merchant_id)

        async with self.db.get_central_session() as session:
            tenant = await self._load(session, subdomain)
            tenant.database_url = database_url
            tenant.status = TenantStatus.ACTIVE
            tenant.provisioned_at = datetime.utcnow()
            await session.flush()
            await session.refresh(tenant)
            record = TenantRecord.model_validate(tenant)

        await self._invalidate(subdomain)
        await self._emit(LifecycleEvent.AFTER_PROVISION, tenant=record)
        logger.info(f"Tenant provisioned: {subdomain}")
        return record

    # =========================================================================
    # 상태 변경
    # =========================================================================

    async def _set_status(
        self,
        tenant_key: str,
        status: TenantStatus,
        reason: Optional[str] = None,
    ) -> TenantRecord:
        async with self.db.get_central_session() as session:
            tenant = await self._load(session, tenant_key)
            if tenant.status == TenantStatus.PROVISIONING and status == TenantStatus.ACTIVE:
                raise ProvisioningError(
                    database_name_for(tenant.subdomain),
                    "tenant database has not been provisioned",
                )

            tenant.status = status
            if reason:
                config = dict(tenant.config or {})
                config[f"{status.value}_reason"] = reason
                config[f"{status.value}_at"] = datetime.utcnow().isoformat()
                tenant.config = config
            await session.flush()
            await session.refresh(tenant)
            record = TenantRecord.model_validate(tenant)

        await self._invalidate(record.key)
        return record

    async def activate(self, tenant_key: str) -> TenantRecord:
        """테넌트 재활성화 (inactive/suspended → active)"""
        record = await self._set_status(tenant_key, TenantStatus.ACTIVE)
        await self._emit(LifecycleEvent.AFTER_ACTIVATE, tenant=record)
        logger.info(f"Tenant activated: {record.key}")
        return record

    async def suspend(self, tenant_key: str, reason: Optional[str] = None) -> TenantRecord:
        """테넌트 일시중지 (결제 미완료, 정책 위반 등)"""
        record = await self._set_status(tenant_key, TenantStatus.SUSPENDED, reason)
        await self._emit(LifecycleEvent.AFTER_SUSPEND, tenant=record, reason=reason)
        logger.info(f"Tenant suspended: {record.key}, reason: {reason}")
        return record

    async def deactivate(self, tenant_key: str, reason: Optional[str] = None) -> TenantRecord:
        """테넌트 비활성화 (논리 삭제, 데이터는 보존)"""
        record = await self._set_status(tenant_key, TenantStatus.INACTIVE, reason)
        await self._emit(LifecycleEvent.AFTER_DEACTIVATE, tenant=record, reason=reason)
        logger.info(f"Tenant deactivated: {record.key}, reason: {reason}")
        return record

    async def change_database_url(self, tenant_key: str, database_url: str) -> TenantRecord:
        """테넌트 DB 연결 URL 변경 (DB 이전 등)"""
        async with self.db.get_central_session() as session:
            tenant = await self._load(session, tenant_key)
            tenant.database_url = database_url
            await session.flush()
            await session.refresh(tenant)
            record = TenantRecord.model_validate(tenant)

        await self._invalidate(record.key)
        await self._emit(LifecycleEvent.AFTER_CONNECTION_CHANGE, tenant=record)
        logger.info(f"Tenant connection changed: {record.key}")
        return record
