"""
관리자 API 라우터

가맹점 등록(프로비저닝), 테넌트 상태 변경, 연결 캐시 관리 엔드포인트
"""

import logging
import os
from datetime import datetime
from typing import Optional, TYPE_CHECKING

from fastapi import APIRouter, Header, HTTPException, Depends

from ..core.exceptions import TenantNotFoundError
from ..core.schemas import TenantRecord, TenantRegister, TenantResponse
from ..core.subdomain import build_tenant_url
from ..middleware.tenant import error_payload
from .models import HealthResponse, StatusChangeRequest, CacheResponse, ErrorResponse

if TYPE_CHECKING:
    from ..setup import MTRental

logger = logging.getLogger(__name__)


def _to_response(record: TenantRecord) -> TenantResponse:
    return TenantResponse(
        id=record.id,
        key=record.key,
        name=record.name,
        status=record.status.value,
        owner_merchant_id=record.owner_merchant_id,
        subscription_status=record.subscription_status.value if record.subscription_status else None,
        access_url=build_tenant_url(record.key),
        provisioned_at=record.provisioned_at,
        created_at=record.created_at,
        config=record.config,
    )


def _raise_http(exc: Exception) -> None:
    status_code, body = error_payload(exc)
    if status_code >= 500:
        logger.error(f"Admin API error: {exc!r}", exc_info=exc)
    raise HTTPException(status_code=status_code, detail=body)


def create_admin_router(
    mt: "MTRental",
    prefix: str = "/mt",
    api_key_header: str = "X-Admin-API-Key",
    api_key_env: str = "MT_ADMIN_API_KEY",
    require_auth: bool = True,
) -> APIRouter:
    """
    관리자 API 라우터 생성

    Args:
        mt: MTRental 통합 객체
        prefix: API 경로 prefix (기본: /mt)
        api_key_header: API 키 헤더 이름
        api_key_env: 설정에 키가 없을 때 참조할 환경변수
        require_auth: 인증 필수 여부

    Returns:
        APIRouter: FastAPI 라우터
    """

    router = APIRouter(prefix=prefix, tags=["MT Admin API"])

    error_responses = {
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    }

    # =========================================================================
    # API Key 검증 의존성
    # =========================================================================

    async def verify_api_key(
        api_key: Optional[str] = Header(None, alias=api_key_header)
    ) -> str:
        """API 키 검증"""
        if not require_auth:
            return "no-auth"

        expected_key = mt.config.admin_api_key or os.getenv(api_key_env)
        if not expected_key:
            raise HTTPException(
                status_code=500,
                detail=f"API key not configured. Set {api_key_env} environment variable."
            )

        if not api_key:
            raise HTTPException(
                status_code=401,
                detail=f"Missing {api_key_header} header"
            )

        if api_key != expected_key:
            raise HTTPException(
                status_code=401,
                detail="Invalid API key"
            )

        return api_key

    # =========================================================================
    # Health Check
    # =========================================================================

    @router.get("/health", response_model=HealthResponse, summary="헬스체크")
    async def health_check() -> HealthResponse:
        """헬스체크 - 인증 불필요"""
        try:
            await mt.db.check_connection()
            status = "healthy"
        except Exception as e:
            logger.warning(f"Central DB health check failed: {e}")
            status = "unhealthy"

        return HealthResponse(
            status=status,
            version=mt.config.version,
            timestamp=datetime.utcnow().strftime("%Y-%m-%dT%H:%M:%SZ"),
            cached_tenants=len(mt.cache),
        )

    # =========================================================================
    # Tenants
    # =========================================================================

    @router.post(
        "/tenants",
        response_model=TenantResponse,
        status_code=201,
        responses={**error_responses, 409: {"model": ErrorResponse}},
        summary="가맹점 등록",
        description="레지스트리에 테넌트를 등록하고 전용 DB를 프로비저닝합니다."
    )
    async def register_tenant(
        request: TenantRegister,
        api_key: str = Depends(verify_api_key)
    ) -> TenantResponse:
        try:
            record = await mt.lifecycle.register(request)
        except Exception as e:
            _raise_http(e)
        return _to_response(record)

    @router.get(
        "/tenants/{tenant_key}",
        response_model=TenantResponse,
        responses=error_responses,
        summary="테넌트 조회",
    )
    async def get_tenant(
        tenant_key: str,
        api_key: str = Depends(verify_api_key)
    ) -> TenantResponse:
        try:
            record = await mt.registry.get_by_key(tenant_key)
            if record is None:
                raise TenantNotFoundError(tenant_key)
        except Exception as e:
            _raise_http(e)
        return _to_response(record)

    @router.post(
        "/tenants/{tenant_key}/suspend",
        response_model=TenantResponse,
        responses=error_responses,
        summary="테넌트 일시중지",
    )
    async def suspend_tenant(
        tenant_key: str,
        request: StatusChangeRequest,
        api_key: str = Depends(verify_api_key)
    ) -> TenantResponse:
        try:
            record = await mt.lifecycle.suspend(tenant_key, reason=request.reason)
        except Exception as e:
            _raise_http(e)
        return _to_response(record)

    @router.post(
        "/tenants/{tenant_key}/deactivate",
        response_model=TenantResponse,
        responses=error_responses,
        summary="테넌트 비활성화",
    )
    async def deactivate_tenant(
        tenant_key: str,
        request: StatusChangeRequest,
        api_key: str = Depends(verify_api_key)
    ) -> TenantResponse:
        try:
            record = await mt.lifecycle.deactivate(tenant_key, reason=request.reason)
        except Exception as e:
            _raise_http(e)
        return _to_response(record)

    @router.post(
        "/tenants/{tenant_key}/activate",
        response_model=TenantResponse,
        responses=error_responses,
        summary="테넌트 재활성화",
    )
    async def activate_tenant(
        tenant_key: str,
        api_key: str = Depends(verify_api_key)
    ) -> TenantResponse:
        try:
            record = await mt.lifecycle.activate(tenant_key)
        except Exception as e:
            _raise_http(e)
        return _to_response(record)

    # =========================================================================
    # Connection cache
    # =========================================================================

    @router.get("/cache", response_model=CacheResponse, summary="연결 캐시 현황")
    async def get_cache(api_key: str = Depends(verify_api_key)) -> CacheResponse:
        return CacheResponse(
            size=len(mt.cache),
            max_size=mt.cache.max_size,
            ttl_seconds=mt.cache.ttl_seconds,
            tenants=mt.cache.cached_keys(),
        )

    @router.delete("/cache/{tenant_key}", summary="연결 캐시 무효화")
    async def invalidate_cache(
        tenant_key: str,
        api_key: str = Depends(verify_api_key)
    ) -> dict:
        removed = await mt.cache.invalidate(tenant_key)
        return {"success": True, "tenant_key": tenant_key, "removed": removed}

    return router
