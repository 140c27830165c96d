"""
테넌트 컨텍스트 미들웨어

요청별로 테넌트를 식별하고, 레지스트리 검증과 연결 캐시를 거쳐
{tenant, db} 컨텍스트를 만들어 다운스트림 핸들러에 전달합니다.
"""

import logging
import os
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Optional, Any, Tuple, Dict, List

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from ..core.cache import TenantConnection, TenantConnectionCache
from ..core.exceptions import (
    TenantError,
    TenantIdentifierMissing,
    TenantInactiveError,
    TenantNotFoundError,
    TenantSubscriptionError,
    TenantExistsError,
    TenantResolutionError,
    InvalidSubdomainError,
)
from ..core.registry import TenantRegistry
from ..core.schemas import TenantRecord
from ..core.subdomain import extract_subdomain
from ..core.subscription import AccessLevel, SubscriptionAccess

logger = logging.getLogger(__name__)

TENANT_ID_HEADER = "X-Tenant-Id"
TENANT_KEY_HEADERS = ("X-Tenant-Key", "X-Tenant")

DEFAULT_EXCLUDE_PATHS = [
    "/health",
    "/docs",
    "/openapi.json",
    "/redoc",
    "/mt/",
    "/favicon.ico",
]

# 현재 요청의 테넌트 컨텍스트
_current_tenant: ContextVar[Optional["TenantContext"]] = ContextVar(
    "current_tenant", default=None
)


@dataclass(frozen=True)
class TenantIdentifier:
    """요청에서 추출한 테넌트 식별자 (저장하지 않음)"""
    tenant_id: Optional[str] = None
    tenant_key: Optional[str] = None
    source: str = "unknown"

    def __str__(self) -> str:
        return self.tenant_key or self.tenant_id or ""


@dataclass(frozen=True)
class TenantContext:
    """해석된 테넌트 정보, 테넌트 DB 연결 핸들, 구독 접근 수준"""
    tenant: TenantRecord
    db: TenantConnection
    identifier: Optional[TenantIdentifier] = None
    access: Optional[SubscriptionAccess] = None

    @property
    def tenant_id(self) -> str:
        return self.tenant.id

    @property
    def tenant_key(self) -> str:
        return self.tenant.key

    @property
    def access_level(self) -> AccessLevel:
        return self.access.access_level if self.access else AccessLevel.FULL

    @property
    def can_write(self) -> bool:
        return self.access.can_write if self.access else True


def get_current_tenant() -> Optional[TenantContext]:
    """현재 요청의 테넌트 컨텍스트 반환"""
    return _current_tenant.get()


def set_current_tenant(context: Optional[TenantContext]) -> None:
    """테넌트 컨텍스트 설정"""
    _current_tenant.set(context)


def clear_current_tenant() -> None:
    """테넌트 컨텍스트 초기화"""
    _current_tenant.set(None)


# =============================================================================
# Error translation
# =============================================================================

_ERROR_STATUS = (
    (TenantIdentifierMissing, 400),
    (InvalidSubdomainError, 400),
    (TenantSubscriptionError, 402),
    (TenantInactiveError, 403),
    (TenantNotFoundError, 404),
    (TenantExistsError, 409),
)


def error_payload(exc: Exception) -> Tuple[int, Dict[str, Any]]:
    """
    내부 예외 → (HTTP 상태 코드, 응답 본문)

    예외를 응답 형태로 바꾸는 유일한 지점입니다.
    알 수 없는 예외는 내용을 숨기고 500으로 변환합니다.
    """
    for exc_type, status_code in _ERROR_STATUS:
        if isinstance(exc, exc_type):
            body: Dict[str, Any] = {
                "success": False,
                "error": exc.code,
                "message": str(exc),
            }
            if isinstance(exc, TenantSubscriptionError):
                body["details"] = {
                    "reason": exc.reason,
                    "subscription_status": exc.subscription_status,
                }
            return status_code, body

    return 500, {
        "success": False,
        "error": "INTERNAL_ERROR",
        "message": "Internal server error",
    }


def error_response(exc: Exception) -> JSONResponse:
    """내부 예외를 JSON 에러 응답으로 변환"""
    status_code, body = error_payload(exc)
    if status_code >= 500:
        logger.error(f"Tenant resolution failed: {exc!r}", exc_info=exc)
    else:
        logger.warning(f"Tenant request rejected ({status_code} {body['error']}): {exc}")
    return JSONResponse(status_code=status_code, content=body)


# =============================================================================
# Resolver
# =============================================================================

def _user_attr(user: Any, *names: str) -> Optional[str]:
    for name in names:
        if isinstance(user, dict):
            value = user.get(name)
        else:
            value = getattr(user, name, None)
        if value:
            return str(value)
    return None


class TenantResolver:
    """
    요청 → 테넌트 컨텍스트 해석기

    식별자 우선순위:
    1. X-Tenant-Id 헤더
    2. X-Tenant-Key / X-Tenant 헤더
    3. 인증된 사용자의 tenant_id / tenant_key
    4. Host 서브도메인 (use_subdomain=True일 때)
    5. 호출자가 지정한 fallback
    6. 환경 기본값 (DEFAULT_TENANT)
    """

    def __init__(
        self,
        registry: TenantRegistry,
        cache: TenantConnectionCache,
        root_domain: Optional[str] = None,
        default_tenant: Optional[str] = None,
        use_subdomain: bool = False,
    ):
        self.registry = registry
        self.cache = cache
        self.root_domain = root_domain
        self.default_tenant = default_tenant
        self.use_subdomain = use_subdomain

    def identify(
        self,
        request: Request,
        user: Any = None,
        fallback: Optional[str] = None,
    ) -> TenantIdentifier:
        """요청에서 테넌트 식별자 추출"""
        tenant_id = request.headers.get(TENANT_ID_HEADER)
        if tenant_id:
            return TenantIdentifier(tenant_id=tenant_id.strip(), source="header")

        for header in TENANT_KEY_HEADERS:
            tenant_key = request.headers.get(header)
            if tenant_key:
                return TenantIdentifier(tenant_key=tenant_key.strip(), source="header")

        if user is None:
            user = getattr(request.state, "user", None)
        if user is not None:
            tenant_id = _user_attr(user, "tenant_id", "tenantId")
            if tenant_id:
                return TenantIdentifier(tenant_id=tenant_id, source="user")
            tenant_key = _user_attr(user, "tenant_key", "tenantKey")
            if tenant_key:
                return TenantIdentifier(tenant_key=tenant_key, source="user")

        if self.use_subdomain:
            tenant_key = extract_subdomain(request.headers.get("host"), self.root_domain)
            if tenant_key:
                return TenantIdentifier(tenant_key=tenant_key, source="subdomain")

        if fallback:
            return TenantIdentifier(tenant_key=fallback, source="fallback")

        default_tenant = self.default_tenant or os.getenv("DEFAULT_TENANT")
        if default_tenant:
            return TenantIdentifier(tenant_key=default_tenant, source="default")

        raise TenantIdentifierMissing()

    async def resolve(
        self,
        request: Request,
        user: Any = None,
        fallback: Optional[str] = None,
    ) -> TenantContext:
        """
        테넌트 컨텍스트 생성

        레지스트리에서 상태/구독을 검증한 뒤 연결 캐시에서 핸들을 얻습니다.
        검증에 실패하면 연결은 만들어지지 않습니다.
        """
        identifier = self.identify(request, user=user, fallback=fallback)
        tenant, access = await self.registry.resolve_access(
            tenant_key=identifier.tenant_key,
            tenant_id=identifier.tenant_id,
        )
        db = await self.cache.acquire(tenant.key, tenant=tenant)
        return TenantContext(tenant=tenant, db=db, identifier=identifier, access=access)


# =============================================================================
# Middleware
# =============================================================================

class TenantMiddleware(BaseHTTPMiddleware):
    """
    테넌트 식별 미들웨어

    Example:
        from fastapi import FastAPI
        from mt_rental.middleware import TenantMiddleware

        app = FastAPI()
        app.add_middleware(
            TenantMiddleware,
            resolver=resolver,
            exclude_paths=["/health", "/docs"]
        )
    """

    def __init__(
        self,
        app,
        resolver: TenantResolver,
        exclude_paths: Optional[List[str]] = None,
        require_tenant: bool = True,
    ):
        """
        Args:
            app: FastAPI/Starlette 앱
            resolver: TenantResolver 인스턴스
            exclude_paths: 테넌트 해석 제외 경로 (prefix)
            require_tenant: False면 식별자가 없는 요청을 그대로 통과
        """
        super().__init__(app)
        self.resolver = resolver
        self.exclude_paths = exclude_paths if exclude_paths is not None else list(DEFAULT_EXCLUDE_PATHS)
        self.require_tenant = require_tenant

    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path
        if any(path.startswith(exc) for exc in self.exclude_paths):
            return await call_next(request)

        try:
            context = await self.resolver.resolve(request)
        except TenantIdentifierMissing as e:
            if self.require_tenant:
                return error_response(e)
            context = None
        except Exception as e:
            return error_response(e)

        token = _current_tenant.set(context)
        request.state.tenant = context
        try:
            return await call_next(request)
        finally:
            _current_tenant.reset(token)


async def tenant_error_handler(request: Request, exc: TenantError) -> JSONResponse:
    """FastAPI 예외 핸들러: 의존성에서 발생한 테넌트 예외를 미들웨어와 같은 본문으로 응답"""
    return error_response(exc)


def install_tenant_error_handler(app: FastAPI) -> None:
    """TenantError → JSON 에러 응답 핸들러 등록"""
    app.add_exception_handler(TenantError, tenant_error_handler)


# =============================================================================
# FastAPI dependencies
# =============================================================================

async def get_tenant_context(request: Request) -> TenantContext:
    """
    FastAPI 의존성: 테넌트 필수

    미들웨어가 이미 해석했으면 그 결과를, 아니면 app.state.tenant_resolver로
    직접 해석합니다. 실패하면 TenantError를 발생시키며,
    install_tenant_error_handler()로 등록한 핸들러가 응답으로 변환합니다.

    Example:
        @app.get("/products")
        async def list_products(tenant: TenantContext = Depends(get_tenant_context)):
            async with tenant.db.session() as session:
                ...
    """
    context = getattr(request.state, "tenant", None) or get_current_tenant()
    if context is not None:
        return context

    resolver: Optional[TenantResolver] = getattr(request.app.state, "tenant_resolver", None)
    if resolver is None:
        raise TenantIdentifierMissing("Tenant resolver is not configured")

    try:
        context = await resolver.resolve(request)
    except TenantError:
        raise
    except Exception as e:
        raise TenantResolutionError(f"Tenant resolution failed: {e!r}") from e

    request.state.tenant = context
    return context


async def require_write_access(request: Request) -> TenantContext:
    """
    FastAPI 의존성: 쓰기 가능한 구독 필요

    paused(readonly), past_due/해지 예약(limited) 테넌트는 조회만 가능하며
    생성/수정/삭제 엔드포인트에서는 402로 거부됩니다.

    Example:
        @app.post("/rentals")
        async def create_rental(tenant: TenantContext = Depends(require_write_access)):
            ...
    """
    context = await get_tenant_context(request)
    if not context.can_write:
        access = context.access
        raise TenantSubscriptionError(
            context.tenant_key,
            access.reason or "Subscription does not allow changes",
            context.tenant.subscription_status.value if context.tenant.subscription_status else None,
        )
    return context


def optional_tenant() -> Optional[TenantContext]:
    """FastAPI 의존성: 테넌트 선택적"""
    return get_current_tenant()


async def get_tenant_db(request: Request):
    """
    FastAPI 의존성: 테넌트 DB 세션

    Example:
        @app.get("/customers")
        async def list_customers(session: AsyncSession = Depends(get_tenant_db)):
            ...
    """
    context = await get_tenant_context(request)
    async with context.db.session() as session:
        yield session
