"""
미들웨어 모듈

테넌트 컨텍스트 해석 미들웨어 및 FastAPI 의존성
"""
from .tenant import (
    TenantMiddleware,
    TenantResolver,
    TenantContext,
    TenantIdentifier,
    get_current_tenant,
    get_tenant_context,
    get_tenant_db,
    optional_tenant,
    require_write_access,
    error_payload,
    error_response,
    install_tenant_error_handler,
)

__all__ = [
    "TenantMiddleware",
    "TenantResolver",
    "TenantContext",
    "TenantIdentifier",
    "get_current_tenant",
    "get_tenant_context",
    "get_tenant_db",
    "optional_tenant",
    "require_write_access",
    "error_payload",
    "error_response",
    "install_tenant_error_handler",
]
