"""
MT-Rental 설정

Central DB, 서브도메인 라우팅, 테넌트 연결 캐시 설정 관리
"""

import os
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.engine import make_url


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


def _env_optional_bool(name: str) -> Optional[bool]:
    value = os.getenv(name)
    if not value:
        return None
    return value.lower() in ("1", "true", "yes")


@dataclass
class DatabaseConfig:
    """Central DB (테넌트 레지스트리) 설정"""
    host: str = "localhost"
    port: int = 5432
    username: str = "postgres"
    password: str = ""
    database: str = "rentalshop_main"

    # MAIN_DATABASE_URL이 지정되면 위 개별 항목보다 우선
    main_url: Optional[str] = None

    # Connection Pool
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800

    echo: bool = False

    @property
    def url(self) -> str:
        """SQLAlchemy async 연결 URL"""
        if self.main_url:
            return to_async_url(self.main_url)
        return f"postgresql+asyncpg://{self.username}:{self.password}@{self.host}:{self.port}/{self.database}"

    @property
    def sync_url(self) -> str:
        """동기 연결 URL"""
        url = make_url(self.url)
        return url.set(drivername="postgresql").render_as_string(hide_password=False)

    @classmethod
    def from_env(cls) -> "DatabaseConfig":
        """환경변수에서 설정 로드"""
        return cls(
            host=os.getenv("MT_DB_HOST", "localhost"),
            port=int(os.getenv("MT_DB_PORT", "5432")),
            username=os.getenv("MT_DB_USER", "postgres"),
            password=os.getenv("MT_DB_PASSWORD", ""),
            database=os.getenv("MT_DB_NAME", "rentalshop_main"),
            main_url=os.getenv("MAIN_DATABASE_URL"),
            pool_size=int(os.getenv("MT_DB_POOL_SIZE", "5")),
            max_overflow=int(os.getenv("MT_DB_MAX_OVERFLOW", "10")),
            pool_timeout=int(os.getenv("MT_DB_POOL_TIMEOUT", "30")),
            pool_recycle=int(os.getenv("MT_DB_POOL_RECYCLE", "1800")),
            echo=_env_bool("SQL_ECHO", "false"),
        )


@dataclass
class TenancyConfig:
    """테넌트 라우팅/캐시/프로비저닝 설정"""

    # 루트 도메인 (예: anyrent.shop). 포트가 붙어 있어도 무방
    root_domain: str = "localhost:3000"

    # 요청에서 테넌트를 찾지 못했을 때 사용할 기본 테넌트 키
    default_tenant: Optional[str] = None

    # Host 서브도메인으로 테넌트 식별 (브라우저용 라우트)
    use_subdomain: bool = False

    # 연결 캐시
    cache_max_size: int = 100
    cache_ttl_seconds: float = 0  # 0이면 만료 없음

    # 프로비저닝 시 기존 DB를 삭제 후 재생성할지 여부
    # None이면 MTRentalConfig가 환경에 따라 결정 (production이 아닐 때만 삭제)
    provision_drop_existing: Optional[bool] = None

    @property
    def root_host(self) -> str:
        """포트를 제외한 루트 도메인"""
        return self.root_domain.split(":")[0]

    @classmethod
    def from_env(cls) -> "TenancyConfig":
        """환경변수에서 설정 로드"""
        return cls(
            root_domain=os.getenv("ROOT_DOMAIN", os.getenv("NEXT_PUBLIC_ROOT_DOMAIN", "localhost:3000")),
            default_tenant=os.getenv("DEFAULT_TENANT") or None,
            use_subdomain=_env_bool("MT_USE_SUBDOMAIN", "false"),
            cache_max_size=int(os.getenv("MT_CACHE_MAX_SIZE", "100")),
            cache_ttl_seconds=float(os.getenv("MT_CACHE_TTL_SECONDS", "0")),
            provision_drop_existing=_env_optional_bool("MT_PROVISION_DROP_EXISTING"),
        )


@dataclass
class MTRentalConfig:
    """MT-Rental 전체 설정"""

    service_name: str = "mt_rental"
    version: str = "0.1.0"
    environment: str = "development"
    debug: bool = True

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    tenancy: TenancyConfig = field(default_factory=TenancyConfig)

    # 관리자 API 키 (X-Admin-API-Key)
    admin_api_key: Optional[str] = None

    def __post_init__(self):
        if self.tenancy.provision_drop_existing is None:
            self.tenancy.provision_drop_existing = not self.is_production

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @classmethod
    def from_env(cls) -> "MTRentalConfig":
        """환경변수에서 전체 설정 로드"""
        return cls(
            service_name=os.getenv("MT_SERVICE_NAME", "mt_rental"),
            version=os.getenv("MT_VERSION", "0.1.0"),
            environment=os.getenv("MT_ENVIRONMENT", "development"),
            debug=_env_bool("MT_DEBUG", "true"),
            database=DatabaseConfig.from_env(),
            tenancy=TenancyConfig.from_env(),
            admin_api_key=os.getenv("MT_ADMIN_API_KEY"),
        )


def to_async_url(url: str) -> str:
    """postgres:// 또는 postgresql:// URL을 asyncpg 드라이버 URL로 변환"""
    parsed = make_url(url)
    if parsed.drivername in ("postgres", "postgresql"):
        parsed = parsed.set(drivername="postgresql+asyncpg")
    return parsed.render_as_string(hide_password=False)


def mask_url(url: str) -> str:
    """로그 출력용: 비밀번호를 가린 URL"""
    try:
        return make_url(url).render_as_string(hide_password=True)
    except Exception:
        return "<invalid url>"


# 전역 설정 인스턴스
_config: Optional[MTRentalConfig] = None


def get_config() -> MTRentalConfig:
    """전역 설정 반환"""
    global _config
    if _config is None:
        _config = MTRentalConfig.from_env()
    return _config


def set_config(config: Optional[MTRentalConfig]) -> None:
    """전역 설정 지정 (None이면 다음 호출 시 환경변수에서 다시 로드)"""
    global _config
    _config = config
