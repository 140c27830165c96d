"""
서브도메인 유틸리티

요청 Host에서 테넌트 키를 추출하고, 가입 시 서브도메인을 정리/검증합니다.
"""

import re
import unicodedata
from typing import Optional

from ..config import get_config

RESERVED_SUBDOMAINS = (
    "www", "api", "admin", "app", "mail", "ftp", "smtp",
    "client", "www2", "test", "demo", "staging",
)

MAX_SUBDOMAIN_LENGTH = 50

_SUBDOMAIN_PATTERN = re.compile(r"^[a-z0-9]([a-z0-9-]{0,48}[a-z0-9])?$")


def extract_subdomain(hostname: Optional[str], root_domain: Optional[str] = None) -> Optional[str]:
    """
    Host 헤더에서 테넌트 키 추출

    모든 요청에서 호출되므로 어떤 입력에도 예외를 던지지 않습니다.

    Args:
        hostname: Host 값 (포트 포함 가능)
        root_domain: 루트 도메인 (None이면 설정값 사용)

    Returns:
        테넌트 키 또는 None (루트/마케팅 사이트)

    Example:
        extract_subdomain("acme.localhost:3000")  # "acme"
        extract_subdomain("acme.anyrent.shop")    # "acme"
        extract_subdomain("anyrent.shop")         # None
    """
    if not hostname or not isinstance(hostname, str):
        return None

    host = hostname.strip().split(":")[0].lower()
    if not host:
        return None

    parts = host.split(".")

    # 개발 환경: acme.localhost
    if len(parts) >= 2 and parts[-1] == "localhost":
        return parts[0] or None

    root = _root_host(root_domain)
    if host in (root, f"www.{root}"):
        return None

    if len(parts) > 2:
        return parts[0] or None

    return None


def _root_host(root_domain: Optional[str]) -> str:
    if root_domain is None:
        try:
            root_domain = get_config().tenancy.root_domain
        except ValueError:
            # 환경변수 파싱 실패 시에도 요청 처리는 계속되어야 함
            root_domain = "localhost:3000"
    return root_domain.split(":")[0].lower()


def is_root_host(hostname: Optional[str], root_domain: Optional[str] = None) -> bool:
    """Host가 루트 도메인(또는 www.루트)인지 확인"""
    if not hostname or not isinstance(hostname, str):
        return False
    host = hostname.strip().split(":")[0].lower()
    root = _root_host(root_domain)
    return host in (root, f"www.{root}")


def _strip_diacritics(text: str) -> str:
    text = text.replace("đ", "d").replace("Đ", "D")
    normalized = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in normalized if unicodedata.category(ch) != "Mn")


def sanitize_subdomain(text: Optional[str]) -> str:
    """상호명 등 임의 문자열을 서브도메인 후보로 정리"""
    if not text:
        return ""
    cleaned = _strip_diacritics(text).lower().strip()
    cleaned = re.sub(r"[^a-z0-9]", "", cleaned)
    return cleaned[:MAX_SUBDOMAIN_LENGTH]


def generate_subdomain(business_name: str) -> str:
    """상호명으로 서브도메인 생성"""
    return sanitize_subdomain(business_name)


def is_reserved_subdomain(subdomain: str) -> bool:
    return subdomain.lower() in RESERVED_SUBDOMAINS


def validate_subdomain(subdomain: Optional[str]) -> bool:
    """서브도메인 형식/예약어 검증"""
    if not subdomain:
        return False
    if is_reserved_subdomain(subdomain):
        return False
    return bool(_SUBDOMAIN_PATTERN.match(subdomain))


def database_name_for(subdomain: str) -> str:
    """
    서브도메인에서 테넌트 DB 이름 생성

    항상 같은 입력에 같은 이름을 돌려주며, PostgreSQL 식별자로 안전한
    문자([a-z0-9_])만 남깁니다.
    """
    safe = re.sub(r"[^a-z0-9_]", "", subdomain.lower().replace("-", "_"))
    if not safe:
        raise ValueError(f"Cannot derive database name from {subdomain!r}")
    return f"{safe}_db"


def build_tenant_url(subdomain: str, root_domain: Optional[str] = None, production: Optional[bool] = None) -> str:
    """테넌트 접속 URL 생성"""
    config = get_config()
    if root_domain is None:
        root_domain = config.tenancy.root_domain
    if production is None:
        production = config.is_production
    protocol = "https" if production else "http"
    return f"{protocol}://{subdomain}.{root_domain}"
