"""JWT 토큰 생성 및 검증 유틸리티 모듈.

JWT token creation and verification utility module.

JWT Payload Structure:
    {
        "sub": "user_uuid",                   # 사용자 ID (User identifier)
        "tenant": "tenant_uuid",              # 테넌트 ID (Tenant identifier)
        "entitlements": ["Payment:Read", ...],  # 엔티티별 권한 (Per-entity entitlements)
        "exp": 1234567890,                    # 만료 시간 UNIX timestamp (Expiration)
        "type": "access"                      # 토큰 유형 (Token type discriminator)
    }
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Iterable
from uuid import UUID

import jwt

from app.config import settings


def create_access_token(
    user_id: UUID,
    tenant_id: UUID,
    entitlements: Iterable[str] = (),
    expires_minutes: int | None = None,
) -> str:
    """JWT 액세스 토큰을 생성합니다.

    Generate a JWT access token for a user of a tenant.
    Token expires after JWT_ACCESS_TOKEN_EXPIRE_MINUTES unless overridden.

    Args:
        user_id: 사용자 ID (User identifier, "sub")
        tenant_id: 테넌트 ID (Tenant identifier, "tenant")
        entitlements: 권한 목록 (Entitlements such as "Payment:Read" or "*:*")
        expires_minutes: 만료 시간(분), 기본값은 설정값 (TTL override in minutes)

    Returns:
        str: 인코딩된 JWT 문자열 (Encoded JWT token string)

    Example:
        token = create_access_token(user_id, tenant_id, ["*:Read"])
    """
    minutes: int = settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES if expires_minutes is None else expires_minutes
    # 만료 시간 설정 — 현재 UTC 시간 + 설정된 분 수 (Set expiration from current UTC + configured minutes)
    expire: datetime = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "tenant": str(tenant_id),
        "entitlements": list(entitlements),
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict[str, Any]:
    """JWT 토큰을 디코딩하고 검증합니다.

    Decode and verify a JWT token string.

    Raises:
        jwt.ExpiredSignatureError: 토큰 만료 시 (When token has expired)
        jwt.InvalidTokenError: 유효하지 않은 토큰 (When token is invalid)
    """
    return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
