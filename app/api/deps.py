"""FastAPI 의존성 주입 모듈 — 세션 컨텍스트, 권한 검사, 엔티티 저장소.

FastAPI dependency injection module — Session context, entitlement checks
and the entity store.

Authentication Flow:
    1. 클라이언트가 Authorization: Bearer <token> 헤더를 전송
       (Client sends Authorization: Bearer <token> header)
    2. decode_token()이 JWT를 검증하고 페이로드를 반환
       (decode_token verifies JWT and returns payload)
    3. "sub", "tenant", "entitlements" 클레임으로 SessionContext 구성
       (SessionContext is built from the claims; no database lookup)

Authorization Flow (require_entitlement):
    1. get_session_context로 세션 인증 (Session authenticated)
    2. "<Entity>:<Entitlement>" 권한 확인, 없으면 403
       (Entitlement checked, 403 when missing)
"""

from typing import Annotated, Awaitable, Callable
from uuid import UUID

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.repositories.base import EntityStore, SqlAlchemyEntityStore
from app.schemas.auth import Entitlement, SessionContext
from app.utils.exceptions import ForbiddenError, UnauthorizedError
from app.utils.jwt import decode_token

# HTTP Bearer 토큰 추출기 — 헤더가 없으면 직접 401 처리 (auto_error=False)
security: HTTPBearer = HTTPBearer(auto_error=False)


async def get_session_context(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> SessionContext:
    """JWT 토큰에서 세션 컨텍스트를 추출합니다.

    Decode the bearer token and return the caller's session context.

    Raises:
        UnauthorizedError(401): 토큰 없음, 유효하지 않거나 만료됨 (Missing, invalid or expired token)
    """
    if credentials is None:
        raise UnauthorizedError()
    try:
        payload: dict = decode_token(credentials.credentials)
        # 토큰 타입 검증 — Only access tokens open a session
        if payload.get("type") != "access":
            raise UnauthorizedError("Invalid token type")
        entitlements = payload.get("entitlements") or []
        if not isinstance(entitlements, list):
            raise UnauthorizedError("Invalid token")
        return SessionContext(
            user_id=UUID(payload["sub"]),
            tenant_id=UUID(payload["tenant"]),
            entitlements=tuple(str(item) for item in entitlements),
        )
    except (jwt.ExpiredSignatureError, jwt.InvalidTokenError, KeyError, ValueError, TypeError):
        raise UnauthorizedError("Invalid or expired token")


def require_entitlement(
    entity_name: str, entitlement: Entitlement
) -> Callable[..., Awaitable[SessionContext]]:
    """엔티티별 권한 검사 의존성 팩토리.

    Dependency factory enforcing ``<entity_name>:<entitlement>``.

    Returns:
        FastAPI 의존성 함수 — 세션 컨텍스트 반환 또는 403 발생
        (Dependency returning the SessionContext or raising 403)
    """
    async def _check(
        context: Annotated[SessionContext, Depends(get_session_context)],
    ) -> SessionContext:
        if not context.allows(entity_name, entitlement):
            raise ForbiddenError(f"Missing entitlement {entity_name}:{entitlement.value}")
        return context
    return _check


async def get_entity_store(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> EntityStore:
    """요청 세션에 묶인 엔티티 저장소 (Entity store bound to the request session)."""
    return SqlAlchemyEntityStore(db)
