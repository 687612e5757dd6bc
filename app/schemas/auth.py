"""인증/세션 관련 Pydantic 스키마 정의.

Authentication and session schema definitions.
The session context is built from the decoded JWT and carries the caller's
user id, tenant id and entitlements to the service layer.
"""

from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class Entitlement(str, Enum):
    """엔티티별 작업 권한 (Per-entity operation entitlement)."""

    CREATE = "Create"
    READ = "Read"
    UPDATE = "Update"
    DELETE = "Delete"


class SessionContext(BaseModel):
    """요청 세션 컨텍스트 — 토큰에서 디코딩된 신원 정보.

    Request session context decoded from the bearer token.

    Entitlements are ``"<Entity>:<Entitlement>"`` strings; ``*`` matches any
    entity or any entitlement (``"*:Read"``, ``"Payment:*"``).

    Attributes:
        user_id: 사용자 ID (JWT "sub")
        tenant_id: 테넌트 ID (JWT "tenant")
        entitlements: 권한 목록 (JWT "entitlements")
    """

    model_config = ConfigDict(frozen=True)

    user_id: UUID
    tenant_id: UUID
    entitlements: tuple[str, ...] = ()

    def allows(self, entity_name: str, entitlement: Entitlement) -> bool:
        """엔티티/작업 조합이 허용되는지 확인합니다 (Case-insensitive)."""
        wanted_entity: str = entity_name.lower()
        wanted_action: str = entitlement.value.lower()
        for granted in self.entitlements:
            entity, _, action = granted.strip().lower().partition(":")
            if entity in ("*", wanted_entity) and action in ("*", wanted_action):
                return True
        return False
