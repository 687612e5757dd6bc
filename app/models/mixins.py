"""공통 컬럼 믹스인 — 테넌트, 식별자, 감사 필드.

Shared column mixin — tenant, identifier and audit stamps.
Every entity exposed through the generic CRUD API inherits these columns,
which the schema registry publishes as ``TenantId``, ``Id``, ``CreatedOn``,
``CreatedBy``, ``UpdatedOn`` and ``UpdatedBy``.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Uuid
from sqlalchemy.orm import Mapped, mapped_column


class TenantAuditMixin:
    """테넌트 범위 엔티티의 공통 컬럼.

    Common columns of tenant-scoped entities.

    Attributes:
        tenant_id: 소속 테넌트 ID (Owning tenant, stamped from the session on create)
        id: 고유 식별자 UUID (Unique identifier)
        created_on: 생성 일시 UTC (Creation timestamp)
        created_by: 생성 사용자 ID (Creating user)
        updated_on: 수정 일시 UTC (Last update timestamp)
        updated_by: 수정 사용자 ID (Last updating user)
    """

    # 테넌트 ID — 모든 쿼리가 이 컬럼으로 범위 제한됨 (Every query is scoped by this column)
    tenant_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True, index=True)
    # 고유 식별자 — Unique identifier (UUID v4, auto-generated)
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 생성 일시/사용자 — Creation stamp (set by the service, never by the client)
    created_on: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    # 수정 일시/사용자 — Update stamp (set on PUT and PATCH)
    updated_on: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
