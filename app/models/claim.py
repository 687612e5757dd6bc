"""보험 청구 관련 SQLAlchemy ORM 모델 정의.

Insurance claim SQLAlchemy ORM model definitions.

Tables:
    - claims: 보험 청구 (Insurance claims)
    - claim_items: 청구 상세 항목 (Claim line items)
    - explanations_of_benefits: 급여 설명서 (Payer EOBs)
    - denial_reasons: 거절 사유 코드 (Denial reason codes)
    - preauthorizations: 사전 승인 (Prior authorizations)
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.mixins import TenantAuditMixin


class Claim(TenantAuditMixin, Base):
    """보험 청구 모델 (Insurance claim)."""

    __tablename__ = "claims"

    code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    claim_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    submitted_on: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    total_charge: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    # 상태 — "Draft" | "Submitted" | "Paid" | "Denied"
    status: Mapped[str | None] = mapped_column(String(50), nullable=True)


class ClaimItem(TenantAuditMixin, Base):
    """청구 상세 항목 모델 — Claim에 속함 (``ClaimId_Claim``)."""

    __tablename__ = "claim_items"

    code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    claim_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("claims.id", ondelete="CASCADE"), nullable=True
    )
    # 시술 코드 — CPT/HCPCS procedure code
    procedure_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    charge_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    units: Mapped[int | None] = mapped_column(Integer, nullable=True)

    claim = relationship("Claim")


class ExplanationOfBenefits(TenantAuditMixin, Base):
    """급여 설명서(EOB) 모델 — Claim에 속함 (``ClaimId_Claim``)."""

    __tablename__ = "explanations_of_benefits"

    code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    claim_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("claims.id", ondelete="SET NULL"), nullable=True
    )
    allowed_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    paid_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    patient_responsibility: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    processed_on: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    claim = relationship("Claim")


class DenialReason(TenantAuditMixin, Base):
    """거절 사유 코드 모델 (Denial reason code)."""

    __tablename__ = "denial_reasons"

    code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    is_appealable: Mapped[bool | None] = mapped_column(Boolean, nullable=True)


class Preauthorization(TenantAuditMixin, Base):
    """사전 승인 모델 (Prior authorization)."""

    __tablename__ = "preauthorizations"

    code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    authorization_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    requested_on: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    approved_on: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    approved_units: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[str | None] = mapped_column(String(50), nullable=True)
