"""진료 관련 SQLAlchemy ORM 모델 정의.

Clinical SQLAlchemy ORM model definitions.

Tables:
    - clinics: 진료소 (Clinics)
    - referrals: 의뢰 (Referrals issued by a clinic)
    - vital_signs: 활력 징후 기록 (Vital sign readings)
    - lab_results: 검사 결과 (Laboratory results)
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.mixins import TenantAuditMixin


class Clinic(TenantAuditMixin, Base):
    """진료소 모델 (Clinic)."""

    __tablename__ = "clinics"

    code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True, info={"searchable": False})
    # 국가 의료기관 식별번호 — National Provider Identifier
    npi_number: Mapped[str | None] = mapped_column(String(20), nullable=True)
    is_active: Mapped[bool | None] = mapped_column(Boolean, nullable=True)


class Referral(TenantAuditMixin, Base):
    """의뢰 모델 — Clinic에 속함 (``ClinicId_Clinic``)."""

    __tablename__ = "referrals"

    code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    clinic_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("clinics.id", ondelete="SET NULL"), nullable=True
    )
    referred_to: Mapped[str | None] = mapped_column(String(255), nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    referral_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[str | None] = mapped_column(String(50), nullable=True)

    clinic = relationship("Clinic")


class VitalSigns(TenantAuditMixin, Base):
    """활력 징후 기록 모델 (Vital sign reading)."""

    __tablename__ = "vital_signs"

    code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    recorded_on: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    temperature: Mapped[Decimal | None] = mapped_column(Numeric(4, 1), nullable=True)
    pulse: Mapped[int | None] = mapped_column(Integer, nullable=True)
    systolic: Mapped[int | None] = mapped_column(Integer, nullable=True)
    diastolic: Mapped[int | None] = mapped_column(Integer, nullable=True)
    respiratory_rate: Mapped[int | None] = mapped_column(Integer, nullable=True)


class LabResult(TenantAuditMixin, Base):
    """검사 결과 모델 (Laboratory result)."""

    __tablename__ = "lab_results"

    code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    test_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    result_value: Mapped[str | None] = mapped_column(String(100), nullable=True)
    unit: Mapped[str | None] = mapped_column(String(50), nullable=True)
    reference_range: Mapped[str | None] = mapped_column(String(100), nullable=True)
    collected_on: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_abnormal: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
