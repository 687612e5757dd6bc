"""청구 관련 SQLAlchemy ORM 모델 정의.

Billing-related SQLAlchemy ORM model definitions.

Tables:
    - billings: 환자 청구서 (Patient bills)
    - payments: 청구서에 대한 결제 (Payments against a bill)
    - billing_cycles: 청구 주기 (Billing periods)
    - billable_items: 청구 가능 항목 카탈로그 (Billable item catalogue)
    - aging_reports: 미수금 연령 보고서 (Accounts receivable aging snapshots)
    - remittance_advices: 지급 통지서 (Payer remittance advices)
"""

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.mixins import TenantAuditMixin


class Billing(TenantAuditMixin, Base):
    """청구서 모델 (Patient bill)."""

    __tablename__ = "billings"

    # 청구서 코드 — Human-readable bill code (e.g. "B-2024-0001")
    code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    patient_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    billing_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    # 청구 총액 — Total billed amount
    total_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    # 상태 — "Open" | "Paid" | "Void"
    status: Mapped[str | None] = mapped_column(String(50), nullable=True)


class Payment(TenantAuditMixin, Base):
    """결제 모델 — 청구서(Billing)에 속함.

    Payment model — belongs to a Billing, exposed as ``BillingId_Billing``.
    """

    __tablename__ = "payments"

    code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    # 소속 청구서 FK — Parent bill (SET NULL: 청구서 삭제 시 결제는 유지)
    billing_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("billings.id", ondelete="SET NULL"), nullable=True
    )
    amount: Mapped[int | None] = mapped_column(Integer, nullable=True)
    payment_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    # 결제 수단 — "Cash" | "Card" | "Insurance" ...
    payment_method: Mapped[str | None] = mapped_column(String(50), nullable=True)
    # 참조 번호 — 자유 검색 대상에서 제외 (Excluded from free-text search)
    reference_number: Mapped[str | None] = mapped_column(
        String(100), nullable=True, info={"searchable": False}
    )

    billing = relationship("Billing")


class BillingCycle(TenantAuditMixin, Base):
    """청구 주기 모델 (Billing period)."""

    __tablename__ = "billing_cycles"

    code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    # 마감 여부 — Closed cycles accept no new bills
    is_closed: Mapped[bool | None] = mapped_column(Boolean, nullable=True)


class BillableItems(TenantAuditMixin, Base):
    """청구 가능 항목 모델 (Billable item catalogue entry)."""

    __tablename__ = "billable_items"

    code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    unit_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    quantity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_taxable: Mapped[bool | None] = mapped_column(Boolean, nullable=True)


class AgingReport(TenantAuditMixin, Base):
    """미수금 연령 보고서 모델 (Accounts receivable aging snapshot)."""

    __tablename__ = "aging_reports"

    code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    report_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    # 연령 구간별 미수금 — Outstanding balance per aging bucket (days)
    current_balance: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    past_due30: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    past_due60: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    past_due90: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    total_outstanding: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)


class RemittanceAdvice(TenantAuditMixin, Base):
    """지급 통지서 모델 (Payer remittance advice)."""

    __tablename__ = "remittance_advices"

    code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    payer_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    remittance_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    paid_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    check_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
