"""SQLAlchemy ORM 모델 패키지 — 모든 도메인 모델의 중앙 임포트 및 등록 지점.

SQLAlchemy ORM models package — Central import and registration point for all
domain models. Importing this package registers every model with the
SQLAlchemy metadata and describes it once in the query engine's schema
registry; the per-entity CRUD routes are generated from that registry.

Modules:
    mixins: 테넌트/감사 공통 컬럼 (Tenant and audit columns)
    billing: 청구, 결제, 청구 주기, 청구 항목, 연령 보고서, 지급 통지 (Billing domain)
    claim: 보험 청구, 청구 항목, EOB, 거절 사유, 사전 승인 (Claims domain)
    clinical: 진료소, 의뢰, 활력 징후, 검사 결과 (Clinical domain)
"""

from app.models.billing import AgingReport, Billing, BillableItems, BillingCycle, Payment, RemittanceAdvice
from app.models.claim import Claim, ClaimItem, DenialReason, ExplanationOfBenefits, Preauthorization
from app.models.clinical import Clinic, LabResult, Referral, VitalSigns
from app.query.schema import schema_registry

ENTITY_MODELS: tuple[type, ...] = (
    AgingReport, Billing, BillableItems, BillingCycle, Payment, RemittanceAdvice,
    Claim, ClaimItem, DenialReason, ExplanationOfBenefits, Preauthorization,
    Clinic, LabResult, Referral, VitalSigns,
)

# 시작 시 1회 등록 — 이후 레지스트리는 읽기 전용 (Registered once at startup, read-only afterwards)
for _model in ENTITY_MODELS:
    schema_registry.register(_model)

__all__ = [
    "AgingReport", "Billing", "BillableItems", "BillingCycle", "Payment", "RemittanceAdvice",
    "Claim", "ClaimItem", "DenialReason", "ExplanationOfBenefits", "Preauthorization",
    "Clinic", "LabResult", "Referral", "VitalSigns",
    "ENTITY_MODELS",
]
