"""테스트 인프라 — 메모리 내 엔티티 저장소, 세션 컨텍스트, httpx 클라이언트 픽스처.

Test infrastructure — In-memory entity store, session context, and httpx
client fixtures. The API is exercised through ASGITransport with the entity
store dependency overridden, so no database is required.
"""

import uuid
from collections.abc import AsyncGenerator
from datetime import datetime, timezone
from typing import Any, Iterable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.api.deps import get_entity_store
from app.main import app
from app.models import Billing, Payment
from app.query.schema import SchemaDescriptor, schema_registry
from app.repositories.memory import InMemoryEntityStore
from app.schemas.auth import SessionContext
from app.utils.jwt import create_access_token

# ---------------------------------------------------------------------------
# 테스트 식별자
# ---------------------------------------------------------------------------
TENANT_ID: uuid.UUID = uuid.UUID("11111111-1111-1111-1111-111111111111")
OTHER_TENANT_ID: uuid.UUID = uuid.UUID("22222222-2222-2222-2222-222222222222")
USER_ID: uuid.UUID = uuid.UUID("33333333-3333-3333-3333-333333333333")


def make_entity(model: type, tenant_id: uuid.UUID = TENANT_ID, **values: Any) -> Any:
    """테넌트/ID가 채워진 엔티티를 만듭니다 (Entity with id and tenant filled in)."""
    values.setdefault("id", uuid.uuid4())
    return model(tenant_id=tenant_id, **values)


def make_token(
    entitlements: Iterable[str] = ("*:*",),
    tenant_id: uuid.UUID = TENANT_ID,
    user_id: uuid.UUID = USER_ID,
    expires_minutes: int | None = None,
) -> str:
    """테스트용 JWT 액세스 토큰을 생성합니다."""
    return create_access_token(user_id, tenant_id, entitlements, expires_minutes=expires_minutes)


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# 스키마 / 컨텍스트 / 저장소
# ---------------------------------------------------------------------------
@pytest.fixture
def payment_schema() -> SchemaDescriptor:
    return schema_registry.get("Payment")


@pytest.fixture
def billing_schema() -> SchemaDescriptor:
    return schema_registry.get("Billing")


@pytest.fixture
def context() -> SessionContext:
    """모든 권한을 가진 테넌트 세션 (Session with every entitlement)."""
    return SessionContext(user_id=USER_ID, tenant_id=TENANT_ID, entitlements=("*:*",))


@pytest.fixture
def store() -> InMemoryEntityStore:
    return InMemoryEntityStore()


@pytest_asyncio.fixture
async def client(store: InMemoryEntityStore) -> AsyncGenerator[AsyncClient, None]:
    """FastAPI 테스트 클라이언트 — 엔티티 저장소를 오버라이드합니다."""
    app.dependency_overrides[get_entity_store] = lambda: store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def admin_token() -> str:
    return make_token(["*:*"])


@pytest.fixture
def reader_token() -> str:
    return make_token(["Payment:Read"])


# ---------------------------------------------------------------------------
# 헬퍼 픽스처: 테스트용 데이터 생성
# ---------------------------------------------------------------------------
@pytest.fixture
def billing(store: InMemoryEntityStore, billing_schema: SchemaDescriptor) -> Billing:
    """테스트 청구서를 저장소에 넣습니다."""
    b = make_entity(Billing, code="B-1", patient_name="Jane Roe", status="Open")
    store.seed(billing_schema, b)
    return b


@pytest.fixture
def payments(
    store: InMemoryEntityStore, payment_schema: SchemaDescriptor, billing: Billing
) -> dict[int, Payment]:
    """금액 50/150/200 결제 3건 + 다른 테넌트의 결제 1건을 넣습니다.

    Three payments of the tenant (keyed by amount) plus one payment of
    another tenant that must never be visible.
    """
    result: dict[int, Payment] = {}
    for day, amount, method in [(1, 50, "Cash"), (2, 150, "Card"), (3, 200, "Insurance")]:
        p = make_entity(
            Payment,
            code=f"P-{amount}",
            amount=amount,
            payment_date=datetime(2024, 1, day, 9, 0, tzinfo=timezone.utc),
            payment_method=method,
            reference_number=f"REF-CARD-{amount}",
        )
        result[amount] = p
    result[150].billing = billing
    result[150].billing_id = billing.id
    store.seed(payment_schema, *result.values())

    foreign = make_entity(
        Payment,
        tenant_id=OTHER_TENANT_ID,
        code="P-300",
        amount=300,
        payment_date=datetime(2024, 1, 4, 9, 0, tzinfo=timezone.utc),
        payment_method="Card",
    )
    store.seed(payment_schema, foreign)
    return result
