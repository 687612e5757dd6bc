"""엔티티 서비스 테스트 — 메모리 내 저장소 위의 CRUD 시나리오.

Entity service tests — CRUD scenarios over the in-memory store.
"""

import json
import uuid

import pytest

from app.models import Billing, Payment
from app.query.patch import PatchOperation
from app.schemas.entity import ListQuery
from app.services.entity_service import entity_service
from app.utils.exceptions import (
    BadRequestError,
    InvalidFilterError,
    InvalidPageError,
    InvalidSortError,
    MismatchedIdentifierError,
    NotFoundError,
    PatchError,
)
from tests.conftest import OTHER_TENANT_ID, TENANT_ID, USER_ID, make_entity


def amount_filter(operator: str, value) -> str:
    return json.dumps([{"PropertyName": "Amount", "Operator": operator, "Value": value}])


class TestGet:
    """목록 조회 테스트."""

    async def test_filter_sort_and_page(self, store, payment_schema, context, payments):
        """금액 > 100, 결제일 내림차순 → 200, 150 순서."""
        query = ListQuery(
            filters=amount_filter("GreaterThan", "100"),
            page_number=1,
            page_size=10,
            sort_field="PaymentDate",
            sort_order="desc",
        )
        records = await entity_service.get(store, payment_schema, query, context)
        assert [r["Amount"] for r in records] == [200, 150]
        assert [r["Id"] for r in records] == [payments[200].id, payments[150].id]

    async def test_other_tenant_is_invisible(self, store, payment_schema, context, payments):
        records = await entity_service.get(store, payment_schema, ListQuery(), context)
        assert sorted(r["Amount"] for r in records) == [50, 150, 200]
        assert all(r["TenantId"] == TENANT_ID for r in records)

    async def test_search_term(self, store, payment_schema, context, payments):
        """검색어는 검색 가능 필드만 대상 (ReferenceNumber 제외)."""
        records = await entity_service.get(store, payment_schema, ListQuery(search_term="CARD"), context)
        assert [r["Code"] for r in records] == ["P-150"]
        none = await entity_service.get(store, payment_schema, ListQuery(search_term="ref-card"), context)
        assert none == []

    async def test_second_page(self, store, payment_schema, context, payments):
        query = ListQuery(page_number=2, page_size=2, sort_field="Amount")
        records = await entity_service.get(store, payment_schema, query, context)
        assert [r["Amount"] for r in records] == [200]

    async def test_projection_attaches_relations(self, store, payment_schema, context, payments):
        query = ListQuery(fields="Code,BillingId_Billing.Code", sort_field="Amount")
        records = await entity_service.get(store, payment_schema, query, context)
        assert store.attached[-1] == ("BillingId_Billing",)
        assert records[1] == {"Id": payments[150].id, "Code": "P-150", "BillingId_Billing": {"Code": "B-1"}}
        assert records[0] == {"Id": payments[50].id, "Code": "P-50"}

    async def test_sort_order_ignored_without_sort_field(self, store, payment_schema, context, payments):
        records = await entity_service.get(store, payment_schema, ListQuery(sort_order="sideways"), context)
        assert len(records) == 3

    @pytest.mark.parametrize("query, error", [
        (ListQuery(filters="[oops"), BadRequestError),
        (ListQuery(filters=amount_filter("Contains", "1")), InvalidFilterError),
        (ListQuery(sort_field="Ghost"), InvalidSortError),
        (ListQuery(sort_field="Amount", sort_order="up"), InvalidSortError),
        (ListQuery(page_number=0), InvalidPageError),
        (ListQuery(page_size=1000), InvalidPageError),
    ])
    async def test_invalid_requests_never_reach_the_store(self, store, payment_schema, context, query, error):
        with pytest.raises(error):
            await entity_service.get(store, payment_schema, query, context)
        assert store.attached == []


class TestGetById:
    """단건 조회 테스트."""

    async def test_projection_with_relation(self, store, payment_schema, context, payments):
        record = await entity_service.get_by_id(
            store, payment_schema, payments[150].id, context, "Code,BillingId_Billing.Code"
        )
        assert record == {"Id": payments[150].id, "Code": "P-150", "BillingId_Billing": {"Code": "B-1"}}
        assert store.attached == [("BillingId_Billing",)]

    async def test_null_relation_omitted(self, store, payment_schema, context, payments):
        record = await entity_service.get_by_id(
            store, payment_schema, payments[50].id, context, "Code,BillingId_Billing.Code"
        )
        assert record == {"Id": payments[50].id, "Code": "P-50"}

    async def test_all_scalar_fields_by_default(self, store, payment_schema, context, payments):
        record = await entity_service.get_by_id(store, payment_schema, payments[200].id, context)
        assert record["Amount"] == 200
        assert record["PaymentMethod"] == "Insurance"
        assert "BillingId_Billing" not in record

    async def test_missing_or_foreign_record_is_not_found(self, store, payment_schema, context, payments):
        with pytest.raises(NotFoundError):
            await entity_service.get_by_id(store, payment_schema, uuid.uuid4(), context)
        foreign = next(p for p in store.records(payment_schema) if p.tenant_id == OTHER_TENANT_ID)
        with pytest.raises(NotFoundError):
            await entity_service.get_by_id(store, payment_schema, foreign.id, context)


class TestCreate:
    """생성 테스트."""

    async def test_server_assigns_id_and_stamps(self, store, payment_schema, context):
        values = {"Id": uuid.uuid4(), "Code": "P-9", "Amount": "75", "TenantId": OTHER_TENANT_ID}
        record_id = await entity_service.create(store, payment_schema, values, context)

        [payment] = store.records(payment_schema)
        assert payment.id == record_id != values["Id"]
        assert payment.tenant_id == TENANT_ID
        assert payment.created_by == USER_ID
        assert payment.created_on is not None
        assert payment.amount == 75
        assert store.saves == 1

    async def test_unparsable_value_is_bad_request(self, store, payment_schema, context):
        with pytest.raises(BadRequestError):
            await entity_service.create(store, payment_schema, {"Amount": "lots"}, context)
        assert store.records(payment_schema) == []


class TestUpdate:
    """전체 수정 테스트."""

    async def test_full_replace(self, store, payment_schema, context):
        payment = make_entity(Payment, code="P-1", amount=50, payment_method="Cash", created_by=uuid.uuid4())
        created_by = payment.created_by
        store.seed(payment_schema, payment)

        await entity_service.update(
            store, payment_schema, payment.id, {"Id": payment.id, "Amount": 60}, context
        )
        assert payment.amount == 60
        assert payment.code is None
        assert payment.payment_method is None
        assert payment.created_by == created_by
        assert payment.updated_by == USER_ID
        assert payment.updated_on is not None
        assert store.saves == 1

    @pytest.mark.parametrize("body_id", [None, uuid.uuid4()])
    async def test_mismatched_identifier(self, store, payment_schema, context, body_id):
        record_id = uuid.uuid4()
        with pytest.raises(MismatchedIdentifierError) as exc_info:
            await entity_service.update(store, payment_schema, record_id, {"Id": body_id}, context)
        assert exc_info.value.detail == "Mismatched Id"

    async def test_foreign_record_is_not_found(self, store, payment_schema, context):
        foreign = make_entity(Payment, tenant_id=OTHER_TENANT_ID, amount=1)
        store.seed(payment_schema, foreign)
        with pytest.raises(NotFoundError):
            await entity_service.update(store, payment_schema, foreign.id, {"Id": foreign.id}, context)
        assert foreign.amount == 1


class TestPatch:
    """부분 수정 테스트."""

    async def test_patch_and_stamp(self, store, payment_schema, context, payments):
        target = payments[50]
        await entity_service.patch(
            store, payment_schema, target.id, [PatchOperation(op="replace", path="/Amount", value=55)], context
        )
        assert target.amount == 55
        assert target.updated_by == USER_ID
        assert store.saves == 1

    async def test_atomic_failure(self, store, payment_schema, context, payments):
        """유효한 연산과 잘못된 연산이 섞이면 아무것도 변경되지 않음."""
        target = payments[50]
        operations = [
            PatchOperation(path="/Amount", value=55),
            PatchOperation(path="/Ghost", value=1),
        ]
        with pytest.raises(PatchError):
            await entity_service.patch(store, payment_schema, target.id, operations, context)
        assert target.amount == 50
        assert target.updated_by is None
        assert store.saves == 0

    async def test_empty_document(self, store, payment_schema, context, payments):
        with pytest.raises(PatchError):
            await entity_service.patch(store, payment_schema, payments[50].id, [], context)

    async def test_missing_record(self, store, payment_schema, context):
        with pytest.raises(NotFoundError):
            await entity_service.patch(
                store, payment_schema, uuid.uuid4(), [PatchOperation(path="/Amount", value=1)], context
            )


class TestDelete:
    """삭제 테스트."""

    async def test_delete_then_not_found(self, store, payment_schema, context, payments):
        target = payments[50]
        assert await entity_service.delete(store, payment_schema, target.id, context) is True
        assert target not in store.records(payment_schema)
        with pytest.raises(NotFoundError):
            await entity_service.delete(store, payment_schema, target.id, context)


class TestTenantReferences:
    """외래 키/관계의 테넌트 격리 테스트."""

    @pytest.fixture
    def foreign_billing(self, store, billing_schema) -> Billing:
        b = make_entity(Billing, tenant_id=OTHER_TENANT_ID, code="B-OTHER")
        store.seed(billing_schema, b)
        return b

    async def test_create_rejects_other_tenant_reference(self, store, payment_schema, context, foreign_billing):
        with pytest.raises(BadRequestError) as exc_info:
            await entity_service.create(
                store, payment_schema, {"Code": "P-1", "BillingId": foreign_billing.id}, context
            )
        assert "BillingId" in exc_info.value.detail
        assert store.records(payment_schema) == []
        assert store.saves == 0

    async def test_create_accepts_own_tenant_reference(self, store, payment_schema, context, billing):
        record_id = await entity_service.create(
            store, payment_schema, {"Code": "P-1", "BillingId": str(billing.id)}, context
        )
        [payment] = store.records(payment_schema)
        assert payment.id == record_id
        assert payment.billing_id == billing.id

    async def test_update_rejects_unknown_reference(self, store, payment_schema, context, payments):
        target = payments[50]
        values = {"Id": target.id, "Code": "P-51", "BillingId": uuid.uuid4()}
        with pytest.raises(BadRequestError):
            await entity_service.update(store, payment_schema, target.id, values, context)
        assert target.code == "P-50"
        assert store.saves == 0

    async def test_patch_rejects_other_tenant_reference(self, store, payment_schema, context, payments, foreign_billing):
        target = payments[50]
        operations = [{"op": "replace", "path": "/BillingId", "value": str(foreign_billing.id)}]
        with pytest.raises(BadRequestError):
            await entity_service.patch(store, payment_schema, target.id, operations, context)
        assert target.billing_id is None
        assert target.updated_by is None

    async def test_other_tenant_relation_is_not_projected(self, store, payment_schema, context, payments, foreign_billing):
        """이미 다른 테넌트를 가리키는 관계는 응답에서 제외."""
        target = payments[50]
        target.billing = foreign_billing
        target.billing_id = foreign_billing.id

        record = await entity_service.get_by_id(
            store, payment_schema, target.id, context, "Code,BillingId_Billing.Code"
        )
        assert record == {"Id": target.id, "Code": "P-50"}
        records = await entity_service.get(
            store, payment_schema, ListQuery(fields="BillingId_Billing.Code", sort_field="Amount"), context
        )
        assert records[0] == {"Id": target.id}
        assert records[1] == {"Id": payments[150].id, "BillingId_Billing": {"Code": "B-1"}}
