"""엔티티 CRUD API 테스트.

Entity CRUD API tests — generated endpoints, query parameters, entitlements
and error responses, through the HTTP layer with an in-memory store.
"""

import json
import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from app.api.deps import get_entity_store
from app.main import app
from app.models import Billing
from tests.conftest import OTHER_TENANT_ID, auth_header, make_entity, make_token

URL = "/api/payment/"


class FailingStore:
    """모든 조회에서 DB 오류를 발생시키는 저장소 (Store whose reads always fail)."""

    async def all_matching(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))


class TestAuthentication:
    """인증/권한 테스트."""

    async def test_health(self, client: AsyncClient):
        res = await client.get("/health")
        assert res.status_code == 200
        assert res.json() == {"status": "ok"}

    async def test_no_token(self, client: AsyncClient):
        """토큰 없이 요청 시 401."""
        res = await client.get(URL)
        assert res.status_code == 401

    async def test_expired_token(self, client: AsyncClient):
        res = await client.get(URL, headers=auth_header(make_token(expires_minutes=-1)))
        assert res.status_code == 401

    async def test_missing_entitlement(self, client: AsyncClient, reader_token):
        """읽기 권한만 있으면 생성 시 403."""
        res = await client.post(URL, json={"Code": "P-1"}, headers=auth_header(reader_token))
        assert res.status_code == 403

    async def test_entitlement_is_per_entity(self, client: AsyncClient, reader_token):
        res = await client.get("/api/billing/", headers=auth_header(reader_token))
        assert res.status_code == 403
        res = await client.get(URL, headers=auth_header(reader_token))
        assert res.status_code == 200

    async def test_every_entity_has_routes(self, client: AsyncClient, admin_token):
        for entity in ("billing", "billingcycle", "clinic", "claimitem", "labresult", "vitalsigns"):
            res = await client.get(f"/api/{entity}/", headers=auth_header(admin_token))
            assert res.status_code == 200, entity
            assert res.json() == []


class TestList:
    """목록 조회 API 테스트."""

    async def test_filter_sort_page(self, client: AsyncClient, admin_token, payments):
        res = await client.get(URL, params={
            "filters": json.dumps([{"PropertyName": "Amount", "Operator": "GreaterThan", "Value": "100"}]),
            "pageNumber": 1,
            "pageSize": 10,
            "sortField": "PaymentDate",
            "sortOrder": "desc",
        }, headers=auth_header(admin_token))
        assert res.status_code == 200
        data = res.json()
        assert [r["Amount"] for r in data] == [200, 150]
        assert data[0]["Id"] == str(payments[200].id)

    async def test_fields_and_search(self, client: AsyncClient, admin_token, payments):
        res = await client.get(URL, params={
            "searchTerm": "card",
            "fields": "Code,BillingId_Billing.Code",
        }, headers=auth_header(admin_token))
        assert res.status_code == 200
        assert res.json() == [
            {"Id": str(payments[150].id), "Code": "P-150", "BillingId_Billing": {"Code": "B-1"}}
        ]

    @pytest.mark.parametrize("params", [
        {"filters": "not json"},
        {"filters": json.dumps([{"PropertyName": "Ghost", "Operator": "Equal", "Value": 1}])},
        {"sortField": "Ghost"},
        {"sortField": "Amount", "sortOrder": "sideways"},
        {"pageNumber": 0},
        {"pageSize": 101},
    ])
    async def test_invalid_query_is_400(self, client: AsyncClient, admin_token, params):
        res = await client.get(URL, params=params, headers=auth_header(admin_token))
        assert res.status_code == 400
        assert res.json()["detail"]

    async def test_store_failure_is_opaque_500(self, client: AsyncClient, admin_token):
        """DB 오류는 내부 정보 없이 500."""
        app.dependency_overrides[get_entity_store] = lambda: FailingStore()
        res = await client.get(URL, headers=auth_header(admin_token))
        assert res.status_code == 500
        assert res.json() == {"detail": "Internal server error"}


class TestGetById:
    """단건 조회 API 테스트."""

    async def test_nested_projection(self, client: AsyncClient, admin_token, payments):
        res = await client.get(
            f"{URL}{payments[150].id}",
            params={"fields": "Code,BillingId_Billing.Code"},
            headers=auth_header(admin_token),
        )
        assert res.status_code == 200
        assert res.json() == {"Id": str(payments[150].id), "Code": "P-150", "BillingId_Billing": {"Code": "B-1"}}

    async def test_not_found(self, client: AsyncClient, admin_token, payments):
        res = await client.get(f"{URL}{uuid.uuid4()}", headers=auth_header(admin_token))
        assert res.status_code == 404


class TestWrite:
    """생성/수정/패치/삭제 API 테스트."""

    async def test_create_then_read(self, client: AsyncClient, admin_token):
        res = await client.post(URL, json={
            "Code": "P-7",
            "Amount": 70,
            "PaymentDate": "2024-02-01T10:00:00Z",
            "TenantId": str(uuid.uuid4()),
        }, headers=auth_header(admin_token))
        assert res.status_code == 201
        record_id = res.json()["id"]

        res = await client.get(f"{URL}{record_id}", params={"fields": "Code,Amount"}, headers=auth_header(admin_token))
        assert res.json() == {"Id": record_id, "Code": "P-7", "Amount": 70}

    async def test_put_replaces_record(self, client: AsyncClient, admin_token, payments):
        target = payments[50]
        res = await client.put(f"{URL}{target.id}", json={
            "Id": str(target.id),
            "Code": "P-51",
        }, headers=auth_header(admin_token))
        assert res.status_code == 200
        assert res.json() == {"status": True}
        assert target.code == "P-51"
        assert target.amount is None

    async def test_put_mismatched_id(self, client: AsyncClient, admin_token, payments):
        res = await client.put(f"{URL}{payments[50].id}", json={
            "Id": str(uuid.uuid4()),
            "Code": "P-51",
        }, headers=auth_header(admin_token))
        assert res.status_code == 400
        assert res.json()["detail"] == "Mismatched Id"

    async def test_patch(self, client: AsyncClient, admin_token, payments):
        target = payments[50]
        res = await client.patch(
            f"{URL}{target.id}",
            json=[{"op": "replace", "path": "/Amount", "value": 55}],
            headers=auth_header(admin_token),
        )
        assert res.status_code == 200
        assert res.json() == {"status": True}
        assert target.amount == 55

    async def test_patch_without_document(self, client: AsyncClient, admin_token, payments):
        res = await client.patch(f"{URL}{payments[50].id}", headers=auth_header(admin_token))
        assert res.status_code == 400
        assert res.json()["detail"] == "Patch document is missing!"

    @pytest.mark.parametrize("body", [{}, {"op": "replace", "path": "/Amount", "value": 55}, "oops"])
    async def test_patch_malformed_document_is_400(self, client: AsyncClient, admin_token, payments, body):
        """목록이 아닌 패치 문서는 422가 아니라 400."""
        res = await client.patch(f"{URL}{payments[50].id}", json=body, headers=auth_header(admin_token))
        assert res.status_code == 400
        assert payments[50].amount == 50

    async def test_create_with_other_tenant_reference(self, client: AsyncClient, store, billing_schema):
        foreign = make_entity(Billing, tenant_id=OTHER_TENANT_ID, code="B-OTHER")
        store.seed(billing_schema, foreign)
        res = await client.post(
            URL, json={"Code": "P-1", "BillingId": str(foreign.id)}, headers=auth_header(make_token())
        )
        assert res.status_code == 400

    async def test_patch_invalid_path_changes_nothing(self, client: AsyncClient, admin_token, payments):
        target = payments[50]
        res = await client.patch(
            f"{URL}{target.id}",
            json=[{"op": "replace", "path": "/Amount", "value": 55}, {"op": "replace", "path": "/Ghost"}],
            headers=auth_header(admin_token),
        )
        assert res.status_code == 400
        assert target.amount == 50

    async def test_delete(self, client: AsyncClient, admin_token, payments):
        target_id = payments[50].id
        res = await client.delete(f"{URL}{target_id}", headers=auth_header(admin_token))
        assert res.status_code == 200
        assert res.json() == {"status": True}
        res = await client.delete(f"{URL}{target_id}", headers=auth_header(admin_token))
        assert res.status_code == 404
