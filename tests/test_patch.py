"""패치 적용기 테스트.

Patch applier tests — supported ops, path validation and atomicity.
"""

import pytest

from app.models import Payment
from app.query.patch import PatchOperation, parse_document, patch_applier
from app.utils.exceptions import PatchError
from tests.conftest import TENANT_ID, make_entity


def op(path: str, value=None, kind: str = "replace") -> PatchOperation:
    return PatchOperation(op=kind, path=path, value=value)


class TestPatchApply:
    """패치 적용 테스트."""

    def test_replace_coerces_value(self, payment_schema):
        payment = make_entity(Payment, amount=50)
        patch_applier.apply(payment_schema, payment, [op("/Amount", "150")])
        assert payment.amount == 150

    def test_path_without_slash_and_any_case(self, payment_schema):
        payment = make_entity(Payment)
        patch_applier.apply(payment_schema, payment, [op("paymentmethod", "Card", kind="add")])
        assert payment.payment_method == "Card"

    def test_remove_assigns_null(self, payment_schema):
        payment = make_entity(Payment, code="P-1")
        patch_applier.apply(payment_schema, payment, [op("/Code", kind="remove")])
        assert payment.code is None

    def test_later_operation_wins(self, payment_schema):
        payment = make_entity(Payment)
        patch_applier.apply(payment_schema, payment, [op("/Amount", 1), op("/Amount", 2)])
        assert payment.amount == 2

    def test_invalid_operation_changes_nothing(self, payment_schema):
        """하나라도 잘못되면 아무것도 변경하지 않음."""
        payment = make_entity(Payment, code="P-1", amount=50)
        with pytest.raises(PatchError):
            patch_applier.apply(payment_schema, payment, [op("/Code", "P-2"), op("/Ghost", 1)])
        assert payment.code == "P-1"
        assert payment.amount == 50

    def test_unparsable_value_changes_nothing(self, payment_schema):
        payment = make_entity(Payment, code="P-1", amount=50)
        with pytest.raises(PatchError):
            patch_applier.apply(payment_schema, payment, [op("/Code", "P-2"), op("/Amount", "lots")])
        assert payment.code == "P-1"

    @pytest.mark.parametrize("operations", [None, []])
    def test_missing_document(self, payment_schema, operations):
        with pytest.raises(PatchError) as exc_info:
            patch_applier.apply(payment_schema, make_entity(Payment), operations)
        assert exc_info.value.detail == "Patch document is missing!"
        assert exc_info.value.status_code == 400

    @pytest.mark.parametrize("operation", [
        op("/Amount", 1, kind="move"),
        op("/", 1),
        op("/BillingId_Billing/Code", "B"),
        op("/BillingId_Billing", None),
        op("/TenantId", "22222222-2222-2222-2222-222222222222"),
        op("/Id", "22222222-2222-2222-2222-222222222222"),
    ])
    def test_rejected_operations(self, payment_schema, operation):
        payment = make_entity(Payment)
        with pytest.raises(PatchError):
            patch_applier.apply(payment_schema, payment, [operation])
        assert payment.tenant_id == TENANT_ID


class TestParseDocument:
    """원시 패치 본문 해석 테스트."""

    def test_list_of_operations(self):
        [operation] = parse_document([{"op": "replace", "path": "/Amount", "value": 1}])
        assert operation == PatchOperation(op="replace", path="/Amount", value=1)

    @pytest.mark.parametrize("raw", [None, [], {}])
    def test_missing_document(self, raw):
        with pytest.raises(PatchError) as exc_info:
            parse_document(raw)
        assert exc_info.value.detail == "Patch document is missing!"

    @pytest.mark.parametrize("raw", [
        {"op": "replace", "path": "/Amount", "value": 1},
        "replace /Amount",
        [{"op": "replace"}],
        [1, 2],
    ])
    def test_malformed_document(self, raw):
        with pytest.raises(PatchError) as exc_info:
            parse_document(raw)
        assert exc_info.value.status_code == 400
