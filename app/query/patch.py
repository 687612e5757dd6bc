"""부분 업데이트(패치) 적용기.

Patch applier for JSON Patch style documents::

    [{"op": "replace", "path": "/Amount", "value": 150}]

Every operation is validated and its value coerced before the first
mutation, so an invalid operation leaves the entity untouched.
"""

from typing import Any, Sequence

from pydantic import BaseModel, TypeAdapter, ValidationError

from app.query.schema import FieldDescriptor, SchemaDescriptor
from app.utils.exceptions import PatchError

# add/replace는 값 대입, remove는 NULL 대입 (add/replace assign, remove assigns null)
SUPPORTED_OPS: frozenset[str] = frozenset({"add", "replace", "remove"})


class PatchOperation(BaseModel):
    """패치 연산 하나 (One patch operation).

    Attributes:
        op: 연산 종류 (Operation: "add", "replace" or "remove")
        path: 대상 필드 경로 (Field path, "/Amount" or "Amount")
        value: 새 값 (New value; ignored for "remove")
    """

    op: str = "replace"
    path: str
    value: Any = None


_DOCUMENT_ADAPTER: TypeAdapter[list[PatchOperation]] = TypeAdapter(list[PatchOperation])


def parse_document(raw: Any) -> list[PatchOperation]:
    """원시 요청 본문을 패치 연산 목록으로 해석합니다.

    Parse a raw request body into patch operations. A missing or empty body
    and anything that is not a list of operations are PatchErrors.

    Raises:
        PatchError: 문서 없음 또는 형식 오류 (Missing or malformed document)
    """
    if not raw:
        raise PatchError("Patch document is missing!")
    try:
        return _DOCUMENT_ADAPTER.validate_python(raw)
    except ValidationError as exc:
        raise PatchError("Patch document must be a list of operations") from exc


class PatchApplier:
    """패치 연산 목록을 로드된 엔티티에 원자적으로 적용합니다."""

    def plan(
        self,
        schema: SchemaDescriptor,
        operations: Sequence[PatchOperation] | None,
    ) -> list[tuple[FieldDescriptor, Any]]:
        """모든 연산을 검증하고 (필드, 변환된 값) 목록을 반환합니다. 엔티티는 건드리지 않습니다.

        Raises:
            PatchError: 빈 문서 또는 잘못된 연산 (Empty document or invalid operation)
        """
        if not operations:
            raise PatchError("Patch document is missing!")
        return [self._plan(schema, operation) for operation in operations]

    def apply(
        self,
        schema: SchemaDescriptor,
        entity: Any,
        operations: Sequence[PatchOperation] | None,
    ) -> Any:
        """검증 후 순서대로 적용합니다. 같은 경로의 나중 연산이 이깁니다.

        Validate every operation, then apply them in order; later operations
        on the same path overwrite earlier ones.

        Args:
            schema: 엔티티 스키마 (Entity schema)
            entity: 로드된 엔티티 (Loaded entity, mutated in place)
            operations: 패치 연산 목록 (Patch operations)

        Returns:
            Any: 변경된 엔티티 (The same entity, mutated)

        Raises:
            PatchError: 빈 문서, 지원하지 않는 연산, 잘못된 경로, 변환 불가 값
                        (Empty document, unsupported op, invalid path, bad value)
        """
        for field, value in self.plan(schema, operations):
            field.set(entity, value)
        return entity

    @staticmethod
    def _plan(schema: SchemaDescriptor, operation: PatchOperation) -> tuple[FieldDescriptor, Any]:
        op: str = operation.op.strip().lower()
        if op not in SUPPORTED_OPS:
            raise PatchError(f"Unsupported patch operation '{operation.op}'")

        name: str = operation.path.strip().lstrip("/")
        if not name or "/" in name or "." in name:
            raise PatchError(f"Invalid patch path '{operation.path}'")
        field: FieldDescriptor | None = schema.resolve(name)
        if field is None:
            raise PatchError(f"Unknown patch path '{operation.path}' for {schema.entity_name}")
        if not field.is_scalar or not field.mutable:
            raise PatchError(f"Field '{field.name}' cannot be patched")

        raw: Any = None if op == "remove" else operation.value
        try:
            return field, field.coerce(raw)
        except ValueError as exc:
            raise PatchError(f"Value {raw!r} is not a valid {field.data_type.value} for '{field.name}'") from exc


# 싱글턴 인스턴스 — Singleton instance
patch_applier: PatchApplier = PatchApplier()
