"""필드 선택과 투영.

Field selection and projection.

``fields=Code,BillingId_Billing.Code`` produces a sparse record such as::

    {"Id": "...", "Code": "P-1", "BillingId_Billing": {"Code": "B-7"}}

Projection is best-effort: unknown names are dropped silently, unlike filter
and sort fields which fail hard. The identifier is always emitted first.
"""

from dataclasses import dataclass
from typing import Any
from uuid import UUID

from app.query.schema import FieldDescriptor, SchemaDescriptor, SchemaRegistry, schema_registry


@dataclass(frozen=True)
class FieldSelection:
    """요청된 출력 경로의 순서 있는 집합 (Ordered set of requested output paths)."""

    paths: tuple[str, ...]

    @classmethod
    def parse(cls, raw: str | None) -> "FieldSelection | None":
        """쉼표로 구분된 ``fields`` 값을 해석합니다. 비어 있으면 None (전체 스칼라 필드).

        Parse the comma-separated ``fields`` parameter. ``None`` or blank means
        "no selection", which projects every declared scalar field.
        """
        if raw is None or not raw.strip():
            return None
        paths: dict[str, None] = {}
        for part in raw.split(","):
            path: str = part.strip()
            if path:
                paths.setdefault(path, None)
        return cls(tuple(paths))


class ProjectionEngine:
    """엔티티를 요청된 필드만 가진 희소 레코드로 변환합니다."""

    def __init__(self, registry: SchemaRegistry) -> None:
        self._registry: SchemaRegistry = registry

    def relations_to_attach(
        self,
        schema: SchemaDescriptor,
        selection: FieldSelection | None,
    ) -> list[str]:
        """쿼리 전에 즉시 로딩해야 할 관계 필드 이름을 반환합니다.

        Scan the selection for dotted paths whose prefix names a declared
        relation. The caller asks the store to attach these before querying.

        Returns:
            list[str]: 정규 관계 필드 이름 (Canonical relation field names, in request order)
        """
        if selection is None:
            return []
        relations: list[str] = []
        for path in selection.paths:
            head, dot, _ = path.partition(".")
            if not dot:
                continue
            field: FieldDescriptor | None = schema.resolve(head)
            if field is not None and field.is_relation and field.name not in relations:
                relations.append(field.name)
        return relations

    def project(
        self,
        schema: SchemaDescriptor,
        entity: Any,
        selection: FieldSelection | None,
        tenant_id: UUID | None,
    ) -> dict[str, Any]:
        """엔티티를 희소 레코드로 투영합니다.

        A related record is emitted only when it belongs to ``tenant_id``;
        otherwise it is omitted as if the relation were null.

        Args:
            schema: 엔티티 스키마 (Entity schema)
            entity: 투영할 엔티티 (Entity; relations in the selection must be attached)
            selection: 요청 필드, None이면 모든 스칼라 필드 (None projects every scalar field)
            tenant_id: 호출자의 테넌트 (Caller's tenant)

        Returns:
            dict[str, Any]: 식별자를 항상 포함하는 희소 레코드
                            (Sparse record, identifier always included)
        """
        record: dict[str, Any] = {schema.identifier: schema.id_field.get(entity)}
        if selection is None:
            for field in schema.scalar_fields():
                record[field.name] = field.get(entity)
            return record

        for path in selection.paths:
            head, dot, tail = path.partition(".")
            field: FieldDescriptor | None = schema.resolve(head)
            if field is None:
                continue
            if not dot:
                if field.is_scalar:
                    record[field.name] = field.get(entity)
                continue
            if field.is_relation:
                self._project_nested(record, field, entity, tail, tenant_id)
        return record

    def _project_nested(
        self,
        record: dict[str, Any],
        relation: FieldDescriptor,
        entity: Any,
        nested_name: str,
        tenant_id: UUID | None,
    ) -> None:
        related: Any = relation.get(entity)
        if related is None:
            return
        target: SchemaDescriptor = self._registry.get(relation.relation_name)
        # 다른 테넌트의 관계 레코드는 NULL로 취급
        if target.tenant_field is not None and target.fields[target.tenant_field].get(related) != tenant_id:
            return
        nested: FieldDescriptor | None = target.resolve(nested_name)
        if nested is None or not nested.is_scalar:
            return
        record.setdefault(relation.name, {})[nested.name] = nested.get(related)


# 싱글턴 인스턴스 — Singleton instance
projection_engine: ProjectionEngine = ProjectionEngine(schema_registry)
