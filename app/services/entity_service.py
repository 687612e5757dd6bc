"""엔티티 서비스 — 모든 엔티티에 공통인 CRUD 비즈니스 로직.

Entity Service — CRUD business logic shared by every registered entity.
Turns request strings into validated query-engine data (predicate, sort,
page window, projection, patch plan), scopes every lookup to the caller's
tenant and stamps audit fields on writes.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Mapping, Sequence
from uuid import UUID

from app.query.criteria import criteria_validator, decode_filters
from app.query.patch import PatchOperation, parse_document, patch_applier
from app.query.predicate import Condition, Predicate, predicate_compiler
from app.query.projection import FieldSelection, projection_engine
from app.query.schema import FieldDescriptor, SchemaDescriptor, SchemaRegistry, schema_registry
from app.query.sorting import SortOrder, SortSpec, sort_compiler
from app.repositories.base import EntityStore
from app.schemas.auth import SessionContext
from app.schemas.entity import ListQuery
from app.utils.exceptions import BadRequestError, MismatchedIdentifierError, NotFoundError
from app.utils.pagination import PageWindow, validate_page


class EntityService:
    """엔티티 CRUD 서비스.

    Service handling create/read/update/patch/delete for any entity described
    in the schema registry. Every method works on the caller's tenant only.
    """

    def __init__(self, registry: SchemaRegistry) -> None:
        self._registry: SchemaRegistry = registry

    async def _load(
        self,
        store: EntityStore,
        schema: SchemaDescriptor,
        record_id: UUID,
        context: SessionContext,
        attach: Sequence[str] = (),
    ) -> Any:
        """테넌트 범위 내에서 ID로 엔티티를 조회합니다. 없으면 404."""
        predicate: Predicate = predicate_compiler.for_identifier(schema, record_id, context.tenant_id)
        entity: Any | None = await store.first_matching(schema, predicate, attach)
        if entity is None:
            raise NotFoundError(f"{schema.entity_name} not found")
        return entity

    @staticmethod
    def _plan_values(schema: SchemaDescriptor, values: Mapping[str, Any]) -> list[tuple[FieldDescriptor, Any]]:
        """변경 가능한 스칼라 필드의 값을 변환합니다. 본문에 없는 필드는 NULL."""
        planned: list[tuple[FieldDescriptor, Any]] = []
        for field in schema.mutable_fields():
            if not field.is_scalar:
                continue
            raw: Any = values.get(field.name)
            try:
                planned.append((field, field.coerce(raw)))
            except ValueError as exc:
                raise BadRequestError(
                    f"Value {raw!r} is not a valid {field.data_type.value} for '{field.name}'"
                ) from exc
        return planned

    async def _check_references(
        self,
        store: EntityStore,
        schema: SchemaDescriptor,
        planned: Sequence[tuple[FieldDescriptor, Any]],
        context: SessionContext,
    ) -> None:
        """외래 키 값이 호출자 테넌트의 레코드를 가리키는지 확인합니다.

        Every non-null foreign key being written must resolve to a record of
        the caller's tenant. Runs before any mutation of the entity.

        Raises:
            BadRequestError: 존재하지 않거나 다른 테넌트의 레코드 (Missing or foreign-tenant target)
        """
        written: dict[str, Any] = {field.name: value for field, value in planned}
        for relation in schema.relation_fields():
            target_id: Any = written.get(relation.foreign_key)
            if target_id is None:
                continue
            target: SchemaDescriptor = self._registry.get(relation.relation_name)
            predicate: Predicate = predicate_compiler.for_identifier(target, target_id, context.tenant_id)
            if await store.first_matching(target, predicate) is None:
                raise BadRequestError(
                    f"'{relation.foreign_key}' does not reference an existing {target.entity_name}"
                )

    @staticmethod
    def _apply(entity: Any, planned: Sequence[tuple[FieldDescriptor, Any]]) -> None:
        for field, value in planned:
            field.set(entity, value)

    @staticmethod
    def _stamp(schema: SchemaDescriptor, entity: Any, stamps: Mapping[str, Any]) -> None:
        # 서버 전용 필드 기록 — 스키마에 없는 필드는 건너뜀
        for name, value in stamps.items():
            field: FieldDescriptor | None = schema.fields.get(name)
            if field is not None:
                field.set(entity, value)

    async def get_by_id(
        self,
        store: EntityStore,
        schema: SchemaDescriptor,
        record_id: UUID,
        context: SessionContext,
        fields: str | None = None,
    ) -> dict[str, Any]:
        """ID로 단일 레코드를 조회하여 투영합니다.

        Retrieve one record of the caller's tenant and project it. Relations
        named by dotted paths in ``fields`` are attached before the lookup.

        Args:
            store: 엔티티 저장소 (Entity store)
            schema: 엔티티 스키마 (Entity schema)
            record_id: 레코드 ID (Record identifier)
            context: 세션 컨텍스트 (Caller's session context)
            fields: 출력 필드, 없으면 모든 스칼라 필드 (Projection; all scalar fields when omitted)

        Returns:
            dict[str, Any]: 투영된 레코드 (Projected record)

        Raises:
            NotFoundError: 레코드 없음 또는 다른 테넌트 (Missing or belongs to another tenant)
        """
        selection: FieldSelection | None = FieldSelection.parse(fields)
        attach: list[str] = projection_engine.relations_to_attach(schema, selection)
        entity: Any = await self._load(store, schema, record_id, context, attach)
        return projection_engine.project(schema, entity, selection, context.tenant_id)

    async def get(
        self,
        store: EntityStore,
        schema: SchemaDescriptor,
        query: ListQuery,
        context: SessionContext,
    ) -> list[dict[str, Any]]:
        """필터/검색/정렬/페이지 조건으로 레코드 목록을 조회합니다.

        List one page of the caller's tenant records. Every request string is
        validated before the store is queried; the first invalid part fails
        the request.

        Args:
            store: 엔티티 저장소 (Entity store)
            schema: 엔티티 스키마 (Entity schema)
            query: 원시 쿼리 파라미터 (Raw list-query parameters)
            context: 세션 컨텍스트 (Caller's session context)

        Returns:
            list[dict[str, Any]]: 투영된 레코드 목록 (Projected records of the page)

        Raises:
            BadRequestError: 필터 JSON 형식 오류 (Malformed filters document)
            InvalidFilterError: 잘못된 필터 조건 (Invalid filter criterion)
            InvalidSortError: 잘못된 정렬 조건 (Invalid sort)
            InvalidPageError: 잘못된 페이지 요청 (Invalid page request)
        """
        criteria: list[Condition] = criteria_validator.validate(schema, decode_filters(query.filters))
        predicate: Predicate = predicate_compiler.scope_to_tenant(
            schema,
            predicate_compiler.compile(schema, criteria, query.search_term),
            context.tenant_id,
        )
        sort: SortOrder | None = None
        if query.sort_field:
            sort = sort_compiler.compile(schema, SortSpec(query.sort_field, query.sort_order))
        window: PageWindow = validate_page(query.page_number, query.page_size)

        selection: FieldSelection | None = FieldSelection.parse(query.fields)
        attach: list[str] = projection_engine.relations_to_attach(schema, selection)
        entities: list[Any] = await store.all_matching(
            schema, predicate, sort, skip=window.skip, take=window.take, attach=attach
        )
        return [projection_engine.project(schema, entity, selection, context.tenant_id) for entity in entities]

    async def create(
        self,
        store: EntityStore,
        schema: SchemaDescriptor,
        values: Mapping[str, Any],
        context: SessionContext,
    ) -> UUID:
        """새 레코드를 생성합니다.

        Create a record in the caller's tenant. The identifier is assigned by
        the server; tenant and created stamps come from the session context.

        Returns:
            UUID: 새 레코드 ID (Identifier of the new record)
        """
        planned: list[tuple[FieldDescriptor, Any]] = self._plan_values(schema, values)
        await self._check_references(store, schema, planned, context)
        entity: Any = schema.new_instance()
        self._apply(entity, planned)
        record_id: UUID = uuid.uuid4()
        schema.id_field.set(entity, record_id)
        self._stamp(schema, entity, {
            "TenantId": context.tenant_id,
            "CreatedOn": datetime.now(timezone.utc),
            "CreatedBy": context.user_id,
        })
        await store.add(schema, entity)
        await store.save_changes()
        return record_id

    async def update(
        self,
        store: EntityStore,
        schema: SchemaDescriptor,
        record_id: UUID,
        values: Mapping[str, Any],
        context: SessionContext,
    ) -> bool:
        """레코드 전체를 교체합니다 (마지막 쓰기 우선).

        Replace every mutable field of an existing record; fields absent from
        the body become null. Created stamps are kept.

        Raises:
            MismatchedIdentifierError: 본문 ID가 경로 ID와 다름 (Body id differs from route id)
            NotFoundError: 레코드 없음 (Record not found in the caller's tenant)
        """
        if values.get(schema.identifier) != record_id:
            raise MismatchedIdentifierError()
        entity: Any = await self._load(store, schema, record_id, context)
        planned: list[tuple[FieldDescriptor, Any]] = self._plan_values(schema, values)
        await self._check_references(store, schema, planned, context)
        self._apply(entity, planned)
        self._stamp(schema, entity, {
            "UpdatedOn": datetime.now(timezone.utc),
            "UpdatedBy": context.user_id,
        })
        await store.update(schema, entity)
        await store.save_changes()
        return True

    async def patch(
        self,
        store: EntityStore,
        schema: SchemaDescriptor,
        record_id: UUID,
        document: Any,
        context: SessionContext,
    ) -> bool:
        """패치 문서를 적용합니다. 하나라도 잘못되면 아무것도 변경하지 않습니다.

        Apply a patch document atomically to one record of the caller's tenant.
        ``document`` is the raw request body: a list of operations.

        Raises:
            PatchError: 빈 문서 또는 잘못된 연산 (Empty document or invalid operation)
            NotFoundError: 레코드 없음 (Record not found in the caller's tenant)
        """
        operations: list[PatchOperation] = parse_document(document)
        entity: Any = await self._load(store, schema, record_id, context)
        planned: list[tuple[FieldDescriptor, Any]] = patch_applier.plan(schema, operations)
        await self._check_references(store, schema, planned, context)
        self._apply(entity, planned)
        self._stamp(schema, entity, {
            "UpdatedOn": datetime.now(timezone.utc),
            "UpdatedBy": context.user_id,
        })
        await store.update(schema, entity)
        await store.save_changes()
        return True

    async def delete(
        self,
        store: EntityStore,
        schema: SchemaDescriptor,
        record_id: UUID,
        context: SessionContext,
    ) -> bool:
        """레코드를 삭제합니다 (Delete one record of the caller's tenant)."""
        entity: Any = await self._load(store, schema, record_id, context)
        await store.remove(schema, entity)
        await store.save_changes()
        return True


# 싱글턴 인스턴스 — Singleton instance
entity_service: EntityService = EntityService(schema_registry)
