"""엔티티 CRUD 라우터 팩토리 — 레지스트리의 엔티티마다 6개 엔드포인트 생성.

Entity CRUD router factory. For every entity in the schema registry it builds
the same six endpoints once at startup:

    POST   /          Create  → {"id": ...}
    GET    /          Read    → list of projected records
    GET    /{id}      Read    → projected record
    PUT    /{id}      Update  → {"status": true}
    PATCH  /{id}      Update  → {"status": true}
    DELETE /{id}      Delete  → {"status": true}

Every endpoint is scoped to the caller's tenant from JWT.
"""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query
from pydantic import BaseModel

from app.api.deps import get_entity_store, require_entitlement
from app.config import settings
from app.query.schema import SchemaDescriptor, SchemaRegistry
from app.repositories.base import EntityStore
from app.schemas.auth import Entitlement, SessionContext
from app.schemas.entity import ActionStatus, ListQuery, NewRecord, build_write_model
from app.services.entity_service import entity_service


def build_entity_router(schema: SchemaDescriptor) -> APIRouter:
    """엔티티 하나의 CRUD 라우터를 생성합니다.

    Build the CRUD router of one entity.

    Args:
        schema: 엔티티 스키마 (Entity schema from the registry)

    Returns:
        APIRouter: 6개 엔드포인트를 가진 라우터 (Router with the six endpoints)
    """
    router: APIRouter = APIRouter(tags=[schema.entity_name])
    entity: str = schema.entity_name
    write_model: type[BaseModel] = build_write_model(schema)

    can_create = require_entitlement(entity, Entitlement.CREATE)
    can_read = require_entitlement(entity, Entitlement.READ)
    can_update = require_entitlement(entity, Entitlement.UPDATE)
    can_delete = require_entitlement(entity, Entitlement.DELETE)

    @router.post("/", response_model=NewRecord, status_code=201, name=f"create_{entity.lower()}")
    async def create(
        data: write_model,
        store: Annotated[EntityStore, Depends(get_entity_store)],
        context: Annotated[SessionContext, Depends(can_create)],
    ) -> NewRecord:
        """새 레코드를 생성합니다 (Create a record; the id is server-assigned)."""
        record_id: UUID = await entity_service.create(
            store, schema, data.model_dump(by_alias=True), context
        )
        return NewRecord(id=record_id)

    @router.get("/", name=f"list_{entity.lower()}")
    async def get(
        store: Annotated[EntityStore, Depends(get_entity_store)],
        context: Annotated[SessionContext, Depends(can_read)],
        filters: Annotated[str | None, Query()] = None,
        search_term: Annotated[str | None, Query(alias="searchTerm")] = None,
        page_number: Annotated[int, Query(alias="pageNumber")] = 1,
        page_size: Annotated[int, Query(alias="pageSize")] = settings.QUERY_DEFAULT_PAGE_SIZE,
        sort_field: Annotated[str | None, Query(alias="sortField")] = None,
        sort_order: Annotated[str, Query(alias="sortOrder")] = "asc",
        fields: Annotated[str | None, Query()] = None,
    ) -> list[dict[str, Any]]:
        """필터/검색/정렬/페이지 조건으로 목록을 조회합니다.

        List records. ``filters`` is a JSON array of
        ``{"PropertyName": ..., "Operator": ..., "Value": ...}``.
        """
        query: ListQuery = ListQuery(
            filters=filters,
            search_term=search_term,
            page_number=page_number,
            page_size=page_size,
            sort_field=sort_field,
            sort_order=sort_order,
            fields=fields,
        )
        return await entity_service.get(store, schema, query, context)

    @router.get("/{record_id}", name=f"get_{entity.lower()}")
    async def get_by_id(
        record_id: UUID,
        store: Annotated[EntityStore, Depends(get_entity_store)],
        context: Annotated[SessionContext, Depends(can_read)],
        fields: Annotated[str | None, Query()] = None,
    ) -> dict[str, Any]:
        """ID로 단일 레코드를 조회합니다 (404 when missing)."""
        return await entity_service.get_by_id(store, schema, record_id, context, fields)

    @router.put("/{record_id}", response_model=ActionStatus, name=f"update_{entity.lower()}")
    async def update(
        record_id: UUID,
        data: write_model,
        store: Annotated[EntityStore, Depends(get_entity_store)],
        context: Annotated[SessionContext, Depends(can_update)],
    ) -> ActionStatus:
        """레코드 전체를 교체합니다. 본문의 Id는 경로의 Id와 같아야 합니다."""
        status: bool = await entity_service.update(
            store, schema, record_id, data.model_dump(by_alias=True), context
        )
        return ActionStatus(status=status)

    @router.patch("/{record_id}", response_model=ActionStatus, name=f"patch_{entity.lower()}")
    async def patch(
        record_id: UUID,
        store: Annotated[EntityStore, Depends(get_entity_store)],
        context: Annotated[SessionContext, Depends(can_update)],
        document: Annotated[Any, Body()] = None,
    ) -> ActionStatus:
        """패치 문서를 적용합니다 (``[{"op": "replace", "path": "/Amount", "value": 150}]``).

        The raw body is parsed by the service; a missing or malformed document
        is a 400 patch error.
        """
        status: bool = await entity_service.patch(store, schema, record_id, document, context)
        return ActionStatus(status=status)

    @router.delete("/{record_id}", response_model=ActionStatus, name=f"delete_{entity.lower()}")
    async def delete(
        record_id: UUID,
        store: Annotated[EntityStore, Depends(get_entity_store)],
        context: Annotated[SessionContext, Depends(can_delete)],
    ) -> ActionStatus:
        """레코드를 삭제합니다 (Delete a record)."""
        status: bool = await entity_service.delete(store, schema, record_id, context)
        return ActionStatus(status=status)

    return router


def build_api_router(registry: SchemaRegistry) -> APIRouter:
    """레지스트리의 모든 엔티티 라우터를 ``/<entity lowercased>`` 아래에 통합합니다.

    Aggregate one CRUD router per registered entity, e.g. ``/payment``.
    """
    api_router: APIRouter = APIRouter()
    for schema in registry:
        api_router.include_router(build_entity_router(schema), prefix=f"/{schema.entity_name.lower()}")
    return api_router
