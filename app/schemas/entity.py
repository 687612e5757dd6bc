"""엔티티 CRUD 공통 요청/응답 스키마.

Generic request/response schemas for the per-entity CRUD endpoints.
Write bodies are generated per entity from its SchemaDescriptor so that the
OpenAPI document shows the real PascalCase fields of each entity.
"""

from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, create_model

from app.config import settings
from app.query.schema import PYTHON_TYPES, SchemaDescriptor


class NewRecord(BaseModel):
    """생성 응답 — 서버가 부여한 ID (Create response with the server-assigned id)."""

    id: UUID


class ActionStatus(BaseModel):
    """수정/패치/삭제 응답 (Update, patch and delete response)."""

    status: bool = True


class ListQuery(BaseModel):
    """목록 조회 쿼리 파라미터 묶음.

    Raw list-query parameters as received by the transport layer.

    Attributes:
        filters: JSON 필터 배열 문자열 (JSON array of {PropertyName, Operator, Value})
        search_term: 자유 검색어 (Free-text search term)
        page_number: 페이지 번호, 1부터 (1-based page number)
        page_size: 페이지 크기 (Records per page)
        sort_field: 정렬 필드 (Sort field name)
        sort_order: 정렬 방향 (asc | desc)
        fields: 쉼표로 구분된 출력 필드 (Comma-separated projection)
    """

    filters: str | None = None
    search_term: str | None = None
    page_number: int = 1
    page_size: int = Field(default_factory=lambda: settings.QUERY_DEFAULT_PAGE_SIZE)
    sort_field: str | None = None
    sort_order: str = "asc"
    fields: str | None = None


def build_write_model(schema: SchemaDescriptor) -> type[BaseModel]:
    """엔티티의 생성/수정 본문 모델을 생성합니다.

    Generate the create/update body model of an entity: the identifier plus
    every mutable scalar field, all optional, aliased by public name.
    Server-owned fields (tenant, audit) and unknown keys are ignored.

    Args:
        schema: 엔티티 스키마 (Entity schema)

    Returns:
        type[BaseModel]: ``<Entity>Write`` 모델 클래스 (Generated model class)
    """
    definitions: dict[str, Any] = {
        schema.id_field.attribute: (Optional[UUID], Field(default=None, alias=schema.identifier)),
    }
    for field in schema.mutable_fields():
        if not field.is_scalar:
            continue
        py_type: type = PYTHON_TYPES[field.data_type]
        definitions[field.attribute] = (Optional[py_type], Field(default=None, alias=field.name))

    return create_model(
        f"{schema.entity_name}Write",
        __config__=ConfigDict(extra="ignore", populate_by_name=True),
        **definitions,
    )
