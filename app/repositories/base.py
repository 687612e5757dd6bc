"""엔티티 저장소 — 쿼리 엔진이 만든 술어/정렬 데이터를 실행하는 계층.

Entity store — the layer that executes the predicate and sort data built by
the query engine. The engine never writes storage-specific queries; it hands
the store a predicate tree, an optional SortOrder, a (skip, take) window and
the relations to attach.

Usage:
    store = SqlAlchemyEntityStore(db)
    rows = await store.all_matching(schema, predicate, sort, skip=0, take=10)
"""

from typing import Any, Callable, Mapping, Protocol, Sequence

from sqlalchemy import ColumnElement, Select, and_, false, or_, select, true
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.query.predicate import AllOf, Always, AnyOf, Condition, FilterOperator, Predicate
from app.query.schema import SchemaDescriptor
from app.query.sorting import SortOrder


class EntityStore(Protocol):
    """서비스가 사용하는 저장소 인터페이스.

    Store interface consumed by the entity service. Writes are staged by
    add/update/remove and made durable by ``save_changes``.
    """

    async def first_matching(
        self,
        schema: SchemaDescriptor,
        predicate: Predicate,
        attach: Sequence[str] = (),
    ) -> Any | None: ...

    async def all_matching(
        self,
        schema: SchemaDescriptor,
        predicate: Predicate,
        sort: SortOrder | None = None,
        skip: int = 0,
        take: int | None = None,
        attach: Sequence[str] = (),
    ) -> list[Any]: ...

    async def add(self, schema: SchemaDescriptor, entity: Any) -> None: ...

    async def update(self, schema: SchemaDescriptor, entity: Any) -> None: ...

    async def remove(self, schema: SchemaDescriptor, entity: Any) -> None: ...

    async def save_changes(self) -> None: ...


# 연산자 → SQLAlchemy 표현식 테이블 (Operator → column expression)
_SQL_OPERATORS: Mapping[FilterOperator, Callable[[Any, Any], ColumnElement[bool]]] = {
    FilterOperator.EQUAL: lambda column, value: column == value,
    FilterOperator.NOT_EQUAL: lambda column, value: column != value,
    FilterOperator.GREATER_THAN: lambda column, value: column > value,
    FilterOperator.GREATER_OR_EQUAL: lambda column, value: column >= value,
    FilterOperator.LESS_THAN: lambda column, value: column < value,
    FilterOperator.LESS_OR_EQUAL: lambda column, value: column <= value,
    FilterOperator.CONTAINS: lambda column, value: column.contains(value, autoescape=True),
    FilterOperator.STARTS_WITH: lambda column, value: column.startswith(value, autoescape=True),
    FilterOperator.ENDS_WITH: lambda column, value: column.endswith(value, autoescape=True),
    FilterOperator.IN: lambda column, value: column.in_(list(value)),
    FilterOperator.CONTAINS_IGNORE_CASE: lambda column, value: column.icontains(value, autoescape=True),
}


def build_where_clause(schema: SchemaDescriptor, predicate: Predicate) -> ColumnElement[bool]:
    """술어 트리를 SQLAlchemy WHERE 절로 변환합니다.

    Translate a predicate tree into a SQLAlchemy boolean expression. Column
    attributes come from the schema registry, never from request strings.

    Args:
        schema: 엔티티 스키마 (Entity schema)
        predicate: 술어 트리 (Predicate tree)

    Returns:
        ColumnElement[bool]: WHERE 절 표현식 (Boolean clause)
    """
    if isinstance(predicate, Always):
        return true()
    if isinstance(predicate, AllOf):
        return and_(*(build_where_clause(schema, item) for item in predicate.items))
    if isinstance(predicate, AnyOf):
        if not predicate.items:
            return false()
        return or_(*(build_where_clause(schema, item) for item in predicate.items))

    condition: Condition = predicate
    column = getattr(schema.model, schema.fields[condition.field].attribute)
    if condition.value is None:
        # NULL 비교 — IS NULL / IS NOT NULL
        return column.is_not(None) if condition.operator is FilterOperator.NOT_EQUAL else column.is_(None)
    return _SQL_OPERATORS[condition.operator](column, condition.value)


def build_select(
    schema: SchemaDescriptor,
    predicate: Predicate,
    sort: SortOrder | None = None,
    skip: int = 0,
    take: int | None = None,
    attach: Sequence[str] = (),
) -> Select:
    """술어/정렬/페이지/관계 로딩을 적용한 SELECT 문을 만듭니다.

    Build the SELECT for a query. The identifier is appended as the last
    ORDER BY key so that repeated paginated calls return a deterministic order.
    """
    model: type = schema.model
    query: Select = select(model).where(build_where_clause(schema, predicate))

    for relation in attach:
        query = query.options(selectinload(getattr(model, schema.fields[relation].attribute)))

    if sort is not None:
        column = getattr(model, sort.field.attribute)
        query = query.order_by(column.desc().nulls_first() if sort.descending else column.asc().nulls_last())
    query = query.order_by(getattr(model, schema.id_field.attribute))

    if skip:
        query = query.offset(skip)
    if take is not None:
        query = query.limit(take)
    return query


class SqlAlchemyEntityStore:
    """비동기 SQLAlchemy 세션 위의 엔티티 저장소.

    Entity store over an async SQLAlchemy session. Writes are flushed
    immediately and committed by ``save_changes``.

    Attributes:
        db: 비동기 데이터베이스 세션 (Async database session)
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db: AsyncSession = db

    async def first_matching(
        self,
        schema: SchemaDescriptor,
        predicate: Predicate,
        attach: Sequence[str] = (),
    ) -> Any | None:
        """술어에 일치하는 첫 레코드를 조회합니다 (First matching record or None)."""
        result = await self.db.execute(build_select(schema, predicate, take=1, attach=attach))
        return result.scalars().first()

    async def all_matching(
        self,
        schema: SchemaDescriptor,
        predicate: Predicate,
        sort: SortOrder | None = None,
        skip: int = 0,
        take: int | None = None,
        attach: Sequence[str] = (),
    ) -> list[Any]:
        """술어에 일치하는 레코드 페이지를 조회합니다.

        Retrieve one page of matching records.

        Args:
            schema: 엔티티 스키마 (Entity schema)
            predicate: 술어 (Predicate, already tenant-scoped by the caller)
            sort: 정렬, None이면 식별자 순 (Sort; identifier order when None)
            skip: 건너뛸 레코드 수 (Offset)
            take: 최대 레코드 수 (Limit; None means unbounded)
            attach: 즉시 로딩할 관계 필드 (Relation fields to eager-load)

        Returns:
            list[Any]: 조회된 엔티티 목록 (Matching entities)
        """
        result = await self.db.execute(build_select(schema, predicate, sort, skip, take, attach))
        return list(result.scalars().all())

    async def add(self, schema: SchemaDescriptor, entity: Any) -> None:
        self.db.add(entity)
        await self.db.flush()

    async def update(self, schema: SchemaDescriptor, entity: Any) -> None:
        # 세션에 로드된 엔티티 — 변경 사항만 플러시 (Loaded entity; flush pending changes)
        self.db.add(entity)
        await self.db.flush()

    async def remove(self, schema: SchemaDescriptor, entity: Any) -> None:
        await self.db.delete(entity)
        await self.db.flush()

    async def save_changes(self) -> None:
        await self.db.commit()
