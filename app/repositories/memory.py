"""메모리 내 엔티티 저장소 — 술어 인터프리터로 쿼리를 실행합니다.

In-memory entity store. Executes queries with the predicate interpreter and
``SortOrder.apply``, so the query engine can be exercised without a database.
Records keep insertion order; an unsorted query returns them in that order.
"""

from typing import Any, Sequence

from app.query.predicate import Predicate, evaluate
from app.query.schema import SchemaDescriptor
from app.query.sorting import SortOrder


class InMemoryEntityStore:
    """엔티티 이름별 목록을 보관하는 저장소.

    Attributes:
        attached: 쿼리마다 요청된 관계 목록 (Relations requested per query, in call order)
        saves: save_changes 호출 횟수 (Number of save_changes calls)
    """

    def __init__(self) -> None:
        self._records: dict[str, list[Any]] = {}
        self.attached: list[tuple[str, ...]] = []
        self.saves: int = 0

    def records(self, schema: SchemaDescriptor) -> list[Any]:
        return self._records.setdefault(schema.entity_name, [])

    def seed(self, schema: SchemaDescriptor, *entities: Any) -> None:
        """테스트 데이터를 직접 넣습니다 (Insert records without counting a save)."""
        self.records(schema).extend(entities)

    async def first_matching(
        self,
        schema: SchemaDescriptor,
        predicate: Predicate,
        attach: Sequence[str] = (),
    ) -> Any | None:
        self.attached.append(tuple(attach))
        for entity in self.records(schema):
            if evaluate(predicate, entity, schema):
                return entity
        return None

    async def all_matching(
        self,
        schema: SchemaDescriptor,
        predicate: Predicate,
        sort: SortOrder | None = None,
        skip: int = 0,
        take: int | None = None,
        attach: Sequence[str] = (),
    ) -> list[Any]:
        self.attached.append(tuple(attach))
        matches: list[Any] = [e for e in self.records(schema) if evaluate(predicate, e, schema)]
        if sort is not None:
            matches = sort.apply(matches)
        end: int | None = None if take is None else skip + take
        return matches[skip:end]

    async def add(self, schema: SchemaDescriptor, entity: Any) -> None:
        self.records(schema).append(entity)

    async def update(self, schema: SchemaDescriptor, entity: Any) -> None:
        records: list[Any] = self.records(schema)
        if not any(existing is entity for existing in records):
            records.append(entity)

    async def remove(self, schema: SchemaDescriptor, entity: Any) -> None:
        records: list[Any] = self.records(schema)
        records[:] = [existing for existing in records if existing is not entity]

    async def save_changes(self) -> None:
        self.saves += 1
