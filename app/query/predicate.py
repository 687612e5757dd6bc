"""술어 트리와 컴파일러 — 필터 조건과 자유 검색어를 하나의 조합 가능한 술어로.

Predicate tree and compiler.

A predicate is plain data: a tree of ``Condition`` leaves combined by
``AllOf`` / ``AnyOf`` nodes, or the always-true ``Always``. It can be
serialized with ``to_dict()`` and inspected in tests without a store.
``evaluate()`` interprets it against one in-memory entity; the SQLAlchemy
store translates the same tree into a WHERE clause.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Mapping, Sequence, Union
from uuid import UUID

from app.query.schema import SchemaDescriptor


class FilterOperator(str, Enum):
    """필터 연산자 (Filter operators accepted in the ``Operator`` field)."""

    EQUAL = "Equal"
    NOT_EQUAL = "NotEqual"
    GREATER_THAN = "GreaterThan"
    GREATER_OR_EQUAL = "GreaterOrEqual"
    LESS_THAN = "LessThan"
    LESS_OR_EQUAL = "LessOrEqual"
    CONTAINS = "Contains"
    STARTS_WITH = "StartsWith"
    ENDS_WITH = "EndsWith"
    IN = "In"
    # 자유 검색어에 사용되는 대소문자 무시 부분 일치 (Case-insensitive substring, used by search)
    CONTAINS_IGNORE_CASE = "ContainsIgnoreCase"

    @classmethod
    def parse(cls, raw: str) -> "FilterOperator | None":
        """대소문자 구분 없이 연산자를 찾습니다. 없으면 None."""
        wanted: str = raw.strip().lower()
        for operator in cls:
            if operator.value.lower() == wanted:
                return operator
        return None


@dataclass(frozen=True)
class Condition:
    """단일 (필드, 연산자, 값) 조건. 값은 이미 필드 타입으로 변환된 상태.

    A single (field, operator, value) test. ``field`` is the canonical field
    name and ``value`` is already coerced to the field's declared type
    (a tuple for ``In``).
    """

    field: str
    operator: FilterOperator
    value: Any

    def to_dict(self) -> dict[str, Any]:
        return {"field": self.field, "operator": self.operator.value, "value": _plain(self.value)}


@dataclass(frozen=True)
class AllOf:
    """모든 하위 술어가 참 (Logical AND)."""

    items: tuple["Predicate", ...]

    def to_dict(self) -> dict[str, Any]:
        return {"and": [item.to_dict() for item in self.items]}


@dataclass(frozen=True)
class AnyOf:
    """하나 이상의 하위 술어가 참 (Logical OR). 비어 있으면 거짓."""

    items: tuple["Predicate", ...]

    def to_dict(self) -> dict[str, Any]:
        return {"or": [item.to_dict() for item in self.items]}


@dataclass(frozen=True)
class Always:
    """항상 참인 술어 (The always-true predicate)."""

    def to_dict(self) -> dict[str, Any]:
        return {"always": True}


Predicate = Union[Condition, AllOf, AnyOf, Always]

ALWAYS: Always = Always()


def _plain(value: Any) -> Any:
    if isinstance(value, tuple):
        return [_plain(item) for item in value]
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    return value


def all_of(*predicates: Predicate) -> Predicate:
    """AND 결합 — 중첩 AND를 펼치고 Always를 제거합니다."""
    items: list[Predicate] = []
    for predicate in predicates:
        if isinstance(predicate, Always):
            continue
        if isinstance(predicate, AllOf):
            items.extend(predicate.items)
        else:
            items.append(predicate)
    if not items:
        return ALWAYS
    if len(items) == 1:
        return items[0]
    return AllOf(tuple(items))


def any_of(*predicates: Predicate) -> Predicate:
    """OR 결합 — 하나라도 Always면 Always, 비어 있으면 항상 거짓인 AnyOf(())."""
    if any(isinstance(predicate, Always) for predicate in predicates):
        return ALWAYS
    if len(predicates) == 1:
        return predicates[0]
    return AnyOf(tuple(predicates))


# 연산자 → 비교 함수 테이블. 값이 None인 경우는 evaluate()에서 먼저 처리
_OPERATIONS: Mapping[FilterOperator, Callable[[Any, Any], bool]] = {
    FilterOperator.EQUAL: lambda actual, expected: actual == expected,
    FilterOperator.NOT_EQUAL: lambda actual, expected: actual != expected,
    FilterOperator.GREATER_THAN: lambda actual, expected: actual > expected,
    FilterOperator.GREATER_OR_EQUAL: lambda actual, expected: actual >= expected,
    FilterOperator.LESS_THAN: lambda actual, expected: actual < expected,
    FilterOperator.LESS_OR_EQUAL: lambda actual, expected: actual <= expected,
    FilterOperator.CONTAINS: lambda actual, expected: expected in actual,
    FilterOperator.STARTS_WITH: lambda actual, expected: actual.startswith(expected),
    FilterOperator.ENDS_WITH: lambda actual, expected: actual.endswith(expected),
    FilterOperator.IN: lambda actual, expected: actual in expected,
    FilterOperator.CONTAINS_IGNORE_CASE: lambda actual, expected: expected.lower() in actual.lower(),
}


def _test(condition: Condition, actual: Any) -> bool:
    # SQL과 같은 NULL 의미론 — NULL은 IS NULL / IS NOT NULL 외에는 일치하지 않음
    if condition.value is None:
        if condition.operator is FilterOperator.NOT_EQUAL:
            return actual is not None
        return actual is None
    if actual is None:
        return False
    return _OPERATIONS[condition.operator](actual, condition.value)


def evaluate(predicate: Predicate, entity: Any, schema: SchemaDescriptor) -> bool:
    """술어를 단일 엔티티에 대해 해석합니다.

    Interpret a predicate against one entity, reading field values through
    the schema's accessors.

    Args:
        predicate: 평가할 술어 (Predicate tree)
        entity: 대상 엔티티 (Entity instance)
        schema: 엔티티 스키마 (Schema of the entity type)

    Returns:
        bool: 일치 여부 (Whether the entity satisfies the predicate)
    """
    if isinstance(predicate, Always):
        return True
    if isinstance(predicate, AllOf):
        return all(evaluate(item, entity, schema) for item in predicate.items)
    if isinstance(predicate, AnyOf):
        return any(evaluate(item, entity, schema) for item in predicate.items)
    return _test(predicate, schema.fields[predicate.field].get(entity))


class PredicateCompiler:
    """검증된 조건 + 검색어 → 술어 (Validated criteria + search term → predicate)."""

    def compile(
        self,
        schema: SchemaDescriptor,
        criteria: Sequence[Condition],
        search_term: str | None = None,
    ) -> Predicate:
        """조건을 AND로 결합하고 검색어를 OR 분기로 추가합니다.

        AND-combine the validated criteria. A non-empty search term becomes an
        OR of case-insensitive substring tests across every searchable text
        field, ANDed with the criteria. No criteria and no term yields ALWAYS.

        Args:
            schema: 대상 엔티티 스키마 (Target entity schema)
            criteria: CriteriaValidator가 반환한 조건 (Validated conditions)
            search_term: 자유 검색어 (Free-text search term, optional)

        Returns:
            Predicate: 결합된 술어 (Combined predicate)
        """
        parts: list[Predicate] = list(criteria)
        term: str = (search_term or "").strip()
        if term:
            parts.append(
                any_of(*(
                    Condition(field.name, FilterOperator.CONTAINS_IGNORE_CASE, term)
                    for field in schema.searchable_fields()
                ))
            )
        return all_of(*parts)

    def scope_to_tenant(
        self,
        schema: SchemaDescriptor,
        predicate: Predicate,
        tenant_id: UUID | None,
    ) -> Predicate:
        """술어에 테넌트 조건을 AND로 결합합니다.

        AND the tenant condition into the predicate. Every list/get/update/
        patch/delete query goes through here; entity types without a tenant
        field are returned unchanged.
        """
        if schema.tenant_field is None:
            return predicate
        return all_of(Condition(schema.tenant_field, FilterOperator.EQUAL, tenant_id), predicate)

    def for_identifier(
        self,
        schema: SchemaDescriptor,
        record_id: UUID,
        tenant_id: UUID | None,
    ) -> Predicate:
        """식별자 + 테넌트 범위 술어 (Identifier lookup scoped to the tenant)."""
        return self.scope_to_tenant(
            schema, Condition(schema.identifier, FilterOperator.EQUAL, record_id), tenant_id
        )


# 싱글턴 인스턴스 — Singleton instance
predicate_compiler: PredicateCompiler = PredicateCompiler()
