"""정렬 조건 컴파일러.

Sort compiler: turns a sort-field name and direction into a ``SortOrder``,
a small data object that both the in-memory interpreter (``apply``) and the
SQLAlchemy store (``field`` + ``direction``) understand.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable

from app.query.schema import FieldDescriptor, SchemaDescriptor
from app.utils.exceptions import InvalidSortError


class SortDirection(str, Enum):
    """정렬 방향 (Sort direction)."""

    ASCENDING = "asc"
    DESCENDING = "desc"

    @classmethod
    def parse(cls, raw: str | None) -> "SortDirection":
        """``asc``/``desc``/``ascending``/``descending`` (대소문자 무시)를 해석합니다.

        Raises:
            InvalidSortError: 지원하지 않는 방향 (Unsupported sort order)
        """
        wanted: str = (raw or "").strip().lower()
        if wanted in ("asc", "ascending"):
            return cls.ASCENDING
        if wanted in ("desc", "descending"):
            return cls.DESCENDING
        raise InvalidSortError("unsupported sort order", "Invalid sort order. Use 'asc' or 'desc'")


@dataclass(frozen=True)
class SortSpec:
    """요청에서 받은 원시 정렬 조건 (Raw sort request)."""

    field_name: str
    direction: str = "asc"


@dataclass(frozen=True)
class SortOrder:
    """컴파일된 정렬 — 안정 정렬이며 NULL은 오름차순에서 마지막.

    Compiled sort. Stable: records with equal keys keep their input order.
    NULLs sort last ascending and first descending.
    """

    field: FieldDescriptor
    direction: SortDirection

    @property
    def descending(self) -> bool:
        return self.direction is SortDirection.DESCENDING

    def key(self, entity: Any) -> tuple[bool, Any]:
        value: Any = self.field.get(entity)
        return (value is None, value)

    def apply(self, entities: Iterable[Any]) -> list[Any]:
        # sorted()는 reverse=True에서도 안정성을 유지함
        return sorted(entities, key=self.key, reverse=self.descending)

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field.name, "direction": self.direction.value}


class SortCompiler:
    """정렬 조건을 검증하고 SortOrder로 컴파일합니다."""

    def compile(self, schema: SchemaDescriptor, sort_spec: SortSpec | None) -> SortOrder | None:
        """SortSpec → SortOrder. 정렬 조건이 없으면 None (입력 순서 유지).

        Args:
            schema: 대상 엔티티 스키마 (Target entity schema)
            sort_spec: 원시 정렬 조건 (Raw sort request, optional)

        Returns:
            SortOrder | None: 컴파일된 정렬 또는 None (None means no sort)

        Raises:
            InvalidSortError: 알 수 없거나 정렬 불가 필드, 잘못된 방향
                              (Unknown/non-sortable field or bad direction)
        """
        if sort_spec is None or not sort_spec.field_name.strip():
            return None

        field: FieldDescriptor | None = schema.resolve(sort_spec.field_name)
        if field is None:
            raise InvalidSortError(
                "unknown field", f"Unknown sort field '{sort_spec.field_name}' for {schema.entity_name}"
            )
        if not field.is_scalar or not field.sortable:
            raise InvalidSortError("field is not sortable", f"Field '{field.name}' is not sortable")
        return SortOrder(field=field, direction=SortDirection.parse(sort_spec.direction))


# 싱글턴 인스턴스 — Singleton instance
sort_compiler: SortCompiler = SortCompiler()
