"""엔티티 스키마 레지스트리 — 필드 이름에서 접근자/변경자로의 디스패치 테이블.

Entity schema registry — a dispatch table from public field names to typed
accessor/mutator functions.

Each ORM model is described once at process start (when ``app.models`` is
imported). The resulting SchemaDescriptor is immutable and safe to read from
any number of concurrent requests. Request-time field names are resolved
case-insensitively against this table; nothing is looked up on the entity
class itself at request time.

Naming:
    - scalar columns are exposed in PascalCase (``payment_date`` → ``PaymentDate``)
    - many-to-one relations are exposed as ``<ForeignKey>_<Target>``
      (``billing`` via ``billing_id`` → ``BillingId_Billing``)
"""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from operator import attrgetter
from types import MappingProxyType
from typing import Any, Callable, Iterator, Mapping

from pydantic import TypeAdapter, ValidationError
from sqlalchemy import BigInteger, Boolean, Date, DateTime, Integer, Numeric, SmallInteger, String, Uuid, inspect

IDENTIFIER_FIELD: str = "Id"
TENANT_FIELD: str = "TenantId"
# 감사 필드 — 서버가 기록하며 클라이언트가 변경할 수 없음 (Server-stamped audit fields)
AUDIT_FIELDS: frozenset[str] = frozenset({"CreatedOn", "CreatedBy", "UpdatedOn", "UpdatedBy"})


class FieldKind(str, Enum):
    """필드 종류 (Field kind)."""

    SCALAR = "scalar"
    RELATION = "relation"


class DataType(str, Enum):
    """스칼라 필드의 선언 타입 (Declared data type of a scalar field)."""

    TEXT = "text"
    INTEGER = "integer"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    DATETIME = "datetime"
    DATE = "date"
    UUID = "uuid"

    @property
    def is_numeric(self) -> bool:
        return self in (DataType.INTEGER, DataType.DECIMAL)

    @property
    def is_temporal(self) -> bool:
        return self in (DataType.DATETIME, DataType.DATE)


# 타입별 pydantic 어댑터 — 모듈 로드 시 한 번 생성 (Built once, shared read-only)
PYTHON_TYPES: Mapping[DataType, type] = MappingProxyType({
    DataType.TEXT: str,
    DataType.INTEGER: int,
    DataType.DECIMAL: Decimal,
    DataType.BOOLEAN: bool,
    DataType.DATETIME: datetime,
    DataType.DATE: date,
    DataType.UUID: uuid.UUID,
})
_ADAPTERS: Mapping[DataType, TypeAdapter] = MappingProxyType(
    {data_type: TypeAdapter(py_type) for data_type, py_type in PYTHON_TYPES.items()}
)


def coerce_value(data_type: DataType, raw: Any) -> Any:
    """원시 값을 선언된 타입으로 변환합니다.

    Parse a raw request value into the declared data type. ``None`` passes
    through unchanged. Datetimes are normalized to aware UTC (naive input is
    taken as UTC) so that stored and requested values always compare.

    Args:
        data_type: 대상 타입 (Declared type of the field)
        raw: 요청에서 받은 원시 값 (Raw value from the request)

    Returns:
        Any: 변환된 값 (Value of the declared Python type)

    Raises:
        ValueError: 변환 불가 (The value cannot be parsed into the type)
    """
    if raw is None:
        return None
    if isinstance(raw, bool) and data_type is not DataType.BOOLEAN:
        raise ValueError(f"boolean value is not a valid {data_type.value}")
    if data_type is DataType.TEXT and isinstance(raw, (int, float, Decimal)):
        return str(raw)
    try:
        value: Any = _ADAPTERS[data_type].validate_python(raw)
    except ValidationError as exc:
        raise ValueError(f"{raw!r} is not a valid {data_type.value}") from exc

    if data_type is DataType.DECIMAL and not value.is_finite():
        raise ValueError(f"{raw!r} is not a finite decimal")
    if data_type is DataType.DATETIME:
        value = value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value.astimezone(timezone.utc)
    return value


def pascal_case(name: str) -> str:
    """snake_case 속성 이름을 PascalCase 공개 이름으로 변환합니다."""
    return "".join(part[:1].upper() + part[1:] for part in name.split("_") if part)


@dataclass(frozen=True)
class FieldDescriptor:
    """단일 필드의 메타데이터와 접근자.

    Metadata and accessors of a single public field.

    Attributes:
        name: 공개(정규) 필드 이름 (Canonical public name, e.g. "PaymentDate")
        kind: 스칼라 또는 관계 (Scalar or relation)
        attribute: 모델 속성 이름 (Python attribute on the model)
        data_type: 스칼라 타입, 관계는 None (Declared scalar type; None for relations)
        sortable: 정렬 가능 여부 (May be used as sortField)
        searchable: 자유 검색 대상 여부 (Included in free-text search)
        mutable: 클라이언트 변경 가능 여부 (May be written by create/update/patch)
        relation_name: 관계 대상 엔티티 이름 (Target entity name for relations)
        foreign_key: 관계의 외래 키 필드 이름 (Foreign key field name for relations)
        value_range: 정수 컬럼의 허용 범위 (Inclusive bounds of integer columns)
    """

    name: str
    kind: FieldKind
    attribute: str
    getter: Callable[[Any], Any] = field(repr=False, compare=False)
    setter: Callable[[Any, Any], None] = field(repr=False, compare=False)
    data_type: DataType | None = None
    sortable: bool = False
    searchable: bool = False
    mutable: bool = False
    relation_name: str | None = None
    foreign_key: str | None = None
    value_range: tuple[int, int] | None = None

    @property
    def is_scalar(self) -> bool:
        return self.kind is FieldKind.SCALAR

    @property
    def is_relation(self) -> bool:
        return self.kind is FieldKind.RELATION

    def get(self, entity: Any) -> Any:
        return self.getter(entity)

    def set(self, entity: Any, value: Any) -> None:
        self.setter(entity, value)

    def coerce(self, raw: Any) -> Any:
        """원시 값을 이 필드의 타입으로 변환합니다 (Coerce into this field's type)."""
        if self.data_type is None:
            raise ValueError(f"{self.name} is a relation, not a scalar field")
        value: Any = coerce_value(self.data_type, raw)
        if value is not None and self.value_range is not None:
            low, high = self.value_range
            if not low <= value <= high:
                raise ValueError(f"{value} is out of range for '{self.name}'")
        return value


def _make_setter(attribute: str) -> Callable[[Any, Any], None]:
    def _set(entity: Any, value: Any) -> None:
        setattr(entity, attribute, value)

    return _set


@dataclass(frozen=True)
class SchemaDescriptor:
    """엔티티 타입별 불변 스키마.

    Immutable per-entity-type schema: the table of declared fields with their
    query/sort/patch eligibility and accessors.

    Attributes:
        entity_name: 엔티티 이름 (Entity name, e.g. "Payment")
        model: 엔티티 클래스 (Entity class used to create new records)
        fields: 정규 이름 → 필드 (Canonical name → FieldDescriptor, read-only)
        identifier: 식별자 필드 이름 (Identifier field name)
        tenant_field: 테넌트 필드 이름, 없으면 None (Tenant field name, if any)
    """

    entity_name: str
    model: type
    fields: Mapping[str, FieldDescriptor]
    identifier: str = IDENTIFIER_FIELD
    tenant_field: str | None = TENANT_FIELD
    _lookup: Mapping[str, str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.identifier not in self.fields:
            raise ValueError(f"{self.entity_name} declares no identifier field {self.identifier!r}")
        if self.tenant_field is not None and self.tenant_field not in self.fields:
            object.__setattr__(self, "tenant_field", None)
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))
        object.__setattr__(
            self, "_lookup", MappingProxyType({name.lower(): name for name in self.fields})
        )

    def resolve(self, name: str) -> FieldDescriptor | None:
        """대소문자 구분 없이 필드를 찾습니다 (Case-insensitive field lookup)."""
        canonical: str | None = self._lookup.get(name.strip().lower())
        return self.fields[canonical] if canonical is not None else None

    @property
    def id_field(self) -> FieldDescriptor:
        return self.fields[self.identifier]

    def scalar_fields(self) -> list[FieldDescriptor]:
        return [f for f in self.fields.values() if f.is_scalar]

    def relation_fields(self) -> list[FieldDescriptor]:
        return [f for f in self.fields.values() if f.is_relation]

    def searchable_fields(self) -> list[FieldDescriptor]:
        return [f for f in self.fields.values() if f.searchable]

    def mutable_fields(self) -> list[FieldDescriptor]:
        return [f for f in self.fields.values() if f.mutable]

    def new_instance(self) -> Any:
        return self.model()


def _data_type_for(column_type: Any) -> DataType:
    # Boolean/DateTime/Date는 Integer/String 계열보다 먼저 검사
    if isinstance(column_type, Boolean):
        return DataType.BOOLEAN
    if isinstance(column_type, DateTime):
        return DataType.DATETIME
    if isinstance(column_type, Date):
        return DataType.DATE
    if isinstance(column_type, Uuid):
        return DataType.UUID
    if isinstance(column_type, Integer):
        return DataType.INTEGER
    if isinstance(column_type, Numeric):
        return DataType.DECIMAL
    if isinstance(column_type, String):
        return DataType.TEXT
    raise TypeError(f"Unsupported column type for the query engine: {column_type!r}")


def _integer_range(column_type: Any) -> tuple[int, int] | None:
    # 부호 있는 2/4/8바이트 정수 (smallint / integer / bigint)
    if isinstance(column_type, Boolean) or not isinstance(column_type, Integer):
        return None
    if isinstance(column_type, SmallInteger):
        bits = 16
    elif isinstance(column_type, BigInteger):
        bits = 64
    else:
        bits = 32
    return -(2 ** (bits - 1)), 2 ** (bits - 1) - 1


def describe_model(model: type, entity_name: str | None = None) -> SchemaDescriptor:
    """SQLAlchemy 모델 매핑에서 SchemaDescriptor를 만듭니다.

    Build a SchemaDescriptor from a mapped SQLAlchemy model. Column ``info``
    may opt a field out of sorting or searching::

        code: Mapped[str] = mapped_column(String(50), info={"searchable": False})

    Text columns are searchable by default; every scalar column is sortable by
    default. Identifier, tenant and audit columns are never mutable.
    Collection relationships are not exposed.

    Args:
        model: 매핑된 모델 클래스 (Mapped model class)
        entity_name: 엔티티 이름, 기본값은 클래스 이름 (Defaults to the class name)

    Returns:
        SchemaDescriptor: 불변 스키마 (Immutable schema)
    """
    mapper = inspect(model)
    fields: dict[str, FieldDescriptor] = {}
    public_by_column: dict[Any, str] = {}

    for column_attr in mapper.column_attrs:
        column = column_attr.columns[0]
        info: dict[str, Any] = column.info
        name: str = info.get("field_name") or pascal_case(column_attr.key)
        data_type: DataType = _data_type_for(column.type)
        protected: bool = name == IDENTIFIER_FIELD or name == TENANT_FIELD or name in AUDIT_FIELDS
        fields[name] = FieldDescriptor(
            name=name,
            kind=FieldKind.SCALAR,
            attribute=column_attr.key,
            getter=attrgetter(column_attr.key),
            setter=_make_setter(column_attr.key),
            data_type=data_type,
            sortable=info.get("sortable", True),
            searchable=info.get("searchable", data_type is DataType.TEXT),
            mutable=not protected,
            value_range=_integer_range(column.type),
        )
        public_by_column[column] = name

    for relationship in mapper.relationships:
        if relationship.uselist:
            continue
        target: str = relationship.mapper.class_.__name__
        foreign_key: str = public_by_column[next(iter(relationship.local_columns))]
        name = f"{foreign_key}_{target}"
        fields[name] = FieldDescriptor(
            name=name,
            kind=FieldKind.RELATION,
            attribute=relationship.key,
            getter=attrgetter(relationship.key),
            setter=_make_setter(relationship.key),
            relation_name=target,
            foreign_key=foreign_key,
        )

    return SchemaDescriptor(entity_name=entity_name or model.__name__, model=model, fields=fields)


class SchemaRegistry:
    """프로세스 전역 스키마 레지스트리.

    Process-wide registry of SchemaDescriptors, populated during startup
    registration and only read afterwards.
    """

    def __init__(self) -> None:
        self._schemas: dict[str, SchemaDescriptor] = {}

    def add(self, schema: SchemaDescriptor) -> SchemaDescriptor:
        key: str = schema.entity_name.lower()
        if key in self._schemas:
            raise ValueError(f"Entity {schema.entity_name!r} is already registered")
        self._schemas[key] = schema
        return schema

    def register(self, model: type, entity_name: str | None = None) -> type:
        """모델을 기술하여 등록합니다. 클래스 데코레이터로도 사용 가능.

        Describe and register a model; usable as a class decorator.
        """
        self.add(describe_model(model, entity_name))
        return model

    def get(self, entity_name: str) -> SchemaDescriptor:
        """엔티티 이름으로 스키마를 조회합니다 (KeyError if unknown)."""
        return self._schemas[entity_name.lower()]

    def __contains__(self, entity_name: object) -> bool:
        return isinstance(entity_name, str) and entity_name.lower() in self._schemas

    def __iter__(self) -> Iterator[SchemaDescriptor]:
        return iter(self._schemas.values())

    def __len__(self) -> int:
        return len(self._schemas)


# 싱글턴 인스턴스 — Singleton instance (populated by app.models)
schema_registry: SchemaRegistry = SchemaRegistry()
