"""필터 조건 파싱 및 검증.

Filter criteria decoding and validation.

The transport layer hands over ``filters`` as a JSON array of
``{"PropertyName": ..., "Operator": ..., "Value": ...}`` objects.
``decode_filters`` turns that string into FilterCriterion models (a malformed
document is a plain 400 before validation), and ``CriteriaValidator``
checks each criterion against the entity schema and coerces its value into
the field's declared type.
"""

import json
from typing import Any, Sequence

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from app.query.predicate import Condition, FilterOperator
from app.query.schema import DataType, FieldDescriptor, SchemaDescriptor
from app.utils.exceptions import BadRequestError, InvalidFilterError


class FilterCriterion(BaseModel):
    """요청에서 받은 원시 필터 조건.

    Raw filter criterion as sent by the client.

    Attributes:
        field_name: 필드 이름 (Field name, JSON key "PropertyName")
        operator: 연산자 이름 (Operator name, JSON key "Operator")
        value: 비교 값, 스칼라 또는 목록 (Scalar or list, JSON key "Value")
    """

    model_config = ConfigDict(frozen=True)

    field_name: str = Field(validation_alias=AliasChoices("PropertyName", "propertyName", "field_name"), min_length=1)
    operator: str = Field(validation_alias=AliasChoices("Operator", "operator"), min_length=1)
    value: Any = Field(default=None, validation_alias=AliasChoices("Value", "value"))


_CRITERIA_ADAPTER: TypeAdapter = TypeAdapter(list[FilterCriterion])

# 텍스트 전용 연산자 (Operators that require a text field)
_TEXT_OPERATORS: frozenset[FilterOperator] = frozenset({
    FilterOperator.CONTAINS,
    FilterOperator.STARTS_WITH,
    FilterOperator.ENDS_WITH,
    FilterOperator.CONTAINS_IGNORE_CASE,
})
# 순서 비교 연산자 (Operators that require a numeric or temporal field)
_ORDERING_OPERATORS: frozenset[FilterOperator] = frozenset({
    FilterOperator.GREATER_THAN,
    FilterOperator.GREATER_OR_EQUAL,
    FilterOperator.LESS_THAN,
    FilterOperator.LESS_OR_EQUAL,
})


def decode_filters(raw: str | None) -> list[FilterCriterion]:
    """``filters`` 쿼리 문자열을 FilterCriterion 목록으로 디코딩합니다.

    Decode the ``filters`` query string. ``None`` or a blank string means no
    filters.

    Raises:
        BadRequestError: JSON 형식 오류 (Malformed JSON or wrong shape)
    """
    if raw is None or not raw.strip():
        return []
    try:
        return _CRITERIA_ADAPTER.validate_python(json.loads(raw))
    except (json.JSONDecodeError, ValidationError) as exc:
        raise BadRequestError(
            'Invalid filters format. Use [{"PropertyName": "...", "Operator": "Equal", "Value": "..."}]'
        ) from exc


def operator_supports(operator: FilterOperator, data_type: DataType) -> bool:
    """연산자/타입 조합 지원 여부 (Whether the operator applies to the data type)."""
    if operator in _TEXT_OPERATORS:
        return data_type is DataType.TEXT
    if operator in _ORDERING_OPERATORS:
        return data_type.is_numeric or data_type.is_temporal
    return True


class CriteriaValidator:
    """필터 조건을 스키마에 대해 검증하고 값을 변환합니다.

    Validates raw criteria against a SchemaDescriptor. The first invalid
    criterion fails the whole list; nothing is partially accepted.
    """

    def validate(
        self,
        schema: SchemaDescriptor,
        raw_criteria: Sequence[FilterCriterion] | None,
    ) -> list[Condition]:
        """원시 조건 목록을 검증된 Condition 목록으로 변환합니다.

        Args:
            schema: 대상 엔티티 스키마 (Target entity schema)
            raw_criteria: 원시 조건 목록 (Raw criteria; None means none)

        Returns:
            list[Condition]: 정규 필드 이름과 변환된 값을 가진 조건
                             (Conditions with canonical names and coerced values)

        Raises:
            InvalidFilterError: 알 수 없는 필드, 호환되지 않는 연산자, 해석 불가 값
                                (Unknown field, incompatible operator, unparsable value)
        """
        return [self._validate_one(schema, criterion) for criterion in raw_criteria or ()]

    def _validate_one(self, schema: SchemaDescriptor, criterion: FilterCriterion) -> Condition:
        field: FieldDescriptor | None = schema.resolve(criterion.field_name)
        if field is None:
            raise InvalidFilterError(
                "unknown field",
                f"Unknown filter field '{criterion.field_name}' for {schema.entity_name}",
            )
        if field.is_relation:
            raise InvalidFilterError(
                "relation filtering is not supported",
                f"Filtering on relation '{field.name}' is not supported",
            )

        operator: FilterOperator | None = FilterOperator.parse(criterion.operator)
        if operator is None or not operator_supports(operator, field.data_type):
            raise InvalidFilterError(
                "incompatible operator",
                f"Operator '{criterion.operator}' cannot be applied to {field.data_type.value} field '{field.name}'",
            )

        raw: Any = criterion.value
        if operator is FilterOperator.IN:
            if not isinstance(raw, list):
                raise InvalidFilterError(
                    "incompatible operator", f"Operator 'In' on '{field.name}' requires a list value"
                )
            return Condition(field.name, operator, tuple(self._coerce(field, item) for item in raw))

        if isinstance(raw, (list, dict)):
            raise InvalidFilterError(
                "incompatible operator",
                f"Operator '{operator.value}' on '{field.name}' requires a scalar value",
            )
        if raw is None:
            if operator not in (FilterOperator.EQUAL, FilterOperator.NOT_EQUAL):
                raise InvalidFilterError(
                    "unparsable value", f"Operator '{operator.value}' on '{field.name}' requires a value"
                )
            return Condition(field.name, operator, None)
        return Condition(field.name, operator, self._coerce(field, raw))

    @staticmethod
    def _coerce(field: FieldDescriptor, raw: Any) -> Any:
        if raw is None or isinstance(raw, (list, dict)):
            raise InvalidFilterError(
                "unparsable value", f"Value {raw!r} is not a valid {field.data_type.value} for '{field.name}'"
            )
        try:
            return field.coerce(raw)
        except ValueError as exc:
            raise InvalidFilterError(
                "unparsable value", f"Value {raw!r} is not a valid {field.data_type.value} for '{field.name}'"
            ) from exc


# 싱글턴 인스턴스 — Singleton instance
criteria_validator: CriteriaValidator = CriteriaValidator()
