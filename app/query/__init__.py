"""동적 쿼리 및 투영 엔진 패키지.

Dynamic query & projection engine package.
Turns request-time strings (filters, search term, sort, page, fields) into
validated, store-independent data: predicates, sort orders, page windows,
projections and patch plans.

Modules:
    schema: 엔티티 스키마 레지스트리 (Schema registry and field accessors)
    criteria: 필터 조건 디코딩/검증 (Filter decoding and validation)
    predicate: 술어 트리, 인터프리터, 컴파일러 (Predicate tree, interpreter, compiler)
    sorting: 정렬 컴파일러 (Sort compiler)
    projection: 필드 선택과 투영 (Field selection and projection)
    patch: 패치 적용기 (Patch applier)
"""

from app.query.criteria import CriteriaValidator, FilterCriterion, criteria_validator, decode_filters
from app.query.patch import PatchApplier, PatchOperation, parse_document, patch_applier
from app.query.predicate import (
    ALWAYS,
    AllOf,
    Always,
    AnyOf,
    Condition,
    FilterOperator,
    Predicate,
    PredicateCompiler,
    evaluate,
    predicate_compiler,
)
from app.query.projection import FieldSelection, ProjectionEngine, projection_engine
from app.query.schema import (
    DataType,
    FieldDescriptor,
    FieldKind,
    SchemaDescriptor,
    SchemaRegistry,
    describe_model,
    schema_registry,
)
from app.query.sorting import SortCompiler, SortDirection, SortOrder, SortSpec, sort_compiler

__all__ = [
    "ALWAYS", "AllOf", "Always", "AnyOf", "Condition", "FilterOperator", "Predicate",
    "PredicateCompiler", "evaluate", "predicate_compiler",
    "CriteriaValidator", "FilterCriterion", "criteria_validator", "decode_filters",
    "FieldSelection", "ProjectionEngine", "projection_engine",
    "PatchApplier", "PatchOperation", "parse_document", "patch_applier",
    "DataType", "FieldDescriptor", "FieldKind", "SchemaDescriptor", "SchemaRegistry",
    "describe_model", "schema_registry",
    "SortCompiler", "SortDirection", "SortOrder", "SortSpec", "sort_compiler",
]
