"""커스텀 HTTP 예외 클래스 모듈.

Custom HTTP exception classes module.
Provides pre-configured HTTPException subclasses for the error taxonomy of the
CRUD API and its dynamic query engine. Raising them from services and the
query engine eliminates the need to specify status codes at each call site.

Usage:
    from app.utils.exceptions import NotFoundError, InvalidFilterError
    raise NotFoundError("No data found!")
    raise InvalidFilterError("unknown field", "Unknown filter field 'Foo'")
"""

from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    """404 Not Found 예외 — 요청한 레코드를 찾을 수 없을 때 사용.

    404 Not Found exception.
    Raised when an identifier has no matching record in the caller's tenant.

    Args:
        detail: 오류 메시지 (Error message, default: "No data found!")
    """

    def __init__(self, detail: str = "No data found!") -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ForbiddenError(HTTPException):
    """403 Forbidden 예외 — 권한(entitlement) 부족 시 사용.

    403 Forbidden exception.
    Raised when the session lacks the entitlement required by the route.

    Args:
        detail: 오류 메시지 (Error message, default: "Insufficient permissions")
    """

    def __init__(self, detail: str = "Insufficient permissions") -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class UnauthorizedError(HTTPException):
    """401 Unauthorized 예외 — 인증 실패 시 사용.

    401 Unauthorized exception.
    Raised when authentication is missing, invalid, or expired.

    Args:
        detail: 오류 메시지 (Error message, default: "Authentication required")
    """

    def __init__(self, detail: str = "Authentication required") -> None:
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class BadRequestError(HTTPException):
    """400 Bad Request 예외 — 잘못된 요청 데이터 시 사용.

    400 Bad Request exception.
    Base class for every validation failure of the query engine.

    Args:
        detail: 오류 메시지 (Error message, default: "Bad request")
    """

    def __init__(self, detail: str = "Bad request") -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class QueryError(BadRequestError):
    """쿼리 검증 오류의 공통 부모 — reason 코드를 함께 보관.

    Common parent of query validation errors. Keeps a short machine-readable
    ``reason`` next to the human-readable ``detail``.

    Args:
        reason: 짧은 사유 코드 (Short reason, e.g. "unknown field")
        detail: 오류 메시지 (Human-readable message; defaults to reason)
    """

    def __init__(self, reason: str, detail: str | None = None) -> None:
        self.reason: str = reason
        super().__init__(detail or reason)


class InvalidFilterError(QueryError):
    """필터 조건 오류 — 알 수 없는 필드, 호환되지 않는 연산자, 해석 불가 값.

    Invalid filter criterion: unknown field, incompatible operator or
    unparsable value.
    """


class InvalidSortError(QueryError):
    """정렬 조건 오류 — 알 수 없거나 정렬 불가 필드, 잘못된 방향.

    Invalid sort: unknown or non-sortable field, or unsupported direction.
    """


class InvalidPageError(QueryError):
    """페이지 요청 오류 — 0 이하의 페이지 번호/크기 또는 상한 초과.

    Invalid page request: non-positive number/size or size above the cap.
    """


class PatchError(BadRequestError):
    """패치 문서 오류 — 잘못된 경로, 빈 문서, 지원하지 않는 연산.

    Invalid patch document: bad path, empty/missing document, unsupported op
    or a value that cannot be coerced to the field type.
    """

    def __init__(self, detail: str = "Patch document is missing!") -> None:
        super().__init__(detail)


class MismatchedIdentifierError(BadRequestError):
    """경로의 ID와 본문의 ID가 다를 때 사용.

    Raised on update when the body identifier differs from the route identifier.
    """

    def __init__(self, detail: str = "Mismatched Id") -> None:
        super().__init__(detail)
