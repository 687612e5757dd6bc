"""Axiom API 로깅 미들웨어.

Axiom API logging middleware.
Sends one structured event per API call to Axiom: method, path, query
parameters (the raw ``filters``/``searchTerm``/``fields`` strings included),
request body, status code, duration and the error detail of 4xx/5xx
responses. Sensitive keys are masked and large values truncated.
Without AXIOM_API_TOKEN/AXIOM_DATASET the middleware is a pass-through.
"""

import json
import logging
import re
import time
from typing import Any

from axiom_py import Client as AxiomClient
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.config import settings

logger: logging.Logger = logging.getLogger("app.axiom")

# 마스킹 대상 필드 패턴 — Keys masked in bodies and query strings
_SENSITIVE_KEYS = re.compile(
    r"(password|secret|token|authorization|api_key|apikey|credential|ssn)",
    re.IGNORECASE,
)

# 로깅 제외 경로 — Paths excluded from logging
_SKIP_PATHS: frozenset[str] = frozenset({"/health", "/docs", "/redoc", "/openapi.json"})

_MAX_VALUE_LENGTH: int = 2000
_MAX_ERROR_LENGTH: int = 500


def mask_sensitive(data: Any, depth: int = 0) -> Any:
    """민감 필드를 재귀적으로 마스킹합니다 (Recursively mask sensitive keys)."""
    if depth > 5:
        return "..."
    if isinstance(data, dict):
        return {
            key: "***" if _SENSITIVE_KEYS.search(str(key)) else mask_sensitive(value, depth + 1)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [mask_sensitive(item, depth + 1) for item in data[:20]]
    if isinstance(data, str) and len(data) > _MAX_VALUE_LENGTH:
        return data[:_MAX_VALUE_LENGTH] + "...(truncated)"
    return data


def _error_detail(body: bytes) -> str:
    try:
        payload: Any = json.loads(body)
        detail: Any = payload.get("detail", payload) if isinstance(payload, dict) else payload
        text: str = detail if isinstance(detail, str) else json.dumps(detail, default=str)
    except (json.JSONDecodeError, UnicodeDecodeError):
        text = body.decode("utf-8", errors="replace")
    return text[:_MAX_ERROR_LENGTH]


class AxiomLoggingMiddleware(BaseHTTPMiddleware):
    """모든 API 요청/응답을 Axiom에 로깅하는 미들웨어.

    Middleware that logs every API request and response to Axiom.
    """

    def __init__(self, app: Any) -> None:
        super().__init__(app)
        self._client: AxiomClient | None = None
        self._dataset: str = settings.AXIOM_DATASET

        if settings.AXIOM_API_TOKEN and settings.AXIOM_DATASET:
            self._client = AxiomClient(token=settings.AXIOM_API_TOKEN)

    async def _read_body(self, request: Request) -> Any:
        if request.method not in ("POST", "PUT", "PATCH"):
            return None
        body: bytes = await request.body()
        if not body:
            return None
        try:
            return mask_sensitive(json.loads(body))
        except (json.JSONDecodeError, UnicodeDecodeError):
            return "(non-json body)"

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # Axiom 미설정 또는 제외 경로 — Pass through
        if self._client is None or request.url.path in _SKIP_PATHS:
            return await call_next(request)

        started: float = time.perf_counter()
        event: dict[str, Any] = {"method": request.method, "path": request.url.path, "status_code": 500}
        if request.query_params:
            event["query_params"] = mask_sensitive(dict(request.query_params))
        request_body: Any = await self._read_body(request)
        if request_body is not None:
            event["request_body"] = request_body

        try:
            response: Response = await call_next(request)
            event["status_code"] = response.status_code
            if response.status_code >= 400:
                # 오류 응답 본문을 소비한 뒤 다시 감싸서 반환 (Consume, then re-wrap the body)
                body: bytes = b""
                async for chunk in response.body_iterator:
                    body += chunk if isinstance(chunk, bytes) else chunk.encode("utf-8")
                event["error"] = _error_detail(body)
                response = Response(
                    content=body,
                    status_code=response.status_code,
                    headers=dict(response.headers),
                    media_type=response.media_type,
                )
            return response
        except Exception as exc:
            event["error"] = f"{type(exc).__name__}: {str(exc)[:300]}"
            raise
        finally:
            event["duration_ms"] = round((time.perf_counter() - started) * 1000, 2)
            try:
                self._client.ingest_events(self._dataset, [event])
            except Exception:
                # 로깅 실패가 요청 처리를 막지 않음 (Log delivery never fails the request)
                logger.warning("Axiom ingest failed for %s %s", request.method, request.url.path, exc_info=True)
