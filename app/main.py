"""FastAPI 애플리케이션 엔트리포인트 — 미들웨어 및 라우터 등록.

FastAPI application entry point — Middleware and router registration.
Configures error handling, Axiom logging, CORS, health check, and mounts one
generated CRUD router per registered entity under ``/api``.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app import models  # noqa: F401 — 모든 엔티티를 스키마 레지스트리에 등록 (registers every entity)
from app.api.entities import build_api_router
from app.config import settings
from app.middleware.axiom_logging import AxiomLoggingMiddleware
from app.middleware.error_handling import ErrorHandlingMiddleware
from app.query.schema import schema_registry

app: FastAPI = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# 예외 처리 미들웨어 — 가장 안쪽에 등록하여 Axiom이 500 응답을 기록하도록 함
# (Innermost, so the Axiom middleware logs the resulting 500)
app.add_middleware(ErrorHandlingMiddleware)

# Axiom API 로깅 미들웨어 — Axiom API request/response logging
app.add_middleware(AxiomLoggingMiddleware)

# CORS 미들웨어 — Cross-Origin Resource Sharing middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """서버 상태 확인 엔드포인트.

    Health check endpoint for load balancers and monitoring.
    """
    return {"status": "ok"}


# 엔티티 라우터 등록 — /api/<entity lowercased> (e.g. /api/payment)
app.include_router(build_api_router(schema_registry), prefix="/api")
