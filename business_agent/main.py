# business_agent/main.py

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from business_agent.api.deps import get_schema_cache
from business_agent.api.v1.endpoints import query
from business_agent.api.v1.router import api_router
from business_agent.core.config import get_settings
from business_agent.core.errors import BusinessAgentError
from business_agent.core.logging_config import setup_logging
from business_agent.db.session import get_engine

settings = get_settings()
logger = setup_logging(settings.LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # 기동 시 스키마를 미리 읽어 둔다. 실패해도 첫 요청에서 다시 시도하므로 기동은 계속.
    if settings.SCHEMA_WARMUP:
        try:
            schema = await get_schema_cache().get()
            logger.info("Database schema loaded (%d tables)", len(schema))
        except BusinessAgentError as e:
            logger.error("Failed to load database schema: %s", e)
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------
# CORS 설정
# ---------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


# ---------------------------------------------------------
# 파이프라인 에러 → {"error": "..."}
# ---------------------------------------------------------
@app.exception_handler(BusinessAgentError)
async def business_agent_error_handler(request: Request, exc: BusinessAgentError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Error processing %s: %s", request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})


# ---------------------------------------------------------
# API 라우터 (/api/v1/...) + 루트 /query
# ---------------------------------------------------------
app.include_router(api_router)
app.include_router(query.router, tags=["query"])


@app.get("/health")
async def health():
    return {"status": "ok", "database": get_engine().dialect.name}


@app.get("/")
async def root():
    return {
        "message": f"{settings.PROJECT_NAME} is running",
        "endpoints": {
            "health": "/health",
            "query": f"{settings.API_V1_STR}/query",
            "schema": f"{settings.API_V1_STR}/schema",
            "schema_refresh": f"{settings.API_V1_STR}/schema/refresh",
        },
        "version": settings.VERSION,
    }
