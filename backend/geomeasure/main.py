# backend/geomeasure/main.py
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
import structlog

from geomeasure.api.routers import measurements
from geomeasure.config import settings
from geomeasure.db import init_db
from geomeasure.logs import configure_logging

configure_logging()
logger = structlog.get_logger(__name__)

app = FastAPI(title="GeoMeasure API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ストアに依存しない liveness チェック
@app.get("/api/health")
def health():
    return {"ok": True}


@app.middleware("http")
async def log_requests(request: Request, call_next):
    response = await call_next(request)
    if request.url.path != "/api/health":
        logger.info("request", method=request.method, path=request.url.path, status=response.status_code)
    return response


@app.exception_handler(RequestValidationError)
async def invalid_payload(request: Request, exc: RequestValidationError):
    logger.info("invalid payload", path=request.url.path, errors=len(exc.errors()))
    return JSONResponse(status_code=400, content={"error": "Invalid payload"})


@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException):
    # パス不一致・メソッド不一致はどちらも 404 として返す
    if exc.status_code in (404, 405) and exc.detail in ("Not Found", "Method Not Allowed"):
        return JSONResponse(status_code=404, content={"error": "Not found"})
    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content=exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.on_event("startup")
def on_startup():
    # ストアに接続できなくても起動は続行（health は応答し、他は 503）
    try:
        init_db()
    except SQLAlchemyError as e:
        logger.error("database init failed", error=str(e))
    logger.info("api started", database=settings.DATABASE_URL.split("://", 1)[0])


@app.get("/", response_class=PlainTextResponse)
def root():
    return "API is running. Try /api/health or /api/measurements"


app.include_router(measurements.router, prefix="/api/measurements", tags=["measurements"])
