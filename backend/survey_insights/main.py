"""FastAPI application entry point. Registers middleware, exception handlers and API routers."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from survey_insights.config import settings
from survey_insights.database import init_db
from survey_insights.errors import ApiError
from survey_insights.logging_setup import configure_logging
from survey_insights.routers import analytics, auth, stats, surveys

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Survey Insights",
    description="Role-based feedback surveys with an analytics dashboard API",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ApiError)
def handle_api_error(request: Request, exc: ApiError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


@app.exception_handler(RequestValidationError)
def handle_validation_error(request: Request, exc: RequestValidationError):
    details = [
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg')}"
        for error in exc.errors()
    ]
    logger.info("[request] rejected %s %s: %s", request.method, request.url.path, details)
    return JSONResponse(status_code=400, content={"error": "Invalid request data", "details": details})


app.include_router(auth.router)
app.include_router(surveys.router)
app.include_router(stats.router)
app.include_router(analytics.router)


@app.on_event("startup")
def ensure_schema():
    init_db()


@app.get("/api/health")
def health_check():
    return {"status": "ok", "service": "Survey Insights"}
