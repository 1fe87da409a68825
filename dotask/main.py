"""DoTask local server — hosts the session-cookie logout endpoint.

Run with: uvicorn dotask.main:app --port 5173
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from dotask.api.logout import router as logout_router
from dotask.config import settings

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


class HealthStatus(BaseModel):
    status: str
    version: str
    graphql_url: str
    timestamp: datetime


app = FastAPI(
    title="DoTask",
    description="Local server for the DoTask client",
    version=VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)


# Global exception handler: no internal details in responses
@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    if isinstance(exc, HTTPException):
        raise exc
    logger.error("Unhandled exception on %s %s: %s", request.method, request.url.path, exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error."},
    )


@app.get("/health", response_model=HealthStatus)
async def health_check() -> HealthStatus:
    return HealthStatus(
        status="healthy",
        version=VERSION,
        graphql_url=settings.graphql_url,
        timestamp=datetime.now(timezone.utc),
    )


app.include_router(logout_router)
