"""Taskboard FastAPI Application.

Entry point for the HTTP server. The lifespan builds the repository from
settings and wires it into the routers.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from taskboard.api.health import VERSION
from taskboard.api.health import router as health_router
from taskboard.api.v1.deps import set_repository
from taskboard.api.v1.epics import router as epics_router
from taskboard.api.v1.history import router as history_router
from taskboard.api.v1.subtasks import router as subtasks_router
from taskboard.api.v1.tasks import router as tasks_router
from taskboard.config import settings
from taskboard.storage.factory import create_repository

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    repository = create_repository(settings)
    set_repository(repository)
    logger.info("%s started with %s", settings.app_name, repository.counts())

    yield

    set_repository(None)
    logger.info("%s stopped", settings.app_name)


app = FastAPI(
    title=settings.app_name,
    description="Task, epic and subtask tracker with a conflict-free timeline",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)


# Global exception handler: internal details never reach the client
@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    if isinstance(exc, HTTPException):
        raise exc
    logger.error("Unhandled exception on %s %s: %s", request.method, request.url.path, exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error."},
    )


# Routes
app.include_router(health_router)
app.include_router(tasks_router)
app.include_router(epics_router)
app.include_router(subtasks_router)
app.include_router(history_router)


@app.get("/")
async def root():
    return {"name": settings.app_name, "version": VERSION, "status": "running"}
