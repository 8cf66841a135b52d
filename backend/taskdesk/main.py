# backend/taskdesk/main.py

# FORCE logger module import so handlers attach

import taskdesk.core.logger
from taskdesk.core.logger import logger

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from taskdesk.core.config import settings
from taskdesk.core.database import engine, Base
from taskdesk.core.errors import ServiceError

from taskdesk.core.request_middleware import RequestLoggingMiddleware
from taskdesk.core.error_middleware import ExceptionLoggingMiddleware

import taskdesk.models  # noqa: F401  registers every table on Base.metadata

# ---------------------------------------------------
# Create FastAPI instance FIRST
# ---------------------------------------------------
app = FastAPI(title="Taskdesk API", version="0.1.0")


# ---------------------------------------------------
# CORS MUST be added immediately after app creation
# ---------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------
# Logging middlewares
# ---------------------------------------------------
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(ExceptionLoggingMiddleware)


# ---------------------------------------------------
# Error envelopes
# ---------------------------------------------------
@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    return JSONResponse(status_code=exc.status, content=jsonable_encoder(exc.to_payload()))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    error = ServiceError.validation("Invalid request body", details=jsonable_encoder(exc.errors()))
    return JSONResponse(status_code=error.status, content=error.to_payload())


# ---------------------------------------------------
# IMPORT ROUTERS AFTER APP IS CREATED
# ---------------------------------------------------
from taskdesk.api import admin, lists, tasks, reminders
from taskdesk.api.resources import notes_router, events_router, categories_router


# ---------------------------------------------------
# Include Routers
# ---------------------------------------------------
app.include_router(admin.router)
app.include_router(lists.router)
app.include_router(tasks.router)
app.include_router(reminders.router)
app.include_router(notes_router)
app.include_router(events_router)
app.include_router(categories_router)


@app.on_event("startup")
async def startup_event():
    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Taskdesk backend started with structured JSON logging")


# ---------------------------------------------------
# Health endpoint
# ---------------------------------------------------
@app.get("/health")
async def health_check():
    return {"status": "ok"}
