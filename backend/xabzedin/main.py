import logging
import os

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from xabzedin.api import applications, auth, companies, dashboard, employer, jobs, profiles, referrals
from xabzedin.config import settings
from xabzedin.errors import AppError, app_error_handler
from xabzedin.services.storage import PUBLIC_PREFIX

# Configure structured logging
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(
        logging.getLevelName(settings.log_level)
    ),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
)
logging.basicConfig(level=settings.log_level)

logger = structlog.get_logger()

app = FastAPI(
    title="XabzedIn",
    description="Referral-gated job board for the community network",
    version="1.0.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(AppError, app_error_handler)

# Uploaded avatars and logos
os.makedirs(settings.upload_dir, exist_ok=True)
app.mount(PUBLIC_PREFIX, StaticFiles(directory=settings.upload_dir), name="uploads")

# Include routers
app.include_router(auth.router)
app.include_router(referrals.router)
app.include_router(profiles.router)
app.include_router(companies.router)
app.include_router(jobs.router)
app.include_router(applications.router)
app.include_router(employer.router)
app.include_router(dashboard.router)


@app.on_event("startup")
async def startup():
    logger.info("XabzedIn backend starting up", locale=settings.locale)


@app.on_event("shutdown")
async def shutdown():
    logger.info("XabzedIn backend shutting down")


@app.get("/api/health")
async def health():
    return {"status": "ok", "version": "1.0.0"}
