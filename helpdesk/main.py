# helpdesk/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from helpdesk.api.routes import (
    health,
    auth,
    users,
    tickets,
    dashboard,
)

from helpdesk.core.config import settings
from helpdesk.core.logging import setup_logging, RequestIdMiddleware

setup_logging(settings.log_level, json_format=settings.log_json)

app = FastAPI(
    title="Helpdesk",
    version="0.1.0",
    docs_url="/api/docs",
    redoc_url=None,
    openapi_url="/api/openapi.json",
)

# ==== Middlewares ====
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestIdMiddleware)

# ==== API under /api ====
app.include_router(health.router,    prefix="/api",           tags=["health"])
app.include_router(auth.router,      prefix="/api/auth",      tags=["auth"])
app.include_router(users.router,     prefix="/api/users",     tags=["users"])
app.include_router(tickets.router,   prefix="/api/tickets",   tags=["tickets"])
app.include_router(dashboard.router, prefix="/api/dashboard", tags=["dashboard"])
