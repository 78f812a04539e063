"""
Entregas ZAP - Backend API
FastAPI + SQLModel + Supabase (one dashboard session per login)
"""
from dotenv import load_dotenv
load_dotenv()  # Load .env before any other imports

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from entregas_zap import __version__
from entregas_zap.api.v1 import (
    auth,
    condominiums,
    deliveries,
    employees,
    messages,
    pickups,
    reminders,
    residents,
    sessions,
)
from entregas_zap.config import settings
from entregas_zap.infrastructure.database import init_db
from entregas_zap.workflows.dashboard import SessionRegistry

# Setup structured logging
structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.JSONRenderer()
    ]
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    # Supabase already has the tables; create them only for local databases
    if settings.create_tables:
        await init_db()

    logger.info("backend_started", default_webhook=settings.default_webhook_url, timezone=settings.condo_timezone)

    yield

    logger.info("backend_stopping", open_sessions=len(app.state.sessions))


app = FastAPI(
    title="Entregas ZAP API",
    description="Gestão de encomendas de condomínio com avisos por WhatsApp",
    version=__version__,
    lifespan=lifespan
)
app.state.sessions = SessionRegistry()

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_origin_regex=r"https://.*\.vercel\.app",  # All Vercel preview deployments
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(auth.router, prefix="/api/v1/auth", tags=["auth"])
app.include_router(condominiums.router, prefix="/api/v1/condominiums", tags=["condominiums"])
app.include_router(residents.router, prefix="/api/v1/residents", tags=["residents"])
app.include_router(employees.router, prefix="/api/v1/employees", tags=["employees"])
app.include_router(deliveries.router, prefix="/api/v1/deliveries", tags=["deliveries"])
app.include_router(pickups.router, prefix="/api/v1/pickups", tags=["pickups"])
app.include_router(reminders.router, prefix="/api/v1/reminders", tags=["reminders"])
app.include_router(messages.router, prefix="/api/v1/messages", tags=["messages"])
app.include_router(sessions.router, prefix="/api/v1/sessions", tags=["sessions"])


@app.get("/health")
async def health_check():
    return {"status": "healthy", "service": "entregas-zap-backend"}


@app.get("/")
async def root():
    return {"message": "Entregas ZAP API", "docs": "/docs"}
