"""
CRM Lead Engine API - Main Application.

FastAPI application with CORS enabled for frontend communication.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import __version__
from api.routers import analytics, leads
from services.settings import get_settings

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

# Create FastAPI application
app = FastAPI(
    title="CRM Lead Engine API",
    description="Lead lifecycle (stages, notes, calls, callbacks) and sales dashboard analytics",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", tags=["Health"])
def health_check():
    """
    Health check endpoint.

    Returns the API status and version.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "service": "crm-lead-engine-api"
    }


@app.get("/", tags=["Root"])
def root():
    """
    Root endpoint with API information.
    """
    return {
        "message": "CRM Lead Engine API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


app.include_router(leads.router, prefix="/api/v1", tags=["Leads"])
app.include_router(analytics.router, prefix="/api/v1/analytics", tags=["Analytics"])
