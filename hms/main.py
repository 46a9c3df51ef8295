from sqlalchemy import text

from hms.core.errors import HmsError
from hms.core.observability import (
    domain_exception_handler,
    http_exception_handler,
    request_logging_middleware,
    setup_observability,
    unhandled_exception_handler,
    validation_exception_handler,
)
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException

from hms.core.config import settings
from hms.db.session import engine
from hms.routers import dashboard, inventory, invoices, reports

app = FastAPI(
    title=settings.app_name,
    version="0.1.0",
    description=(
        "Billing and reporting API for the hotel admin console.\n\n"
        "Every report is computed from the stored payments, expenses, reservations "
        "and invoices at request time. Amounts are rounded to cents once, after summing."
    ),
    swagger_ui_parameters={
        "displayRequestDuration": True,
        "defaultModelsExpandDepth": 1,
    },
    openapi_tags=[
        {"name": "health", "description": "Service status and quick links."},
        {"name": "dashboard", "description": "Hotel KPIs: income, expenses, occupancy and alerts."},
        {"name": "reports", "description": "Daily series, expense categories, CSV export and printable reports."},
        {"name": "invoices", "description": "Invoice search, totals and printable invoices."},
        {"name": "inventory", "description": "Low-stock alerts and stock levels."},
    ],
)

setup_observability()
app.middleware("http")(request_logging_middleware)
app.add_exception_handler(HmsError, domain_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

cors_origins = settings.cors_origins or ["http://localhost:5173"]
allow_all_origins = "*" in cors_origins
env_value = settings.env.lower().strip()
allow_origin_regex = settings.cors_origin_regex

if (
    not allow_origin_regex
    and env_value in {"dev", "development", "staging", "stage"}
):
    # Vite and friends pick a free localhost port per run.
    allow_origin_regex = r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$"

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_all_origins else cors_origins,
    allow_origin_regex=allow_origin_regex,
    allow_credentials=not allow_all_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(dashboard.router)
app.include_router(reports.router)
app.include_router(invoices.router)
app.include_router(inventory.router)


@app.get("/", tags=["health"])
def root():
    return {
        "app": settings.app_name,
        "docs": "/docs",
        "redoc": "/redoc",
        "health": "/health",
        "ready": "/ready",
    }


@app.get("/health", tags=["health"])
def health():
    return {"ok": True}


@app.get("/ready", tags=["health"])
def ready():
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception:
        return {"ok": False}
    return {"ok": True}
