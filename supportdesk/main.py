"""FastAPI application entry point for the Support Desk API."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from supportdesk.api.routes.chat import router as chat_router
from supportdesk.api.routes.customers import router as customers_router
from supportdesk.api.routes.dashboard import router as dashboard_router
from supportdesk.api.routes.tickets import router as tickets_router
from supportdesk.config import settings
from supportdesk.core.logging_config import setup_logging
from supportdesk.database import init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.LOG_LEVEL)
    init_db()
    logger.info("Database initialized")
    yield


app = FastAPI(
    title="Support Desk API",
    description="Customer chat with AI escalation, agent ticket queue and admin metrics",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


app.include_router(customers_router)
app.include_router(chat_router)
app.include_router(tickets_router)
app.include_router(dashboard_router)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Hide internal error details from clients."""
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )
