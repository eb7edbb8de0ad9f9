"""Main FastAPI application."""
import asyncio
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from sqlalchemy import inspect

from app.core.config import settings
from app.core.logging import setup_logging, get_logger
from app.core.database import engine
from app.api.v1 import router as v1_router
from app.models import tenant, user, order, order_line_item  # Force models to register with Base
from app.tasks.queue import InMemoryTaskQueue, RedisTaskQueue
from app.tasks.worker import InvoiceWorker


# Setup logging
setup_logging(settings.DEBUG)
logger = get_logger(__name__)

REQUIRED_TABLES = ["tenants", "users", "orders", "order_line_items"]


async def check_schema() -> None:
    """Log missing tables; migrations are run separately with Alembic."""
    try:
        async with engine.connect() as conn:
            existing_tables = await conn.run_sync(
                lambda sync_conn: inspect(sync_conn).get_table_names()
            )
    except Exception as e:
        logger.error(f"Database schema check failed: {e}")
        return

    missing = [t for t in REQUIRED_TABLES if t not in existing_tables]
    if missing:
        logger.error(f"DANGER: Database is missing tables {missing}. Run 'alembic upgrade head'.")
    else:
        logger.info("Database integrity check passed.")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info(f"Starting {settings.APP_NAME}")
    logger.info(f"Debug mode: {settings.DEBUG}")

    await check_schema()

    worker_task = None
    stop_event = asyncio.Event()
    if settings.REDIS_URL:
        queue = RedisTaskQueue(settings.REDIS_URL, settings.INVOICE_QUEUE_NAME)
        await queue.connect()
        logger.info("Invoice tasks go to Redis; run 'python -m app.tasks.worker' to process them")
    else:
        queue = InMemoryTaskQueue()
        worker_task = asyncio.create_task(InvoiceWorker(queue).run_forever(stop_event))
        logger.warning("REDIS_URL not set. Invoice tasks run in-process and are lost on restart.")
    app.state.task_queue = queue

    yield

    logger.info(f"Shutting down {settings.APP_NAME}")
    stop_event.set()
    if worker_task is not None:
        await worker_task
    if isinstance(queue, RedisTaskQueue):
        await queue.disconnect()
    await engine.dispose()


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="Multi-tenant order management API",
    version="1.0.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(v1_router, prefix="/api")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc):
    """Log validation errors for debugging 422s."""
    logger.error(f"Validation error: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={"detail": jsonable_encoder(exc.errors())},
    )


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": settings.APP_NAME}


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": settings.APP_NAME,
        "version": "1.0.0",
        "docs": "/api/docs",
    }
