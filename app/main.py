from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from dotenv import load_dotenv
from datetime import datetime, timezone
from sqlmodel import Session
import logging

# Load environment variables as early as possible
load_dotenv()

from .config import settings
from .database import DOCTOR_ROSTER, create_db_and_tables, engine, seed_doctors
from .exceptions import http_exception_handler, validation_exception_handler
from .middleware import ErrorHandlingMiddleware, LoggingMiddleware, SecurityMiddleware
from .infrastructure.persistence.memory.store import InMemoryStore
from .routers import appointments_router, doctors_router, prescriptions_router
from .schemas.common.common import HealthResponse

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format=settings.LOG_FORMAT
)
logger = logging.getLogger(__name__)


def _init_memory_store() -> InMemoryStore:
    store = InMemoryStore()
    if settings.SEED_DOCTORS:
        for entry in DOCTOR_ROSTER:
            store.add_user(role="doctor", **entry)
        logger.info(f"Seeded {len(DOCTOR_ROSTER)} doctors into memory store")
    return store


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"Starting {settings.APP_NAME} ({settings.STORAGE_BACKEND} storage)...")
    app.state.db_init_ok = True
    app.state.db_init_error = None
    if settings.STORAGE_BACKEND == "memory":
        app.state.memory_store = _init_memory_store()
    else:
        try:
            create_db_and_tables()
            if settings.SEED_DOCTORS:
                with Session(engine) as session:
                    seed_doctors(session)
            logger.info("Database initialized successfully")
        except Exception as e:
            # Do not crash the app; report via health endpoint
            app.state.db_init_ok = False
            app.state.db_init_error = str(e)
            logger.exception("Database initialization failed")
    if not settings.secret_key_configured:
        logger.warning("JWT_SECRET_KEY is not set; every authenticated request will be rejected")
    yield
    # Shutdown
    logger.info(f"Shutting down {settings.APP_NAME}...")

# Initialize FastAPI
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
    docs_url=("/docs" if settings.DOCS_ENABLED else None),
    redoc_url=("/redoc" if settings.DOCS_ENABLED else None),
    openapi_url=("/openapi.json" if settings.DOCS_ENABLED else None)
)

# Add custom exception handlers
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)

# Add middleware
app.add_middleware(ErrorHandlingMiddleware)
app.add_middleware(LoggingMiddleware)
app.add_middleware(SecurityMiddleware)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(appointments_router.router)
app.include_router(prescriptions_router.router)
app.include_router(doctors_router.router)
app.include_router(doctors_router.legacy_router)

# Health check endpoint
@app.get("/api/health", response_model=HealthResponse)
def health_check():
    return HealthResponse(
        message=f"{settings.APP_NAME} is running",
        status="healthy" if getattr(app.state, "db_init_ok", True) else "degraded",
        service=settings.APP_NAME,
        version=settings.APP_VERSION,
        timestamp=datetime.now(timezone.utc).isoformat(),
        database={
            "backend": settings.STORAGE_BACKEND,
            "ok": getattr(app.state, "db_init_ok", True),
            "error": getattr(app.state, "db_init_error", None),
        },
    )


def run():
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        workers=1,
        log_level=settings.LOG_LEVEL.lower()
    )


if __name__ == "__main__":
    run()
