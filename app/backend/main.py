"""
FastAPI application for the PDF rule validation service.

Provides endpoints for:
- Validating an uploaded PDF against natural-language rules
- Health and API key checks
- Serving the static frontend, when present
"""

import logging

from contextlib import asynccontextmanager

from fastapi import FastAPI, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

# Handle both package imports (when running as module) and standalone imports (uvicorn main:app)
try:
    from . import __version__
    from .config import get_settings
    from .routers import health, validate
    from .services.ai import get_ai_service
    from .services.pdf_service import get_pdf_service
    from .services.uploads import ensure_upload_dir
except ImportError:
    import sys
    from pathlib import Path
    # Add parent directory to path for standalone imports
    backend_dir = Path(__file__).parent
    if str(backend_dir) not in sys.path:
        sys.path.insert(0, str(backend_dir))
    from config import get_settings
    from routers import health, validate
    from services.ai import get_ai_service
    from services.pdf_service import get_pdf_service
    from services.uploads import ensure_upload_dir

    __version__ = "1.0.0"

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    logger.info("Starting PDF Rule Validator...")
    upload_dir = ensure_upload_dir(settings.upload_dir)
    # Initialize services on startup
    get_pdf_service()
    ai_service = get_ai_service()
    logger.info("Model: %s", ai_service.model)
    logger.info("Upload directory: %s", upload_dir.resolve())
    logger.info("Groq API key configured: %s", ai_service.api_key_configured)
    logger.info("Services initialized successfully")
    yield
    logger.info("Shutting down PDF Rule Validator...")


# Create FastAPI application
app = FastAPI(
    title="PDF Rule Validator API",
    description="Check PDF documents against natural-language rules using an LLM",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Include Routers
# =============================================================================

app.include_router(health.router)
app.include_router(validate.router)


# =============================================================================
# Exception Handlers
# =============================================================================


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request, exc: StarletteHTTPException):
    """Render HTTP errors as {"error": message}."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request, exc: RequestValidationError):
    """Handle malformed requests."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request"},
    )


# =============================================================================
# Static Frontend
# =============================================================================

# Mounted last so API routes take precedence
if settings.frontend_dir.is_dir():
    app.mount(
        "/",
        StaticFiles(directory=settings.frontend_dir, html=True),
        name="frontend",
    )
else:
    logger.info("Frontend directory %s not found, static files disabled", settings.frontend_dir)
