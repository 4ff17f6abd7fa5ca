"""Main FastAPI application for the image reader backend."""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from core.config import settings, ensure_directories
from core.logging import log
from api import health, recognize
from ocr.tesseract_recognizer import configure_tesseract_cmd

# Ensure directories exist
ensure_directories()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown."""
    # Startup
    log.info("Image reader backend starting up...")
    log.info(f"OCR timeout: {settings.OCR_TIMEOUT_MS} ms, max upload: {settings.MAX_FILE_SIZE_MB} MB")
    configure_tesseract_cmd(settings.TESSERACT_CMD)
    log.info(f"API running on {settings.API_HOST}:{settings.API_PORT}")
    yield
    # Shutdown
    log.info("Image reader backend shutting down...")


# Create FastAPI app
app = FastAPI(
    title="Image Reader Backend",
    description="Image OCR with text repair for read-aloud playback",
    version=health.VERSION,
    lifespan=lifespan,
    docs_url="/docs",  # Swagger UI documentation
    redoc_url="/redoc",  # ReDoc documentation
    openapi_url="/openapi.json",  # OpenAPI schema
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(health.router)
app.include_router(recognize.router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.API_RELOAD,
    )
