"""
Receipt Scanner backend: FastAPI application entry-point.
"""
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.config import settings
from app.database import Base, engine
from app.errors import ReceiptAppError, receipt_error_handler
from app.pipeline.ocr import configure_tesseract

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(name)-30s  %(levelname)-5s  %(message)s",
)
logger = logging.getLogger(__name__)

# StaticFiles checks the directory at mount time
os.makedirs(settings.UPLOAD_DIR, exist_ok=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: ensure data dir + tables exist
    os.makedirs(settings.DATA_DIR, exist_ok=True)
    # Import models so Base.metadata knows about them
    import app.models  # noqa: F401
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready (%s)", settings.DATABASE_URL)
    configure_tesseract(settings.TESSERACT_CMD)
    yield
    logger.info("Shutting down")


app = FastAPI(
    title="Receipt Scanner",
    description="Receipt photo → OCR → AI structuring → expense records",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(ReceiptAppError, receipt_error_handler)


@app.get("/")
async def root():
    return {"service": "Receipt Scanner", "version": "0.1.0", "status": "running"}


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


app.mount(
    settings.UPLOAD_URL_PREFIX,
    StaticFiles(directory=settings.UPLOAD_DIR),
    name="uploads",
)

# ── Register API router ──────────────────────────────────────────────────
from app.routers.receipts import router as receipts_router  # noqa: E402

app.include_router(receipts_router, prefix="/api", tags=["Receipts"])
