"""
Application settings
"""
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./data/receipts.db"

    # Logging / SQL echo
    DEBUG: bool = False

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # File storage
    DATA_DIR: str = "./data"
    UPLOAD_DIR: str = "./data/uploads"
    UPLOAD_URL_PREFIX: str = "/uploads"

    # OCR (Tesseract)
    OCR_LANGUAGE: str = "eng"
    OCR_TIMEOUT_SECONDS: float = 60.0
    TESSERACT_CMD: Optional[str] = None

    # Structuring model (Gemini)
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.0-flash"
    GEMINI_TIMEOUT_SECONDS: float = 60.0

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
