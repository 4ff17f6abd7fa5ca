"""Configuration management for the image reader backend."""

from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    # API Settings
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    API_RELOAD: bool = True
    
    # Upload Settings
    MAX_FILE_SIZE_MB: int = 20
    
    # OCR Settings
    OCR_TIMEOUT_MS: int = 15000  # Upper bound for a single recognition call
    TESSERACT_CMD: Optional[str] = None  # Path to the tesseract binary; PATH lookup if None
    
    # Speech Settings (forwarded to the speech sink / browser client)
    SPEECH_LANGUAGE: str = "zh-CN"
    SPEECH_RATE: float = 0.85
    
    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "./logs/app.log"
    LOG_ROTATION: str = "10 MB"
    LOG_RETENTION: str = "7 days"
    
    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


# Global settings instance
settings = Settings()


def ensure_directories():
    """Create all required directories if they don't exist."""
    directories = [
        Path(settings.LOG_FILE).parent,
    ]
    
    for directory in directories:
        Path(directory).mkdir(parents=True, exist_ok=True)
