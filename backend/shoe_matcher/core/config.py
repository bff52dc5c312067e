from pathlib import Path
from pydantic_settings import BaseSettings
from typing import Optional

DEFAULT_CATALOGUE_PATH = str(Path(__file__).resolve().parent.parent / "data" / "shoebase.json")


class Settings(BaseSettings):
    # App
    APP_NAME: str = "Shoe Matcher API"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Catalogue
    CATALOGUE_PATH: str = DEFAULT_CATALOGUE_PATH

    # AI (match descriptions)
    LLM_PROVIDER: str = "none"
    REPLICATE_API_TOKEN: Optional[str] = None
    REPLICATE_MODEL: str = "ibm-granite/granite-4.0-h-small"
    OLLAMA_URL: str = "http://localhost:11434/api/generate"
    OLLAMA_MODEL: str = "granite4:latest"
    LLM_TIMEOUT_SECONDS: float = 8.0

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "https://shoematcher.com"]

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
