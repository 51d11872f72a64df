import logging
import os
from pathlib import Path
from dotenv import load_dotenv

# Load biến môi trường trong .env
BASE_DIR = Path(__file__).resolve().parent
load_dotenv(BASE_DIR / ".env")

class Settings:
    GEMINI_API_KEY: str | None = os.getenv("GEMINI_API_KEY")
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash-image")

    BACKEND_URL: str = os.getenv("BACKEND_URL", "http://127.0.0.1:8000")
    COMPOSE_TIMEOUT: float = float(os.getenv("COMPOSE_TIMEOUT", "300"))  # giây

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

settings = Settings()


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
