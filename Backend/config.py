"""
Application settings loaded from environment variables (and a .env file).
"""
import os
import logging
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_SECRET = "dev-secret-change-me"
DEFAULT_CORS_ORIGINS = "http://localhost:5173,http://localhost:3000,http://localhost"
DEFAULT_BCRYPT_ROUNDS = 12


@dataclass
class Settings:
    mongo_uri: str | None = None
    mongo_db_name: str = "AppointmentsDB"
    token_secret: str = DEFAULT_TOKEN_SECRET
    token_algorithm: str = "HS256"
    token_expire_days: int = 7
    bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS
    cors_origins: List[str] = field(default_factory=lambda: DEFAULT_CORS_ORIGINS.split(","))
    port: int = 8000

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the current process environment."""
        settings = cls(
            mongo_uri=os.getenv("MONGO_URI"),
            mongo_db_name=os.getenv("MONGO_DB_NAME", "AppointmentsDB"),
            token_secret=os.getenv("TOKEN_SECRET", DEFAULT_TOKEN_SECRET),
            token_algorithm=os.getenv("TOKEN_ALGORITHM", "HS256"),
            token_expire_days=int(os.getenv("TOKEN_EXPIRE_DAYS", 7)),
            bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", DEFAULT_BCRYPT_ROUNDS)),
            cors_origins=[
                origin.strip()
                for origin in os.getenv("CORS_ORIGINS", DEFAULT_CORS_ORIGINS).split(",")
                if origin.strip()
            ],
            port=int(os.getenv("PORT", 8000)),
        )
        if settings.token_secret == DEFAULT_TOKEN_SECRET:
            logger.warning("TOKEN_SECRET not set; using the development secret.")
        return settings
