from typing import Optional
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    DATABASE_URL: str
    JWT_SECRET: str = "change-me"
    JWT_ALGO: str = "HS256"

    # when set, tokens are RS256 and verified against the issuer's JWKS
    AUTH_ISSUER: Optional[str] = None
    AUTH_AUDIENCE: Optional[str] = None

    DB_CONNECT_RETRIES: int = 5
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

settings = Settings()
