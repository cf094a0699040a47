"""
Relay configuration, read from the environment and an optional `.env` file.

Every field can be overridden by an environment variable of the same name.
"""
import secrets
from typing import List
from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Settings for the HTTP API, the WebSocket relay and MongoDB."""

    APP_NAME: str = "Presence Relay API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 4040

    # Session tokens. A random key only survives one process, so set it in production.
    SECRET_KEY: str = secrets.token_urlsafe(32)
    ALGORITHM: str = "HS256"
    SESSION_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    SESSION_COOKIE_NAME: str = "token"
    SESSION_COOKIE_SECURE: bool = True
    SESSION_COOKIE_SAMESITE: str = "none"
    PASSWORD_MIN_LENGTH: int = 8

    # Storage
    MONGODB_URL: str = "mongodb://localhost:27017"
    DATABASE_NAME: str = "presence_relay"
    USE_IN_MEMORY_STORE: bool = False
    MESSAGE_STORE_TIMEOUT_SECONDS: float = 10.0
    HISTORY_MAX_MESSAGES: int = 500

    # Heartbeat: probe every interval, evict if no pong within timeout
    HEARTBEAT_INTERVAL_SECONDS: float = 5.0
    HEARTBEAT_TIMEOUT_SECONDS: float = 1.0
    HEARTBEAT_CLOSE_CODE: int = 4408

    # Browser clients connect with credentials, so origins must be explicit
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]
    ALLOWED_METHODS: List[str] = ["GET", "POST", "OPTIONS"]
    ALLOWED_HEADERS: List[str] = ["*"]

    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @field_validator("SECRET_KEY")
    def check_secret_key(cls, v):
        if len(v) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters long")
        return v

    @field_validator("MONGODB_URL")
    def check_mongodb_url(cls, v):
        if not v.startswith(("mongodb://", "mongodb+srv://")):
            raise ValueError("MONGODB_URL must be a mongodb:// or mongodb+srv:// URL")
        return v

    @field_validator("PASSWORD_MIN_LENGTH")
    def check_password_min_length(cls, v):
        if v < 6:
            raise ValueError("PASSWORD_MIN_LENGTH must be at least 6")
        return v

    @field_validator("LOG_LEVEL")
    def check_log_level(cls, v):
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown LOG_LEVEL {v}")
        return v

    @model_validator(mode="after")
    def check_heartbeat_timing(self):
        """The acknowledgement deadline must fit inside one probe interval."""
        if self.HEARTBEAT_INTERVAL_SECONDS <= 0 or self.HEARTBEAT_TIMEOUT_SECONDS <= 0:
            raise ValueError("Heartbeat interval and timeout must be positive")
        if self.HEARTBEAT_TIMEOUT_SECONDS >= self.HEARTBEAT_INTERVAL_SECONDS:
            raise ValueError("HEARTBEAT_TIMEOUT_SECONDS must be lower than HEARTBEAT_INTERVAL_SECONDS")
        return self

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


settings = Settings()
