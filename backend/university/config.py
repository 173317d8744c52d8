"""Application settings and validation."""

import os
from pathlib import Path

BASE = Path(__file__).resolve().parent.parent


class Settings:
    ENV: str
    DATABASE_URL: str
    DB_ECHO: bool
    LOG_LEVEL: str
    ALLOW_DEV_CORS: bool
    CORS_ORIGINS: list
    DEFAULT_PAGE_SIZE: int
    MAX_PAGE_SIZE: int
    PASSING_GRADE: float

    def __init__(self):
        self.ENV = os.getenv("ENV", "dev").lower()
        self.DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE / 'university.db'}")
        self.DB_ECHO = os.getenv("DB_ECHO", "false").lower() == "true"
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self.ALLOW_DEV_CORS = os.getenv("ALLOW_DEV_CORS", "true").lower() == "true"
        self.CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
        self.DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", "10"))
        self.MAX_PAGE_SIZE = int(os.getenv("MAX_PAGE_SIZE", "100"))
        self.PASSING_GRADE = float(os.getenv("PASSING_GRADE", "6"))
        self._validate()

    def _validate(self):
        if self.DEFAULT_PAGE_SIZE < 1 or self.MAX_PAGE_SIZE < 1:
            raise RuntimeError("DEFAULT_PAGE_SIZE and MAX_PAGE_SIZE must be positive")
        if self.DEFAULT_PAGE_SIZE > self.MAX_PAGE_SIZE:
            raise RuntimeError("DEFAULT_PAGE_SIZE must not exceed MAX_PAGE_SIZE")
        if not 0 <= self.PASSING_GRADE <= 10:
            raise RuntimeError("PASSING_GRADE must be between 0 and 10")
        if self.ENV != "dev" and self.ALLOW_DEV_CORS and "*" in self.CORS_ORIGINS:
            raise RuntimeError("CORS_ORIGINS must list explicit origins in non-dev environments")


settings = Settings()
