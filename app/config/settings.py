# app/config/settings.py
# Runtime configuration for the API, the reminder job and outbound mail

import os
from typing import List

from dotenv import load_dotenv

load_dotenv()


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Application settings read once from the environment"""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./tasks.db")
    DB_SSLMODE: str = os.getenv("DB_SSLMODE", "require")

    # JWT
    SECRET_KEY: str = os.getenv("SECRET_KEY", "change-me")
    ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_DAYS: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_DAYS", 7))

    # HTTP
    CORS_ORIGINS: List[str] = [
        origin.strip()
        for origin in os.getenv(
            "CORS_ORIGINS",
            "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000",
        ).split(",")
        if origin.strip()
    ]

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Birthday reminder job
    ENABLE_SCHEDULER: bool = _as_bool(os.getenv("ENABLE_SCHEDULER", "true"))
    BIRTHDAY_REMINDER_HOUR: int = int(os.getenv("BIRTHDAY_REMINDER_HOUR", 8))
    BIRTHDAY_REMINDER_MINUTE: int = int(os.getenv("BIRTHDAY_REMINDER_MINUTE", 0))
    BIRTHDAY_REMINDER_DEPARTMENT: str = os.getenv("BIRTHDAY_REMINDER_DEPARTMENT", "DESIGN AND MEDIA")

    # SMTP
    SMTP_HOST: str = os.getenv("SMTP_HOST", "smtp.gmail.com")
    SMTP_PORT: int = int(os.getenv("SMTP_PORT", 587))
    SMTP_USER: str = os.getenv("SMTP_USER", os.getenv("EMAIL_USER", ""))
    SMTP_PASSWORD: str = os.getenv("SMTP_PASSWORD", os.getenv("EMAIL_PASSWORD", ""))
    SMTP_USE_TLS: bool = _as_bool(os.getenv("SMTP_USE_TLS", "true"))
    EMAIL_FROM: str = os.getenv("EMAIL_FROM", SMTP_USER)

    # Invite tokens, keyed by the environment variable that holds them
    INVITE_TOKEN_VARIABLES: List[str] = [
        "ADMIN_INVITE_TOKEN",
        "VP_TECH_TOKEN",
        "VP_FINANCE_TOKEN",
        "VP_COMMUNICATION_TOKEN",
        "VP_DESIGN_TOKEN",
        "VP_HOSPITALITY_TOKEN",
        "HEAD_TECH_TOKEN",
        "HEAD_FINANCE_TOKEN",
        "HEAD_COMMUNICATION_TOKEN",
        "HEAD_DESIGN_TOKEN",
        "HEAD_HOSPITALITY_TOKEN",
    ]

    @classmethod
    def invite_tokens(cls) -> dict:
        """Return {variable name: token} for every invite variable, blank when unset"""
        return {name: os.getenv(name, "") for name in cls.INVITE_TOKEN_VARIABLES}

    @classmethod
    def smtp_configured(cls) -> bool:
        return bool(cls.SMTP_HOST and cls.SMTP_USER and cls.SMTP_PASSWORD)


settings = Settings()
