from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parent.parent
DEFAULT_SQLITE_PATH = BASE_DIR / "membership.db"
DEFAULT_SQLITE_URL = f"sqlite:///{DEFAULT_SQLITE_PATH}"


def _env(name: str, *aliases: str) -> AliasChoices:
    # Original deployment variable names are accepted next to the APP_ ones
    return AliasChoices(f"APP_{name}", *aliases)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_prefix="APP_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    log_level: str = Field(default="INFO")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8080, validation_alias=_env("PORT", "PORT"))
    # Comma-separated values or '*' for all
    cors_origins: str = Field(default="*")

    database_url: str = Field(
        default=DEFAULT_SQLITE_URL,
        validation_alias=_env("DATABASE_URL", "DB_URI"),
        description="SQLAlchemy database URL",
    )

    # QR storage
    qr_storage_provider: str = Field(default="s3", description="s3|memory")
    s3_bucket: str = Field(default="datu-membership", validation_alias=_env("S3_BUCKET", "S3_BUCKET"))
    aws_region: Optional[str] = Field(default=None, validation_alias=_env("AWS_REGION", "AWS_REGION"))

    # Outbound email
    mail_provider: str = Field(default="mailgun", description="mailgun|fake")
    mailgun_api_key: Optional[str] = Field(default=None, validation_alias=_env("MAILGUN_API_KEY", "MAILGUN_API_KEY"))
    mailgun_domain: str = Field(default="mg.designatucsd.org", validation_alias=_env("MAILGUN_DOMAIN", "MAILGUN_DOMAIN"))
    mailgun_base_url: str = Field(default="https://api.mailgun.net")
    from_email: str = Field(default="membership@designatucsd.org")
    mailing_list: str = Field(default="membership@mg.designatucsd.org")
    email_subject: str = Field(default="Design at UCSD Membership")

    # Attendance sheet
    attendance_backend: str = Field(default="google", description="google|memory")
    spreadsheet_id: Optional[str] = Field(default=None, validation_alias=_env("SPREADSHEET_ID", "SPREADSHEET_ID"))
    worksheet_name: Optional[str] = Field(default=None, description="Defaults to the first worksheet")
    google_client_id: Optional[str] = Field(default=None, validation_alias=_env("GOOGLE_CLIENT_ID", "CLIENT_ID"))
    google_client_secret: Optional[str] = Field(
        default=None, validation_alias=_env("GOOGLE_CLIENT_SECRET", "CLIENT_SECRET")
    )
    checkin_marker: str = Field(default="yes")
    serialize_checkins: bool = Field(
        default=False, description="Run read-decide-write of a check-in under a per-spreadsheet lock"
    )
    timezone: str = Field(default="America/Los_Angeles")

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown timezone: {value!r}") from exc
        return value

    @property
    def cors_origins_list(self) -> List[str]:
        s = (self.cors_origins or "").strip()
        if not s or s == "*":
            return ["*"]
        return [part.strip() for part in s.split(",") if part.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
