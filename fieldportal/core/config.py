# fieldportal/core/config.py
from __future__ import annotations
from typing import Optional, List
from urllib.parse import quote_plus
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from starlette.middleware.cors import CORSMiddleware


def _split_csv(raw: str) -> List[str]:
    return [s.strip() for s in (raw or "").split(",") if s.strip()]


class Settings(BaseSettings):
    # Pydantic Settings
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",          # ignore unknown env keys safely
        case_sensitive=False,
        populate_by_name=True,
    )

    # --- App ---
    app_name: str = "Field Portal"
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # --- Security / JWT ---
    secret_key: str = Field("dev-super-secret-change-me", alias="SECRET_KEY")
    algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(60 * 24, alias="ACCESS_EXPIRE_MIN")

    # --- Seed (first admin, allow-list, shared password) ---
    admin_email: str = Field("admin@example.com", alias="ADMIN_EMAIL")
    master_password: str = Field("ChangeMe123!", alias="MASTER_PASSWORD")
    approved_emails_csv: str = Field("", alias="APPROVED_EMAILS")

    # --- Back-office (SQLAdmin) ---
    admin_session_secret: str = Field("super-secret-key", alias="ADMIN_SECRET")

    # --- Uploads / blob storage ---
    upload_dir: str = Field("resources/uploads", alias="UPLOAD_DIR")
    upload_url_prefix: str = Field("/uploads", alias="UPLOAD_URL_PREFIX")
    blob_upload_url: Optional[str] = Field(None, alias="BLOB_UPLOAD_URL")  # e.g. https://blob.example.com/api
    blob_token: Optional[str] = Field(None, alias="BLOB_TOKEN")
    blob_timeout_seconds: float = Field(15.0, alias="BLOB_TIMEOUT_SECONDS")

    # --- Database ---
    database_url: Optional[str] = Field(None, alias="DATABASE_URL")  # full URL override
    db_user: str = Field("fieldportal", alias="DB_USER")
    db_password: str = Field("fieldportalpw", alias="DB_PASSWORD")
    db_host: str = Field("127.0.0.1", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_name: str = Field("fieldportal_db", alias="DB_NAME")

    # --- CORS ---
    # Comma-separated in .env
    allowed_origins_csv: str = Field(
        "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5000",
        alias="ALLOWED_ORIGINS",
    )

    @field_validator("allowed_origins_csv", "approved_emails_csv", mode="before")
    @classmethod
    def _join_list(cls, v):
        # Accept a JSON array too; keep the comma-separated form.
        if v is None:
            return ""
        if isinstance(v, (list, tuple)):
            return ",".join(str(s) for s in v)
        return v

    @property
    def allowed_origins(self) -> List[str]:
        return _split_csv(self.allowed_origins_csv)

    @property
    def approved_emails(self) -> List[str]:
        return [e.lower() for e in _split_csv(self.approved_emails_csv)]

    @property
    def sqlalchemy_url(self) -> str:
        if self.database_url:
            return self.database_url
        return (
            "postgresql+psycopg2://"
            f"{self.db_user}:{quote_plus(self.db_password)}@"
            f"{self.db_host}:{self.db_port}/{self.db_name}"
        )

    @property
    def blob_enabled(self) -> bool:
        return bool(self.blob_upload_url)


settings = Settings()

# --- Module-level constants (imported by auth/security call sites) ---
SECRET_KEY = settings.secret_key
ALGORITHM = settings.algorithm
ACCESS_TOKEN_EXPIRE_MINUTES = settings.access_token_expire_minutes


def configure_cors(app):
    http_origins = [o for o in settings.allowed_origins if o.startswith("http")]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=http_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
