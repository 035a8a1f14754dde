from __future__ import annotations
import os
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Base .env load first
load_dotenv()

class AppConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # ignore unknown env keys to avoid crashes
    )

    # Environment
    environment: Literal["development", "staging", "production", "test"] = Field(default="development")
    log_level: str = Field(default="INFO")

    # Paths
    data_dir: Path = Field(default=Path(os.getenv("DATA_DIR", "data")))
    logs_dir: Path = Field(default=Path(os.getenv("LOGS_DIR", "data/output")))
    log_file: Path | None = None

    # Parsing policy
    confidence_threshold: float = Field(default=0.6, ge=0.0, le=1.0)
    default_timeframe_days: int = Field(default=30, ge=1)
    strict_mode: bool = Field(default=False)  # disables PDF type self-healing
    pdf_sample_fallback: bool = Field(default=True)
    currency: str = Field(default="KES")

    # Persistence
    store_backend: Literal["memory", "elastic"] = Field(default="memory")
    elastic_cloud_endpoint: str | None = Field(default=os.getenv("ELASTIC_CLOUD_ENDPOINT"))
    elastic_api_key: str | None = Field(default=os.getenv("ELASTIC_API_KEY"))
    elastic_index_transactions: str = Field(default=os.getenv("ELASTIC_INDEX_TRANSACTIONS", "pesasync-transactions"))

    # GCP / Vertex AI categorization
    categorizer_enabled: bool = Field(default=False)
    gcp_project_id: str | None = Field(default=os.getenv("GCP_PROJECT_ID"))
    gcp_location: str = Field(default=os.getenv("GCP_LOCATION", "us-central1"))
    vertex_model: str = Field(default=os.getenv("VERTEX_MODEL", "gemini-2.5-pro"))

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = str(value).upper() if value else "INFO"
        allowed = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"}
        if level not in allowed:
            # Fallback to INFO instead of raising to avoid boot failure
            return "INFO"
        return level

    @field_validator("currency", mode="before")
    @classmethod
    def _normalize_currency(cls, value: str) -> str:
        return str(value).strip().upper() if value else "KES"

    @model_validator(mode="after")
    def _derive_paths_and_ensure_dirs(self) -> "AppConfig":
        # Layered environment loading: .env.<ENVIRONMENT> overrides base
        env_file_variant = Path(f".env.{self.environment}")
        if env_file_variant.exists():
            load_dotenv(dotenv_path=env_file_variant, override=True)
            # Re-read dynamic fields that might be env-driven
            self.gcp_project_id = os.getenv("GCP_PROJECT_ID", self.gcp_project_id)
            self.gcp_location = os.getenv("GCP_LOCATION", self.gcp_location)
            self.vertex_model = os.getenv("VERTEX_MODEL", self.vertex_model)
            self.elastic_cloud_endpoint = os.getenv("ELASTIC_CLOUD_ENDPOINT", self.elastic_cloud_endpoint)
            self.elastic_api_key = os.getenv("ELASTIC_API_KEY", self.elastic_api_key)
            self.elastic_index_transactions = os.getenv(
                "ELASTIC_INDEX_TRANSACTIONS", self.elastic_index_transactions
            )

        if self.log_file is None:
            self.log_file = self.logs_dir / "app.log"

        # Ensure directories exist
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.logs_dir.mkdir(parents=True, exist_ok=True)
        return self

config = AppConfig()
