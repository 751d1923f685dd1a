"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv


def _env(key: str, default: str = "") -> str:
    return os.environ.get(key, default)


def _env_int(key: str, default: int) -> int:
    raw = _env(key)
    return int(raw) if raw else default


def _env_float(key: str, default: float) -> float:
    raw = _env(key)
    return float(raw) if raw else default


def _env_bool(key: str, default: bool = False) -> bool:
    raw = _env(key)
    if not raw:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class CosmosConfig:
    endpoint: str = field(default_factory=lambda: _env("COSMOS_ENDPOINT"))
    key: str = field(default_factory=lambda: _env("COSMOS_KEY"))
    database: str = field(default_factory=lambda: _env("COSMOS_DATABASE", "bidflow"))


@dataclass(frozen=True)
class OpenAIConfig:
    endpoint: str = field(default_factory=lambda: _env("AZURE_OPENAI_ENDPOINT"))
    deployment: str = field(default_factory=lambda: _env("AZURE_OPENAI_DEPLOYMENT"))
    api_key: str = field(default_factory=lambda: _env("AZURE_OPENAI_API_KEY"))
    timeout_seconds: float = field(
        default_factory=lambda: _env_float("GENERATION_TIMEOUT_SECONDS", 120.0)
    )
    auto_review: bool = field(default_factory=lambda: _env_bool("GENERATION_AUTO_REVIEW"))


@dataclass(frozen=True)
class StorageConfig:
    """Microsoft Graph drive that holds the version artifacts."""

    base_url: str = field(
        default_factory=lambda: _env("GRAPH_BASE_URL", "https://graph.microsoft.com/v1.0")
    )
    site_id: str = field(default_factory=lambda: _env("SHAREPOINT_SITE_ID"))
    root_folder: str = field(default_factory=lambda: _env("SHAREPOINT_ROOT_FOLDER"))
    scope: str = field(
        default_factory=lambda: _env("GRAPH_SCOPE", "https://graph.microsoft.com/.default")
    )
    timeout_seconds: float = field(
        default_factory=lambda: _env_float("STORAGE_TIMEOUT_SECONDS", 30.0)
    )


@dataclass(frozen=True)
class EntraConfig:
    tenant_id: str = field(default_factory=lambda: _env("ENTRA_TENANT_ID"))
    client_id: str = field(default_factory=lambda: _env("ENTRA_CLIENT_ID"))
    client_secret: str = field(default_factory=lambda: _env("ENTRA_CLIENT_SECRET"))

    @property
    def authority(self) -> str:
        return f"https://login.microsoftonline.com/{self.tenant_id}"

    @property
    def has_client_secret(self) -> bool:
        return bool(self.tenant_id and self.client_id and self.client_secret)


@dataclass(frozen=True)
class WorkflowConfig:
    """Tunables for the review state machine and the version chain."""

    review_quorum: int = field(default_factory=lambda: _env_int("REVIEW_QUORUM", 2))
    version_max_attempts: int = field(
        default_factory=lambda: _env_int("VERSION_MAX_ATTEMPTS", 3)
    )
    orphan_artifact_seconds: int = field(
        default_factory=lambda: _env_int("ORPHAN_ARTIFACT_SECONDS", 300)
    )


@dataclass(frozen=True)
class AppConfig:
    env: str = field(default_factory=lambda: _env("APP_ENV", "development"))
    secret_key: str = field(default_factory=lambda: _env("APP_SECRET_KEY"))
    log_level: str = field(default_factory=lambda: _env("LOG_LEVEL", "INFO"))

    @property
    def is_development(self) -> bool:
        return self.env == "development"


@dataclass(frozen=True)
class Settings:
    cosmos: CosmosConfig = field(default_factory=CosmosConfig)
    openai: OpenAIConfig = field(default_factory=OpenAIConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    entra: EntraConfig = field(default_factory=EntraConfig)
    workflow: WorkflowConfig = field(default_factory=WorkflowConfig)
    app: AppConfig = field(default_factory=AppConfig)


def load_settings() -> Settings:
    """Read ``.env`` (if present) and build the settings tree."""
    load_dotenv()
    return Settings()
