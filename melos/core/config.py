"""
Configuration loading with schema validation.

Settings come from config/settings.yaml (path overridable with
MELOS_CONFIG_FILE), with ${VAR} / ${VAR:default} placeholders resolved
from the environment after .env is loaded. A missing file means all
defaults. The resulting Settings object is frozen: it is built once at
startup and handed to the application factory.
"""

import os
import secrets
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

from ..utils.exceptions import ConfigError
from ..utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_FILE = Path("config") / "settings.yaml"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class AppSettings(_Frozen):
    name: str = "Melo's Pizza"
    version: str = "1.0.0"
    environment: str = "development"


class ServerSettings(_Frozen):
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])


class AuthSettings(_Frozen):
    secret_key: str = ""
    token_ttl_seconds: int = Field(default=3600, gt=0)
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)


class StorageSettings(_Frozen):
    data_dir: Path = Path("data")
    lock_timeout_seconds: float = Field(default=10.0, gt=0)


class LoggingSettings(_Frozen):
    level: str = "INFO"
    format: str = "json"
    file_path: Optional[str] = None
    max_bytes: int = 10485760
    backup_count: int = 5


class StorefrontSettings(_Frozen):
    whatsapp_phone: str = "573124674602"
    api_base_url: str = "http://localhost:8000"


class Settings(_Frozen):
    app: AppSettings = Field(default_factory=AppSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    storefront: StorefrontSettings = Field(default_factory=StorefrontSettings)

    @property
    def is_production(self) -> bool:
        return self.app.environment.strip().lower() == "production"


def _substitute_env_vars(value: Any) -> Any:
    """Recursively substitute ${VAR} and ${VAR:default} placeholders"""
    if isinstance(value, str):
        if value.startswith("${") and value.endswith("}"):
            var_expr = value[2:-1]
            if ":" in var_expr:
                var_name, default = var_expr.split(":", 1)
                return os.getenv(var_name.strip(), default.strip())
            return os.getenv(var_expr, value)
    elif isinstance(value, dict):
        return {k: _substitute_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_substitute_env_vars(item) for item in value]
    return value


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to read settings from {path}: {e}")
    if not isinstance(raw, dict):
        raise ConfigError(f"Settings file {path} must contain a mapping")
    return _substitute_env_vars(raw)


def _resolve_secret(settings: Settings) -> Settings:
    if settings.auth.secret_key:
        return settings
    if settings.is_production:
        raise ConfigError("MELOS_SECRET_KEY must be set in production to sign bearer tokens.")
    logger.warning(
        "No signing key configured; using an ephemeral key, tokens will not survive a restart",
        environment=settings.app.environment,
    )
    auth = settings.auth.model_copy(update={"secret_key": secrets.token_urlsafe(32)})
    return settings.model_copy(update={"auth": auth})


def load_settings(path: Optional[Path] = None, overrides: Optional[Dict[str, Any]] = None) -> Settings:
    """
    Build the process-wide Settings.

    overrides is a nested mapping merged over the file contents (per
    section), used by tests and embedding code.
    """
    load_dotenv()

    config_path = Path(path or os.getenv("MELOS_CONFIG_FILE") or DEFAULT_CONFIG_FILE)
    data: Dict[str, Any] = _read_yaml(config_path) if config_path.exists() else {}

    for section, values in (overrides or {}).items():
        if isinstance(values, dict):
            merged = dict(data.get(section) or {})
            merged.update(values)
            data[section] = merged
        else:
            data[section] = values

    try:
        settings = Settings(**data)
    except ValueError as e:
        raise ConfigError(f"Invalid settings: {e}")
    return _resolve_secret(settings)
