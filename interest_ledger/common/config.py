"""
Application Settings

Defaults, overlaid by an optional YAML file, overlaid by environment
variables.
"""
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import List, Optional

import yaml

from interest_ledger.common.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path("config") / "settings.yaml"

BATCH_POLICIES = ("abort", "skip")

# Environment variable -> Settings field
ENV_VARS = {
    "DATABASE_URL": "database_url",
    "LOG_LEVEL": "log_level",
    "LOG_FILE": "log_file",
    "EXTRACT_MAX_WORKERS": "extract_max_workers",
    "BATCH_FAILURE_POLICY": "batch_failure_policy",
    "MAX_UPLOAD_FILES": "max_upload_files",
    "PROJECTION_PAGE_LIMIT": "projection_page_limit",
    "CORS_ORIGINS": "cors_origins",
}


@dataclass
class Settings:
    database_url: str = "sqlite:///data/interest_ledger.db"
    log_level: str = "INFO"
    log_file: Optional[str] = "logs/app.log"
    extract_max_workers: int = 4
    batch_failure_policy: str = "abort"
    max_upload_files: int = 10
    projection_page_limit: int = 100
    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:5173", "http://localhost:3000"])

    def __post_init__(self):
        self.extract_max_workers = max(1, int(self.extract_max_workers))
        self.max_upload_files = max(1, int(self.max_upload_files))
        self.projection_page_limit = max(1, int(self.projection_page_limit))
        self.batch_failure_policy = str(self.batch_failure_policy).lower()
        if self.batch_failure_policy not in BATCH_POLICIES:
            raise ValueError(
                f"batch_failure_policy must be one of {BATCH_POLICIES}, got {self.batch_failure_policy!r}"
            )
        if not self.log_file:
            self.log_file = None
        # comma separated when it comes from the environment
        if isinstance(self.cors_origins, str):
            self.cors_origins = [o.strip() for o in self.cors_origins.split(",") if o.strip()]


def _read_yaml(path: Path) -> dict:
    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Settings file {path} must contain a mapping")
    return data


def load_settings(path: Optional[str] = None, environ: Optional[dict] = None) -> Settings:
    """
    Build a Settings instance.

    Args:
        path: YAML file to read. Falls back to $INTEREST_LEDGER_CONFIG,
            then config/settings.yaml; a missing default file is not an error.
        environ: Mapping to read overrides from (defaults to os.environ).
    """
    environ = os.environ if environ is None else environ
    known = {f.name for f in fields(Settings)}
    values = {}

    config_path = path or environ.get("INTEREST_LEDGER_CONFIG")
    if config_path:
        values.update(_read_yaml(Path(config_path)))
    elif DEFAULT_CONFIG_PATH.exists():
        values.update(_read_yaml(DEFAULT_CONFIG_PATH))

    unknown = set(values) - known
    if unknown:
        logger.warning("Ignoring unknown settings keys.", keys=sorted(unknown))
        for key in unknown:
            values.pop(key)

    for env_name, field_name in ENV_VARS.items():
        if env_name in environ:
            values[field_name] = environ[env_name]

    return Settings(**values)


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the process-wide Settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings():
    global _settings
    _settings = None
