"""Settings — layered export settings for BC3 headers, CSV and logging."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

# Environment variable -> Settings field
_ENV_KEYS: dict[str, str] = {
    "BIMBUDGET_PROGRAM": "program",
    "BIMBUDGET_OWNER": "owner",
    "BIMBUDGET_CURRENCY": "currency",
    "BIMBUDGET_GENERAL_EXPENSES": "general_expenses",
    "BIMBUDGET_LOG_LEVEL": "log_level",
    "BIMBUDGET_EXPORT_COMMENT": "export_comment",
}


class Settings(BaseModel):
    """Values written into exported files, plus the log level."""

    program: str = "BIMBUDGET 1.0"
    """Issuing program named in the ``~V`` header."""

    owner: str = "BIMBUDGET"
    """File owner named in the ``~V`` header."""

    currency: str = "EUR"
    general_expenses: float = Field(default=13.0, ge=0.0)
    """General-expenses percentage written to ``~K``."""

    log_level: str = "INFO"
    export_comment: str = ""


def load_settings(project_path: str | Path | None = None) -> Settings:
    """Load merged settings: defaults -> .bimbudget/config.json -> .env -> env vars.

    Unreadable files are skipped with a debug message; invalid values raise
    pydantic's ``ValidationError``.
    """
    root = Path(project_path) if project_path is not None else Path.cwd()
    values: dict[str, Any] = {}

    # 1. .bimbudget/config.json
    config_json = root / ".bimbudget" / "config.json"
    if config_json.is_file():
        try:
            data = json.loads(config_json.read_text(encoding="utf-8"))
            if isinstance(data, dict):
                values.update({k: v for k, v in data.items() if k in Settings.model_fields})
        except (json.JSONDecodeError, OSError):
            logger.debug("Could not read %s", config_json, exc_info=True)

    # 2. .env file
    env_file = root / ".env"
    if env_file.is_file():
        try:
            for line in env_file.read_text(encoding="utf-8").splitlines():
                line = line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                k, v = line.split("=", 1)
                field = _ENV_KEYS.get(k.strip())
                if field is not None:
                    values[field] = v.strip()
        except OSError:
            logger.debug("Could not read %s", env_file, exc_info=True)

    # 3. Environment variables override all
    for key, field in _ENV_KEYS.items():
        env_val = os.environ.get(key)
        if env_val is not None:
            values[field] = env_val

    return Settings(**values)
