"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field


CONFIG_FILE = "config.yaml"
ENV_PREFIX = "JKNM_"


class Settings(BaseModel):
    app_name:        str = "jknm"
    db_url:          str = "sqlite:///jknm.db"
    base_url:        str = Field(default="https://www.jknm.si/novica/", description="Permalink base for index records")
    articles_json:   Optional[str] = Field(default=None, description="Block-JSON export of published articles")
    markdown_dir:    Optional[str] = Field(default=None, description="Directory of <legacy id>.md exports")
    csv_path:        Optional[str] = Field(default=None, description="CSV export of the oldest articles")
    index_name:      str = Field(default="articles", description="Search index name")
    algolia_app_id:  Optional[str] = None
    algolia_api_key: Optional[str] = None
    max_workers:     int = Field(default=4,    ge=1, description="Concurrent per-article conversions")
    fail_fast:       bool = Field(default=False,     description="Abort on the first per-record failure")
    index_retries:   int = Field(default=3,    ge=1, description="Attempts per search index request")
    index_batch_size: int = Field(default=1000, ge=1, description="Records per search index batch request")
    http_timeout:    float = Field(default=30.0, gt=0, description="Search index request timeout in seconds")
    log_level:       str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then JKNM_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e

    for name in Settings.model_fields:
        if val := os.getenv(f"{ENV_PREFIX}{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return Settings(**data)
    except ValueError as e:
        raise ValueError(f"Invalid settings: {e}") from e
