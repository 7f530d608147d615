# === FILE: neoscout/config.py ===
"""
Loading and validation of the NeoScout configuration.
Pydantic describes the schema; YAML or JSON files and CLI overrides feed it.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from neoscout.crawler.models import Origin

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/112.0.0.0 Safari/537.36"
)
DEFAULT_SIZE = 1024
MIRROR_ROOT = Path("neocities_sites")


class ScoutConfig(BaseModel):
    """Settings for one discovery / size audit / mirror run."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    site: str = Field(..., description="Neocities username, host name or site URL.")
    crawl_depth: int = Field(2, ge=0, description="Maximum link depth of the bounded crawl.")
    concurrency: int = Field(8, ge=1, description="Worker pool size for crawl, probes and downloads.")
    user_agent: str = Field(DEFAULT_USER_AGENT, min_length=1, description="User-Agent header.")
    timeout: float = Field(10.0, gt=0, description="Timeout of one request or probe (seconds).")
    retry_times: int = Field(2, ge=0, description="Retries on 5xx/429 and connection errors.")
    max_pages: int = Field(500, ge=1, description="Hard cap on pages fetched by the crawl.")
    default_size: int = Field(DEFAULT_SIZE, ge=0, description="Bytes assumed when a size is unknown.")
    top_n: int = Field(10, ge=1, description="Length of the largest-files ranking.")
    output_dir: Optional[Path] = Field(None, description="Mirror directory (neocities_sites/<host> if unset).")

    @field_validator("site")
    def _site_resolves(cls, v: str) -> str:
        # OriginError is a ValueError, so pydantic reports it as a validation error
        Origin.from_identifier(v)
        return v.strip()

    @property
    def origin(self) -> Origin:
        return Origin.from_identifier(self.site)

    @property
    def mirror_dir(self) -> Path:
        if self.output_dir is not None:
            return Path(self.output_dir).expanduser()
        return MIRROR_ROOT / self.origin.host.replace(":", "_")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of YAML must be a mapping, got {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of JSON must be a mapping, got {type(data).__name__}")
    return data


def read_config_file(path: Union[str, Path]) -> Dict[str, Any]:
    """Read a YAML or JSON config file into a plain mapping (not validated yet)."""
    path_obj = Path(path).expanduser().resolve()
    if not path_obj.is_file():
        raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return _read_yaml(path_obj)
    if suffix == ".json":
        return _read_json(path_obj)
    raise ValueError(f"Unsupported config format: {suffix}")


def build_config(data: Optional[Dict[str, Any]] = None, **overrides: Any) -> ScoutConfig:
    """Merge file data with overrides (``None`` values are ignored) and validate."""
    merged = dict(data or {})
    merged.update({k: v for k, v in overrides.items() if v is not None})
    return ScoutConfig(**merged)


def load_config(path: Union[str, Path], **overrides: Any) -> ScoutConfig:
    """
    Read YAML or JSON and return a validated ScoutConfig.
    Raises FileNotFoundError when the file does not exist.
    """
    return build_config(read_config_file(path), **overrides)
