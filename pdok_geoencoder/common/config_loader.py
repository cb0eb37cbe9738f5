"""Configuration loading and validation."""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

import yaml

from pdok_geoencoder.common.constants import (
    CANDIDATE_SOURCE,
    CANDIDATE_TYPE,
    DEFAULT_CHECKPOINT_EVERY,
    DEFAULT_LATITUDE,
    DEFAULT_LONGITUDE,
    HOUSE_NUMBER_CANDIDATES,
    PDOK_EXTENDED_ATTRIBUTES,
    PDOK_FREE_SEARCH_URL,
    ZIP_CANDIDATES,
)
from pdok_geoencoder.common.errors import ConfigError
from pdok_geoencoder.common.fs import read_yaml
from pdok_geoencoder.common.http import TimeoutConfig
from pdok_geoencoder.common.models import ServiceConfig
from pdok_geoencoder.common.schema import validate_geoencoder_config

DEFAULT_CONFIG: dict[str, Any] = {
    "service": {
        "url": PDOK_FREE_SEARCH_URL,
        "timeout": {"connect": TimeoutConfig.connect, "read": TimeoutConfig.read},
        "rate_per_sec": None,
        "candidate": {"source": CANDIDATE_SOURCE, "type": CANDIDATE_TYPE},
        "ranking": "first",
    },
    "fields": {
        "zip_candidates": list(ZIP_CANDIDATES),
        "house_number_candidates": list(HOUSE_NUMBER_CANDIDATES),
    },
    "output": {
        "latitude": DEFAULT_LATITUDE,
        "longitude": DEFAULT_LONGITUDE,
        "checkpoint_every": DEFAULT_CHECKPOINT_EVERY,
        "extended_attributes": list(PDOK_EXTENDED_ATTRIBUTES),
    },
}


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def _read_overlay(path: Path) -> dict:
    if not path.exists():
        raise ConfigError(f"Config file {path} does not exist")
    try:
        loaded = read_yaml(path)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config file {path} is not valid YAML: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return loaded


def load_config(
    config_path: Path | None = None,
    *,
    overlay_path: Path | None = None,
    allow_unknown: bool = False,
) -> dict:
    cfg = copy.deepcopy(DEFAULT_CONFIG)
    for path in (config_path, overlay_path):
        if path is not None:
            cfg = _deep_merge(cfg, _read_overlay(path))
    return validate_geoencoder_config(cfg, allow_unknown=allow_unknown)


def service_config_from(cfg: dict) -> ServiceConfig:
    service = cfg["service"]
    return ServiceConfig(
        url=service["url"],
        timeout=TimeoutConfig(
            connect=float(service["timeout"]["connect"]),
            read=float(service["timeout"]["read"]),
        ),
        rate_per_sec=service["rate_per_sec"],
        candidate_source=service["candidate"]["source"],
        candidate_type=service["candidate"]["type"],
        ranking=service["ranking"],
    )
