"""Minimal strict schema for YAML config validation."""

from __future__ import annotations

from pdok_geoencoder.common.constants import RANKING_POLICIES
from pdok_geoencoder.common.errors import ConfigError


def _assert_mapping(obj: object, ctx: str) -> dict:
    if not isinstance(obj, dict):
        raise ConfigError(f"{ctx} must be a mapping")
    return obj


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def _assert_section(cfg: dict, name: str, keys: set[str], allow_unknown: bool) -> dict:
    section = _assert_mapping(cfg[name], name)
    _assert_required_keys(section, keys, name)
    _assert_no_unknown_keys(section, keys, name, allow_unknown)
    return section


def _assert_name_list(value: object, ctx: str) -> None:
    if not isinstance(value, list) or not value:
        raise ConfigError(f"{ctx} must be a non-empty list")
    if not all(isinstance(item, str) and item.strip() for item in value):
        raise ConfigError(f"{ctx} must only contain non-empty strings")
    dupes = {item for item in value if value.count(item) > 1}
    if dupes:
        raise ConfigError(f"Duplicate names in {ctx}: {', '.join(sorted(dupes))}")


def _assert_positive_number(value: object, ctx: str, *, allow_none: bool = False) -> None:
    if value is None and allow_none:
        return
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError(f"{ctx} must be a positive number")


def validate_geoencoder_config(cfg: object, *, allow_unknown: bool = False) -> dict:
    cfg = _assert_mapping(cfg, "geoencoder config")
    top_keys = {"service", "fields", "output"}
    _assert_required_keys(cfg, top_keys, "geoencoder config")
    _assert_no_unknown_keys(cfg, top_keys, "geoencoder config", allow_unknown)

    service = _assert_section(
        cfg, "service", {"url", "timeout", "rate_per_sec", "candidate", "ranking"}, allow_unknown
    )
    if not isinstance(service["url"], str) or not service["url"].startswith(("http://", "https://")):
        raise ConfigError("service.url must be an http(s) URL")
    timeout = _assert_mapping(service["timeout"], "service.timeout")
    _assert_required_keys(timeout, {"connect", "read"}, "service.timeout")
    _assert_positive_number(timeout["connect"], "service.timeout.connect")
    _assert_positive_number(timeout["read"], "service.timeout.read")
    _assert_positive_number(service["rate_per_sec"], "service.rate_per_sec", allow_none=True)
    candidate = _assert_mapping(service["candidate"], "service.candidate")
    _assert_required_keys(candidate, {"source", "type"}, "service.candidate")
    if service["ranking"] not in RANKING_POLICIES:
        raise ConfigError(f"service.ranking must be one of: {', '.join(RANKING_POLICIES)}")

    fields = _assert_section(cfg, "fields", {"zip_candidates", "house_number_candidates"}, allow_unknown)
    _assert_name_list(fields["zip_candidates"], "fields.zip_candidates")
    _assert_name_list(fields["house_number_candidates"], "fields.house_number_candidates")

    output = _assert_section(
        cfg, "output", {"latitude", "longitude", "checkpoint_every", "extended_attributes"}, allow_unknown
    )
    for key in ("latitude", "longitude"):
        if not isinstance(output[key], str) or not output[key].strip():
            raise ConfigError(f"output.{key} must be a non-empty string")
    if isinstance(output["checkpoint_every"], bool) or not isinstance(output["checkpoint_every"], int):
        raise ConfigError("output.checkpoint_every must be an integer")
    _assert_positive_number(output["checkpoint_every"], "output.checkpoint_every")
    _assert_name_list(output["extended_attributes"], "output.extended_attributes")

    return cfg
