from __future__ import annotations

import argparse
import json
import os
import warnings
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .auth.providers import AUTH_METHODS
from .normalize.schema import DEFAULT_LIMIT, RISK_LEVELS, ActivityFilter
from .util.errors import ConfigError
from .util.time import window_bounds

# --------
# Defaults
# --------
DEFAULT_OUTPUT = "cloudguard_activity.csv"
DEFAULT_DAYS = 7
DEFAULT_AUTH = "config"
COMPARTMENT_ENV = "OCI_COMPARTMENT_ID"
USAGE_HINT = (
    "Usage: oci-cloudguard --compartment-id=ocid1.compartment.oc1..xxx [--output=activity.csv] [--days=7] "
    "[--region=us-ashburn-1] [--resource-type=Instance] [--problem-id=xxx] [--risk-level=HIGH] "
    "[--limit=1000] [--summary]"
)

ALLOWED_CONFIG_KEYS = {
    "compartment_id",
    "output",
    "days",
    "region",
    "resource_type",
    "problem_id",
    "risk_level",
    "limit",
    "summary",
    "json_logs",
    "log_level",
    "auth",
    "profile",
    "client_region",
    "progress",
}
BOOL_CONFIG_KEYS = {"summary", "json_logs", "progress"}
INT_CONFIG_KEYS = {"days", "limit"}
STR_CONFIG_KEYS = ALLOWED_CONFIG_KEYS - BOOL_CONFIG_KEYS - INT_CONFIG_KEYS


@dataclass(frozen=True)
class RunConfig:
    # Query scope and filters
    compartment_id: Optional[str] = None
    days: int = DEFAULT_DAYS
    region: Optional[str] = None
    resource_type: Optional[str] = None
    problem_id: Optional[str] = None
    risk_level: Optional[str] = None
    limit: int = DEFAULT_LIMIT

    # Output
    output: Path = Path(DEFAULT_OUTPUT)
    summary_only: bool = False
    progress: bool = False
    json_logs: bool = False
    log_level: str = "INFO"

    # Auth
    auth: str = DEFAULT_AUTH  # auto|config|instance|resource|security_token
    profile: Optional[str] = None
    client_region: Optional[str] = None


def _parse_config_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text) or {}
    except Exception as e:
        raise ValueError(f"Failed to parse config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError("Top-level config must be an object")
    return data


def _env_str(name: str) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None:
        return None
    raw = raw.strip()
    return raw or None


def _env_bool(name: str) -> Optional[bool]:
    raw = _env_str(name)
    if raw is None:
        return None
    return raw.lower() in {"1", "true", "yes", "on"}


def _env_int(name: str) -> Optional[int]:
    raw = _env_str(name)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(f"Environment variable {name} must be an integer, got {raw!r}") from e


def _coerce_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        raw = value.strip().lower()
        if raw in {"1", "true", "yes", "on"}:
            return True
        if raw in {"0", "false", "no", "off"}:
            return False
    raise ValueError(f"Config field '{key}' must be a boolean")


def _coerce_int(key: str, value: Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return int(value)
        except ValueError:
            pass
    raise ValueError(f"Config field '{key}' must be an integer")


def _normalize_config_file(data: Dict[str, Any]) -> Dict[str, Any]:
    unknown = sorted(set(data.keys()) - ALLOWED_CONFIG_KEYS)
    if unknown:
        warnings.warn(f"Unknown config keys ignored: {', '.join(unknown)}")
    normalized: Dict[str, Any] = {}
    for key, value in data.items():
        if key not in ALLOWED_CONFIG_KEYS or value is None:
            continue
        if key in BOOL_CONFIG_KEYS:
            normalized[key] = _coerce_bool(key, value)
        elif key in INT_CONFIG_KEYS:
            normalized[key] = _coerce_int(key, value)
        elif isinstance(value, str):
            normalized[key] = value
        else:
            raise ValueError(f"Config field '{key}' must be a string")
    return normalized


def _compact_dict(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Drop keys with None or empty-string values so they don't override lower-precedence config.
    """
    return {k: v for k, v in data.items() if v is not None and v != ""}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="oci-cloudguard",
        description="Report OCI Cloud Guard detected problems for a compartment and export them to CSV",
    )
    parser.add_argument("--compartment-id", default=None, help=f"Compartment OCID (required; env {COMPARTMENT_ENV})")
    parser.add_argument("--output", type=Path, default=None, help=f"Output CSV file (default {DEFAULT_OUTPUT})")
    parser.add_argument("--days", type=int, default=None, help=f"Number of days back to search (default {DEFAULT_DAYS})")
    parser.add_argument("--region", default=None, help="Only problems reported in this region")
    parser.add_argument("--resource-type", default=None, help="Only problems for this resource type")
    parser.add_argument("--problem-id", default=None, help="Only this problem OCID")
    parser.add_argument(
        "--risk-level",
        default=None,
        help=f"Only problems at this risk level ({', '.join(RISK_LEVELS)})",
    )
    parser.add_argument("--limit", type=int, default=None, help=f"Maximum number of results (default {DEFAULT_LIMIT})")
    parser.add_argument(
        "--summary",
        action="store_true",
        default=None,
        help="Print summary only (no CSV export)",
    )
    parser.add_argument("--config", type=Path, help="Optional YAML/JSON config file")
    parser.add_argument(
        "--progress",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Show a progress spinner while fetching",
    )
    parser.add_argument(
        "--json-logs",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Enable JSON logs",
    )
    parser.add_argument("--log-level", default=None, help="Log level (INFO, DEBUG, ...)")
    parser.add_argument(
        "--auth",
        default=None,
        choices=list(AUTH_METHODS),
        help=f"Auth method (default: {DEFAULT_AUTH})",
    )
    parser.add_argument("--profile", default=None, help="OCI config profile (for config auth)")
    parser.add_argument(
        "--client-region",
        default=None,
        help="Region the Cloud Guard client talks to (defaults to the profile region)",
    )
    return parser


def load_run_config(args: Optional[argparse.Namespace] = None, argv: Optional[list[str]] = None) -> RunConfig:
    """
    Build RunConfig by merging defaults, optional config file, env vars, and CLI args.
    Precedence (low -> high): defaults < config file < env < CLI.
    The compartment id is not required here; the report command enforces it.
    """
    ns = args if args is not None else build_parser().parse_args(argv)

    base: Dict[str, Any] = {
        "compartment_id": None,
        "output": DEFAULT_OUTPUT,
        "days": DEFAULT_DAYS,
        "limit": DEFAULT_LIMIT,
        "summary": False,
        "progress": False,
        "json_logs": False,
        "log_level": "INFO",
        "auth": DEFAULT_AUTH,
    }

    file_cfg: Dict[str, Any] = {}
    if getattr(ns, "config", None):
        file_cfg = _normalize_config_file(_parse_config_file(Path(ns.config)))

    env_cfg: Dict[str, Any] = _compact_dict(
        {
            "compartment_id": _env_str(COMPARTMENT_ENV),
            "output": _env_str("OCI_CG_OUTPUT"),
            "days": _env_int("OCI_CG_DAYS"),
            "limit": _env_int("OCI_CG_LIMIT"),
            "json_logs": _env_bool("OCI_CG_JSON_LOGS"),
            "log_level": _env_str("OCI_CG_LOG_LEVEL"),
            "auth": _env_str("OCI_CG_AUTH"),
            "profile": _env_str("OCI_CG_PROFILE"),
            "client_region": _env_str("OCI_CG_REGION"),
        }
    )

    cli_cfg: Dict[str, Any] = _compact_dict(
        {
            "compartment_id": getattr(ns, "compartment_id", None),
            "output": getattr(ns, "output", None),
            "days": getattr(ns, "days", None),
            "region": getattr(ns, "region", None),
            "resource_type": getattr(ns, "resource_type", None),
            "problem_id": getattr(ns, "problem_id", None),
            "risk_level": getattr(ns, "risk_level", None),
            "limit": getattr(ns, "limit", None),
            "summary": getattr(ns, "summary", None),
            "progress": getattr(ns, "progress", None),
            "json_logs": getattr(ns, "json_logs", None),
            "log_level": getattr(ns, "log_level", None),
            "auth": getattr(ns, "auth", None),
            "profile": getattr(ns, "profile", None),
            "client_region": getattr(ns, "client_region", None),
        }
    )

    merged = {**base, **file_cfg, **env_cfg, **cli_cfg}

    days = int(merged["days"])
    if days < 0:
        raise ConfigError(f"days must be zero or positive, got {days}")
    limit = int(merged["limit"])
    if limit < 1:
        raise ConfigError(f"limit must be a positive integer, got {limit}")
    auth = str(merged["auth"]).lower()
    if auth not in AUTH_METHODS:
        raise ConfigError(f"auth must be one of: {', '.join(AUTH_METHODS)}")

    def _opt(key: str) -> Optional[str]:
        value = merged.get(key)
        return str(value) if value else None

    return RunConfig(
        compartment_id=_opt("compartment_id"),
        days=days,
        region=_opt("region"),
        resource_type=_opt("resource_type"),
        problem_id=_opt("problem_id"),
        risk_level=_opt("risk_level"),
        limit=limit,
        output=Path(merged["output"]),
        summary_only=bool(merged["summary"]),
        progress=bool(merged["progress"]),
        json_logs=bool(merged["json_logs"]),
        log_level=str(merged["log_level"]).upper(),
        auth=auth,
        profile=_opt("profile"),
        client_region=_opt("client_region"),
    )


def build_activity_filter(cfg: RunConfig, now: datetime) -> ActivityFilter:
    """
    Translate the run config into the immutable filter, anchoring the
    [now - days, now] window on the run's captured time.
    """
    if not cfg.compartment_id:
        raise ConfigError("compartment-id is required")
    start, end = window_bounds(now, cfg.days)
    return ActivityFilter(
        compartment_id=cfg.compartment_id,
        region=cfg.region,
        resource_type=cfg.resource_type,
        problem_id=cfg.problem_id,
        risk_level=cfg.risk_level,
        start_time=start,
        end_time=end,
        limit=cfg.limit,
    )


def dump_config(cfg: RunConfig) -> Dict[str, Any]:
    return {
        "compartment_id": cfg.compartment_id,
        "days": cfg.days,
        "region": cfg.region,
        "resource_type": cfg.resource_type,
        "problem_id": cfg.problem_id,
        "risk_level": cfg.risk_level,
        "limit": cfg.limit,
        "output": str(cfg.output),
        "summary_only": cfg.summary_only,
        "auth": cfg.auth,
        "profile": cfg.profile,
        "client_region": cfg.client_region,
    }
