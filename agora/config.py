"""
agora.config — YAML Configuration Loader
=========================================

This module reads ``config.yaml`` for **soft** settings (token lifetime,
hashing cost, optional throttle, log level).  Secrets and infrastructure
(``JWT_SECRET``, ``DATABASE_URL``) come from the environment instead.

Usage::

    from agora.config import load_config

    cfg = load_config()          # reads ./config.yaml by default
    print(cfg.jwt_duration_ms)   # 3600000
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class AgoraConfig:
    """Immutable configuration loaded from ``config.yaml``.

    Every field has a default so a partial file is valid.
    """

    app_name: str = "Agora Forum API"

    # Auth
    jwt_duration_ms: int = 3_600_000  # Token lifetime, relative to issue time
    bcrypt_rounds: int = 10

    # Optional mutation throttle (per authenticated user); None disables it
    rate_limit_requests: int | None = None
    rate_limit_window_seconds: int = 60

    log_level: str = "INFO"


_INT_KEYS = (
    "jwt_duration_ms",
    "bcrypt_rounds",
    "rate_limit_requests",
    "rate_limit_window_seconds",
)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> AgoraConfig:
    """Read *path* and return an :class:`AgoraConfig` instance.

    Parameters
    ----------
    path:
        Filesystem path to the YAML configuration file.
        Defaults to ``config.yaml`` in the current working directory.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    ValueError
        If a numeric setting is not a positive integer.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    values: dict = {}
    for key in _INT_KEYS:
        if raw.get(key) is None:
            continue
        value = int(raw[key])
        if value <= 0:
            raise ValueError(f"{key} must be a positive integer, got {value}")
        values[key] = value

    if not 4 <= values.get("bcrypt_rounds", 10) <= 31:
        raise ValueError("bcrypt_rounds must be between 4 and 31")

    if raw.get("app_name"):
        values["app_name"] = str(raw["app_name"])
    if raw.get("log_level"):
        values["log_level"] = str(raw["log_level"]).upper()

    return AgoraConfig(**values)
