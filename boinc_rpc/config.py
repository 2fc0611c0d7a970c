"""
Configuration helpers for the BOINC web RPC client.

This module centralizes project URL selection, request timeouts, TLS
verification and logging settings. Nothing here reads the environment at
import time; callers that want environment overrides use
``load_config_from_env``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_PROJECT_URL = "http://localhost/boinc"
DEFAULT_TIMEOUT = 10.0
DEFAULT_USER_AGENT = "boinc-rpc-client/0.1.0"

PROJECT_URL_ENV_VAR = "BOINC_PROJECT_URL"
TIMEOUT_ENV_VAR = "BOINC_HTTP_TIMEOUT"
VERIFY_TLS_ENV_VAR = "BOINC_VERIFY_TLS"
LOG_LEVEL_ENV_VAR = "BOINC_RPC_LOG_LEVEL"
LOG_FORMAT_ENV_VAR = "BOINC_RPC_LOG_FORMAT"

_FALSE_VALUES = {"0", "false", "no", "n", "off"}


def _load_timeout() -> float:
    raw_timeout = os.getenv(TIMEOUT_ENV_VAR)
    if raw_timeout:
        try:
            return float(raw_timeout)
        except ValueError:
            return DEFAULT_TIMEOUT
    return DEFAULT_TIMEOUT


def _load_verify_tls() -> bool:
    raw = os.getenv(VERIFY_TLS_ENV_VAR)
    if raw is None:
        return True
    return raw.strip().lower() not in _FALSE_VALUES


@dataclass(frozen=True, slots=True)
class BoincConfig:
    """Settings for one remote project handle."""

    project_url: str = DEFAULT_PROJECT_URL
    timeout: Optional[float] = DEFAULT_TIMEOUT
    # Certificate checks can only be turned off per handle, never process-wide.
    verify_tls: bool = True
    raise_on_error: bool = False
    user_agent: str = DEFAULT_USER_AGENT
    log_level: str = "INFO"
    log_format: str = "json"  # json or plain


def load_config_from_env(**overrides) -> BoincConfig:
    """
    Build a config from ``BOINC_*`` environment variables.

    Keyword overrides win over the environment, which wins over the defaults.
    An unparsable timeout falls back to the default of 10 seconds.
    """
    values = {
        "project_url": os.getenv(PROJECT_URL_ENV_VAR, DEFAULT_PROJECT_URL),
        "timeout": _load_timeout(),
        "verify_tls": _load_verify_tls(),
        "log_level": os.getenv(LOG_LEVEL_ENV_VAR, "INFO"),
        "log_format": os.getenv(LOG_FORMAT_ENV_VAR, "json"),
    }
    values.update(overrides)
    return BoincConfig(**values)


default_config = BoincConfig()
