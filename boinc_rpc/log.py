"""Logging setup for applications embedding the BOINC web RPC client."""

from __future__ import annotations

import json
import logging
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from boinc_rpc.config import BoincConfig, default_config

SECRET_PARAMS = frozenset(
    {
        "passwd",
        "passwd_hash",
        "password_hash",
        "account_key",
        "authenticator",
        "auth",
        "opaque_auth",
    }
)
REDACTED = "***"
EXTRA_FIELDS = ("operation", "url", "error")


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname,
            "message": record.getMessage(),
            "name": record.name,
        }
        for key in EXTRA_FIELDS:
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def redact_url(url: str) -> str:
    """Mask credential-bearing query parameters before a URL is logged."""
    parts = urlsplit(url)
    if not parts.query:
        return url
    query = [
        (key, REDACTED if key in SECRET_PARAMS else value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
    ]
    return urlunsplit(parts._replace(query=urlencode(query, safe="*")))


def configure_logging(config: Optional[BoincConfig] = None) -> logging.Handler:
    """Install a root handler using the configured level and format."""
    config = config or default_config
    level = getattr(logging, config.log_level.upper(), logging.INFO)
    handler = logging.StreamHandler()
    if config.log_format.lower() == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    logging.basicConfig(level=level, handlers=[handler], force=True)
    return handler
