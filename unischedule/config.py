"""
Cloud configuration loaded from environment variables.

For local development, put SUPABASE_URL and SUPABASE_ANON_KEY in a .env file
in the working directory. Without them the application runs local-only.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Greek omicron / Cyrillic o pasted into a hostname look right but never resolve
_LOOKALIKES = {"ο": "o", "о": "o"}


def sanitize_url(url: str) -> str:
    out = url.strip()
    for bad, good in _LOOKALIKES.items():
        out = out.replace(bad, good)
    return out.rstrip("/")


@dataclass(frozen=True)
class CloudConfig:
    url: str
    anon_key: str
    timeout: float = 20.0


def get_cloud_config(load_env: bool = True) -> Optional[CloudConfig]:
    """
    Cloud settings, or None when the backend is not (validly) configured.

    A broken URL is logged and treated as "not configured" so the
    application keeps working locally.
    """
    if load_env:
        load_dotenv()

    url = sanitize_url(os.getenv("SUPABASE_URL", ""))
    key = os.getenv("SUPABASE_ANON_KEY", "").strip()
    if not url or not key:
        return None

    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        logger.error("Cloud disabled: SUPABASE_URL must start with http:// or https:// (got %r)", url)
        return None

    try:
        timeout = float(os.getenv("UNISCHEDULE_HTTP_TIMEOUT", "20"))
    except ValueError:
        timeout = 20.0
    return CloudConfig(url=url, anon_key=key, timeout=timeout)


def get_app_config() -> dict[str, str]:
    """Non-cloud settings from environment variables."""
    return {
        "storage": os.getenv("UNISCHEDULE_STORAGE", ""),
        "log_level": os.getenv("LOG_LEVEL", "WARNING"),
    }
