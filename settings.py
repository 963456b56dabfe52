import os
import re
from dataclasses import dataclass
from pathlib import Path

import streamlit as st

# =========================
# Defaults
# =========================
DEFAULT_API_VERSION = "2025-10"
DEFAULT_REQUEST_TIMEOUT = 30
DEFAULT_MAX_RETRIES = 3
DEFAULT_UI_STATE_PATH = Path(".streamlit") / "ui_state.json"


class SettingsError(RuntimeError):
    """Raised when required secrets are missing."""


@dataclass(frozen=True)
class Settings:
    store_url: str
    access_token: str
    api_version: str = DEFAULT_API_VERSION
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    ui_state_path: Path = DEFAULT_UI_STATE_PATH
    log_level: str = "INFO"

    @property
    def graphql_url(self) -> str:
        return f"https://{self.store_url}/admin/api/{self.api_version}/graphql.json"


def strip_protocol(url: str) -> str:
    # "https://foo.myshopify.com/" -> "foo.myshopify.com"
    return re.sub(r"^https?://", "", (url or "").strip()).rstrip("/")


def _lookup(secrets, key, default=None):
    try:
        value = secrets.get(key)
    except Exception:
        # st.secrets raises when no secrets.toml exists
        value = None
    if value in (None, ""):
        value = os.getenv(key, default)
    return value


def load_settings(secrets=None) -> Settings:
    """Build settings from Streamlit secrets, falling back to environment variables."""
    if secrets is None:
        secrets = st.secrets

    store_url = strip_protocol(_lookup(secrets, "SHOPIFY_STORE_URL", ""))
    token = _lookup(secrets, "SHOPIFY_ACCESS_TOKEN", "")
    if not store_url or not token:
        raise SettingsError("Missing SHOPIFY_STORE_URL or SHOPIFY_ACCESS_TOKEN in secrets")

    return Settings(
        store_url=store_url,
        access_token=token,
        api_version=_lookup(secrets, "SHOPIFY_API_VERSION", DEFAULT_API_VERSION),
        request_timeout=float(_lookup(secrets, "REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT)),
        max_retries=int(_lookup(secrets, "MAX_RETRIES", DEFAULT_MAX_RETRIES)),
        ui_state_path=Path(_lookup(secrets, "UI_STATE_PATH", str(DEFAULT_UI_STATE_PATH))),
        log_level=str(_lookup(secrets, "LOG_LEVEL", "INFO")).upper(),
    )
