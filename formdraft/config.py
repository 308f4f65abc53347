"""Environment-driven configuration for formdraft.

All settings are read lazily from ``FORMDRAFT_*`` environment variables so
tests can override them with ``monkeypatch.setenv``. See ``config_docs`` for
the full reference.
"""

import os
from pathlib import Path
from typing import Optional

from formdraft.logger import session_logger

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _env_float(name: str, default: float, minimum: float = 0.0) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
        if value < minimum:
            raise ValueError(f"must be >= {minimum}")
        return value
    except ValueError:
        session_logger.warning(
            "config.invalid_env", variable=name, provided_value=raw, default_value=default
        )
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    session_logger.warning(
        "config.invalid_env", variable=name, provided_value=raw, default_value=default
    )
    return default


class Config:
    """Class-level accessors for every configurable value."""

    DEFAULT_DATA_DIR = "./data"
    DEFAULT_API_BASE_URL = "http://localhost:8000"
    DEFAULT_API_TIMEOUT_SECONDS = 30.0
    DEFAULT_DRAFT_KEY = "form_builder_draft"
    DEFAULT_DRAFT_DEBOUNCE_SECONDS = 2.0
    DEFAULT_PUSH_DELAY_SECONDS = 0.1
    DEFAULT_PERIODIC_PULL_SECONDS = 0.0
    DEFAULT_CUSTOMER_FIELD = "customer"
    DEFAULT_LOG_LEVEL = "INFO"

    @classmethod
    def get_data_dir(cls) -> Path:
        return Path(os.environ.get("FORMDRAFT_DATA_DIR") or cls.DEFAULT_DATA_DIR)

    @classmethod
    def get_drafts_dir(cls) -> Path:
        return cls.get_data_dir() / "drafts"

    @classmethod
    def get_api_base_url(cls) -> str:
        return (os.environ.get("FORMDRAFT_API_BASE_URL") or cls.DEFAULT_API_BASE_URL).rstrip("/")

    @classmethod
    def get_api_token(cls) -> Optional[str]:
        return os.environ.get("FORMDRAFT_API_TOKEN") or None

    @classmethod
    def get_api_timeout_seconds(cls) -> float:
        return _env_float(
            "FORMDRAFT_API_TIMEOUT_SECONDS", cls.DEFAULT_API_TIMEOUT_SECONDS, minimum=0.1
        )

    @classmethod
    def get_draft_key(cls) -> str:
        return os.environ.get("FORMDRAFT_DRAFT_KEY") or cls.DEFAULT_DRAFT_KEY

    @classmethod
    def get_draft_debounce_seconds(cls) -> float:
        return _env_float("FORMDRAFT_DRAFT_DEBOUNCE_SECONDS", cls.DEFAULT_DRAFT_DEBOUNCE_SECONDS)

    @classmethod
    def get_push_delay_seconds(cls) -> float:
        return _env_float("FORMDRAFT_PUSH_DELAY_SECONDS", cls.DEFAULT_PUSH_DELAY_SECONDS)

    @classmethod
    def get_periodic_pull_seconds(cls) -> float:
        return _env_float("FORMDRAFT_PERIODIC_PULL_SECONDS", cls.DEFAULT_PERIODIC_PULL_SECONDS)

    @classmethod
    def get_auto_downgrade_single(cls) -> bool:
        return _env_bool("FORMDRAFT_AUTO_DOWNGRADE_SINGLE", False)

    @classmethod
    def get_require_customer(cls) -> bool:
        return _env_bool("FORMDRAFT_REQUIRE_CUSTOMER", False)

    @classmethod
    def get_require_sheet_url(cls) -> bool:
        return _env_bool("FORMDRAFT_REQUIRE_SHEET_URL", False)

    @classmethod
    def get_customer_field(cls) -> str:
        value = os.environ.get("FORMDRAFT_CUSTOMER_FIELD") or cls.DEFAULT_CUSTOMER_FIELD
        if value not in ("customer", "customer_id"):
            session_logger.warning(
                "config.invalid_env",
                variable="FORMDRAFT_CUSTOMER_FIELD",
                provided_value=value,
                default_value=cls.DEFAULT_CUSTOMER_FIELD,
            )
            return cls.DEFAULT_CUSTOMER_FIELD
        return value

    @classmethod
    def get_log_level(cls) -> str:
        return (os.environ.get("FORMDRAFT_LOG_LEVEL") or cls.DEFAULT_LOG_LEVEL).upper()


def get_default_drafts_dir() -> str:
    return str(Config.get_drafts_dir())
