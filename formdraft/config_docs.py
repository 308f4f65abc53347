"""Centralized configuration documentation and defaults for formdraft.

This module provides a comprehensive overview of all configuration options
and their environment variable mappings.
"""

# =============================================================================
# ENVIRONMENT VARIABLES REFERENCE
# =============================================================================

# Data & Storage
# --------------
# FORMDRAFT_DATA_DIR: Base directory for file-backed data (default: ./data)
#   Used for: the draft slot when FileKeyValueStorage is the durable store
# FORMDRAFT_DRAFT_KEY: Storage key of the single draft slot
#   (default: form_builder_draft)
#
# Remote API
# ----------
# FORMDRAFT_API_BASE_URL: Backend base URL (default: http://localhost:8000)
# FORMDRAFT_API_TOKEN: Token sent as "Authorization: Token <token>"
# FORMDRAFT_API_TIMEOUT_SECONDS: Request timeout (default: 30)
# FORMDRAFT_CUSTOMER_FIELD: Payload key for the customer reference
#   Values: "customer" (legacy contract), "customer_id" (newer contract)
#
# Session Behaviour
# -----------------
# FORMDRAFT_DRAFT_DEBOUNCE_SECONDS: Delay before a draft write (default: 2)
# FORMDRAFT_PUSH_DELAY_SECONDS: Delay between pull and push on section
#   switch (default: 0.1)
# FORMDRAFT_PERIODIC_PULL_SECONDS: Periodic editor pull interval, 0 disables
#   (default: 0)
# FORMDRAFT_AUTO_DOWNGRADE_SINGLE: Flip to single form when deletions leave one
#   section (default: false)
# FORMDRAFT_REQUIRE_CUSTOMER: Require a customer before submit (default: false)
# FORMDRAFT_REQUIRE_SHEET_URL: Require a sheet URL before submit (default: false)
#
# Development & Testing
# ---------------------
# FORMDRAFT_LOG_LEVEL: Logging verbosity for scripts (default: INFO)
#   Values: DEBUG, INFO, WARNING, ERROR, CRITICAL

# =============================================================================
# CONFIGURATION DEFAULTS
# =============================================================================

DEFAULT_DRAFT_KEY = "form_builder_draft"
DEFAULT_DRAFT_DEBOUNCE_SECONDS = 2.0
DEFAULT_PUSH_DELAY_SECONDS = 0.1
DEFAULT_LOG_LEVEL = "INFO"

# =============================================================================
# CONFIGURATION HELPER FUNCTIONS
# =============================================================================


def get_config_summary() -> dict:
    """Get a summary of current configuration from environment.

    Returns:
        Dictionary with current configuration values
    """
    from formdraft.config import Config

    return {
        "data_dir": str(Config.get_data_dir()),
        "drafts_dir": str(Config.get_drafts_dir()),
        "draft_key": Config.get_draft_key(),
        "api_base_url": Config.get_api_base_url(),
        "api_token_set": Config.get_api_token() is not None,
        "api_timeout_seconds": Config.get_api_timeout_seconds(),
        "customer_field": Config.get_customer_field(),
        "draft_debounce_seconds": Config.get_draft_debounce_seconds(),
        "push_delay_seconds": Config.get_push_delay_seconds(),
        "periodic_pull_seconds": Config.get_periodic_pull_seconds(),
        "auto_downgrade_single": Config.get_auto_downgrade_single(),
        "require_customer": Config.get_require_customer(),
        "require_sheet_url": Config.get_require_sheet_url(),
        "log_level": Config.get_log_level(),
    }
