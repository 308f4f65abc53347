"""Per-session behaviour knobs."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from formdraft.config import Config


class SessionSettings(BaseModel):
    """Settings of one authoring session.

    ``require_customer``/``require_sheet_url`` track the backend contract
    revision in use; ``customer_field`` names the customer key of the save
    payload for the same reason.
    """

    model_config = ConfigDict(frozen=True)

    draft_debounce_seconds: float = Field(default=2.0, ge=0)
    push_delay_seconds: float = Field(default=0.1, ge=0)
    periodic_pull_seconds: float = Field(default=0.0, ge=0)
    auto_downgrade_single: bool = False
    require_customer: bool = False
    require_sheet_url: bool = False
    customer_field: Literal["customer", "customer_id"] = "customer"

    @classmethod
    def from_env(cls) -> "SessionSettings":
        return cls(
            draft_debounce_seconds=Config.get_draft_debounce_seconds(),
            push_delay_seconds=Config.get_push_delay_seconds(),
            periodic_pull_seconds=Config.get_periodic_pull_seconds(),
            auto_downgrade_single=Config.get_auto_downgrade_single(),
            require_customer=Config.get_require_customer(),
            require_sheet_url=Config.get_require_sheet_url(),
            customer_field=Config.get_customer_field(),
        )
