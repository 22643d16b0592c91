from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class PinentryOptions(BaseModel):
    """Values set through OPTION commands."""

    model_config = ConfigDict(validate_assignment=True)

    grab: bool = False
    tty_type: str = ""
    tty_name: str = ""
    tty_alert: str = ""
    lc_ctype: str = ""
    lc_messages: str = ""
    owner: str = ""
    touch_file: str = ""
    parent_wid: str = ""
    invisible_char: str = ""
    allow_external_password_cache: bool = False


class PinentrySettings(BaseModel):
    """Dialog texts accumulated by the SET* commands of one connection."""

    model_config = ConfigDict(validate_assignment=True)

    desc: str = Field(default="", description="Long description shown above the entry")
    prompt: str = Field(default="", description="Label next to the entry field")
    repeat_prompt: str = Field(default="", description="Ask twice when set")
    repeat_error: str = Field(default="", description="Shown when the two entries differ")
    error: str = Field(default="", description="Error from a previous attempt")
    ok_button: str = ""
    not_ok_button: str = ""
    cancel_button: str = ""
    quality_bar: str = ""
    title: str = ""
    timeout: int = Field(default=0, ge=0, description="Seconds before giving up, 0 waits forever")
    options: PinentryOptions = Field(default_factory=PinentryOptions)

    def snapshot(self) -> "PinentrySettings":
        return self.model_copy(deep=True)


__all__ = ["PinentryOptions", "PinentrySettings"]
