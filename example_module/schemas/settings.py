"""
Settings schema

ModuleSettings is the fully populated, always-valid settings map. Anything
loaded from the database or supplied by an installer passes through it, so the
result holds every recognized key, only primitives, and in-range numbers.
"""

from collections.abc import Mapping
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator

from example_module.constants.settings import (
    ALLOWED_FILE_EXTENSIONS,
    BOOLEAN_SETTINGS,
    DEFAULT_SETTINGS,
    INTEGER_BOUNDS,
    TEXT_LIMITS,
    WIDGET_STYLES,
)
from example_module.utils.sanitize import is_valid_email
from example_module.utils.settings_validator import (
    clamp_int,
    coerce_bool,
    filter_file_types,
    parse_int,
    unwrap_legacy_value,
)


class ModuleSettings(BaseModel):
    """Flat settings map for the module."""

    model_config = ConfigDict(extra="ignore")

    enabled: bool = DEFAULT_SETTINGS["enabled"]
    welcome_title: str = DEFAULT_SETTINGS["welcome_title"]
    welcome_message: str = DEFAULT_SETTINGS["welcome_message"]
    show_date: bool = DEFAULT_SETTINGS["show_date"]
    widget_style: str = DEFAULT_SETTINGS["widget_style"]
    cache_duration: int = DEFAULT_SETTINGS["cache_duration"]
    admin_notifications: bool = DEFAULT_SETTINGS["admin_notifications"]
    notification_email: str = DEFAULT_SETTINGS["notification_email"]
    max_items: int = DEFAULT_SETTINGS["max_items"]
    max_content_length: int = DEFAULT_SETTINGS["max_content_length"]
    allow_uploads: bool = DEFAULT_SETTINGS["allow_uploads"]
    max_upload_size: int = DEFAULT_SETTINGS["max_upload_size"]
    allowed_file_types: list[str] = Field(default_factory=lambda: list(DEFAULT_SETTINGS["allowed_file_types"]))
    enable_captcha: bool = DEFAULT_SETTINGS["enable_captcha"]
    rate_limit: int = DEFAULT_SETTINGS["rate_limit"]
    rate_limit_window: int = DEFAULT_SETTINGS["rate_limit_window"]
    debug_mode: bool = DEFAULT_SETTINGS["debug_mode"]

    @model_validator(mode="before")
    @classmethod
    def _unwrap_legacy_objects(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return {}
        return {key: unwrap_legacy_value(value) for key, value in data.items() if key in DEFAULT_SETTINGS}

    @field_validator(*BOOLEAN_SETTINGS, mode="before")
    @classmethod
    def _coerce_booleans(cls, value: Any) -> bool:
        return coerce_bool(value)

    @field_validator(*INTEGER_BOUNDS, mode="before")
    @classmethod
    def _clamp_integers(cls, value: Any, info: ValidationInfo) -> int:
        minimum, maximum = INTEGER_BOUNDS[info.field_name]
        parsed = parse_int(value)
        if parsed is None:
            return DEFAULT_SETTINGS[info.field_name]
        return clamp_int(parsed, minimum, maximum)

    @field_validator(*TEXT_LIMITS, mode="before")
    @classmethod
    def _limit_text(cls, value: Any, info: ValidationInfo) -> str:
        if not isinstance(value, (str, int, float)) or isinstance(value, bool):
            return DEFAULT_SETTINGS[info.field_name]
        return str(value)[: TEXT_LIMITS[info.field_name]]

    @field_validator("widget_style", mode="before")
    @classmethod
    def _known_style(cls, value: Any) -> str:
        return value if value in WIDGET_STYLES else DEFAULT_SETTINGS["widget_style"]

    @field_validator("notification_email", mode="before")
    @classmethod
    def _valid_email_or_empty(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            return ""
        value = value.strip()
        return value if is_valid_email(value) else ""

    @field_validator("allowed_file_types", mode="before")
    @classmethod
    def _known_extensions(cls, value: Any) -> list[str]:
        if not isinstance(value, (str, list, tuple)):
            return list(DEFAULT_SETTINGS["allowed_file_types"])
        return filter_file_types(value, ALLOWED_FILE_EXTENSIONS)


def normalize_settings(values: Optional[Mapping[str, Any]] = None) -> dict[str, Any]:
    """Merge `values` over the defaults and return a complete, valid map."""
    return ModuleSettings.model_validate(dict(values or {})).model_dump()
