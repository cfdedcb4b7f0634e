from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from dotenv import dotenv_values
from pydantic import BaseModel, Field, ValidationError, model_validator

from .errors import ConfigError, ConfigErrorKind

REQUIRED_KEYS: tuple[str, ...] = ("ACCOUNT_SID", "AUTH_TOKEN", "PHONE_NUMBER")

# Exported Twilio credentials win over the values in the config file.
ENV_OVERRIDES: dict[str, str] = {
    "ACCOUNT_SID": "TWILIO_ACCOUNT_SID",
    "AUTH_TOKEN": "TWILIO_AUTH_TOKEN",
    "PHONE_NUMBER": "TWILIO_FROM_NUMBER",
}

CONFIG_TEMPLATE = "ACCOUNT_SID=your_account_sid\nAUTH_TOKEN=your_auth_token\nPHONE_NUMBER=your_phone_number"

SETTINGS_ENV: dict[str, str] = {
    "config_path": "BULK_SMS_CONFIG_PATH",
    "numbers_path": "BULK_SMS_NUMBERS_PATH",
    "send_delay": "BULK_SMS_SEND_DELAY",
    "request_timeout": "BULK_SMS_REQUEST_TIMEOUT",
    "api_base_url": "BULK_SMS_API_BASE",
}


class Settings(BaseModel):
    # Paths are relative to the working directory, like the original tool.
    config_path: Path = Path("twilio_config.txt")
    numbers_path: Path = Path("numbers.txt")

    # Pause after every send attempt (seconds)
    send_delay: float = Field(default=1.1, ge=0)
    request_timeout: float = Field(default=30.0, gt=0)
    api_base_url: str = "https://api.twilio.com"

    @model_validator(mode="before")
    @classmethod
    def read_environment(cls, data: Any) -> Any:
        """Fill unset fields from BULK_SMS_* variables; explicit values win."""
        if not isinstance(data, dict):
            return data
        merged: dict[str, Any] = {}
        for name, env_name in SETTINGS_ENV.items():
            value = os.getenv(env_name)
            if value:
                merged[name] = value
        merged.update(data)
        return merged


@lru_cache
def get_settings() -> Settings:
    try:
        return Settings()
    except ValidationError as e:
        fields = [str(err["loc"][0]) for err in e.errors() if err["loc"]]
        bad = tuple(SETTINGS_ENV.get(name, name) for name in fields)
        raise ConfigError(
            f"Invalid settings in environment ({', '.join(bad)}): {e}",
            kind=ConfigErrorKind.INVALID,
            missing=bad,
        ) from e


class TwilioConfig(BaseModel):
    account_sid: str
    auth_token: str
    phone_number: str


def load_twilio_config(path: Path) -> TwilioConfig:
    """
    Read ``ACCOUNT_SID`` / ``AUTH_TOKEN`` / ``PHONE_NUMBER`` from a key=value file.

    Each line is split on its first ``=``, so values may themselves contain
    ``=``. ``TWILIO_ACCOUNT_SID``, ``TWILIO_AUTH_TOKEN`` and
    ``TWILIO_FROM_NUMBER`` override the file when set, but the file must
    exist either way.
    """
    if not path.is_file():
        raise ConfigError(
            f"{path} not found!\nPlease create {path.name} with the following format:\n"
            f"{CONFIG_TEMPLATE}",
            kind=ConfigErrorKind.MISSING_FILE,
        )

    raw = dotenv_values(path, interpolate=False, encoding="utf-8")
    values: dict[str, str] = {}
    for key in REQUIRED_KEYS:
        value = os.getenv(ENV_OVERRIDES[key]) or raw.get(key) or ""
        values[key] = value.strip()

    missing = tuple(key for key in REQUIRED_KEYS if not values[key])
    if missing:
        raise ConfigError(
            f"Invalid configuration in {path}: missing or empty {', '.join(missing)}",
            kind=ConfigErrorKind.INVALID,
            missing=missing,
        )

    return TwilioConfig(
        account_sid=values["ACCOUNT_SID"],
        auth_token=values["AUTH_TOKEN"],
        phone_number=values["PHONE_NUMBER"],
    )
