from __future__ import annotations

import json
import os
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from flagsync.core.errors import ConfigError


DEFAULT_EVENTS_URI = "https://events.flagsync.io"
DEFAULT_BASE_URI = "https://app.flagsync.io"


class EventsConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    send_events: bool = True
    capacity: int = Field(default=10000, ge=1)
    flush_interval_seconds: float = Field(default=5.0, gt=0)
    user_keys_capacity: int = Field(default=1000, ge=0)
    user_keys_flush_interval_seconds: float = Field(default=300.0, gt=0)
    all_attributes_private: bool = False
    private_attribute_names: List[str] = Field(default_factory=list)
    inline_users_in_events: bool = False
    sampling_interval: int = Field(default=0, ge=0)
    events_uri: str = DEFAULT_EVENTS_URI
    user_agent: Optional[str] = None
    inbox_capacity: int = Field(default=500, ge=1)
    http_timeout_seconds: float = Field(default=10.0, gt=0)

    @field_validator("events_uri")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        v = str(v or "").strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("events_uri must be an http(s) URL")
        return v.rstrip("/")


class ClientConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    sdk_key: str = ""
    offline: bool = False
    base_uri: str = DEFAULT_BASE_URI
    events: EventsConfig = Field(default_factory=EventsConfig)


_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _env_bool(name: str, raw: str) -> bool:
    v = raw.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    raise ConfigError(f"{name} must be a boolean.", variable=name)


def _read_json(path: str) -> Dict[str, Any]:
    if not os.path.exists(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            obj = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError("Config file is not valid JSON.", path=path, error=str(e)) from e
    if not isinstance(obj, dict):
        raise ConfigError("Config file must contain a JSON object.", path=path)
    return obj


def load_config(path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> ClientConfig:
    """
    Build a ClientConfig from an optional JSON file plus environment overrides.

    Recognized variables: FLAGSYNC_SDK_KEY, FLAGSYNC_OFFLINE, FLAGSYNC_EVENTS_URI,
    FLAGSYNC_SEND_EVENTS. Environment wins over the file.
    """
    env = os.environ if environ is None else environ
    raw: Dict[str, Any] = _read_json(path) if path else {}
    events = dict(raw.get("events") or {})

    if env.get("FLAGSYNC_SDK_KEY"):
        raw["sdk_key"] = env["FLAGSYNC_SDK_KEY"]
    if env.get("FLAGSYNC_OFFLINE"):
        raw["offline"] = _env_bool("FLAGSYNC_OFFLINE", env["FLAGSYNC_OFFLINE"])
    if env.get("FLAGSYNC_EVENTS_URI"):
        events["events_uri"] = env["FLAGSYNC_EVENTS_URI"]
    if env.get("FLAGSYNC_SEND_EVENTS"):
        events["send_events"] = _env_bool("FLAGSYNC_SEND_EVENTS", env["FLAGSYNC_SEND_EVENTS"])
    raw["events"] = events

    try:
        return ClientConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigError("Invalid flagsync configuration.", errors=e.errors(include_url=False)) from e
