from __future__ import annotations

from typing import Any, Dict


REDACT_KEYS = {
    "authorization",
    "sdk_key",
    "sdkkey",
    "api_key",
    "token",
    "secret",
    "password",
}


def _redact(obj: Any) -> Any:
    if isinstance(obj, dict):
        out: Dict[str, Any] = {}
        for k, v in obj.items():
            if str(k).lower().replace("-", "_") in REDACT_KEYS:
                out[k] = "***REDACTED***"
            else:
                out[k] = _redact(v)
        return out
    if isinstance(obj, (list, tuple)):
        return [_redact(x) for x in obj]
    return obj


def redact(obj: Any) -> Any:
    """Key-based redaction for anything that may end up in logs or error payloads."""
    return _redact(obj)


def mask_key(sdk_key: str) -> str:
    s = str(sdk_key or "")
    if len(s) <= 4:
        return "***"
    return f"***{s[-4:]}"
