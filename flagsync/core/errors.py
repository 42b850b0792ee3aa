from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from flagsync.core.redaction import redact


class Severity(str, Enum):
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class FlagSyncError(Exception):
    code: str
    user_message: str
    severity: Severity = Severity.ERROR
    recoverable: bool = True
    context: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.code)

    def __str__(self) -> str:
        return f"{self.code}: {self.user_message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "user_message": self.user_message,
            "severity": self.severity.value,
            "recoverable": bool(self.recoverable),
            "context": redact(self.context or {}),
        }


# ---- Core types ----
class ConfigError(FlagSyncError):
    def __init__(self, user_message: str = "Configuration error.", **ctx: Any):
        super().__init__("config_error", user_message, severity=Severity.CRITICAL, recoverable=False, context=ctx)


class EventQueueFullError(FlagSyncError):
    def __init__(self, user_message: str = "Exceeded event queue capacity. Increase capacity to avoid dropping events.", **ctx: Any):
        super().__init__("capacity_exceeded", user_message, severity=Severity.WARN, recoverable=True, context=ctx)


class EventSerializationError(FlagSyncError):
    def __init__(self, user_message: str = "Unable to serialize event batch.", **ctx: Any):
        super().__init__("serialization_error", user_message, severity=Severity.ERROR, recoverable=True, context=ctx)


class EventTransportError(FlagSyncError):
    def __init__(self, user_message: str = "Unable to reach the events collector.", **ctx: Any):
        super().__init__("transport_error", user_message, severity=Severity.WARN, recoverable=True, context=ctx)


class EventHttpError(FlagSyncError):
    def __init__(self, status: int, user_message: Optional[str] = None, **ctx: Any):
        self.status = int(status)
        msg = user_message or f"Events collector returned HTTP {self.status}."
        super().__init__("http_error", msg, severity=Severity.WARN, recoverable=True, context={"status": self.status, **ctx})


class UnauthorizedError(EventHttpError):
    def __init__(self, user_message: str = "SDK key rejected by the events collector; no further events will be sent.", **ctx: Any):
        super().__init__(401, user_message, **ctx)
        self.code = "unauthorized"
        self.severity = Severity.CRITICAL
        self.recoverable = False
