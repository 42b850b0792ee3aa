from __future__ import annotations

import logging
from dataclasses import dataclass
from email.utils import parsedate_to_datetime
from typing import Any, Optional

import requests

from flagsync import __version__
from flagsync.core.config import EventsConfig
from flagsync.core.errors import EventHttpError, EventTransportError, FlagSyncError, UnauthorizedError
from flagsync.core.logger import get_logger
from flagsync.core.redaction import mask_key


BULK_PATH = "/bulk"


@dataclass(frozen=True)
class DeliveryResult:
    ok: bool
    status: Optional[int] = None
    server_time_ms: Optional[int] = None
    error: Optional[FlagSyncError] = None


def parse_http_date(value: Optional[str]) -> Optional[int]:
    """RFC 7231 Date header -> ms since epoch, or None when absent/unparseable."""
    if not value:
        return None
    try:
        dt = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if dt is None:
        return None
    return int(dt.timestamp() * 1000)


class EventSender:
    """Posts serialized batches to the collector's bulk endpoint. No retries."""

    def __init__(self, sdk_key: str, cfg: EventsConfig, *, session: Any = None, logger: Optional[logging.Logger] = None):
        self.sdk_key = sdk_key
        self.cfg = cfg
        self.logger = logger or get_logger("events.sender")
        self._session = session if session is not None else requests.Session()
        self._owns_session = session is None

    @property
    def uri(self) -> str:
        return f"{self.cfg.events_uri.rstrip('/')}{BULK_PATH}"

    def headers(self) -> dict:
        return {
            "Authorization": self.sdk_key,
            "Content-Type": "application/json",
            "User-Agent": self.cfg.user_agent or f"FlagSyncPython/{__version__}",
        }

    def send(self, payload: bytes) -> DeliveryResult:
        try:
            r = self._session.post(self.uri, data=payload, headers=self.headers(), timeout=self.cfg.http_timeout_seconds)
        except requests.RequestException as e:
            self.logger.warning(f"Unexpected error while sending events: {e}")
            return DeliveryResult(ok=False, error=EventTransportError(uri=self.uri, error=str(e)))
        try:
            # drain the body so the connection can be reused
            try:
                _ = r.content
            except requests.RequestException as e:
                self.logger.warning(f"Error while reading events response: {e}")
                return DeliveryResult(ok=False, error=EventTransportError(uri=self.uri, error=str(e)))
            status = int(r.status_code)
            if 200 <= status < 300:
                return DeliveryResult(ok=True, status=status, server_time_ms=parse_http_date(r.headers.get("Date")))
            if status == 401:
                self.logger.error(f"Received 401 from {self.uri}; no further events will be posted since SDK key {mask_key(self.sdk_key)} is invalid")
                return DeliveryResult(ok=False, status=status, error=UnauthorizedError(uri=self.uri))
            self.logger.warning(f"Unexpected status code when sending events: HTTP {status}")
            return DeliveryResult(ok=False, status=status, error=EventHttpError(status, uri=self.uri))
        finally:
            r.close()

    def close(self) -> None:
        if self._owns_session:
            self._session.close()
