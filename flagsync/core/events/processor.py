from __future__ import annotations

import logging
import queue
import random
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from flagsync.core.config import EventsConfig
from flagsync.core.errors import (
    EventHttpError,
    EventQueueFullError,
    EventSerializationError,
    EventTransportError,
    FlagSyncError,
    UnauthorizedError,
)
from flagsync.core.events.models import Event, IdentifyEvent
from flagsync.core.events.output import make_feature_output, make_index_output, make_output, make_summary_output, serialize_batch
from flagsync.core.events.privacy import UserFilter
from flagsync.core.events.sender import EventSender
from flagsync.core.events.stats import StatsCounter
from flagsync.core.events.summarizer import EventSummarizer
from flagsync.core.logger import get_logger


_EVENT = "event"
_FLUSH = "flush"
_SERVER_TIME = "server_time"
_CLOSE = "close"


def _delivery_error(future: "Future[Optional[FlagSyncError]]") -> Optional[FlagSyncError]:
    # blocks until the send worker is done; never raises
    exc = future.exception()
    if exc is None:
        return future.result()
    if isinstance(exc, FlagSyncError):
        return exc
    if isinstance(exc, (TypeError, ValueError, RecursionError)):
        return EventSerializationError(error=str(exc))
    return EventTransportError(error=str(exc))


class _Reply:
    def __init__(self) -> None:
        self._done = threading.Event()
        self.result: Any = None
        self.error: Optional[FlagSyncError] = None

    def set(self, result: Any = None, error: Optional[FlagSyncError] = None) -> None:
        self.result = result
        self.error = error
        self._done.set()

    def done(self) -> bool:
        return self._done.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._done.wait(timeout)


@dataclass
class _Message:
    kind: str
    event: Optional[Event] = None
    value: Any = None
    reply: Optional[_Reply] = None


class EventProcessor:
    """
    Analytics event pipeline.

    - send_event is fire-and-forget and never blocks on network I/O
    - one loop thread owns the output queue, the summarizer and the user cache
    - batches are posted by a single send worker so the loop keeps running
    - a 401 from the collector disables the processor for good
    """

    def __init__(
        self,
        sdk_key: str,
        *,
        cfg: EventsConfig,
        sender: Optional[EventSender] = None,
        session: Any = None,
        logger: Optional[logging.Logger] = None,
        rng: Optional[random.Random] = None,
    ):
        self.cfg = cfg
        self.logger = logger or get_logger("events")
        self._sender = sender or EventSender(sdk_key, cfg, session=session, logger=self.logger)
        self._filter = UserFilter.from_config(cfg)
        self._summarizer = EventSummarizer(cfg.user_keys_capacity)
        self._rng = rng or random.Random()
        self._stats = StatsCounter()

        self._inbox: "queue.Queue[_Message]" = queue.Queue(maxsize=int(cfg.inbox_capacity))
        self._outbox: List[Dict[str, Any]] = []
        self._capacity_exceeded = False

        self._close_lock = threading.Lock()
        self._closed = False
        self._disabled = threading.Event()

        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="flagsync-events-send")
        self._thread = threading.Thread(target=self._loop, name="flagsync-events", daemon=True)
        if self.cfg.send_events:
            self._thread.start()

    # ---- public API ----
    def send_event(self, event: Event) -> None:
        if not self._accepting():
            return
        self._stats.inc("events_received_total")
        try:
            self._inbox.put_nowait(_Message(_EVENT, event=event))
        except queue.Full:
            self._stats.inc("inbox_dropped_total")
            self.logger.warning("Event inbox is full; dropping event.")

    def send_event_sync(self, event: Event) -> None:
        """Process `event` on the loop and wait; raises EventQueueFullError if a record was rejected."""
        if not self._accepting():
            return
        self._stats.inc("events_received_total")
        reply = _Reply()
        if not self._post(_Message(_EVENT, event=event, reply=reply)):
            return
        self._await(reply)
        if reply.error is not None:
            raise reply.error

    def flush(self, wait: bool = False) -> Optional[FlagSyncError]:
        """
        Request a flush. With wait=True, block until the POST completes and
        return its error, if any.
        """
        if not self._accepting():
            return None
        reply = _Reply() if wait else None
        if not self._post(_Message(_FLUSH, reply=reply)):
            return None
        if reply is None:
            return None
        self._await(reply)
        return reply.result

    def close(self) -> Optional[FlagSyncError]:
        with self._close_lock:
            if self._closed:
                return None
            self._closed = True
        err: Optional[FlagSyncError] = None
        if self._thread.is_alive():
            reply = _Reply()
            if self._post(_Message(_CLOSE, reply=reply)):
                self._await(reply)
                err = reply.result
            self._thread.join(timeout=1.0)
        self._executor.shutdown(wait=True)
        self._sender.close()
        return err

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def disabled(self) -> bool:
        return self._disabled.is_set()

    def get_stats(self) -> Dict[str, Any]:
        out = self._stats.as_dict()
        out["inbox_depth"] = self._inbox.qsize()
        out["closed"] = self._closed
        out["disabled"] = self._disabled.is_set()
        return out

    def __enter__(self) -> "EventProcessor":
        return self

    def __exit__(self, *_exc: Any) -> None:
        self.close()

    # ---- internals (caller threads) ----
    def _accepting(self) -> bool:
        return bool(self.cfg.send_events) and not self._closed and not self._disabled.is_set()

    def _post(self, msg: _Message) -> bool:
        # control messages wait for room; the loop keeps draining while alive
        while True:
            try:
                self._inbox.put(msg, timeout=0.1)
                return True
            except queue.Full:
                if not self._thread.is_alive():
                    return False

    def _await(self, reply: _Reply) -> None:
        while not reply.wait(0.1):
            if not self._thread.is_alive():
                reply.wait(0.1)
                return

    # ---- loop thread ----
    def _loop(self) -> None:
        flush_every = float(self.cfg.flush_interval_seconds)
        reset_every = float(self.cfg.user_keys_flush_interval_seconds)
        next_flush = time.monotonic() + flush_every
        next_reset = time.monotonic() + reset_every
        while True:
            timeout = max(0.0, min(next_flush, next_reset) - time.monotonic())
            try:
                msg: Optional[_Message] = self._inbox.get(timeout=timeout)
            except queue.Empty:
                msg = None

            if msg is not None and msg.kind == _CLOSE:
                self._close_loop(msg)
                return

            try:
                now = time.monotonic()
                if now >= next_flush:
                    next_flush = now + flush_every
                    self._start_flush()
                if now >= next_reset:
                    next_reset = now + reset_every
                    self._summarizer.reset_users()
                if msg is not None:
                    self._handle(msg)
            except Exception as e:  # noqa: BLE001
                self._stats.inc("loop_errors_total")
                self.logger.exception(f"Unexpected error in event processing loop: {e}")
                if msg is not None and msg.reply is not None and not msg.reply.done():
                    msg.reply.set()

    def _close_loop(self, msg: _Message) -> None:
        err: Optional[FlagSyncError] = None
        try:
            future = self._start_flush()
            if future is not None:
                err = _delivery_error(future)
        except Exception as e:  # noqa: BLE001
            self._stats.inc("loop_errors_total")
            self.logger.exception(f"Final flush failed: {e}")
        finally:
            if msg.reply is not None:
                msg.reply.set(result=err)

    def _handle(self, msg: _Message) -> None:
        if msg.kind == _EVENT:
            err = self._process_event(msg.event) if msg.event is not None else None
            if msg.reply is not None:
                msg.reply.set(error=err)
        elif msg.kind == _FLUSH:
            future = self._start_flush()
            reply = msg.reply
            if reply is None:
                return
            if future is None:
                reply.set()
            else:
                future.add_done_callback(lambda f: reply.set(result=_delivery_error(f)))
        elif msg.kind == _SERVER_TIME:
            self._summarizer.set_last_known_past_time(int(msg.value))

    def _process_event(self, event: Event) -> Optional[EventQueueFullError]:
        if self._disabled.is_set():
            return None
        inline = bool(self.cfg.inline_users_in_events)
        user = self._filter.scrub(event.user)

        # identify events always carry the full user, so they never need an index record
        if isinstance(event, IdentifyEvent):
            self._summarizer.notice_user(user)
        elif not inline and not self._summarizer.notice_user(user):
            err = self._enqueue(make_index_output(event, user))
            if err is not None:
                return err

        if self._summarizer.summarize_event(event):
            self._stats.inc("summarized_total")
        elif self._sampled_out():
            self._stats.inc("sampled_out_total")
        else:
            err = self._enqueue(make_output(event, user, inline_user=inline))
            if err is not None:
                return err

        if self._summarizer.is_debugging(event):
            return self._enqueue(make_feature_output(event, user, inline_user=True, debug=True))
        return None

    def _sampled_out(self) -> bool:
        n = int(self.cfg.sampling_interval)
        return n > 1 and self._rng.randrange(n) != 0

    def _enqueue(self, record: Dict[str, Any]) -> Optional[EventQueueFullError]:
        if len(self._outbox) >= int(self.cfg.capacity):
            self._stats.inc("capacity_dropped_total")
            if not self._capacity_exceeded:
                self._capacity_exceeded = True
                self.logger.warning("Exceeded event queue capacity. Increase capacity to avoid dropping events.")
            return EventQueueFullError(capacity=int(self.cfg.capacity), kind=record.get("kind"))
        self._capacity_exceeded = False
        self._outbox.append(record)
        self._stats.inc("records_queued_total")
        return None

    def _take_batch(self) -> List[Dict[str, Any]]:
        records = self._outbox
        self._outbox = []
        snapshot = self._summarizer.snapshot()
        if not snapshot.is_empty():
            # the summary record is exempt from the capacity limit
            records.append(make_summary_output(EventSummarizer.output(snapshot)))
        return records

    def _start_flush(self) -> "Optional[Future[Optional[FlagSyncError]]]":
        batch = self._take_batch()
        if not batch or self._disabled.is_set():
            return None
        self._stats.inc("flushes_total")
        return self._executor.submit(self._deliver, batch)

    # ---- send worker ----
    def _deliver(self, batch: List[Dict[str, Any]]) -> Optional[FlagSyncError]:
        if self._disabled.is_set():
            return None
        try:
            payload = serialize_batch(batch)
        except EventSerializationError as e:
            self._stats.inc("batches_failed_total")
            self._stats.set_last_error(e.code)
            self.logger.error(f"Unexpected error marshalling event batch: {e}")
            return e
        try:
            result = self._sender.send(payload)
        except Exception as e:  # noqa: BLE001
            self.logger.exception(f"Unexpected error while sending events: {e}")
            err = EventTransportError(error=str(e))
            self._stats.inc("batches_failed_total")
            self._stats.set_last_error(err.code)
            return err

        if result.ok:
            self._stats.inc("batches_delivered_total")
            if result.server_time_ms is not None:
                try:
                    self._inbox.put_nowait(_Message(_SERVER_TIME, value=result.server_time_ms))
                except queue.Full:
                    self._stats.inc("inbox_dropped_total")
                    self.logger.warning("Event inbox is full; dropping server time update.")
            return None

        self._stats.inc("batches_failed_total")
        self._stats.set_last_error(result.error.code if result.error is not None else None)
        if isinstance(result.error, UnauthorizedError):
            self._disabled.set()
            return result.error
        if isinstance(result.error, EventHttpError):
            # batch is discarded; the processor stays active
            return None
        return result.error
