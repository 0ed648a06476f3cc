"""In-memory mock NATS client for testing without a broker."""

import asyncio
import json
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable

from natsmock.events import EventEmitter
from natsmock.shared.config import ClientConfig
from natsmock.shared.logger import get_client_logger
from natsmock.subject import match_subject

EMPTY = ""
CONNECT_DELAY = 0.01
INBOX_PREFIX = "_INBOX."


class RequestTimeoutError(TimeoutError):
    """Passed to a request callback when no reply arrived in time."""


@dataclass(eq=False)
class Subscription:
    subject: str
    handler: Callable
    queue: str | None = None
    max_msgs: int | None = None
    sid: str = field(default_factory=lambda: str(uuid.uuid4()))
    received: int = 0
    expected: int | None = None
    pending_timeout: asyncio.TimerHandle | None = None

    def cancel_timeout(self):
        if self.pending_timeout is not None:
            self.pending_timeout.cancel()
            self.pending_timeout = None


class MockNatsClient(EventEmitter):
    """Drop-in stand-in for a NATS client that delivers messages in-process.

    Emits ``connect`` after :meth:`connect` and ``disconnect`` after
    :meth:`close`, both on a later loop iteration. Outside a running loop
    (and without ``loop=``) both events fire immediately.
    """

    def __init__(
        self,
        json: bool = False,
        preserve_buffers: bool = False,
        name: str = "client",
        loop: asyncio.AbstractEventLoop | None = None,
    ):
        super().__init__()
        self._json = json
        self._preserve_buffers = preserve_buffers
        self._loop = loop
        self._subs: list[Subscription] = []
        self._queue_cursors: dict[str, int] = defaultdict(int)
        self._connected = False
        self._connect_handle: asyncio.TimerHandle | None = None
        self.connect_options: dict[str, Any] = {}
        self.published: list[tuple[str, Any, str | None]] = []
        self.logger = get_client_logger(name)

    @classmethod
    def from_config(cls, config_path: str, loop: asyncio.AbstractEventLoop | None = None, **overrides) -> "MockNatsClient":
        """Build a client from a JSON config file; keyword overrides win."""
        config = ClientConfig.from_file(config_path, **overrides)
        return cls(
            json=config.json,
            preserve_buffers=config.preserve_buffers,
            name=config.name,
            loop=loop,
        )

    @property
    def json(self) -> bool:
        return self._json

    @property
    def preserve_buffers(self) -> bool:
        return self._preserve_buffers

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def subscriptions(self) -> list[Subscription]:
        return list(self._subs)

    def _get_loop(self) -> asyncio.AbstractEventLoop | None:
        if self._loop is not None:
            return self._loop
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            return None

    # -- lifecycle ---------------------------------------------------------

    def connect(self, options: dict[str, Any] | None = None):
        """Mark the client connected and emit ``connect`` after a short delay."""
        self.connect_options = dict(options or {})
        if self._connect_handle is not None:
            self._connect_handle.cancel()

        loop = self._get_loop()
        if loop is None:
            # no loop to defer to, e.g. a plain synchronous test
            self._on_connected()
            return
        self._connect_handle = loop.call_later(CONNECT_DELAY, self._on_connected)

    def _on_connected(self):
        self._connect_handle = None
        self._connected = True
        self.logger.info("connected")
        self.emit("connect")

    def close(self):
        """Drop every subscription, mark disconnected and emit ``disconnect``.

        A ``connect`` still waiting for its delay is cancelled, so the
        client stays disconnected.
        """
        if self._connect_handle is not None:
            self._connect_handle.cancel()
            self._connect_handle = None
        for sub in self._subs:
            sub.cancel_timeout()
        self._subs = []
        self.published.clear()
        self._connected = False
        self.logger.info("closed")

        loop = self._get_loop()
        if loop is None:
            self.emit("disconnect")
        else:
            loop.call_soon(self.emit, "disconnect")

    # -- registry ----------------------------------------------------------

    def subscribe(self, subject: str, opts: dict | Callable | None = None, handler: Callable | None = None) -> str:
        """Register ``handler(payload, reply_to, subject)`` for ``subject``.

        Called as ``subscribe(subject, handler)`` or
        ``subscribe(subject, {"queue": ..., "max": ...}, handler)``.
        Returns the subscription id.
        """
        if callable(opts):
            handler, opts = opts, {}
        opts = opts or {}
        if not callable(handler):
            raise TypeError(f"subscribe({subject!r}) requires a callable handler")

        sub = Subscription(
            subject=subject,
            handler=handler,
            queue=opts.get("queue") or None,
            max_msgs=opts.get("max"),
        )
        self._subs.append(sub)
        self.logger.debug(
            "subscribed",
            extra={"sid": sub.sid, "subject": subject, "queue": sub.queue},
        )
        return sub.sid

    def unsubscribe(self, sid: str):
        sub = self._find_subscription(sid)
        if sub is None:
            self.logger.debug("unsubscribe ignored, unknown sid", extra={"sid": sid})
            return
        sub.cancel_timeout()
        self._subs.remove(sub)

    def _find_subscription(self, sid: str) -> Subscription | None:
        for sub in self._subs:
            if sub.sid == sid:
                return sub
        return None

    # -- delivery ----------------------------------------------------------

    def publish(self, subject: str, message: Any = EMPTY, reply_to: str | None = None):
        """Deliver ``message`` synchronously to every matching subscription.

        The payload goes through an encode/decode round trip first, so
        values that would not survive a real broker fail here too.
        """
        payload = self._decode(self._encode(message))
        self.published.append((subject, payload, reply_to))

        for sub in self._select_subscriptions(subject):
            # an earlier handler in this publish may have unsubscribed it
            if sub not in self._subs:
                continue

            sub.received += 1
            if sub.pending_timeout is not None and sub.received >= sub.expected:
                sub.cancel_timeout()
            if sub.max_msgs is not None and sub.received >= sub.max_msgs:
                self.unsubscribe(sub.sid)

            self.logger.debug(
                "delivered",
                extra={"sid": sub.sid, "subject": subject, "reply_to": reply_to, "received": sub.received},
            )
            sub.handler(payload, reply_to, subject)

    def _encode(self, message: Any) -> bytes:
        content = json.dumps(message) if self._json else message
        if isinstance(content, str):
            return content.encode("utf-8")
        if isinstance(content, (bytes, bytearray)):
            return bytes(content)
        raise TypeError(f"Cannot publish payload of type {type(content).__name__}")

    def _decode(self, payload: bytes) -> Any:
        if self._json:
            return json.loads(payload)
        if self._preserve_buffers:
            return payload
        return payload.decode("utf-8")

    def _select_subscriptions(self, subject: str) -> list[Subscription]:
        """One member per queue group plus every ungrouped subscription."""
        matches = [sub for sub in self._subs if match_subject(subject, sub.subject)]

        groups: dict[str, list[Subscription]] = defaultdict(list)
        for sub in matches:
            if sub.queue:
                groups[sub.queue].append(sub)

        chosen: set[Subscription] = set()
        for queue, members in groups.items():
            cursor = self._queue_cursors[queue]
            chosen.add(members[cursor % len(members)])
            self._queue_cursors[queue] = cursor + 1

        return [sub for sub in matches if not sub.queue or sub in chosen]

    # -- request / reply ---------------------------------------------------

    def request_one(
        self,
        subject: str,
        message: Any = EMPTY,
        options: dict | Callable | None = None,
        callback: Callable | None = None,
    ) -> str:
        """Publish ``message`` with a fresh inbox as reply subject.

        When ``callback`` is given it is subscribed to the inbox for a
        single reply before publishing. ``options["timeout"]`` (ms) makes
        it receive a :class:`RequestTimeoutError` if nothing arrives.
        Returns the inbox subject.
        """
        if callable(message):
            callback, message, options = message, EMPTY, None
        if callable(options):
            callback, options = options, None
        options = options or {}

        inbox = f"{INBOX_PREFIX}{uuid.uuid4().hex}"

        if callback is not None:
            sid = self.subscribe(inbox, {"max": 1}, callback)
            if options.get("timeout"):

                def expire(expired_sid):
                    self.unsubscribe(expired_sid)
                    callback(RequestTimeoutError(f"Request to {subject} timed out"), None, inbox)

                self.timeout(sid, options["timeout"], 1, expire)

        self.publish(subject, message, inbox)
        return inbox

    # -- expectations ------------------------------------------------------

    def timeout(self, sid: str, timeout_ms: float, expected: int, callback: Callable | None = None):
        """Call ``callback(sid)`` unless ``expected`` messages arrive within ``timeout_ms``."""
        sub = self._find_subscription(sid)
        if sub is None:
            self.logger.debug("timeout ignored, unknown sid", extra={"sid": sid})
            return

        loop = self._get_loop()
        if loop is None:
            raise RuntimeError("timeout() needs a running event loop or a loop passed to the client")

        sub.cancel_timeout()
        sub.expected = expected
        sub.pending_timeout = loop.call_later(
            timeout_ms / 1000, self._fire_timeout, sub, callback
        )

    def _fire_timeout(self, sub: Subscription, callback: Callable | None):
        sub.pending_timeout = None
        self.logger.debug(
            "timed out",
            extra={"sid": sub.sid, "subject": sub.subject, "received": sub.received, "expected": sub.expected},
        )
        if callback is not None:
            callback(sub.sid)

    def get_published(self, subject: str | None = None) -> list[tuple[str, Any, str | None]]:
        if subject is None:
            return list(self.published)
        return [entry for entry in self.published if entry[0] == subject]
