"""In-process mock NATS client for tests."""

from natsmock.client import EMPTY, MockNatsClient, RequestTimeoutError, Subscription
from natsmock.events import EventEmitter
from natsmock.subject import match_subject

__all__ = [
    "EMPTY",
    "EventEmitter",
    "MockNatsClient",
    "RequestTimeoutError",
    "Subscription",
    "match_subject",
]
