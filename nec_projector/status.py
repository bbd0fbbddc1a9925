# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Device status snapshots and the publisher that pushes them to listeners.

A device driver owns one StatusPublisher. Every status-changing operation
publishes a fresh, immutable DeviceStatus; failures are published on a separate
error channel. Delivery is synchronous, in subscription order.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum

from .internal_types import *
from .pkg_logging import logger

class MessageType(Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    DEBUG = "debug"
    """Progress detail, e.g. each power state seen while waiting for power on."""

    def __str__(self) -> str:
        return self.value

@dataclass(frozen=True)
class DeviceStatus:
    """A snapshot of everything known about a device. Fields are None until known."""
    power_state: Optional[Any] = None
    input_selected: Optional[Any] = None
    video_muted: Optional[bool] = None
    audio_muted: Optional[bool] = None
    lamp_hours_used: Optional[int] = None
    lamp_hours_total: Optional[int] = None
    model_number: Optional[str] = None
    serial_number: Optional[str] = None
    message: Optional[str] = None
    message_type: MessageType = MessageType.INFO

    def replace(self, **changes: Any) -> DeviceStatus:
        """Returns a copy with the given fields changed."""
        return dataclasses.replace(self, **changes)

    def with_message(self, message: Optional[str], message_type: MessageType=MessageType.INFO) -> DeviceStatus:
        return dataclasses.replace(self, message=message, message_type=message_type)

    def __str__(self) -> str:
        parts = [
            f"{field.name}={getattr(self, field.name)}"
            for field in dataclasses.fields(self)
            if getattr(self, field.name) is not None
          ]
        return f"DeviceStatus({', '.join(parts)})"

StatusListener = Callable[[DeviceStatus], None]
ErrorListener = Callable[[BaseException], None]

class Subscription:
    """Handle returned by StatusPublisher.subscribe(). Unsubscribing is idempotent;
       can be used as a context manager that unsubscribes on exit."""
    publisher: StatusPublisher
    on_status: StatusListener
    on_error: Optional[ErrorListener]
    _active: bool = True

    def __init__(
            self,
            publisher: StatusPublisher,
            on_status: StatusListener,
            on_error: Optional[ErrorListener]=None,
          ) -> None:
        self.publisher = publisher
        self.on_status = on_status
        self.on_error = on_error

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        if self._active:
            self._active = False
            self.publisher._remove(self)

    def __enter__(self) -> Subscription:
        return self

    def __exit__(
            self,
            exc_type: Optional[Type[BaseException]],
            exc: Optional[BaseException],
            tb: Optional[TracebackType],
          ) -> None:
        self.unsubscribe()

    def __str__(self) -> str:
        return f"Subscription({self.on_status!r}, active={self._active})"

    def __repr__(self) -> str:
        return str(self)

class StatusPublisher:
    """Registry of status and error listeners."""

    _subscriptions: List[Subscription]

    def __init__(self) -> None:
        self._subscriptions = []

    @property
    def num_subscribers(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, on_status: StatusListener, on_error: Optional[ErrorListener]=None) -> Subscription:
        subscription = Subscription(self, on_status, on_error)
        self._subscriptions.append(subscription)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        try:
            self._subscriptions.remove(subscription)
        except ValueError:
            pass

    def publish_status(self, status: DeviceStatus) -> None:
        """Delivers status to every current listener. A listener that raises is
           logged and skipped."""
        logger.debug(f"Publishing {status}")
        # Iterate over a snapshot; listeners may unsubscribe while being notified.
        for subscription in list(self._subscriptions):
            if not subscription.active:
                continue
            try:
                subscription.on_status(status)
            except Exception:
                logger.exception(f"Exception in status listener {subscription.on_status!r}")

    def publish_error(self, error: BaseException) -> None:
        """Delivers error to every current listener that has an error callback."""
        logger.debug(f"Publishing error: {error}")
        for subscription in list(self._subscriptions):
            if not subscription.active or subscription.on_error is None:
                continue
            try:
                subscription.on_error(error)
            except Exception:
                logger.exception(f"Exception in error listener {subscription.on_error!r}")
