"""Shared type aliases for the notification package."""

from __future__ import annotations

from typing import Any, Callable, Mapping, Protocol

Record = Mapping[str, Any]
ChannelResult = dict[str, Any]
HandlerResult = dict[str, Any]

CommitFn = Callable[[Record], None]
HandleFn = Callable[[Record], HandlerResult]


class Notifier(Protocol):
    """Delivery capability implemented by every channel adapter."""

    def send(self, *, to: str, subject: str, body: str) -> None: ...
