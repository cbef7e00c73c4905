from collections.abc import Callable, Coroutine
from pathlib import Path
from typing import Any, Protocol

# Receives the IDL files that changed since the last notification.
ChangeCallback = Callable[[set[Path]], Coroutine[Any, Any, None]]


class SourceWatcherPort(Protocol):
    """Notifies a ``ChangeCallback`` about IDL source changes until stopped."""

    async def start(self) -> None: ...

    async def stop(self) -> None: ...
