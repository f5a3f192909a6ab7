"""
Client interaction state for the dashboard's sheets and confirmation dialogs.

Both are explicit state containers with defined transitions rather than
module-level mutable flags:

- SheetState: closed -> open(id) -> closed
- ConfirmationPrompt: idle -> pending -> resolved(value), with the result
  delivered through an asyncio.Future

These model the dashboard client's open/edit sheets and its delete and
account-selection confirmations. Nothing on the server imports them; a client
written in Python holds one instance per sheet or dialog.
"""
import asyncio
from dataclasses import asdict, dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class SheetState:
    """Which sheet is open, and for which record. Immutable; transitions return new states."""
    is_open: bool = False
    target_id: Optional[str] = None

    def open(self, target_id: Optional[str] = None) -> "SheetState":
        return SheetState(is_open=True, target_id=target_id)

    def close(self) -> "SheetState":
        return SheetState()

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "SheetState":
        if not data.get("is_open"):
            return cls()
        return cls(is_open=True, target_id=data.get("target_id"))


class ConfirmationPrompt:
    """
    Deferred answer to a question shown to the user.

    request() moves the prompt to "pending" and returns a future; resolve(),
    confirm() or cancel() settle it and move to "resolved". A new request can
    be made once the previous one is resolved.
    """

    IDLE = "idle"
    PENDING = "pending"
    RESOLVED = "resolved"

    def __init__(self):
        self._future: Optional[asyncio.Future] = None
        self.state = self.IDLE
        self.result: Any = None

    @property
    def is_pending(self) -> bool:
        return self.state == self.PENDING

    def request(self) -> asyncio.Future:
        if self.is_pending:
            raise RuntimeError("A confirmation is already pending")
        loop = asyncio.get_running_loop()
        self._future = loop.create_future()
        self.state = self.PENDING
        self.result = None
        return self._future

    async def ask(self) -> Any:
        return await self.request()

    def resolve(self, value: Any) -> None:
        if not self.is_pending or self._future is None:
            raise RuntimeError("No confirmation is pending")
        self.state = self.RESOLVED
        self.result = value
        self._future.set_result(value)
        self._future = None

    def confirm(self, value: Any = True) -> None:
        self.resolve(value)

    def cancel(self, value: Any = False) -> None:
        self.resolve(value)
