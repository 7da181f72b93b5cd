"""
Error kinds surfaced to callers of the staking ledger.

Every error aborts the operation that raised it; no partial writes survive.
"""

from __future__ import annotations

from typing import Optional


class StakingError(Exception):
    """Base class for every rejected staking operation."""


class InvalidArgumentError(StakingError, ValueError):
    """Raised when an argument is malformed (negative amount, empty symbol, ...)."""


class DuplicateSymbolError(StakingError):
    def __init__(self, symbol: str) -> None:
        super().__init__(f"Token symbol already registered: {symbol}")
        self.symbol = symbol


class UnknownTokenError(StakingError):
    def __init__(self, symbol: str) -> None:
        super().__init__(f"Token not registered: {symbol}")
        self.symbol = symbol


class UnknownPositionError(StakingError):
    def __init__(self, position_id: int) -> None:
        super().__init__(f"Position does not exist: {position_id}")
        self.position_id = position_id


class NotOwnerError(StakingError):
    def __init__(self, position_id: int, caller: str) -> None:
        super().__init__(f"{caller} does not own position {position_id}")
        self.position_id = position_id
        self.caller = caller


class AlreadyClosedError(StakingError):
    def __init__(self, position_id: int) -> None:
        super().__init__(f"Position already closed: {position_id}")
        self.position_id = position_id


class ZeroAmountError(StakingError):
    def __init__(self) -> None:
        super().__init__("Amount must be greater than zero")


class InvalidTimeRangeError(StakingError):
    def __init__(self, since: int, now: int) -> None:
        super().__init__(f"Start time {since} is after end time {now}")
        self.since = since
        self.now = now


class TransferFailedError(StakingError):
    """Raised when the external asset refuses to move a balance."""

    def __init__(self, message: str, handle: Optional[str] = None) -> None:
        super().__init__(message)
        self.handle = handle


class InsufficientReserveError(StakingError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(f"Reserve holds {available}, {required} required")
        self.required = required
        self.available = available


class UnauthorizedError(StakingError):
    def __init__(self, caller: str, action: str) -> None:
        super().__init__(f"{caller} is not permitted to {action}")
        self.caller = caller
        self.action = action


class TransferPendingError(StakingError):
    """
    Raised when a transfer was submitted but its outcome is not yet known.

    The ledger keeps the operation's writes and records the transfer as
    pending; it is not a TransferFailedError and must not be rolled back.
    """

    def __init__(self, message: str, handle: Optional[str] = None, tx_hash: Optional[str] = None) -> None:
        super().__init__(message)
        self.handle = handle
        self.tx_hash = tx_hash
