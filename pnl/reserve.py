"""
Native-currency reserve used to pay interest.
"""

from __future__ import annotations

from core.errors import InsufficientReserveError
from core.state import LedgerState
from core.validation import require_text, require_unsigned
from infra.logger import get_logger


class NativeReserve:
    """
    Reserve balance held by the contract and the native balances it has paid out.

    Both live on the ledger store, so a payout rolls back with the operation
    that made it.
    """

    def __init__(self, state: LedgerState) -> None:
        self.state = state
        self.logger = get_logger("NativeReserve")

    @property
    def balance(self) -> int:
        return self.state.reserve_balance

    def balance_of(self, address: str) -> int:
        return self.state.native_balances.get(address, 0)

    def fund(self, amount: int) -> int:
        require_unsigned("amount", amount)
        self.state.reserve_balance += amount
        self.logger.info("Reserve funded with %s; balance=%s", amount, self.state.reserve_balance)
        return self.state.reserve_balance

    def pay(self, recipient: str, amount: int) -> None:
        require_text("recipient", recipient)
        require_unsigned("amount", amount)
        if amount > self.state.reserve_balance:
            raise InsufficientReserveError(amount, self.state.reserve_balance)
        if amount == 0:
            return
        self.state.reserve_balance -= amount
        self.state.native_balances[recipient] = self.balance_of(recipient) + amount
        self.logger.info("Paid %s from reserve to %s; reserve=%s", amount, recipient, self.state.reserve_balance)
