"""
Operator capability checks backed by the role list on the ledger store.
"""

from __future__ import annotations

from core.errors import InvalidArgumentError, UnauthorizedError
from core.state import LedgerState
from core.validation import require_text


def is_operator(state: LedgerState, address: str) -> bool:
    return address in state.operators


def require_operator(state: LedgerState, caller: str, action: str) -> None:
    if not is_operator(state, caller):
        raise UnauthorizedError(caller, action)


def grant_operator(state: LedgerState, address: str) -> bool:
    """Add address to the operator set. Returns False if it already held the role."""
    require_text("address", address)
    if is_operator(state, address):
        return False
    state.operators.append(address)
    return True


def revoke_operator(state: LedgerState, address: str) -> bool:
    """Remove address from the operator set. Returns False if it did not hold the role."""
    if not is_operator(state, address):
        return False
    if len(state.operators) == 1:
        raise InvalidArgumentError("Cannot revoke the last operator")
    state.operators.remove(address)
    return True
