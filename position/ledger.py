"""
Open, close and enumerate staking positions.
"""

from __future__ import annotations

from dataclasses import replace
from typing import List

from core.errors import (
    AlreadyClosedError,
    NotOwnerError,
    UnknownPositionError,
    UnknownTokenError,
    ZeroAmountError,
)
from core.state import LedgerState
from core.validation import require_text, require_unsigned
from infra.logger import get_logger
from position.position import Position


class PositionLedger:
    """
    Owns position records, the per-owner index and staked totals.

    Positions are never deleted; closing is the single, terminal mutation.
    Callers receive copies so records can only change through this class.
    """

    def __init__(self, state: LedgerState) -> None:
        self.state = state
        self.logger = get_logger("PositionLedger")

    def open(self, owner: str, token_symbol: str, apy_snapshot: int, principal: int, now: int) -> int:
        require_text("owner", owner)
        require_unsigned("apy_snapshot", apy_snapshot)
        require_unsigned("principal", principal)
        require_unsigned("now", now)
        if principal == 0:
            raise ZeroAmountError()
        token = self.state.tokens.get(token_symbol)
        if token is None:
            raise UnknownTokenError(token_symbol)

        position_id = self.state.current_position_id + 1
        self.state.positions[position_id] = Position(
            position_id=position_id,
            owner=owner,
            token_name=token.name,
            token_symbol=token_symbol,
            apy_basis_points=apy_snapshot,
            principal=principal,
            created_at=now,
            open=True,
        )
        self.state.current_position_id = position_id
        self.state.positions_by_owner.setdefault(owner, []).append(position_id)
        self.state.staked_tokens[token_symbol] = self.staked_total(token_symbol) + principal
        self.logger.info(
            "Position opened: id=%s owner=%s %s principal=%s apy_bps=%s",
            position_id,
            owner,
            token_symbol,
            principal,
            apy_snapshot,
        )
        return position_id

    def close(self, position_id: int, closer: str) -> Position:
        """Mark a position closed and return the record as it was just before."""
        position = self._require(position_id)
        if position.owner != closer:
            raise NotOwnerError(position_id, closer)
        if not position.open:
            raise AlreadyClosedError(position_id)

        before = replace(position)
        position.open = False
        self.state.staked_tokens[position.token_symbol] = self.staked_total(position.token_symbol) - position.principal
        self.logger.info(
            "Position closed: id=%s owner=%s %s principal=%s",
            position_id,
            closer,
            position.token_symbol,
            position.principal,
        )
        return before

    def get_position(self, position_id: int) -> Position:
        return replace(self._require(position_id))

    def get_position_ids_for_address(self, address: str) -> List[int]:
        return list(self.state.positions_by_owner.get(address, []))

    def staked_total(self, token_symbol: str) -> int:
        return self.state.staked_tokens.get(token_symbol, 0)

    def modify_created_date(self, position_id: int, new_timestamp: int) -> None:
        """Backdate (or move) a position's creation time. Operator checks happen upstream."""
        require_unsigned("new_timestamp", new_timestamp)
        position = self._require(position_id)
        previous = position.created_at
        position.created_at = new_timestamp
        self.logger.warning(
            "Position %s created_at changed from %s to %s",
            position_id,
            previous,
            new_timestamp,
        )

    def _require(self, position_id: int) -> Position:
        position = self.state.positions.get(position_id)
        if position is None:
            raise UnknownPositionError(position_id)
        return position
