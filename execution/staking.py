"""
Stake and close orchestration across registry, ledger, reserve and assets.
"""

from __future__ import annotations

from dataclasses import dataclass

from asset.base import AssetDirectory
from core.errors import TransferPendingError
from core.state import LedgerState
from core.transaction import atomic
from core.validation import require_text
from infra.logger import get_logger
from pnl.interest import InterestCalculator
from pnl.reserve import NativeReserve
from position.ledger import PositionLedger
from position.position import Position
from registry.token_registry import TokenRegistry


@dataclass(frozen=True)
class ClosedPosition:
    position: Position  # as it was immediately before closing
    days: int
    interest: int


class StakingService:
    """
    Runs each stake/close as one atomic step.

    Ledger and reserve writes happen first and the external asset movement
    last, so a rejected transfer rolls everything back. A transfer whose
    outcome is unknown keeps the writes and is listed in pending_transfers.
    """

    def __init__(
        self,
        state: LedgerState,
        registry: TokenRegistry,
        ledger: PositionLedger,
        calculator: InterestCalculator,
        reserve: NativeReserve,
        assets: AssetDirectory,
    ) -> None:
        self.state = state
        self.registry = registry
        self.ledger = ledger
        self.calculator = calculator
        self.reserve = reserve
        self.assets = assets
        self.logger = get_logger("StakingService")

    def stake(self, caller: str, symbol: str, amount: int, now: int) -> int:
        require_text("caller", caller)
        with atomic(self.state, f"stake {amount} {symbol} for {caller}", keep_on=(TransferPendingError,)):
            token = self.registry.get_token(symbol)
            position_id = self.ledger.open(caller, symbol, token.apy_basis_points, amount, now)
            asset = self.assets.resolve(token.asset_handle)
            try:
                asset.transfer_from(self.state.custody_address, caller, self.state.custody_address, amount)
            except TransferPendingError as exc:
                self._record_pending("stake", position_id, token.asset_handle, amount, now, exc)
                raise
        self.logger.info("Stake confirmed: position=%s %s %s by %s", position_id, amount, symbol, caller)
        return position_id

    def close_position(self, caller: str, position_id: int, now: int) -> ClosedPosition:
        require_text("caller", caller)
        with atomic(self.state, f"close position {position_id} for {caller}", keep_on=(TransferPendingError,)):
            position = self.ledger.close(position_id, caller)
            days = self.calculator.days_elapsed(position.created_at, now)
            interest = self.calculator.calculate_interest(position.apy_basis_points, position.principal, days)
            self.reserve.pay(caller, interest)
            token = self.registry.get_token(position.token_symbol)
            asset = self.assets.resolve(token.asset_handle)
            try:
                asset.transfer(self.state.custody_address, caller, position.principal)
            except TransferPendingError as exc:
                self._record_pending("close", position_id, token.asset_handle, position.principal, now, exc)
                raise
        self.logger.info(
            "Close confirmed: position=%s principal=%s %s interest=%s over %s days",
            position_id,
            position.principal,
            position.token_symbol,
            interest,
            days,
        )
        return ClosedPosition(position=position, days=days, interest=interest)

    def _record_pending(
        self,
        action: str,
        position_id: int,
        asset_handle: str,
        amount: int,
        now: int,
        exc: TransferPendingError,
    ) -> None:
        self.state.pending_transfers.append(
            {
                "action": action,
                "position_id": position_id,
                "asset_handle": asset_handle,
                "amount": amount,
                "tx_hash": exc.tx_hash,
                "recorded_at": now,
            }
        )
        self.logger.warning(
            "%s of position %s left pending (tx=%s); ledger keeps the change",
            action,
            position_id,
            exc.tx_hash,
        )
