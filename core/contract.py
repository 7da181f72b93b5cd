"""
Caller-facing staking contract.

Every operation takes the caller's identity explicitly, in the form the asset
directory normalises it to. Writes hold the store lock, catch up with other
writers, run inside an atomic block and are saved once committed.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional

from asset.base import AssetDirectory
from core import access
from core.errors import TransferPendingError
from core.state import LedgerState
from core.store import LedgerStore
from core.transaction import atomic
from core.validation import require_text, require_unsigned
from execution.staking import ClosedPosition, StakingService
from infra.logger import get_logger
from pnl.interest import InterestCalculator
from pnl.reserve import NativeReserve
from position.ledger import PositionLedger
from position.position import Position
from registry.token import Token
from registry.token_registry import TokenRegistry

Clock = Callable[[], int]


def system_clock() -> int:
    return int(time.time())


class StakingContract:
    def __init__(
        self,
        state: LedgerState,
        assets: AssetDirectory,
        store: Optional[LedgerStore] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.state = state
        self.assets = assets
        self.store = store
        self.clock = clock or system_clock
        self.registry = TokenRegistry(state)
        self.ledger = PositionLedger(state)
        self.calculator = InterestCalculator()
        self.reserve = NativeReserve(state)
        self.service = StakingService(state, self.registry, self.ledger, self.calculator, self.reserve, assets)
        self.logger = get_logger("StakingContract")

    @classmethod
    def deploy(
        cls,
        operator: str,
        custody_address: str,
        assets: AssetDirectory,
        initial_reserve: int = 0,
        eth_usd_price: int = 0,
        store: Optional[LedgerStore] = None,
        clock: Optional[Clock] = None,
    ) -> "StakingContract":
        """Create a fresh ledger with the deployer as sole operator."""
        require_text("operator", operator)
        require_text("custody_address", custody_address)
        require_unsigned("eth_usd_price", eth_usd_price)
        operator = assets.normalize_address(operator)
        custody_address = assets.normalize_address(custody_address)
        state = LedgerState(operators=[operator], custody_address=custody_address, eth_usd_price=eth_usd_price)
        contract = cls(state, assets, store=store, clock=clock)
        contract.reserve.fund(initial_reserve)
        contract.commit()
        contract.logger.info(
            "Deployed: operator=%s custody=%s reserve=%s",
            operator,
            custody_address,
            initial_reserve,
        )
        return contract

    @classmethod
    def open(
        cls,
        store: LedgerStore,
        assets: AssetDirectory,
        operator: str,
        custody_address: str,
        initial_reserve: int = 0,
        eth_usd_price: int = 0,
        clock: Optional[Clock] = None,
    ) -> "StakingContract":
        """Load the ledger from store, deploying a fresh one if none exists."""
        with store.lock():
            state = store.load()
            if state is None:
                return cls.deploy(
                    operator,
                    custody_address,
                    assets,
                    initial_reserve=initial_reserve,
                    eth_usd_price=eth_usd_price,
                    store=store,
                    clock=clock,
                )
        return cls(state, assets, store=store, clock=clock)

    # Token registry

    def add_token(
        self,
        caller: str,
        name: str,
        symbol: str,
        asset_handle: str,
        usd_price: int,
        apy_basis_points: int,
    ) -> int:
        caller = self._identity(caller)
        with self._exclusive():
            with atomic(self.state, f"add token {symbol}"):
                access.require_operator(self.state, caller, "add tokens")
                token_id = self.registry.add_token(name, symbol, asset_handle, usd_price, apy_basis_points)
            self.commit()
        return token_id

    def get_token_symbols(self) -> List[str]:
        return self.registry.get_token_symbols()

    def get_token(self, symbol: str) -> Token:
        return self.registry.get_token(symbol)

    def current_token_id(self) -> int:
        return self.state.current_token_id

    # Positions

    def stake_tokens(self, caller: str, symbol: str, amount: int) -> int:
        caller = self._identity(caller)
        with self._exclusive():
            try:
                position_id = self.service.stake(caller, symbol, amount, self.clock())
            except TransferPendingError:
                self.commit()
                raise
            self.commit()
        return position_id

    def close_position(self, caller: str, position_id: int) -> ClosedPosition:
        caller = self._identity(caller)
        with self._exclusive():
            try:
                closed = self.service.close_position(caller, position_id, self.clock())
            except TransferPendingError:
                self.commit()
                raise
            self.commit()
        return closed

    def get_position_ids_for_address(self, caller: str) -> List[int]:
        return self.ledger.get_position_ids_for_address(self._identity(caller))

    def get_position(self, position_id: int) -> Position:
        return self.ledger.get_position(position_id)

    def current_position_id(self) -> int:
        return self.state.current_position_id

    def staked_tokens(self, symbol: str) -> int:
        return self.ledger.staked_total(symbol)

    def modify_created_date(self, caller: str, position_id: int, new_timestamp: int) -> None:
        caller = self._identity(caller)
        with self._exclusive():
            with atomic(self.state, f"modify created date of position {position_id}"):
                access.require_operator(self.state, caller, "modify position dates")
                self.ledger.modify_created_date(position_id, new_timestamp)
            self.commit()

    def pending_transfers(self) -> List[Dict[str, Any]]:
        """Transfers submitted without a confirmed outcome, oldest first."""
        return [dict(entry) for entry in self.state.pending_transfers]

    # Interest helpers

    def calculate_interest(self, apy_basis_points: int, principal: int, days: int) -> int:
        return self.calculator.calculate_interest(apy_basis_points, principal, days)

    def calculate_interest_days(self, since: int) -> int:
        return self.calculator.days_elapsed(since, self.clock())

    # Reserve

    def fund_reserve(self, caller: str, amount: int) -> int:
        caller = self._identity(caller)
        with self._exclusive():
            with atomic(self.state, f"fund reserve with {amount}"):
                access.require_operator(self.state, caller, "fund the reserve")
                balance = self.reserve.fund(amount)
            self.commit()
        return balance

    def reserve_balance(self) -> int:
        return self.reserve.balance

    def native_balance_of(self, address: str) -> int:
        return self.reserve.balance_of(self._identity(address))

    @property
    def eth_usd_price(self) -> int:
        return self.state.eth_usd_price

    # Operators

    def is_operator(self, address: str) -> bool:
        return access.is_operator(self.state, self._identity(address))

    def grant_operator(self, caller: str, address: str) -> bool:
        caller, address = self._identity(caller), self._identity(address)
        with self._exclusive():
            with atomic(self.state, f"grant operator to {address}"):
                access.require_operator(self.state, caller, "grant operator")
                granted = access.grant_operator(self.state, address)
            if granted:
                self.logger.info("Operator granted to %s by %s", address, caller)
                self.commit()
        return granted

    def revoke_operator(self, caller: str, address: str) -> bool:
        caller, address = self._identity(caller), self._identity(address)
        with self._exclusive():
            with atomic(self.state, f"revoke operator from {address}"):
                access.require_operator(self.state, caller, "revoke operator")
                revoked = access.revoke_operator(self.state, address)
            if revoked:
                self.logger.info("Operator revoked from %s by %s", address, caller)
                self.commit()
        return revoked

    # Persistence

    def commit(self) -> None:
        """Save the ledger, and an attached asset book, in one write."""
        if self.store is None:
            return
        with self.store.lock():
            self.store.save(self.state)

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        if self.store is None:
            yield
            return
        with self.store.lock():
            self.store.refresh(self.state)
            yield

    def _identity(self, address: str) -> str:
        require_text("address", address)
        return self.assets.normalize_address(address)
