"""
Explicit ledger store shared by the registry, position ledger and reserve.

Nothing here is process-global: every component receives the LedgerState it
operates on, and only those components write to it.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List

from position.position import Position
from registry.token import Token

SCHEMA_VERSION = 1


class LedgerState:
    """Tokens, positions, counters, staked totals and the native reserve."""

    def __init__(
        self,
        operators: Iterable[str],
        custody_address: str,
        eth_usd_price: int = 0,
    ) -> None:
        self.operators: List[str] = list(dict.fromkeys(operators))
        self.custody_address = custody_address
        self.eth_usd_price = eth_usd_price
        self.current_token_id: int = 0
        self.current_position_id: int = 0
        # dicts keep insertion order, which is registration order for symbols
        self.tokens: Dict[str, Token] = {}
        self.positions: Dict[int, Position] = {}
        self.positions_by_owner: Dict[str, List[int]] = {}
        self.staked_tokens: Dict[str, int] = {}
        self.reserve_balance: int = 0
        self.native_balances: Dict[str, int] = {}
        # transfers submitted without a known outcome, for operator reconciliation
        self.pending_transfers: List[Dict[str, Any]] = []
        # bumped by LedgerStore on every save; detects stale in-memory copies
        self.revision: int = 0

    def snapshot(self) -> Dict[str, Any]:
        """Return a detached copy of every field, suitable for restore()."""
        return self.to_dict()

    def restore(self, snapshot: Dict[str, Any]) -> None:
        """Replace all fields in place so existing references see the rollback."""
        restored = LedgerState.from_dict(snapshot)
        self.__dict__.clear()
        self.__dict__.update(restored.__dict__)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema_version": SCHEMA_VERSION,
            "operators": list(self.operators),
            "custody_address": self.custody_address,
            "eth_usd_price": self.eth_usd_price,
            "current_token_id": self.current_token_id,
            "current_position_id": self.current_position_id,
            "tokens": [token.to_dict() for token in self.tokens.values()],
            "positions": [position.to_dict() for position in self.positions.values()],
            "positions_by_owner": {owner: list(ids) for owner, ids in self.positions_by_owner.items()},
            "staked_tokens": dict(self.staked_tokens),
            "reserve_balance": self.reserve_balance,
            "native_balances": dict(self.native_balances),
            "pending_transfers": [dict(entry) for entry in self.pending_transfers],
            "revision": self.revision,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LedgerState":
        version = data.get("schema_version", SCHEMA_VERSION)
        if version != SCHEMA_VERSION:
            raise ValueError(f"Unsupported ledger schema version: {version}")
        state = cls(
            operators=data.get("operators", []),
            custody_address=data["custody_address"],
            eth_usd_price=int(data.get("eth_usd_price", 0)),
        )
        state.current_token_id = int(data.get("current_token_id", 0))
        state.current_position_id = int(data.get("current_position_id", 0))
        for raw in data.get("tokens", []):
            token = Token.from_dict(raw)
            state.tokens[token.symbol] = token
        for raw in data.get("positions", []):
            position = Position.from_dict(raw)
            state.positions[position.position_id] = position
        state.positions_by_owner = {
            owner: [int(pid) for pid in ids] for owner, ids in data.get("positions_by_owner", {}).items()
        }
        state.staked_tokens = {symbol: int(v) for symbol, v in data.get("staked_tokens", {}).items()}
        state.reserve_balance = int(data.get("reserve_balance", 0))
        state.native_balances = {addr: int(v) for addr, v in data.get("native_balances", {}).items()}
        state.pending_transfers = [dict(entry) for entry in data.get("pending_transfers", [])]
        state.revision = int(data.get("revision", 0))
        return state
