"""
Registry of stakeable tokens keyed by symbol.
"""

from __future__ import annotations

from typing import List

from core.errors import DuplicateSymbolError, UnknownTokenError
from core.state import LedgerState
from core.validation import require_text, require_unsigned
from infra.logger import get_logger
from registry.token import Token


class TokenRegistry:
    """Issues token IDs in registration order; tokens are immutable once added."""

    def __init__(self, state: LedgerState) -> None:
        self.state = state
        self.logger = get_logger("TokenRegistry")

    def add_token(
        self,
        name: str,
        symbol: str,
        asset_handle: str,
        usd_price: int,
        apy_basis_points: int,
    ) -> int:
        require_text("name", name)
        require_text("symbol", symbol)
        require_text("asset_handle", asset_handle)
        require_unsigned("usd_price", usd_price)
        require_unsigned("apy_basis_points", apy_basis_points)
        if symbol in self.state.tokens:
            raise DuplicateSymbolError(symbol)

        token_id = self.state.current_token_id + 1
        self.state.tokens[symbol] = Token(
            token_id=token_id,
            name=name,
            symbol=symbol,
            asset_handle=asset_handle,
            usd_price=usd_price,
            eth_price=0,
            apy_basis_points=apy_basis_points,
        )
        self.state.current_token_id = token_id
        self.logger.info(
            "Token registered: id=%s %s (%s) asset=%s usd_price=%s apy_bps=%s",
            token_id,
            symbol,
            name,
            asset_handle,
            usd_price,
            apy_basis_points,
        )
        return token_id

    def get_token(self, symbol: str) -> Token:
        token = self.state.tokens.get(symbol)
        if token is None:
            raise UnknownTokenError(symbol)
        return token

    def get_token_symbols(self) -> List[str]:
        return list(self.state.tokens)
