"""
In-process ERC20-style asset book.

Backs the CLI when no RPC endpoint is configured, where it is saved inside
the ledger checkpoint, and stands in for token contracts in tests.
"""

from __future__ import annotations

from typing import Any, Dict, List

from asset.base import AssetDirectory, TransferableAsset
from core.errors import InvalidArgumentError, TransferFailedError
from core.validation import require_text, require_unsigned
from infra.logger import get_logger


class LocalAsset(TransferableAsset):
    def __init__(self, handle: str, name: str = "", symbol: str = "") -> None:
        self.handle = handle
        self.name = name
        self.symbol = symbol
        self.balances: Dict[str, int] = {}
        self.allowances: Dict[str, Dict[str, int]] = {}  # owner -> spender -> amount
        self.fail_transfers = False  # lets tests simulate a rejecting token
        self.logger = get_logger("LocalAsset")

    @property
    def total_supply(self) -> int:
        return sum(self.balances.values())

    def balance_of(self, address: str) -> int:
        return self.balances.get(address, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self.allowances.get(owner, {}).get(spender, 0)

    def mint(self, recipient: str, amount: int) -> None:
        require_text("recipient", recipient)
        require_unsigned("amount", amount)
        self.balances[recipient] = self.balance_of(recipient) + amount
        self.logger.info("Minted %s %s to %s", amount, self.handle, recipient)

    def approve(self, owner: str, spender: str, amount: int) -> None:
        require_text("owner", owner)
        require_text("spender", spender)
        require_unsigned("amount", amount)
        self.allowances.setdefault(owner, {})[spender] = amount
        self.logger.info("%s approved %s to spend %s %s", owner, spender, amount, self.handle)

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        self._check_enabled()
        self._move(sender, recipient, amount)

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> None:
        self._check_enabled()
        allowed = self.allowance(owner, spender)
        if amount > allowed:
            raise TransferFailedError(
                f"{self.handle}: allowance {allowed} of {spender} over {owner} is below {amount}",
                self.handle,
            )
        self._move(owner, recipient, amount)
        self.allowances.setdefault(owner, {})[spender] = allowed - amount

    def _move(self, sender: str, recipient: str, amount: int) -> None:
        require_unsigned("amount", amount)
        available = self.balance_of(sender)
        if amount > available:
            raise TransferFailedError(
                f"{self.handle}: balance {available} of {sender} is below {amount}",
                self.handle,
            )
        self.balances[sender] = available - amount
        self.balances[recipient] = self.balance_of(recipient) + amount
        self.logger.debug("Moved %s %s from %s to %s", amount, self.handle, sender, recipient)

    def _check_enabled(self) -> None:
        if self.fail_transfers:
            raise TransferFailedError(f"{self.handle}: transfers are disabled", self.handle)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "handle": self.handle,
            "name": self.name,
            "symbol": self.symbol,
            "balances": dict(self.balances),
            "allowances": {owner: dict(spenders) for owner, spenders in self.allowances.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LocalAsset":
        asset = cls(data["handle"], data.get("name", ""), data.get("symbol", ""))
        asset.balances = {addr: int(v) for addr, v in data.get("balances", {}).items()}
        asset.allowances = {
            owner: {spender: int(v) for spender, v in spenders.items()}
            for owner, spenders in data.get("allowances", {}).items()
        }
        return asset


class LocalAssetBook(AssetDirectory):
    """Handle -> LocalAsset mapping."""

    def __init__(self) -> None:
        self.assets: Dict[str, LocalAsset] = {}
        self.logger = get_logger("LocalAssetBook")

    def create(self, handle: str, name: str = "", symbol: str = "") -> LocalAsset:
        require_text("handle", handle)
        if handle in self.assets:
            raise InvalidArgumentError(f"Asset handle already exists: {handle}")
        asset = LocalAsset(handle, name, symbol)
        self.assets[handle] = asset
        self.logger.info("Created local asset %s (%s)", handle, symbol or name)
        return asset

    def get_or_create(self, handle: str) -> LocalAsset:
        return self.assets.get(handle) or self.create(handle)

    def resolve(self, handle: str) -> LocalAsset:
        asset = self.assets.get(handle)
        if asset is None:
            raise TransferFailedError(f"No asset bound to handle {handle}", handle)
        return asset

    def handles(self) -> List[str]:
        return list(self.assets)

    def to_dict(self) -> Dict[str, Any]:
        return {"assets": [asset.to_dict() for asset in self.assets.values()]}

    def load_dict(self, data: Dict[str, Any]) -> None:
        """Replace every asset with the ones in data (as produced by to_dict)."""
        assets = [LocalAsset.from_dict(raw) for raw in data.get("assets", [])]
        self.assets = {asset.handle: asset for asset in assets}
