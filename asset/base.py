"""
External transferable-asset interface (ERC20-style).
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class TransferableAsset(ABC):
    """Balances held outside the ledger; every rejection raises TransferFailedError."""

    @abstractmethod
    def balance_of(self, address: str) -> int:
        raise NotImplementedError

    @abstractmethod
    def allowance(self, owner: str, spender: str) -> int:
        raise NotImplementedError

    @abstractmethod
    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        """Move amount from sender's own balance."""
        raise NotImplementedError

    @abstractmethod
    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> None:
        """Move amount out of owner's balance using spender's allowance."""
        raise NotImplementedError


class AssetDirectory(ABC):
    """Maps the asset handle stored on a Token to a live asset."""

    @abstractmethod
    def resolve(self, handle: str) -> TransferableAsset:
        """
        Return the asset for handle.

        Raises:
            TransferFailedError: no asset can be reached under this handle.
        """
        raise NotImplementedError

    def normalize_address(self, address: str) -> str:
        """Canonical form used to key owners and operators on the ledger."""
        return address
