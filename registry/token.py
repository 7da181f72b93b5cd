"""
Token model for a single registered stakeable asset.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class Token:
    token_id: int
    name: str
    symbol: str
    asset_handle: str  # resolved through an AssetDirectory
    usd_price: int
    eth_price: int
    apy_basis_points: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Token":
        return cls(
            token_id=int(data["token_id"]),
            name=data["name"],
            symbol=data["symbol"],
            asset_handle=data["asset_handle"],
            usd_price=int(data["usd_price"]),
            eth_price=int(data.get("eth_price", 0)),
            apy_basis_points=int(data["apy_basis_points"]),
        )
