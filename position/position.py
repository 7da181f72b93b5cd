"""
Position model for a single staking deposit.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict


@dataclass
class Position:
    position_id: int
    owner: str
    token_name: str
    token_symbol: str
    apy_basis_points: int  # snapshot at open, not live
    principal: int
    created_at: int  # epoch seconds
    open: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Position":
        return cls(
            position_id=int(data["position_id"]),
            owner=data["owner"],
            token_name=data.get("token_name", ""),
            token_symbol=data["token_symbol"],
            apy_basis_points=int(data["apy_basis_points"]),
            principal=int(data["principal"]),
            created_at=int(data["created_at"]),
            open=bool(data["open"]),
        )
