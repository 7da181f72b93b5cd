"""
Command-line entry point for the staking ledger.

Local mode (no RPC_URL) keeps token balances in an asset book saved inside the
ledger file; RPC mode treats asset handles as ERC20 contract addresses. Each
invocation holds the ledger lock from load to save.
"""

from __future__ import annotations

import argparse
import json
import sys
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, List, Optional

from dotenv import load_dotenv

# Load environment variables before other imports that may read them.
load_dotenv()

from asset.base import AssetDirectory
from asset.erc20 import Erc20Directory
from asset.local import LocalAssetBook
from asset.rpc_client import JsonRpcClient, RpcError
from config import settings
from core.contract import StakingContract
from core.errors import InvalidArgumentError, StakingError
from core.store import LedgerStore
from infra.checkpoint import CheckpointError
from infra.logger import get_logger

logger = get_logger("Main")


def parse_amount(text: str) -> int:
    """Accept plain integers and exact scientific notation such as 100e18."""
    try:
        value = Decimal(text)
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError(f"not a number: {text}") from exc
    if value != value.to_integral_value() or value < 0:
        raise argparse.ArgumentTypeError(f"not a whole non-negative amount: {text}")
    return int(value)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="staking", description="Multi-token staking ledger")
    parser.add_argument("--state", default=settings.STATE_PATH, help="ledger store path")
    parser.add_argument("--rpc-url", default=settings.RPC_URL, help="JSON-RPC endpoint; enables ERC20 mode")
    parser.add_argument("--caller", default=settings.OPERATOR_ADDRESS, help="identity performing the call")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("add-token", help="register a token (operator)")
    p.add_argument("name")
    p.add_argument("symbol")
    p.add_argument("asset_handle")
    p.add_argument("usd_price", type=parse_amount)
    p.add_argument("apy_basis_points", type=parse_amount)

    sub.add_parser("tokens", help="list registered symbols")

    p = sub.add_parser("token", help="show a registered token")
    p.add_argument("symbol")

    p = sub.add_parser("stake", help="stake an amount of a registered token")
    p.add_argument("symbol")
    p.add_argument("amount", type=parse_amount)

    sub.add_parser("positions", help="list position ids owned by --caller")

    p = sub.add_parser("position", help="show a position")
    p.add_argument("position_id", type=int)

    p = sub.add_parser("close", help="close a position owned by --caller")
    p.add_argument("position_id", type=int)

    p = sub.add_parser("interest", help="interest for apy, principal and days")
    p.add_argument("apy_basis_points", type=parse_amount)
    p.add_argument("principal", type=parse_amount)
    p.add_argument("days", type=parse_amount)

    p = sub.add_parser("days", help="whole days elapsed since an epoch timestamp")
    p.add_argument("since", type=int)

    p = sub.add_parser("backdate", help="set a position's creation timestamp (operator)")
    p.add_argument("position_id", type=int)
    p.add_argument("timestamp", type=int)

    p = sub.add_parser("fund-reserve", help="add native currency to the reserve (operator)")
    p.add_argument("amount", type=parse_amount)

    sub.add_parser("reserve", help="show reserve and caller native balance")

    sub.add_parser("pending", help="list transfers submitted without a confirmed outcome")

    p = sub.add_parser("mint", help="local mode: mint asset balance")
    p.add_argument("asset_handle")
    p.add_argument("recipient")
    p.add_argument("amount", type=parse_amount)

    p = sub.add_parser("approve", help="local mode: approve the contract to pull --caller's balance")
    p.add_argument("asset_handle")
    p.add_argument("amount", type=parse_amount)

    p = sub.add_parser("balance", help="asset balance of an address")
    p.add_argument("asset_handle")
    p.add_argument("address")

    return parser


def _require_local(assets: AssetDirectory, command: str) -> LocalAssetBook:
    if not isinstance(assets, LocalAssetBook):
        raise InvalidArgumentError(f"'{command}' is only available without an RPC endpoint")
    return assets


def run_command(args: argparse.Namespace, contract: StakingContract, assets: AssetDirectory) -> Any:
    caller = args.caller
    custody = contract.state.custody_address

    def add_token() -> Dict[str, Any]:
        if isinstance(assets, LocalAssetBook):
            assets.get_or_create(args.asset_handle)
        token_id = contract.add_token(
            caller, args.name, args.symbol, args.asset_handle, args.usd_price, args.apy_basis_points
        )
        return {"token_id": token_id}

    def close() -> Dict[str, Any]:
        closed = contract.close_position(caller, args.position_id)
        return {
            "position_id": closed.position.position_id,
            "principal": closed.position.principal,
            "symbol": closed.position.token_symbol,
            "days": closed.days,
            "interest": closed.interest,
        }

    def mint() -> Dict[str, Any]:
        asset = _require_local(assets, "mint").get_or_create(args.asset_handle)
        asset.mint(args.recipient, args.amount)
        contract.commit()
        return {"balance": asset.balance_of(args.recipient)}

    def approve() -> Dict[str, Any]:
        asset = _require_local(assets, "approve").resolve(args.asset_handle)
        asset.approve(caller, custody, args.amount)
        contract.commit()
        return {"allowance": asset.allowance(caller, custody)}

    commands: Dict[str, Callable[[], Any]] = {
        "add-token": add_token,
        "tokens": lambda: contract.get_token_symbols(),
        "token": lambda: contract.get_token(args.symbol).to_dict(),
        "stake": lambda: {"position_id": contract.stake_tokens(caller, args.symbol, args.amount)},
        "positions": lambda: contract.get_position_ids_for_address(caller),
        "position": lambda: contract.get_position(args.position_id).to_dict(),
        "close": close,
        "interest": lambda: contract.calculate_interest(args.apy_basis_points, args.principal, args.days),
        "days": lambda: contract.calculate_interest_days(args.since),
        "backdate": lambda: contract.modify_created_date(caller, args.position_id, args.timestamp),
        "fund-reserve": lambda: {"reserve": contract.fund_reserve(caller, args.amount)},
        "reserve": lambda: {"reserve": contract.reserve_balance(), "native_balance": contract.native_balance_of(caller)},
        "pending": lambda: contract.pending_transfers(),
        "mint": mint,
        "approve": approve,
        "balance": lambda: assets.resolve(args.asset_handle).balance_of(args.address),
    }
    return commands[args.command]()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        if args.rpc_url:
            assets: AssetDirectory = Erc20Directory(JsonRpcClient(args.rpc_url))
            store = LedgerStore(args.state)
        else:
            assets = LocalAssetBook()
            store = LedgerStore(args.state, asset_book=assets)
        with store.lock():
            contract = StakingContract.open(
                store,
                assets,
                operator=settings.OPERATOR_ADDRESS,
                custody_address=settings.CONTRACT_ADDRESS,
                initial_reserve=settings.INITIAL_RESERVE,
                eth_usd_price=settings.ETH_USD_PRICE,
            )
            result = run_command(args, contract, assets)
    except (StakingError, CheckpointError, RpcError, OSError) as exc:
        logger.error("%s failed: %s", args.command, exc)
        print(json.dumps({"error": type(exc).__name__, "message": str(exc)}))
        return 1

    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
