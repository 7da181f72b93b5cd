"""
ERC20 token contracts reached over JSON-RPC.
"""

from __future__ import annotations

from typing import Dict, Optional

from asset.base import AssetDirectory, TransferableAsset
from asset.rpc_client import JsonRpcClient, RpcError, requests
from core.errors import InvalidArgumentError, TransferFailedError, TransferPendingError
from core.validation import require_unsigned
from infra.logger import get_logger

# First four bytes of keccak256 over each function signature.
SELECTOR_BALANCE_OF = "70a08231"  # balanceOf(address)
SELECTOR_ALLOWANCE = "dd62ed3e"  # allowance(address,address)
SELECTOR_TRANSFER = "a9059cbb"  # transfer(address,uint256)
SELECTOR_TRANSFER_FROM = "23b872dd"  # transferFrom(address,address,uint256)

UINT256_MAX = 2**256 - 1


def encode_address(address: str) -> str:
    raw = address[2:] if address.lower().startswith("0x") else address
    if len(raw) != 40:
        raise InvalidArgumentError(f"Not a 20-byte hex address: {address}")
    try:
        int(raw, 16)
    except ValueError as exc:
        raise InvalidArgumentError(f"Not a 20-byte hex address: {address}") from exc
    return raw.lower().rjust(64, "0")


def encode_uint256(value: int) -> str:
    require_unsigned("value", value)
    if value > UINT256_MAX:
        raise InvalidArgumentError(f"Value does not fit in uint256: {value}")
    return format(value, "064x")


def encode_call(selector: str, *words: str) -> str:
    return "0x" + selector + "".join(words)


def decode_uint256(result: str) -> int:
    if not result or result == "0x":
        return 0
    return int(result, 16)


class Erc20Asset(TransferableAsset):
    """
    Token contract at a fixed address.

    Transfers are sent as transactions from the acting account, which the
    node must be able to sign for (dev-node accounts or impersonation).
    """

    def __init__(self, client: JsonRpcClient, token_address: str) -> None:
        encode_address(token_address)
        self.client = client
        self.token_address = token_address
        self.logger = get_logger("Erc20Asset")

    def balance_of(self, address: str) -> int:
        data = encode_call(SELECTOR_BALANCE_OF, encode_address(address))
        return decode_uint256(self.client.eth_call(self.token_address, data))

    def allowance(self, owner: str, spender: str) -> int:
        data = encode_call(SELECTOR_ALLOWANCE, encode_address(owner), encode_address(spender))
        return decode_uint256(self.client.eth_call(self.token_address, data))

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        data = encode_call(SELECTOR_TRANSFER, encode_address(recipient), encode_uint256(amount))
        self._submit(sender, data, f"transfer {amount} to {recipient}")

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> None:
        data = encode_call(
            SELECTOR_TRANSFER_FROM,
            encode_address(owner),
            encode_address(recipient),
            encode_uint256(amount),
        )
        self._submit(spender, data, f"transferFrom {amount} {owner} -> {recipient}")

    def _submit(self, sender: str, data: str, description: str) -> None:
        """
        Send the transaction and wait for its receipt.

        A node-side rejection or a reverted receipt is a TransferFailedError.
        Once the transaction may have been accepted (lost send response, no
        receipt in time) the outcome is unknown: TransferPendingError.
        """
        try:
            tx_hash = self.client.send_transaction(sender, self.token_address, data)
        except RpcError as exc:
            self.logger.error("%s on %s rejected: %s", description, self.token_address, exc)
            raise TransferFailedError(f"{self.token_address}: {description} failed: {exc}", self.token_address) from exc
        except requests.RequestException as exc:
            self.logger.error("%s on %s lost in transit: %s", description, self.token_address, exc)
            raise TransferPendingError(
                f"{self.token_address}: {description} may have been submitted: {exc}", self.token_address
            ) from exc

        try:
            receipt = self.client.wait_for_receipt(tx_hash)
        except (RpcError, requests.RequestException) as exc:
            self.logger.error("%s on %s unconfirmed (tx=%s): %s", description, self.token_address, tx_hash, exc)
            raise TransferPendingError(
                f"{self.token_address}: {description} unconfirmed (tx={tx_hash})", self.token_address, tx_hash
            ) from exc

        if str(receipt.get("status", "0x0")).lower() not in ("0x1", "1"):
            self.logger.error("%s on %s reverted (tx=%s)", description, self.token_address, tx_hash)
            raise TransferFailedError(f"{self.token_address}: {description} reverted", self.token_address)
        self.logger.info("%s on %s confirmed (tx=%s)", description, self.token_address, tx_hash)


class Erc20Directory(AssetDirectory):
    """Treats every asset handle as a token contract address."""

    def __init__(self, client: JsonRpcClient) -> None:
        self.client = client
        self._assets: Dict[str, Erc20Asset] = {}

    def resolve(self, handle: str) -> Erc20Asset:
        asset: Optional[Erc20Asset] = self._assets.get(handle.lower())
        if asset is None:
            try:
                asset = Erc20Asset(self.client, handle)
            except InvalidArgumentError as exc:
                raise TransferFailedError(f"Asset handle is not a token address: {handle}", handle) from exc
            self._assets[handle.lower()] = asset
        return asset

    def normalize_address(self, address: str) -> str:
        """Lowercase hex, so checksummed and plain forms name the same owner."""
        return "0x" + encode_address(address)[24:]
