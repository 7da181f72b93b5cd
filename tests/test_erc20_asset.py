"""
ERC20 adapter against a scripted JSON-RPC session (no network).
"""
import pytest

from asset.erc20 import Erc20Asset, Erc20Directory, encode_address, encode_uint256
from asset.rpc_client import JsonRpcClient, RpcError, requests
from config import settings
from core.contract import StakingContract
from core.errors import InvalidArgumentError, TransferFailedError, TransferPendingError

TOKEN = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
ALICE = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
POOL = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


class FakeResponse:
    def __init__(self, body, status_code=200):
        self._body = body
        self.status_code = status_code
        self.text = str(body)

    def json(self):
        return self._body


class FakeSession:
    """Answers JSON-RPC calls from a method -> result table."""

    def __init__(self, results):
        self.results = results
        self.headers = {}
        self.requests = []

    def post(self, url, json=None, timeout=None):
        self.requests.append(json)
        result = self.results[json["method"]]
        if isinstance(result, Exception):
            raise result
        if isinstance(result, FakeResponse):
            return result
        return FakeResponse({"jsonrpc": "2.0", "id": json["id"], "result": result})


def make_asset(results):
    session = FakeSession(results)
    client = JsonRpcClient("http://node.test", session=session)
    return Erc20Asset(client, TOKEN), session


def test_encoding():
    assert encode_address(ALICE) == "000000000000000000000000" + ALICE[2:].lower()
    assert encode_uint256(255) == "0" * 62 + "ff"
    with pytest.raises(InvalidArgumentError):
        encode_address("0x1234")
    with pytest.raises(InvalidArgumentError):
        encode_uint256(2**256)


def test_balance_of_decodes_eth_call():
    asset, session = make_asset({"eth_call": hex(100 * 10**18)})
    assert asset.balance_of(ALICE) == 100 * 10**18
    call = session.requests[0]["params"][0]
    assert call["to"] == TOKEN
    assert call["data"] == "0x70a08231" + encode_address(ALICE)


def test_transfer_from_sends_transaction_from_spender():
    asset, session = make_asset({"eth_sendTransaction": "0xhash", "eth_getTransactionReceipt": {"status": "0x1"}})
    asset.transfer_from(POOL, ALICE, POOL, 5)
    tx = session.requests[0]["params"][0]
    assert session.requests[0]["method"] == "eth_sendTransaction"
    assert tx["from"] == POOL
    assert tx["data"] == "0x23b872dd" + encode_address(ALICE) + encode_address(POOL) + encode_uint256(5)


def test_reverted_transfer_raises():
    asset, _ = make_asset({"eth_sendTransaction": "0xhash", "eth_getTransactionReceipt": {"status": "0x0"}})
    with pytest.raises(TransferFailedError):
        asset.transfer(POOL, ALICE, 5)


def test_rpc_error_becomes_transfer_failure():
    error = FakeResponse({"jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": "insufficient allowance"}})
    asset, _ = make_asset({"eth_sendTransaction": error})
    with pytest.raises(TransferFailedError) as excinfo:
        asset.transfer(POOL, ALICE, 5)
    assert isinstance(excinfo.value.__cause__, RpcError)
    assert excinfo.value.__cause__.code == -32000


def test_http_error_raises_rpc_error():
    asset, _ = make_asset({"eth_call": FakeResponse({}, status_code=502)})
    with pytest.raises(RpcError):
        asset.balance_of(ALICE)


def test_directory_caches_and_rejects_bad_handles():
    client = JsonRpcClient("http://node.test", session=FakeSession({}))
    directory = Erc20Directory(client)
    assert directory.resolve(TOKEN) is directory.resolve(TOKEN.lower())
    with pytest.raises(TransferFailedError):
        directory.resolve("LINK")


@pytest.fixture
def quick_receipts(monkeypatch):
    monkeypatch.setattr(settings, "RPC_RECEIPT_ATTEMPTS", 2)
    monkeypatch.setattr(settings, "RPC_RECEIPT_INTERVAL_SEC", 0)


def test_missing_receipt_is_pending_not_failed(quick_receipts):
    asset, session = make_asset({"eth_sendTransaction": "0xhash", "eth_getTransactionReceipt": None})
    with pytest.raises(TransferPendingError) as excinfo:
        asset.transfer(POOL, ALICE, 5)
    assert not isinstance(excinfo.value, TransferFailedError)
    assert excinfo.value.tx_hash == "0xhash"
    assert [r["method"] for r in session.requests] == [
        "eth_sendTransaction",
        "eth_getTransactionReceipt",
        "eth_getTransactionReceipt",
    ]


def test_lost_send_response_is_pending_without_hash():
    asset, session = make_asset({"eth_sendTransaction": requests.ConnectionError("reset by peer")})
    with pytest.raises(TransferPendingError) as excinfo:
        asset.transfer(POOL, ALICE, 5)
    assert excinfo.value.tx_hash is None
    assert len(session.requests) == 1


def test_directory_normalizes_addresses():
    directory = Erc20Directory(JsonRpcClient("http://node.test", session=FakeSession({})))
    assert directory.normalize_address(ALICE) == ALICE.lower()
    assert directory.normalize_address("0x" + ALICE[2:].upper()) == ALICE.lower()
    with pytest.raises(InvalidArgumentError):
        directory.normalize_address("alice")


def rpc_contract():
    session = FakeSession({"eth_sendTransaction": "0xhash", "eth_getTransactionReceipt": {"status": "0x1"}})
    directory = Erc20Directory(JsonRpcClient("http://node.test", session=session))
    contract = StakingContract.deploy(POOL, POOL, directory, initial_reserve=10**18, clock=lambda: 1_700_000_000)
    contract.add_token(POOL, "Test Token", "TKN", TOKEN, 1, 1500)
    return contract, session


def test_unconfirmed_stake_keeps_position_and_lists_it_pending(quick_receipts):
    contract, session = rpc_contract()
    session.results["eth_getTransactionReceipt"] = None

    with pytest.raises(TransferPendingError):
        contract.stake_tokens(ALICE, "TKN", 5)

    assert contract.get_position(1).principal == 5
    assert contract.staked_tokens("TKN") == 5
    assert contract.pending_transfers() == [
        {
            "action": "stake",
            "position_id": 1,
            "asset_handle": TOKEN,
            "amount": 5,
            "tx_hash": "0xhash",
            "recorded_at": 1_700_000_000,
        }
    ]


def test_unconfirmed_close_keeps_position_closed(quick_receipts):
    contract, session = rpc_contract()
    contract.stake_tokens(ALICE, "TKN", 5)
    session.results["eth_getTransactionReceipt"] = None

    with pytest.raises(TransferPendingError):
        contract.close_position(ALICE, 1)

    assert contract.get_position(1).open is False
    assert contract.staked_tokens("TKN") == 0
    assert [entry["action"] for entry in contract.pending_transfers()] == ["close"]


def test_rejected_submission_rolls_back_stake():
    contract, session = rpc_contract()
    session.results["eth_sendTransaction"] = FakeResponse(
        {"jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": "insufficient allowance"}}
    )
    with pytest.raises(TransferFailedError):
        contract.stake_tokens(ALICE, "TKN", 5)
    assert contract.current_position_id() == 0
    assert contract.pending_transfers() == []


def test_owner_matches_across_address_casing():
    contract, _ = rpc_contract()
    contract.stake_tokens(ALICE, "TKN", 5)

    assert contract.get_position(1).owner == ALICE.lower()
    assert contract.get_position_ids_for_address(ALICE.lower()) == [1]
    assert contract.is_operator(POOL.lower())
    closed = contract.close_position("0x" + ALICE[2:].upper(), 1)
    assert closed.position.principal == 5
