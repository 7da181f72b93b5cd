"""
End-to-end behaviour of the caller-facing contract.
"""
import pytest

from asset.local import LocalAssetBook
from conftest import CUSTODY, DAY, LINK_HANDLE, ONE, OPERATOR, STAKER, FixedClock
from core.contract import StakingContract
from core.errors import InvalidArgumentError, TransferFailedError, UnauthorizedError, UnknownPositionError
from core.store import LedgerStore


def test_link_scenario(contract, assets, clock):
    assert contract.get_token_symbols() == ["LINK"]
    assert contract.current_token_id() == 1

    link = assets.resolve(LINK_HANDLE)
    link.approve(STAKER, CUSTODY, 100 * ONE)
    position_id = contract.stake_tokens(STAKER, "LINK", 100 * ONE)
    assert contract.staked_tokens("LINK") == 100 * ONE

    contract.modify_created_date(OPERATOR, position_id, clock.now - 365 * DAY)
    closed = contract.close_position(STAKER, position_id)

    assert closed.position.principal == 100 * ONE
    assert closed.interest == 15 * ONE
    assert link.balance_of(STAKER) == 5000 * ONE
    assert contract.native_balance_of(STAKER) == 15 * ONE
    assert contract.reserve_balance() == 85 * ONE
    assert contract.get_position(position_id).open is False
    assert contract.staked_tokens("LINK") == 0


def test_calculate_interest_days(contract, clock):
    assert contract.calculate_interest_days(clock.now - 101 * DAY) == 101


def test_calculate_interest(contract):
    assert contract.calculate_interest(1500, 100 * ONE, 365) == 15 * ONE


def test_operator_only_operations(staked, clock):
    with pytest.raises(UnauthorizedError):
        staked.add_token(STAKER, "Uniswap", "UNI", "0xuni", 5, 900)
    with pytest.raises(UnauthorizedError):
        staked.modify_created_date(STAKER, 1, clock.now - DAY)
    with pytest.raises(UnauthorizedError):
        staked.fund_reserve(STAKER, ONE)
    with pytest.raises(UnauthorizedError):
        staked.grant_operator(STAKER, STAKER)
    assert staked.get_token_symbols() == ["LINK"]
    assert staked.get_position(1).created_at == clock.now


def test_modify_created_date_unknown_position(contract):
    with pytest.raises(UnknownPositionError):
        contract.modify_created_date(OPERATOR, 5, 0)


def test_token_ids_never_reused_after_failure(contract):
    with pytest.raises(InvalidArgumentError):
        contract.add_token(OPERATOR, "Bad", "BAD", "0xbad", -1, 1)
    assert contract.add_token(OPERATOR, "Uniswap", "UNI", "0xuni", 5, 900) == 2
    assert contract.get_token_symbols() == ["LINK", "UNI"]


def test_grant_and_revoke_operator(contract):
    assert contract.grant_operator(OPERATOR, "0xops") is True
    assert contract.grant_operator(OPERATOR, "0xops") is False
    assert contract.is_operator("0xops")
    contract.add_token("0xops", "Uniswap", "UNI", "0xuni", 5, 900)

    assert contract.revoke_operator("0xops", OPERATOR) is True
    assert not contract.is_operator(OPERATOR)
    with pytest.raises(InvalidArgumentError):
        contract.revoke_operator("0xops", "0xops")
    assert contract.is_operator("0xops")


def test_fund_reserve(contract):
    assert contract.fund_reserve(OPERATOR, 5 * ONE) == 105 * ONE
    assert contract.reserve_balance() == 105 * ONE


def test_reads_are_idempotent(staked):
    before = staked.state.to_dict()
    for _ in range(3):
        assert staked.get_token_symbols() == ["LINK"]
        assert staked.get_token("LINK").apy_basis_points == 1500
        assert staked.get_position_ids_for_address(STAKER) == [1]
        assert staked.get_position(1).open is True
    assert staked.state.to_dict() == before


def test_state_survives_restart(tmp_path, assets):
    store = LedgerStore(str(tmp_path / "ledger.json"))
    clock = FixedClock()
    contract = StakingContract.open(store, assets, OPERATOR, CUSTODY, initial_reserve=100 * ONE, clock=clock)
    contract.add_token(OPERATOR, "Chainlink", "LINK", LINK_HANDLE, 867, 1500)
    assets.resolve(LINK_HANDLE).approve(STAKER, CUSTODY, 100 * ONE)
    contract.stake_tokens(STAKER, "LINK", 100 * ONE)

    reopened = StakingContract.open(store, assets, "ignored", "ignored", initial_reserve=1, clock=clock)

    assert reopened.state.to_dict() == contract.state.to_dict()
    assert reopened.state.custody_address == CUSTODY
    assert reopened.reserve_balance() == 100 * ONE
    assert reopened.current_position_id() == 1
    clock.advance(365 * DAY)
    assert reopened.close_position(STAKER, 1).interest == 15 * ONE
    assert StakingContract.open(store, assets, OPERATOR, CUSTODY).get_position(1).open is False


def test_failed_write_is_not_persisted(tmp_path):
    assets = LocalAssetBook()
    assets.create(LINK_HANDLE)
    store = LedgerStore(str(tmp_path / "ledger.json"))
    contract = StakingContract.deploy(OPERATOR, CUSTODY, assets, store=store, clock=FixedClock())
    contract.add_token(OPERATOR, "Chainlink", "LINK", LINK_HANDLE, 867, 1500)
    saved = store.load().to_dict()

    with pytest.raises(TransferFailedError):
        contract.stake_tokens(STAKER, "LINK", ONE)

    assert store.load().to_dict() == saved


def test_handles_on_one_store_see_each_others_writes(tmp_path, assets):
    store = LedgerStore(str(tmp_path / "ledger.json"))
    first = StakingContract.open(store, assets, OPERATOR, CUSTODY, clock=FixedClock())
    second = StakingContract.open(store, assets, OPERATOR, CUSTODY, clock=FixedClock())

    assert first.add_token(OPERATOR, "Chainlink", "LINK", LINK_HANDLE, 867, 1500) == 1
    assert second.add_token(OPERATOR, "Uniswap", "UNI", "0xuniswap", 500, 1000) == 2

    stored = store.load()
    assert list(stored.tokens) == ["LINK", "UNI"]
    assert [token.token_id for token in stored.tokens.values()] == [1, 2]
    assert second.get_token_symbols() == ["LINK", "UNI"]


def test_stale_handle_does_not_reuse_position_ids(tmp_path, assets):
    store = LedgerStore(str(tmp_path / "ledger.json"))
    first = StakingContract.open(store, assets, OPERATOR, CUSTODY, clock=FixedClock())
    first.add_token(OPERATOR, "Chainlink", "LINK", LINK_HANDLE, 867, 1500)
    second = StakingContract.open(store, assets, OPERATOR, CUSTODY, clock=FixedClock())
    assets.resolve(LINK_HANDLE).approve(STAKER, CUSTODY, 300 * ONE)

    assert first.stake_tokens(STAKER, "LINK", 100 * ONE) == 1
    assert second.stake_tokens(STAKER, "LINK", 200 * ONE) == 2

    stored = store.load()
    assert stored.positions_by_owner[STAKER] == [1, 2]
    assert stored.staked_tokens["LINK"] == 300 * ONE
