"""
Pytest configuration and shared fixtures for test suite.
"""
from __future__ import annotations

import os

# Force safe defaults even if .env sets other values.
os.environ["LOG_TO_FILE"] = "false"
os.environ["RPC_URL"] = ""

import pytest

from asset.local import LocalAssetBook
from core.contract import StakingContract

ONE = 10**18
DAY = 86_400
NOW = 1_700_000_000

OPERATOR = "0xowner"
STAKER = "0xsigner2"
CUSTODY = "0xstaking"
LINK_HANDLE = "0xchainlink"


class FixedClock:
    """Manually advanced clock returning epoch seconds."""

    def __init__(self, now: int = NOW) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def assets() -> LocalAssetBook:
    """Asset book with a LINK token holding 5000 units for the staker."""
    book = LocalAssetBook()
    link = book.create(LINK_HANDLE, "Chainlink", "LINK")
    link.mint(STAKER, 5000 * ONE)
    return book


@pytest.fixture
def contract(assets, clock) -> StakingContract:
    """Contract deployed with a 100-unit reserve and LINK registered at 1500 bps."""
    deployed = StakingContract.deploy(OPERATOR, CUSTODY, assets, initial_reserve=100 * ONE, clock=clock)
    deployed.add_token(OPERATOR, "Chainlink", "LINK", LINK_HANDLE, 867, 1500)
    return deployed


@pytest.fixture
def staked(contract, assets) -> StakingContract:
    """The deployed contract after the staker put 100 LINK in."""
    assets.resolve(LINK_HANDLE).approve(STAKER, CUSTODY, 100 * ONE)
    contract.stake_tokens(STAKER, "LINK", 100 * ONE)
    return contract
