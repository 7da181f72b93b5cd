"""
Global settings configurable via environment variables.
"""

import os

STATE_PATH = os.getenv("STAKING_STATE_PATH", "staking_state.json")
OPERATOR_ADDRESS = os.getenv("STAKING_OPERATOR", "operator")
CONTRACT_ADDRESS = os.getenv("STAKING_CONTRACT_ADDRESS", "staking")
INITIAL_RESERVE = int(os.getenv("STAKING_INITIAL_RESERVE", "0"))
ETH_USD_PRICE = int(os.getenv("STAKING_ETH_USD_PRICE", "0"))
LOCK_TIMEOUT_SEC = float(os.getenv("STAKING_LOCK_TIMEOUT_SEC", "10"))

RPC_URL = os.getenv("RPC_URL", "")
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "10"))
RPC_RECEIPT_ATTEMPTS = int(os.getenv("RPC_RECEIPT_ATTEMPTS", "20"))
RPC_RECEIPT_INTERVAL_SEC = float(os.getenv("RPC_RECEIPT_INTERVAL_SEC", "0.5"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_TO_FILE = str(os.getenv("LOG_TO_FILE", "true")).lower() == "true"
LOG_DIR = os.getenv("LOG_DIR", "logs")
