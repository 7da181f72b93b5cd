"""
JSON checkpointing for durable ledger state.
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, Optional


class CheckpointError(Exception):
    """Raised when a checkpoint exists but cannot be read back."""


def load_checkpoint(path: str) -> Optional[Dict[str, Any]]:
    """
    Return the stored mapping, or None when no checkpoint has been written yet.

    A present but unreadable file is an error: starting from an empty ledger
    would silently forget every open position.
    """
    if not os.path.exists(path):
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        raise CheckpointError(f"Failed to read checkpoint {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise CheckpointError(f"Checkpoint {path} does not hold a JSON object")
    return data


def save_checkpoint(data: Dict[str, Any], path: str) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    tmp_path = f"{path}.tmp"
    with open(tmp_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, sort_keys=True)
        f.flush()
        os.fsync(f.fileno())
    os.replace(tmp_path, path)
