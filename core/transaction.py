"""
All-or-nothing boundary around state-changing operations.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Tuple

from core.state import LedgerState
from infra.logger import get_logger

logger = get_logger("Transaction")


@contextmanager
def atomic(
    state: LedgerState,
    label: str,
    keep_on: Tuple[type[BaseException], ...] = (),
) -> Iterator[LedgerState]:
    """
    Snapshot the state, run the block, and restore the snapshot if it raises.

    External asset movements inside the block are not undone; callers put
    them last so a failed movement is the final thing that can go wrong.
    Exceptions listed in keep_on propagate with the block's writes kept: they
    signal an external effect that may already have happened.

    The snapshot copies the whole ledger, the same cost as the JSON save that
    follows every committed write.
    """
    snapshot = state.snapshot()
    try:
        yield state
    except keep_on as exc:  # type: ignore[misc]
        logger.warning("Kept writes of %s after unresolved outcome: %s", label, exc)
        raise
    except BaseException as exc:
        state.restore(snapshot)
        logger.warning("Rolled back %s: %s", label, exc)
        raise
