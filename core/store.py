"""
Durable ledger store on top of JSON checkpoints.

One file holds the ledger and, in local mode, the asset book, so a single
replace commits both. A sibling .lock file serialises processes sharing it.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from filelock import FileLock, Timeout

from asset.local import LocalAssetBook
from config import settings
from core.state import LedgerState
from infra.checkpoint import CheckpointError, load_checkpoint, save_checkpoint
from infra.logger import get_logger


class LedgerStore:
    """Load and save a LedgerState at a fixed path."""

    def __init__(
        self,
        path: str,
        asset_book: Optional[LocalAssetBook] = None,
        lock_timeout: Optional[float] = None,
    ) -> None:
        self.path = path
        self.asset_book = asset_book
        self.lock_timeout = lock_timeout if lock_timeout is not None else settings.LOCK_TIMEOUT_SEC
        self.lock_path = f"{path}.lock"
        self._lock = FileLock(self.lock_path, timeout=self.lock_timeout)
        self.logger = get_logger("LedgerStore")

    @contextmanager
    def lock(self) -> Iterator[None]:
        """Hold the inter-process lock; re-entrant for this store object."""
        directory = os.path.dirname(self.lock_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        try:
            self._lock.acquire()
        except Timeout as exc:
            raise CheckpointError(
                f"Ledger {self.path} is locked by another process (waited {self.lock_timeout}s)"
            ) from exc
        try:
            yield
        finally:
            self._lock.release()

    def load(self) -> Optional[LedgerState]:
        data = load_checkpoint(self.path)
        if data is None:
            self.logger.info("No ledger found at %s", self.path)
            return None
        state = self._decode(data)
        self.logger.info(
            "Loaded ledger from %s: tokens=%s positions=%s revision=%s",
            self.path,
            len(state.tokens),
            len(state.positions),
            state.revision,
        )
        return state

    def refresh(self, state: LedgerState) -> bool:
        """
        Bring a long-lived state up to the stored revision, in place.

        Call with the lock held. Returns True when another writer had saved
        since this state was loaded.
        """
        data = load_checkpoint(self.path)
        if data is None or int(data.get("revision", 0)) == state.revision:
            return False
        fresh = self._decode(data)
        state.restore(fresh.snapshot())
        self.logger.info("Ledger %s moved to revision %s; reloaded", self.path, state.revision)
        return True

    def save(self, state: LedgerState) -> None:
        state.revision += 1
        data = state.to_dict()
        if self.asset_book is not None:
            data["asset_book"] = self.asset_book.to_dict()
        try:
            save_checkpoint(data, self.path)
        except BaseException:
            # nothing reached the file; keep matching its revision
            state.revision -= 1
            raise
        self.logger.debug("Ledger saved to %s (revision %s)", self.path, state.revision)

    def _decode(self, data: Dict[str, Any]) -> LedgerState:
        try:
            state = LedgerState.from_dict(data)
            if self.asset_book is not None:
                self.asset_book.load_dict(data.get("asset_book", {}))
        except (KeyError, TypeError, ValueError) as exc:
            raise CheckpointError(f"Malformed ledger in {self.path}: {exc}") from exc
        return state
