"""Per-batch serialization of ledger mutations.

Balance checks followed by an append, and the monitoring record + linked feed
withdrawal pair, must not interleave with another writer on the same batch.
Inside one process the registry below provides a re-entrant lock per key;
across processes the callers additionally lock the batch row with
SELECT ... FOR UPDATE (see crud.batch.get_batch_for_update).
"""

import threading
from contextlib import contextmanager
from typing import Dict, Hashable

_registry_guard = threading.Lock()
_locks: Dict[Hashable, threading.RLock] = {}


def _lock_for(key: Hashable) -> threading.RLock:
    with _registry_guard:
        lock = _locks.get(key)
        if lock is None:
            lock = threading.RLock()
            _locks[key] = lock
        return lock


@contextmanager
def batch_lock(batch_id: int):
    with _lock_for(("batch", batch_id)):
        yield


@contextmanager
def tenant_lock(tenant_id: str):
    """Serializes batch lifecycle changes (create / reopen) for one owner."""
    with _lock_for(("tenant", tenant_id)):
        yield
