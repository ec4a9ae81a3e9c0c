"""
Local cache of encrypted ciphers.

Stores only EncryptedCipher envelopes, never plaintext, in a single JSON file:

    {"lastSync": 1700000000,
     "ciphers": [<EncryptedCipher>, ...],
     "pending": {"updated": ["<id>", ...], "deleted": ["<id>", ...]}}

Local edits are recorded as pending and pushed on the next sync(). A sync
either commits completely (new cipher set, cleared pending changes, advanced
lastSync, file rewritten) or leaves the cache untouched.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import TYPE_CHECKING

from cipherstore.models import EncryptedCipher
from cipherstore.sync import SyncResponse, apply_sync_response

if TYPE_CHECKING:
    from cipherstore.client import CipherClient

logger = logging.getLogger(__name__)


class CipherCache:
    """File-backed set of encrypted ciphers with pending local changes."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self.last_sync = 0
        self._ciphers: dict[str, EncryptedCipher] = {}
        self._updated: set[str] = set()
        self._deleted: set[str] = set()

    @classmethod
    def open(cls, path: Path | str) -> CipherCache:
        """Create a cache and load it from ``path`` if the file exists."""
        cache = cls(path)
        cache.load()
        return cache

    # ─── Local state ─────────────────────────────────────────────

    def get(self, cipher_id: str) -> EncryptedCipher | None:
        return self._ciphers.get(cipher_id)

    def ciphers(self) -> list[EncryptedCipher]:
        return list(self._ciphers.values())

    def put(self, cipher: EncryptedCipher) -> None:
        """Add or replace a cipher and mark it for upload."""
        self._ciphers[cipher.id] = cipher
        self._updated.add(cipher.id)
        self._deleted.discard(cipher.id)

    def remove(self, cipher_id: str) -> bool:
        """Drop a cipher and mark its ID for deletion. Returns True if it existed."""
        existed = self._ciphers.pop(cipher_id, None) is not None
        self._updated.discard(cipher_id)
        self._deleted.add(cipher_id)
        return existed

    @property
    def pending_updates(self) -> list[EncryptedCipher]:
        return [self._ciphers[cipher_id] for cipher_id in sorted(self._updated) if cipher_id in self._ciphers]

    @property
    def pending_deletes(self) -> list[str]:
        return sorted(self._deleted)

    # ─── Persistence ─────────────────────────────────────────────

    def load(self) -> None:
        if not self.path.exists():
            return
        data = json.loads(self.path.read_text(encoding="utf-8"))
        self.last_sync = int(data.get("lastSync", 0))
        self._ciphers = {}
        for raw in data.get("ciphers", []):
            cipher = EncryptedCipher.model_validate(raw)
            self._ciphers[cipher.id] = cipher
        pending = data.get("pending", {})
        self._updated = set(pending.get("updated", []))
        self._deleted = set(pending.get("deleted", []))
        logger.debug("Loaded %d ciphers from %s", len(self._ciphers), self.path)

    def save(self) -> None:
        """Atomically write the cache file."""
        content = json.dumps(
            {
                "lastSync": self.last_sync,
                "ciphers": [c.to_wire() for c in self._ciphers.values()],
                "pending": {"updated": sorted(self._updated), "deleted": sorted(self._deleted)},
            },
            indent=2,
        )
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".ciphers-", suffix=".tmp")
        try:
            os.write(fd, content.encode("utf-8"))
            os.close(fd)
            os.replace(tmp, self.path)
        except Exception:
            try:
                os.close(fd)
            except OSError:
                pass
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    # ─── Sync ────────────────────────────────────────────────────

    async def sync(self, client: CipherClient) -> SyncResponse:
        """Run one sync round trip and commit its result.

        If the round trip raises, the cache is left exactly as it was. Edits
        made with put()/remove() while the request is in flight stay pending
        and win over the response.
        """
        started = int(time.time())
        pushed_updates = {cipher.id: cipher for cipher in self.pending_updates}
        pushed_deletes = set(self._deleted)
        response = await client.sync(self.last_sync, list(pushed_updates.values()), sorted(pushed_deletes))

        # Still pending: updated after the snapshot, or deleted but not pushed.
        updated = {cid for cid in self._updated if self._ciphers.get(cid) is not pushed_updates.get(cid)}
        deleted = self._deleted - pushed_deletes

        merged = apply_sync_response(self._ciphers, response)
        for cipher_id in updated:
            merged[cipher_id] = self._ciphers[cipher_id]
        for cipher_id in deleted:
            merged.pop(cipher_id, None)

        previous = (self._ciphers, self._updated, self._deleted, self.last_sync)
        self._ciphers, self._updated, self._deleted, self.last_sync = merged, updated, deleted, started
        try:
            self.save()
        except Exception:
            self._ciphers, self._updated, self._deleted, self.last_sync = previous
            raise
        return response
