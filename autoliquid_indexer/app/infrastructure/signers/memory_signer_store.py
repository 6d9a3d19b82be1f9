from __future__ import annotations

import threading

from autoliquid_indexer.app.domain.checkpoint import normalize_sui_address
from autoliquid_indexer.app.domain.errors import IndexerError
from autoliquid_indexer.app.domain.ports.out import SignerStore


class SignerNotFoundError(IndexerError):
    pass


class InMemorySignerStore(SignerStore):
    """
    Process-local signer registry.

    Key material is opaque bytes; this store neither derives addresses nor
    signs. Every access goes through one lock so the rebalancing loop and
    key management can share an instance across threads.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._signers: dict[str, bytes] = {}

    def get_signer_by_address(self, address: str) -> bytes:
        key = normalize_sui_address(address)
        with self._lock:
            try:
                return self._signers[key]
            except KeyError:
                raise SignerNotFoundError("Signer not found", {"address": key}) from None

    def store_signer(self, address: str, signer: bytes) -> None:
        with self._lock:
            self._signers[normalize_sui_address(address)] = bytes(signer)

    def get_all_addresses(self) -> list[str]:
        with self._lock:
            return sorted(self._signers)
