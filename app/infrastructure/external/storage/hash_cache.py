"""Fixed-capacity FIFO cache from content hash to storage key."""

from collections import OrderedDict


class FifoHashCache:
    """Maps SHA-256 content hashes to the key the content was stored under.

    Eviction is first-in-first-out: when full, the oldest inserted hash is
    dropped. Lookups and re-inserts of an existing hash do not move it, so
    this is not an LRU cache. Process-local and never persisted.
    """

    DEFAULT_CAPACITY = 1000

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be a positive integer")
        self.capacity = capacity
        self._entries: OrderedDict[str, str] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, file_hash: object) -> bool:
        return file_hash in self._entries

    def get(self, file_hash: str) -> str | None:
        return self._entries.get(file_hash)

    def put(self, file_hash: str, key: str) -> str | None:
        """Insert or overwrite. Returns the evicted hash, if any."""
        evicted: str | None = None
        if file_hash not in self._entries and len(self._entries) >= self.capacity:
            evicted, _ = self._entries.popitem(last=False)
        self._entries[file_hash] = key
        return evicted

    def discard_key(self, key: str) -> bool:
        """Remove the first entry whose value is key (linear scan)."""
        for file_hash, cached_key in self._entries.items():
            if cached_key == key:
                del self._entries[file_hash]
                return True
        return False

    def hashes(self) -> list[str]:
        """Hashes from oldest to newest."""
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()
