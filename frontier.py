"""
Deduplicating frontier for place detail requests.

Tracks which place URLs were already dispatched for detail extraction
and enforces the run's result cap.
"""

import threading


class DedupFrontier:
    """
    Guarded set of dispatched place URLs.

    try_reserve() is the only way to add to it; the membership check,
    the cap check and the insert happen under one lock.
    """

    def __init__(self, max_results: int):
        if max_results <= 0:
            raise ValueError("max_results must be greater than zero")
        self.max_results = max_results
        self._visited = set()
        self._dispatched = 0
        self._lock = threading.Lock()

    def try_reserve(self, url: str) -> bool:
        """
        Claim a URL for dispatch.

        Args:
            url: Canonical place URL

        Returns:
            True if the URL was new and the cap not yet reached
        """
        with self._lock:
            if url in self._visited or self._dispatched >= self.max_results:
                return False
            self._visited.add(url)
            self._dispatched += 1
            return True

    @property
    def dispatched(self) -> int:
        """Number of URLs reserved so far."""
        return self._dispatched

    @property
    def remaining(self) -> int:
        """How many more URLs can still be reserved."""
        return max(self.max_results - self._dispatched, 0)
