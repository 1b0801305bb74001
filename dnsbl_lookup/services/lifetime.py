"""Caller lifetime tracking for in-flight lookups."""

from collections import Counter
from contextlib import contextmanager
from typing import Iterator

from dnsbl_lookup.services.host import Host


class CallerLifetimeTracker:
    """Reference-counted protection of requesting endpoints.

    Each accepted request acquires its requesting endpoint once and
    releases it once when its result is dispatched. Counts are kept per
    endpoint, so any number of concurrent requests from the same caller
    hold it alive until the last one completes.

    Attributes:
        owner: Tag under which references are registered in the host.
    """

    def __init__(self, host: Host, owner: str):
        self._host = host
        self.owner = owner
        self._counts: Counter = Counter()

    def acquire(self, endpoint_id: int) -> int:
        """Take a reference on an endpoint.

        Returns:
            int: References now held by this tracker on the endpoint.
        """
        self._host.refcount_increment(endpoint_id, self.owner)
        self._counts[endpoint_id] += 1
        return self._counts[endpoint_id]

    def release(self, endpoint_id: int) -> int:
        """Drop a reference taken with acquire().

        Returns:
            int: References still held by this tracker on the endpoint.

        Raises:
            RuntimeError: If no reference is held on the endpoint.
        """
        if self._counts[endpoint_id] <= 0:
            raise RuntimeError(f"{self.owner} holds no reference on endpoint {endpoint_id}")
        self._counts[endpoint_id] -= 1
        if not self._counts[endpoint_id]:
            del self._counts[endpoint_id]
        self._host.refcount_decrement(endpoint_id, self.owner)
        return self._counts[endpoint_id]

    def outstanding(self, endpoint_id: int | None = None) -> int:
        """References held on one endpoint, or on all endpoints when None."""
        if endpoint_id is None:
            return sum(self._counts.values())
        return self._counts[endpoint_id]

    @contextmanager
    def hold(self, endpoint_id: int) -> Iterator[int]:
        """Hold a reference for the duration of a with-block."""
        self.acquire(endpoint_id)
        try:
            yield endpoint_id
        finally:
            self.release(endpoint_id)
