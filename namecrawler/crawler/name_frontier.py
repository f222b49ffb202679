"""
Name frontier: the FIFO work queue and seen-set driving the breadth-first crawl.
"""

import logging
from collections import deque
from enum import Enum
from typing import Deque, Dict, Iterable, List, Optional, Set


class Admission(Enum):
    """Outcome of offering a discovered name to the frontier."""
    SEEN = "seen"
    QUEUED = "queued"
    DROPPED = "dropped"


class NameFrontier:
    """
    Holds pending queries and the set of names discovered so far.

    Queries are served strictly first-in-first-out. A newly discovered name is
    always recorded, but only queued while the queue is below its ceiling.
    The first name refused at the ceiling closes admission for the rest of
    the run: from then on the queue only drains, so the traversal ends even
    if the service keeps returning novel names. Refused names are counted.
    """

    def __init__(self, seed_queries: Iterable[str], max_queue_size: int = 1000):
        if max_queue_size < 1:
            raise ValueError("max_queue_size must be at least 1")

        self.max_queue_size = max_queue_size
        self.logger = logging.getLogger(__name__)

        self.queue: Deque[str] = deque(seed_queries)
        self.seen: Set[str] = set()
        self.discovered: List[str] = []
        self.dropped: List[str] = []
        self.peak_queue_size = len(self.queue)
        self.admission_closed = False

    def __len__(self) -> int:
        return len(self.queue)

    def is_empty(self) -> bool:
        return not self.queue

    def next_query(self) -> Optional[str]:
        """Pop the oldest pending query, or None when exhausted."""
        if not self.queue:
            return None
        return self.queue.popleft()

    def discover(self, name: str) -> Admission:
        """
        Record a name returned by the service.

        Membership test and insertion happen together here; with a single
        traversal loop nothing else touches the seen-set in between.
        """
        if name in self.seen:
            return Admission.SEEN

        self.seen.add(name)
        self.discovered.append(name)

        if not self.admission_closed and len(self.queue) < self.max_queue_size:
            self.queue.append(name)
            self.peak_queue_size = max(self.peak_queue_size, len(self.queue))
            return Admission.QUEUED

        if not self.admission_closed:
            self.admission_closed = True
            self.logger.warning(f"Queue reached its ceiling of {self.max_queue_size}; "
                                f"newly discovered names will no longer be queried")

        self.dropped.append(name)
        self.logger.debug(f"Not queueing: {name}")
        return Admission.DROPPED

    @property
    def dropped_count(self) -> int:
        return len(self.dropped)

    def get_stats(self) -> Dict[str, int]:
        """Get frontier statistics."""
        return {
            'total_queued': len(self.queue),
            'total_discovered': len(self.discovered),
            'total_dropped': len(self.dropped),
            'peak_queue_size': self.peak_queue_size,
            'max_queue_size': self.max_queue_size,
        }
