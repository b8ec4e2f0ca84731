"""Id generation for nodes, swimlanes and concurrent processes."""

import logging
from typing import Dict, Iterable, Optional

from workflowgraph.core.logging import LogComponent, log_verbose

logger = logging.getLogger(LogComponent.GRAPH.value)


class IdGenerator:
    """Hands out ``<prefix>_<n>`` ids from one counter per prefix.

    Each owner (factory, manager) holds its own generator, so two editing
    sessions or two test cases never share counters unless they are handed
    the same instance.
    """

    def __init__(self, start: int = 0):
        self._start = start
        self._counters: Dict[str, int] = {}

    def next_id(self, prefix: str) -> str:
        """Return the next id for ``prefix``."""
        value = self._counters.get(prefix, self._start) + 1
        self._counters[prefix] = value
        generated = f"{prefix}_{value}"
        log_verbose(logger, f"Generated id {generated}")
        return generated

    def peek(self, prefix: str) -> int:
        """Return the last value handed out for ``prefix``."""
        return self._counters.get(prefix, self._start)

    def set_counter(self, prefix: str, value: int) -> None:
        """Set the counter so the next id for ``prefix`` is ``value + 1``."""
        if value < 0:
            raise ValueError("Counter value must be non-negative")
        self._counters[prefix] = value

    def observe(self, ids: Iterable[str]) -> None:
        """Advance counters past every ``<prefix>_<n>`` id already in use.

        Owners call this with the ids of data they were handed, so the next
        id they generate never collides with an existing one.
        """
        for existing in ids:
            prefix, _, suffix = existing.rpartition("_")
            if prefix and suffix.isdigit():
                self._counters[prefix] = max(self.peek(prefix), int(suffix))

    def reset(self, prefix: Optional[str] = None) -> None:
        """Reset one prefix, or every prefix when none is given."""
        if prefix is None:
            self._counters.clear()
        else:
            self._counters.pop(prefix, None)
