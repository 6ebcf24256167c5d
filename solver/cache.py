# solver/cache.py
from __future__ import annotations

import threading
from typing import Dict, Optional, Tuple

from models import BoardSize, Direction
from solver.move_graph import GraphView, MoveGraph

CacheKey = Tuple[BoardSize, Direction]


class StretchedCache:
    """Grows monotonically; entries are never evicted or mutated once stored.

    Lookups hand out read-only views so callers cannot corrupt a shared tile.
    Inserting an existing key overwrites it, which is harmless: any valid
    solution for a key is as good as another.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._graphs: Dict[CacheKey, MoveGraph] = {}
        self.hits = 0
        self.misses = 0
        self.flips = 0

    def get(self, size: BoardSize, direction: Direction) -> Optional[GraphView]:
        with self._lock:
            graph = self._graphs.get((BoardSize(*size), direction))
            if graph is None:
                self.misses += 1
                return None
            self.hits += 1
            return graph.view()

    def peek(self, size: BoardSize, direction: Direction) -> bool:
        with self._lock:
            return (BoardSize(*size), direction) in self._graphs

    def insert(self, size: BoardSize, direction: Direction, graph: MoveGraph) -> GraphView:
        with self._lock:
            self._graphs[(BoardSize(*size), direction)] = graph
            return graph.view()

    def get_or_flip(self, size: BoardSize, direction: Direction) -> Tuple[Optional[GraphView], str]:
        """Look up ``(size, direction)``; failing that, derive it by flipping
        the transposed entry. Returns ``(view, "hit" | "flip" | "miss")``."""
        key = (BoardSize(*size), direction)
        with self._lock:
            graph = self._graphs.get(key)
            if graph is not None:
                self.hits += 1
                return graph.view(), "hit"
            transposed = self._graphs.get((key[0].flip(), direction.opposite()))
            if transposed is None:
                self.misses += 1
                return None, "miss"
            self.flips += 1
            graph = self._graphs[key] = transposed.flip()
            return graph.view(), "flip"

    def clear(self) -> None:
        with self._lock:
            self._graphs.clear()
            self.hits = self.misses = self.flips = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._graphs)

    def __contains__(self, key: CacheKey) -> bool:
        size, direction = key
        return self.peek(size, direction)


# Process-wide instance used when callers do not pass their own.
DEFAULT_CACHE = StretchedCache()

__all__ = ["StretchedCache", "DEFAULT_CACHE"]
