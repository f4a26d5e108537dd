from abc import ABC, abstractmethod
from typing import Callable, Generic, List, Sequence, TypeVar

T = TypeVar("T")
C = TypeVar("C")


def seed_partition(items: Sequence[T], joins: Callable[[T, T], bool]) -> List[List[T]]:
    """
    Greedy single-seed partition of ``items`` in input order.

    Each unvisited item seeds a new group; every later unvisited item for which
    ``joins(seed, item)`` holds is added to it. Membership is tested against the
    seed only, never against other members, so the result depends on input order.
    """
    groups: List[List[T]] = []
    visited = [False] * len(items)

    for i, seed in enumerate(items):
        if visited[i]:
            continue
        visited[i] = True
        group = [seed]

        for j in range(i + 1, len(items)):
            if visited[j]:
                continue
            if joins(seed, items[j]):
                group.append(items[j])
                visited[j] = True

        groups.append(group)
    return groups


class Clusterer(ABC, Generic[T, C]):
    """Abstract base class for a clustering strategy."""

    @abstractmethod
    def cluster(self, items: Sequence[T]) -> List[C]:
        """
        Partitions ``items`` into clusters.

        Args:
            items: The items to cluster, in the order they should be seeded.

        Returns:
            A list of clusters. Every input item appears in exactly one cluster.
        """
        raise NotImplementedError()
