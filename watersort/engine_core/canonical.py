"""
Canonical layouts - Order-independent keys for search and cycle detection.

Containers are logically unordered for state identity: two boards
that differ only by a permutation of containers are the same state.
Ids are deliberately left out of the key; callers that need them keep
the container tuple alongside the key.
"""

from __future__ import annotations
from typing import Iterable

from .state import Container

ContainerKey = tuple[int, tuple[tuple[str, int], ...]]
LayoutKey = tuple[ContainerKey, ...]


def container_key(container: Container) -> ContainerKey:
    """Capacity plus bottom-to-top (color, volume) pairs."""
    return (
        container.capacity,
        tuple((layer.color.value, layer.volume) for layer in container.layers),
    )


def canonical_key(containers: Iterable[Container]) -> LayoutKey:
    """Hashable key that is identical for every permutation of the layout."""
    return tuple(sorted(container_key(c) for c in containers))


def layout_signature(containers: Iterable[Container]) -> str:
    """
    Readable canonical form, e.g. "[blue:2,red:2]|[empty]|[red:2]".

    Used for similarity checks and in logs.
    """
    parts = []
    for container in containers:
        if container.is_empty:
            parts.append("[empty]")
        else:
            parts.append("[" + ",".join(str(layer) for layer in container.layers) + "]")
    return "|".join(sorted(parts))


def compact_layout(containers: Iterable[Container]) -> str:
    """
    One character per unit of liquid, containers in id order.

    Example: "|RRBB|BB  |    |" for capacity 4.
    """
    out = "|"
    for container in containers:
        units = "".join(layer.color.code * layer.volume for layer in container.layers)
        out += units.ljust(container.capacity) + "|"
    return out
