"""Dependency ordering for deploy-orchestrator."""

import heapq
from typing import Dict, Iterable, List, Mapping

from .exceptions import ConfigError, CyclicDependencyError


def resolve_order(dependencies: Mapping[str, Iterable[str]]) -> List[str]:
    """
    Compute a deployment order from a contract dependency map.

    Every contract comes after all of its transitive dependencies. Among
    contracts that are free to go next, the one declared first wins, so the
    result is deterministic and equals declaration order when nothing
    constrains it.

    Args:
        dependencies: Maps contract name -> names it depends on
                      (iteration order is declaration order)

    Returns:
        Contract names in deployment order

    Raises:
        ConfigError: If a dependency is not itself declared
        CyclicDependencyError: If no linear order exists
    """
    names = list(dependencies)
    position = {name: i for i, name in enumerate(names)}

    # Edges point from dependency to dependent
    dependents: Dict[str, List[str]] = {name: [] for name in names}
    pending: Dict[str, int] = {}

    for name in names:
        required = set(dependencies[name])
        for dependency in required:
            if dependency not in position:
                raise ConfigError(f"Contract '{name}' depends on unknown contract '{dependency}'")
            dependents[dependency].append(name)
        pending[name] = len(required)

    ready = [position[name] for name in names if pending[name] == 0]
    heapq.heapify(ready)

    order: List[str] = []
    while ready:
        name = names[heapq.heappop(ready)]
        order.append(name)
        for dependent in dependents[name]:
            pending[dependent] -= 1
            if pending[dependent] == 0:
                heapq.heappush(ready, position[dependent])

    if len(order) != len(names):
        remaining = [name for name in names if pending[name] > 0]
        raise CyclicDependencyError(
            f"Cyclic dependency between contracts: {', '.join(remaining)}",
            cycle=remaining,
        )

    return order
