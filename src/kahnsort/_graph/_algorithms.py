"""Kahn's algorithm over caller-supplied nodes and edges."""

import logging
from collections.abc import Callable, Hashable, Iterable, Mapping, Sequence

logger = logging.getLogger(__name__)

type EdgeSource[T] = Sequence[Iterable[T]] | Mapping[T, Iterable[T]] | Callable[[T], Iterable[T]]


class EdgeSourceError(TypeError):
    """The edge source is neither a positional sequence, a mapping nor a callable."""


class CycleError(ValueError):
    """The dependency graph contains at least one cycle.

    Attributes:
        emitted: Number of nodes that could be ordered before the sort stalled.
        total: Number of distinct, non-excluded input nodes.
        unresolved: Nodes that were never emitted, in input order. They lie on a
            cycle or are reachable only through one.

    """

    def __init__(self, emitted: int, total: int, unresolved: tuple[Hashable, ...]) -> None:
        self.emitted = emitted
        self.total = total
        self.unresolved = unresolved
        super().__init__(f"Circular dependency detected ({emitted} of {total} nodes ordered)")


def _edge_resolver[T: Hashable](edges: EdgeSource[T]) -> Callable[[int, T], Iterable[T]]:
    """Return a function mapping ``(index, node)`` to the node's outgoing edges."""
    if isinstance(edges, Mapping):
        return lambda _, node: edges.get(node, ())

    if isinstance(edges, Sequence) and not isinstance(edges, (str, bytes)):
        return lambda index, _: edges[index]

    if callable(edges):
        return lambda _, node: edges(node)

    msg = f"Edge source must be a sequence, a mapping or a callable, not {type(edges).__name__}"
    raise EdgeSourceError(msg)


def topological_sort[T: Hashable](
    nodes: Iterable[T],
    edges: EdgeSource[T],
    *,
    flip_edges: bool = False,
    on_emit: Callable[[T], object] | None = None,
    exclude: Callable[[T], object] | None = None,
) -> list[T]:
    """Order nodes so that every node comes before the nodes it points to.

    The edges of each node can be given positionally (the i-th entry lists the
    outgoing edges of the i-th node), as a mapping from node to outgoing edges,
    or as a callable returning the outgoing edges of a node.

    Ties are broken by a stack: among the nodes that are ready at the same time,
    the one made ready last is emitted first.

    Args:
        nodes: The nodes to sort. May be a single-pass iterable.
        edges: Outgoing edges of each node.
        flip_edges: Interpret the edges as incoming rather than outgoing, which
            reverses the direction of every dependency.
        on_emit: Called with each node as it is placed in the output, before its
            dependents are updated.
        exclude: Predicate selecting nodes to leave out. Excluded nodes and every
            edge touching them are ignored.

    Returns:
        The non-excluded nodes in topological order.

    Raises:
        EdgeSourceError: If ``edges`` has an unsupported shape, or a positional
            edge list does not line up with ``nodes``.
        CycleError: If the graph restricted to the non-excluded nodes has a cycle.

    Example:
        >>> topological_sort(["a", "b", "c"], [["b", "c"], ["c"], []])
        ['a', 'b', 'c']
        >>> topological_sort(["a", "b", "c"], {"a": ["b"], "b": ["c"]}, flip_edges=True)
        ['c', 'b', 'a']

    """
    resolve_edges = _edge_resolver(edges)
    node_list = list(nodes)
    if isinstance(edges, Sequence) and len(edges) != len(node_list):
        msg = f"Positional edge list has {len(edges)} entries but there are {len(node_list)} nodes"
        raise EdgeSourceError(msg)

    # Distinct non-excluded nodes in input order, with their raw edge lists
    raw_outgoing: dict[T, list[T]] = {}
    for index, node in enumerate(node_list):
        if exclude is not None and exclude(node):
            continue
        raw_outgoing.setdefault(node, []).extend(resolve_edges(index, node))

    outgoing: dict[T, list[T]] = {node: [] for node in raw_outgoing}
    incoming: dict[T, list[T]] = {node: [] for node in raw_outgoing}
    edge_count = 0
    for node, targets in raw_outgoing.items():
        for target in targets:
            if target not in incoming:
                logger.debug("Dropping edge %r -> %r (target is excluded or not an input node)", node, target)
                continue
            outgoing[node].append(target)
            incoming[target].append(node)
            edge_count += 1

    logger.debug("Sorting %d nodes with %d edges", len(outgoing), edge_count)

    if flip_edges:
        incoming, outgoing = outgoing, incoming

    ready = [node for node, pending in incoming.items() if not pending]
    order: list[T] = []

    while ready:
        node = ready.pop()
        if on_emit is not None:
            on_emit(node)
        order.append(node)
        for target in outgoing[node]:
            pending = incoming[target]
            pending.remove(node)
            if not pending:
                ready.append(target)

    if len(order) != len(incoming):
        emitted = set(order)
        unresolved = tuple(node for node in incoming if node not in emitted)
        logger.debug("Cycle detected: %d of %d nodes ordered", len(order), len(incoming))
        raise CycleError(len(order), len(incoming), unresolved)

    return order
