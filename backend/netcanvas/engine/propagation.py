"""Propagation pass: re-derive shapes and parameter counts downstream.

Nodes are visited in a stable topological order (Kahn's algorithm, ties
broken by node insertion order), each at most once per pass. A node with
several predecessors takes its input shape from the source of its most
recently added incoming edge. Nodes Kahn's algorithm cannot order (members
of a cycle) are visited once afterwards in insertion order, so a pass always
terminates.
"""
import heapq
from collections import deque
from typing import Iterable

from ..log import get_logger
from ..nodes.base import LayerKind, is_resolved
from ..nodes.registry import LayerRegistry
from .graph import LayerGraph, LayerNode

logger = get_logger(__name__)


def stable_topological_order(graph: LayerGraph) -> tuple[list[str], list[str]]:
    """Return (ordered node ids, ids left over because they sit on a cycle)."""
    position = {nid: i for i, nid in enumerate(graph.nodes)}
    in_degree: dict[str, int] = {nid: 0 for nid in graph.nodes}
    adj: dict[str, list[str]] = {nid: [] for nid in graph.nodes}
    for edge in graph.edges:
        if edge.target in in_degree and edge.source in adj:
            in_degree[edge.target] += 1
            adj[edge.source].append(edge.target)

    heap = [(position[nid], nid) for nid, deg in in_degree.items() if deg == 0]
    heapq.heapify(heap)
    order: list[str] = []
    while heap:
        _, node_id = heapq.heappop(heap)
        order.append(node_id)
        for succ in adj[node_id]:
            in_degree[succ] -= 1
            if in_degree[succ] == 0:
                heapq.heappush(heap, (position[succ], succ))

    done = set(order)
    leftover = [nid for nid in graph.nodes if nid not in done]
    return order, leftover


def reachable_from(graph: LayerGraph, start: Iterable[str]) -> set[str]:
    seen: set[str] = set()
    queue = deque(nid for nid in start if nid in graph.nodes)
    while queue:
        node_id = queue.popleft()
        if node_id in seen:
            continue
        seen.add(node_id)
        queue.extend(graph.get_successors(node_id))
    return seen


def refresh_node(graph: LayerGraph, node: LayerNode) -> None:
    """Recompute one node's derived fields from its chosen predecessor."""
    incoming = graph.get_incoming_edges(node.id)
    if incoming and node.kind != LayerKind.INPUT:
        source = graph.nodes.get(incoming[-1].source)
        upstream = source.output_shape if source is not None else None
        node.input_shape = tuple(upstream) if is_resolved(upstream) else None
    else:
        node.input_shape = None

    layer_cls = LayerRegistry.get(node.kind)
    if not node.output_shape_manual:
        node.output_shape = layer_cls.output_shape(node.config, node.input_shape)

    # parameter count is recomputed even when the output shape is manual
    count = layer_cls.parameter_count(node.config, node.input_shape)
    node.parameter_count = count if count is not None else 0
    node.parameters_pending = count is None


def propagate(graph: LayerGraph, start: str | Iterable[str] | None = None) -> list[str]:
    """Run one propagation pass and return the ids whose derived fields changed.

    With ``start`` only those nodes and their descendants are recomputed;
    everything else is unaffected by an edit there, so the outcome matches a
    full pass.
    """
    order, leftover = stable_topological_order(graph)
    if leftover:
        logger.warning("Propagating through a cycle: %s", leftover)
    order += leftover

    if start is not None:
        scope = reachable_from(graph, [start] if isinstance(start, str) else start)
        order = [nid for nid in order if nid in scope]

    changed: list[str] = []
    for node_id in order:
        node = graph.nodes[node_id]
        before = node.derived()
        refresh_node(graph, node)
        if node.derived() != before:
            changed.append(node_id)

    logger.debug("Propagation visited %d layer(s), %d changed", len(order), len(changed))
    return changed
