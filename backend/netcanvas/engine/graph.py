"""Graph store: layer nodes, directed edges and structural edge rules."""
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel

from ..nodes.base import LayerKind, Shape
from ..nodes.registry import LayerRegistry
from .errors import ConfigError, NodeNotFoundError, StructuralError, StructuralErrorKind


@dataclass(frozen=True)
class Edge:
    source: str
    target: str


@dataclass
class LayerNode:
    id: str
    kind: LayerKind
    name: str
    config: BaseModel
    input_shape: Shape | None = None
    output_shape: Shape | None = None
    output_shape_manual: bool = False
    parameter_count: int = 0
    parameters_pending: bool = True

    def derived(self) -> tuple:
        """Fields owned by the propagation pass."""
        return (self.input_shape, self.output_shape, self.parameter_count, self.parameters_pending)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "kind": self.kind.value,
            "config": self.config.model_dump(mode="json"),
            "input_shape": list(self.input_shape) if self.input_shape is not None else None,
            "output_shape": list(self.output_shape) if self.output_shape is not None else None,
            "output_shape_manual": self.output_shape_manual,
            "parameter_count": self.parameter_count,
            "parameters_pending": self.parameters_pending,
        }


@dataclass
class LayerGraph:
    nodes: dict[str, LayerNode] = field(default_factory=dict)
    edges: list[Edge] = field(default_factory=list)
    counters: dict[LayerKind, int] = field(default_factory=dict)

    # -- queries -----------------------------------------------------------

    def get(self, node_id: str) -> LayerNode:
        try:
            return self.nodes[node_id]
        except KeyError:
            raise NodeNotFoundError(node_id) from None

    def get_incoming_edges(self, node_id: str) -> list[Edge]:
        return [e for e in self.edges if e.target == node_id]

    def get_outgoing_edges(self, node_id: str) -> list[Edge]:
        return [e for e in self.edges if e.source == node_id]

    def get_predecessors(self, node_id: str) -> list[str]:
        return list(dict.fromkeys(e.source for e in self.edges if e.target == node_id))

    def get_successors(self, node_id: str) -> list[str]:
        return list(dict.fromkeys(e.target for e in self.edges if e.source == node_id))

    def roots(self) -> list[str]:
        targets = {e.target for e in self.edges}
        return [nid for nid in self.nodes if nid not in targets]

    def has_edge(self, source: str, target: str) -> bool:
        return Edge(source, target) in self.edges

    def has_path(self, source: str, target: str) -> bool:
        """True if ``target`` is reachable from ``source`` along edges."""
        stack = [source]
        seen: set[str] = set()
        while stack:
            node_id = stack.pop()
            if node_id == target:
                return True
            if node_id in seen:
                continue
            seen.add(node_id)
            stack.extend(self.get_successors(node_id))
        return False

    # -- mutations ---------------------------------------------------------

    def add_node(self, kind: LayerKind | str, config: dict[str, Any] | None = None) -> str:
        """Add a node with the kind's default config merged with ``config``.

        Kind cardinality (a single Input) is left to the validator so a graph
        can pass through invalid states while it is being edited.
        """
        layer_cls = LayerRegistry.get(kind)
        cfg = layer_cls.make_config(config)
        kind = layer_cls.KIND

        index = self.counters.get(kind, 0) + 1
        self.counters[kind] = index
        node_id = f"{kind.value.lower()}-{index}"
        self.nodes[node_id] = LayerNode(
            id=node_id, kind=kind, name=layer_cls.node_name(index), config=cfg,
        )
        return node_id

    def check_edge(self, source: str, target: str) -> None:
        """Raise StructuralError if ``source -> target`` may not be added."""
        src = self.get(source)
        tgt = self.get(target)

        if src.kind == LayerKind.OUTPUT:
            raise StructuralError(StructuralErrorKind.OUTPUT_HAS_OUTGOING,
                                  f"Output layer {source} cannot have outgoing connections")
        if source == target:
            raise StructuralError(StructuralErrorKind.SELF_LOOP,
                                  f"Layer {source} cannot connect to itself")
        if self.has_edge(source, target):
            raise StructuralError(StructuralErrorKind.DUPLICATE,
                                  f"Connection {source} → {target} already exists")
        if tgt.kind == LayerKind.INPUT:
            raise StructuralError(StructuralErrorKind.INPUT_HAS_INCOMING,
                                  f"Input layer {target} cannot have incoming connections")
        if tgt.kind not in LayerRegistry.get(src.kind).ALLOWED_TARGETS:
            raise StructuralError(StructuralErrorKind.INCOMPATIBLE_KINDS,
                                  f"{src.kind.value} cannot connect to {tgt.kind.value}")
        if self.has_path(target, source):
            raise StructuralError(StructuralErrorKind.CREATES_CYCLE,
                                  f"Connection {source} → {target} would create a cycle")

    def add_edge(self, source: str, target: str) -> Edge:
        self.check_edge(source, target)
        edge = Edge(source, target)
        self.edges.append(edge)
        return edge

    def remove_edge(self, source: str, target: str) -> None:
        edge = Edge(source, target)
        if edge not in self.edges:
            raise KeyError(f"No connection {source} → {target}")
        self.edges.remove(edge)

    def remove_node(self, node_id: str) -> list[str]:
        """Remove a node and every incident edge.

        Returns the former successors, whose predecessor sets changed.
        """
        self.get(node_id)
        successors = [s for s in self.get_successors(node_id) if s != node_id]
        self.edges = [e for e in self.edges if node_id not in (e.source, e.target)]
        del self.nodes[node_id]
        if not self.nodes:
            self.counters.clear()
        return successors

    def set_config(self, node_id: str, config: BaseModel) -> None:
        node = self.get(node_id)
        expected = LayerRegistry.get(node.kind).CONFIG
        if not isinstance(config, expected):
            raise ConfigError([f"{node.kind.value} layer needs a {expected.__name__}"])
        node.config = config

    def set_output_shape(self, node_id: str, shape: Shape | None) -> None:
        """Manually override a node's output shape, or clear the override."""
        node = self.get(node_id)
        if shape is None:
            node.output_shape_manual = False
            return
        shape = tuple(shape)
        if not shape or not all(isinstance(d, int) and not isinstance(d, bool) and d > 0
                                for d in shape):
            raise ConfigError([f"Manual output shape must be positive integers, got {list(shape)}"])
        node.output_shape = shape
        node.output_shape_manual = True

    def clear(self) -> None:
        self.nodes.clear()
        self.edges.clear()
        self.counters.clear()

    def snapshot(self) -> dict[str, list[dict[str, Any]]]:
        return {
            "layers": [node.to_dict() for node in self.nodes.values()],
            "connections": [{"source": e.source, "target": e.target} for e in self.edges],
        }
