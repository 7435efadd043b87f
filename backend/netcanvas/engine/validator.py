"""Network validation: layer cardinality, isolation, edge direction, cycles.

Validation is advisory: the report is surfaced to the user but never blocks
further edits, and nothing in the graph is mutated.
"""
from dataclasses import dataclass, field

from ..nodes.base import LayerKind, is_resolved
from .graph import LayerGraph
from .propagation import stable_topological_order


@dataclass
class ValidationReport:
    errors: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict:
        return {"valid": self.valid, "errors": list(self.errors)}


def validate_network(graph: LayerGraph) -> ValidationReport:
    """Collect every applicable error; never stops at the first one."""
    errors: list[str] = []
    errors.extend(_check_cardinality(graph))
    errors.extend(_check_isolated(graph))
    errors.extend(_check_edge_direction(graph))
    errors.extend(_check_missing_endpoints(graph))
    errors.extend(_check_cycles(graph))
    errors.extend(_check_spatial_inputs(graph))
    return ValidationReport(errors)


def _check_cardinality(graph: LayerGraph) -> list[str]:
    errors: list[str] = []
    inputs = [n for n in graph.nodes.values() if n.kind == LayerKind.INPUT]
    outputs = [n for n in graph.nodes.values() if n.kind == LayerKind.OUTPUT]
    if not inputs:
        errors.append("Network must have at least one input layer")
    elif len(inputs) > 1:
        errors.append("Network can have only one input layer")
    if not outputs:
        errors.append("Network must have at least one output layer")
    return errors


def _check_isolated(graph: LayerGraph) -> list[str]:
    connected = set()
    for edge in graph.edges:
        connected.add(edge.source)
        connected.add(edge.target)
    return [
        f'Layer "{node.name}" ({node.id}) is isolated'
        for node in graph.nodes.values()
        if node.id not in connected
        and node.kind not in (LayerKind.INPUT, LayerKind.OUTPUT)
    ]


def _check_edge_direction(graph: LayerGraph) -> list[str]:
    errors: list[str] = []
    for node in graph.nodes.values():
        if node.kind == LayerKind.INPUT and graph.get_incoming_edges(node.id):
            errors.append(f'Input layer "{node.name}" cannot have incoming connections')
        if node.kind == LayerKind.OUTPUT and graph.get_outgoing_edges(node.id):
            errors.append(f'Output layer "{node.name}" cannot have outgoing connections')
    return errors


def _check_missing_endpoints(graph: LayerGraph) -> list[str]:
    return [
        f"Connection {e.source} → {e.target} references a missing layer"
        for e in graph.edges
        if e.source not in graph.nodes or e.target not in graph.nodes
    ]


def _check_cycles(graph: LayerGraph) -> list[str]:
    _, leftover = stable_topological_order(graph)
    return ["Network contains a cycle"] if leftover else []


def _check_spatial_inputs(graph: LayerGraph) -> list[str]:
    errors: list[str] = []
    for node in graph.nodes.values():
        if node.kind not in (LayerKind.CONV2D, LayerKind.POOL2D):
            continue
        shape = node.input_shape
        if is_resolved(shape) and len(shape) < 2:
            errors.append(
                f'Layer "{node.name}" ({node.id}) needs a spatial input, '
                f"got shape {list(shape)}"
            )
    return errors
