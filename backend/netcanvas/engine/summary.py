"""Per-layer and whole-network cost summary: parameters, FLOPs, memory."""
import math
from dataclasses import asdict, dataclass, field

from ..config import settings
from ..nodes.base import is_resolved
from ..nodes.registry import LayerRegistry
from .graph import LayerGraph, LayerNode


@dataclass
class MemoryUsage:
    parameters: int
    param_bytes: int
    activation_bytes: int

    @property
    def total_bytes(self) -> int:
        return self.param_bytes + self.activation_bytes


@dataclass
class LayerSummary:
    id: str
    name: str
    kind: str
    description: str
    output_shape: list[int | None] | None
    parameter_count: int
    parameters_pending: bool
    flops: int
    memory: MemoryUsage


@dataclass
class NetworkSummary:
    layers: list[LayerSummary] = field(default_factory=list)
    total_parameters: int = 0
    total_flops: int = 0
    total_memory_bytes: int = 0
    complete: bool = True

    def to_dict(self) -> dict:
        data = asdict(self)
        for row, layer in zip(data["layers"], self.layers):
            row["memory"]["total_bytes"] = layer.memory.total_bytes
        return data


def memory_usage(node: LayerNode, batch_size: int | None = None,
                 bytes_per_value: int | None = None) -> MemoryUsage:
    batch_size = batch_size or settings.default_batch_size
    bytes_per_value = bytes_per_value or settings.bytes_per_value
    activations = 0
    if is_resolved(node.output_shape):
        activations = batch_size * math.prod(node.output_shape) * bytes_per_value
    return MemoryUsage(
        parameters=node.parameter_count,
        param_bytes=node.parameter_count * bytes_per_value,
        activation_bytes=activations,
    )


def summarize(graph: LayerGraph, batch_size: int | None = None,
              bytes_per_value: int | None = None) -> NetworkSummary:
    summary = NetworkSummary()
    for node in graph.nodes.values():
        layer_cls = LayerRegistry.get(node.kind)
        row = LayerSummary(
            id=node.id,
            name=node.name,
            kind=node.kind.value,
            description=layer_cls.describe(node.config),
            output_shape=list(node.output_shape) if node.output_shape is not None else None,
            parameter_count=node.parameter_count,
            parameters_pending=node.parameters_pending,
            flops=layer_cls.flops(node.config, node.input_shape, node.output_shape),
            memory=memory_usage(node, batch_size, bytes_per_value),
        )
        summary.layers.append(row)
        summary.total_parameters += row.parameter_count
        summary.total_flops += row.flops
        summary.total_memory_bytes += row.memory.total_bytes
        if row.parameters_pending:
            summary.complete = False
    return summary
