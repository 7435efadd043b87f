"""Shape/parameter calculator: pure functions over (kind, shape, config).

Each function dispatches through the layer registry, so every LayerKind is
handled by exactly one registered layer class. ``config`` may be the kind's
config model or a plain dict of overrides on top of the kind's defaults.
"""
from typing import Any

from pydantic import BaseModel

from ..nodes.base import LayerKind, Shape
from ..nodes.registry import LayerRegistry


def _resolve(kind: LayerKind | str, config: BaseModel | dict[str, Any] | None):
    layer_cls = LayerRegistry.get(kind)
    if isinstance(config, layer_cls.CONFIG):
        return layer_cls, config
    if isinstance(config, BaseModel):
        config = config.model_dump()
    return layer_cls, layer_cls.make_config(config)


def output_shape(kind: LayerKind | str, input_shape: Shape | None,
                 config: BaseModel | dict[str, Any] | None = None) -> Shape:
    layer_cls, cfg = _resolve(kind, config)
    return layer_cls.output_shape(cfg, _as_shape(input_shape))


def parameter_count(kind: LayerKind | str, config: BaseModel | dict[str, Any] | None,
                    input_shape: Shape | None) -> int | None:
    """Trainable parameters; None means pending (input shape unresolved)."""
    layer_cls, cfg = _resolve(kind, config)
    return layer_cls.parameter_count(cfg, _as_shape(input_shape))


def flops(kind: LayerKind | str, config: BaseModel | dict[str, Any] | None,
          input_shape: Shape | None, output_shape: Shape | None = None) -> int:
    """Approximate forward-pass FLOPs, counting multiply and add separately."""
    layer_cls, cfg = _resolve(kind, config)
    return layer_cls.flops(cfg, _as_shape(input_shape), _as_shape(output_shape))


def describe(kind: LayerKind | str, config: BaseModel | dict[str, Any] | None = None) -> str:
    layer_cls, cfg = _resolve(kind, config)
    return layer_cls.describe(cfg)


def _as_shape(shape) -> Shape | None:
    if shape is None:
        return None
    return tuple(shape)
