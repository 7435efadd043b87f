"""Input, Dense and Output layers.

Dense and Output layers treat a multi-dimensional input as implicitly
flattened: the weight matrix has ``prod(input_shape)`` rows.
"""
from .base import BaseLayer, LayerKind, Shape, flatten, is_resolved
from .configs import DenseConfig, InputConfig, OutputConfig
from .registry import LayerRegistry


def _fully_connected_params(units: int, use_bias: bool, input_shape: Shape | None) -> int | None:
    if not is_resolved(input_shape):
        return None
    return flatten(input_shape) * units + (units if use_bias else 0)


def _fully_connected_flops(units: int, input_shape: Shape | None) -> int:
    if not is_resolved(input_shape):
        return 0
    # one multiply and one add per weight
    return 2 * flatten(input_shape) * units


@LayerRegistry.register(LayerKind.INPUT)
class InputLayer(BaseLayer):
    CONFIG = InputConfig
    CATEGORY = "Core"
    DISPLAY_NAME = "Input Layer"
    DESCRIPTION = "Input layer for raw data"
    ALLOWED_TARGETS = frozenset({LayerKind.DENSE, LayerKind.CONV2D})

    @classmethod
    def output_shape(cls, config: InputConfig, input_shape=None) -> Shape:
        return tuple(config.shape)

    @classmethod
    def parameter_count(cls, config: InputConfig, input_shape=None) -> int:
        return 0

    @classmethod
    def describe(cls, config: InputConfig) -> str:
        return f"Input Layer: Shape={'×'.join(str(d) for d in config.shape)}"

    @classmethod
    def node_name(cls, index: int) -> str:
        return cls.DISPLAY_NAME if index == 1 else f"{cls.DISPLAY_NAME} {index}"


@LayerRegistry.register(LayerKind.DENSE)
class DenseLayer(BaseLayer):
    CONFIG = DenseConfig
    CATEGORY = "Core"
    DISPLAY_NAME = "Dense"
    DESCRIPTION = "Fully connected hidden layer"
    ALLOWED_TARGETS = frozenset({LayerKind.DENSE, LayerKind.OUTPUT})

    @classmethod
    def output_shape(cls, config: DenseConfig, input_shape: Shape | None) -> Shape:
        return (config.units,)

    @classmethod
    def parameter_count(cls, config: DenseConfig, input_shape: Shape | None) -> int | None:
        return _fully_connected_params(config.units, config.use_bias, input_shape)

    @classmethod
    def flops(cls, config: DenseConfig, input_shape, output_shape) -> int:
        return _fully_connected_flops(config.units, input_shape)

    @classmethod
    def describe(cls, config: DenseConfig) -> str:
        text = f"Dense Layer: {config.units} units, {config.activation} activation"
        if config.dropout_rate > 0:
            text += f", dropout {config.dropout_rate}"
        return text


@LayerRegistry.register(LayerKind.OUTPUT)
class OutputLayer(BaseLayer):
    CONFIG = OutputConfig
    CATEGORY = "Core"
    DISPLAY_NAME = "Output Layer"
    DESCRIPTION = "Output layer, softmax activation for classification by default"

    @classmethod
    def output_shape(cls, config: OutputConfig, input_shape: Shape | None) -> Shape:
        return (config.units,)

    @classmethod
    def parameter_count(cls, config: OutputConfig, input_shape: Shape | None) -> int | None:
        return _fully_connected_params(config.units, config.use_bias, input_shape)

    @classmethod
    def flops(cls, config: OutputConfig, input_shape, output_shape) -> int:
        return _fully_connected_flops(config.units, input_shape)

    @classmethod
    def describe(cls, config: OutputConfig) -> str:
        return f"Output Layer: {config.units} units, {config.activation} activation"

    @classmethod
    def node_name(cls, index: int) -> str:
        return cls.DISPLAY_NAME if index == 1 else f"{cls.DISPLAY_NAME} {index}"
