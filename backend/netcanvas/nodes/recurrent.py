"""Recurrent layers: RNN, LSTM (4 gates) and GRU (3 gates).

All three share the simple-RNN weight layout per gate: an input kernel
``F x units``, a recurrent kernel ``units x units`` and an optional bias,
where ``F`` is the last dimension of the input shape.
"""
from .base import BaseLayer, LayerKind, Shape, is_resolved
from .configs import GRUConfig, LSTMConfig, RNNConfig, RecurrentConfig
from .registry import LayerRegistry

_RECURRENT_TARGETS = frozenset({
    LayerKind.DENSE, LayerKind.OUTPUT,
    LayerKind.RNN, LayerKind.LSTM, LayerKind.GRU,
})


class _RecurrentLayer(BaseLayer):
    CATEGORY = "Recurrent"
    ALLOWED_TARGETS = _RECURRENT_TARGETS
    GATES: int = 1

    @classmethod
    def output_shape(cls, config: RecurrentConfig, input_shape: Shape | None) -> Shape:
        if not config.return_sequences:
            return (config.units,)
        if input_shape:
            return (input_shape[0], config.units)
        return (None, config.units)

    @classmethod
    def parameter_count(cls, config: RecurrentConfig, input_shape: Shape | None) -> int | None:
        if not is_resolved(input_shape):
            return None
        features = input_shape[-1]
        units = config.units
        per_gate = features * units + units * units + (units if config.use_bias else 0)
        return cls.GATES * per_gate

    @classmethod
    def flops(cls, config: RecurrentConfig, input_shape, output_shape) -> int:
        if not is_resolved(input_shape):
            return 0
        steps = input_shape[0] if len(input_shape) >= 2 else 1
        units = config.units
        return cls.GATES * 2 * steps * (input_shape[-1] * units + units * units)

    @classmethod
    def describe(cls, config: RecurrentConfig) -> str:
        text = f"{cls.KIND.value}: {config.units} units, {config.activation} activation"
        if config.return_sequences:
            text += ", returns sequences"
        return text


@LayerRegistry.register(LayerKind.RNN)
class RNNLayer(_RecurrentLayer):
    CONFIG = RNNConfig
    DISPLAY_NAME = "RNN"
    DESCRIPTION = "Simple recurrent layer"


@LayerRegistry.register(LayerKind.LSTM)
class LSTMLayer(_RecurrentLayer):
    CONFIG = LSTMConfig
    DISPLAY_NAME = "LSTM"
    DESCRIPTION = "Long short-term memory layer (input, forget, cell and output gates)"
    GATES = 4


@LayerRegistry.register(LayerKind.GRU)
class GRULayer(_RecurrentLayer):
    CONFIG = GRUConfig
    DISPLAY_NAME = "GRU"
    DESCRIPTION = "Gated recurrent unit layer (update, reset and new gates)"
    GATES = 3
