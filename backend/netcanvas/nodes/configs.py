"""Per-kind layer configs: a tagged union discriminated on ``kind``."""
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt

# strict, so booleans are not accepted as sizes
Size = Annotated[StrictInt, Field(gt=0)]
Pair = tuple[Size, Size]
Padding = Literal["same", "valid"]
HiddenActivation = Literal["relu", "sigmoid", "tanh", "leaky_relu", "linear"]
OutputActivation = Literal["softmax", "sigmoid", "linear"]
RecurrentActivation = Literal["tanh", "relu", "sigmoid"]


class _Config(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class InputConfig(_Config):
    kind: Literal["Input"] = "Input"
    shape: Annotated[tuple[Size, ...], Field(min_length=1)] = (28, 28, 1)
    batch_size: Size = 32


class DenseConfig(_Config):
    kind: Literal["Dense"] = "Dense"
    units: Size = 128
    activation: HiddenActivation = "relu"
    use_bias: bool = True
    dropout_rate: Annotated[float, Field(ge=0.0, lt=1.0)] = 0.0


class OutputConfig(_Config):
    kind: Literal["Output"] = "Output"
    units: Size = 10
    activation: OutputActivation = "softmax"
    use_bias: bool = True


class Conv2DConfig(_Config):
    kind: Literal["Conv2D"] = "Conv2D"
    filters: Size = 32
    kernel_size: Pair = (3, 3)
    strides: Pair = (1, 1)
    padding: Padding = "same"
    activation: HiddenActivation = "relu"
    use_bias: bool = True


class Pool2DConfig(_Config):
    kind: Literal["Pool2D"] = "Pool2D"
    pool_size: Pair = (2, 2)
    strides: Pair = (2, 2)
    padding: Padding = "valid"
    pool_type: Literal["max", "average"] = "max"


class RNNConfig(_Config):
    kind: Literal["RNN"] = "RNN"
    units: Size = 32
    return_sequences: bool = True
    activation: RecurrentActivation = "tanh"
    use_bias: bool = True


class LSTMConfig(_Config):
    kind: Literal["LSTM"] = "LSTM"
    units: Size = 64
    return_sequences: bool = True
    activation: RecurrentActivation = "tanh"
    recurrent_activation: RecurrentActivation = "sigmoid"
    use_bias: bool = True


class GRUConfig(_Config):
    kind: Literal["GRU"] = "GRU"
    units: Size = 48
    return_sequences: bool = True
    activation: RecurrentActivation = "tanh"
    recurrent_activation: RecurrentActivation = "sigmoid"
    use_bias: bool = True


RecurrentConfig = RNNConfig | LSTMConfig | GRUConfig

LayerConfig = Annotated[
    Union[
        InputConfig, DenseConfig, OutputConfig, Conv2DConfig,
        Pool2DConfig, RNNConfig, LSTMConfig, GRUConfig,
    ],
    Field(discriminator="kind"),
]
