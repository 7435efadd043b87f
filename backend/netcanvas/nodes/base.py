"""Base layer abstraction, layer kinds and shape helpers."""
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ValidationError

from ..engine.errors import ConfigError

# A shape entry of None is an unknown ("?") dimension.
Shape = tuple[int | None, ...]


class LayerKind(str, Enum):
    INPUT = "Input"
    DENSE = "Dense"
    OUTPUT = "Output"
    CONV2D = "Conv2D"
    POOL2D = "Pool2D"
    RNN = "RNN"
    LSTM = "LSTM"
    GRU = "GRU"


def is_resolved(shape: Shape | None) -> bool:
    """True when every dimension of the shape is a known positive integer."""
    if shape is None or len(shape) == 0:
        return False
    return all(isinstance(d, int) and d > 0 for d in shape)


def flatten(shape: Shape) -> int:
    return math.prod(shape)


def spatial_out(size: int, window: int, stride: int, padding: str) -> int:
    """Output extent of one spatial axis for a sliding window."""
    if padding == "same":
        out = math.ceil(size / stride)
    else:
        out = math.ceil((size - window + 1) / stride)
    return max(out, 1)


@dataclass
class LayerDefinition:
    """Serializable layer definition sent to the frontend."""
    kind: str
    display_name: str
    category: str
    description: str
    defaults: dict[str, Any]
    config_schema: dict[str, Any]
    allowed_targets: list[str]


class BaseLayer(ABC):
    """Abstract base class for all layer kinds.

    Subclasses are stateless: every method is a classmethod taking the
    layer's config model and the shapes it should reason about.
    """

    KIND: LayerKind
    CONFIG: type[BaseModel]
    CATEGORY: str = "Uncategorized"
    DISPLAY_NAME: str = ""
    DESCRIPTION: str = ""
    ALLOWED_TARGETS: frozenset[LayerKind] = frozenset()

    @classmethod
    @abstractmethod
    def output_shape(cls, config: BaseModel, input_shape: Shape | None) -> Shape:
        ...

    @classmethod
    @abstractmethod
    def parameter_count(cls, config: BaseModel, input_shape: Shape | None) -> int | None:
        """Trainable parameters, or None while the input shape is unresolved."""
        ...

    @classmethod
    def flops(cls, config: BaseModel, input_shape: Shape | None, output_shape: Shape | None) -> int:
        return 0

    @classmethod
    @abstractmethod
    def describe(cls, config: BaseModel) -> str:
        ...

    @classmethod
    def make_config(cls, values: dict[str, Any] | None = None,
                    base: BaseModel | None = None) -> BaseModel:
        """Build a config from defaults, an optional base config and overrides."""
        data = base.model_dump() if base is not None else {}
        data.update(values or {})
        try:
            return cls.CONFIG.model_validate(data)
        except ValidationError as e:
            raise ConfigError.from_validation(cls.KIND.value, e) from e

    @classmethod
    def node_name(cls, index: int) -> str:
        return f"{cls.DISPLAY_NAME or cls.KIND.value} {index}"

    @classmethod
    def get_definition(cls) -> LayerDefinition:
        return LayerDefinition(
            kind=cls.KIND.value,
            display_name=cls.DISPLAY_NAME or cls.KIND.value,
            category=cls.CATEGORY,
            description=cls.DESCRIPTION or cls.__doc__ or "",
            defaults=cls.CONFIG().model_dump(mode="json"),
            config_schema=cls.CONFIG.model_json_schema(),
            allowed_targets=sorted(k.value for k in cls.ALLOWED_TARGETS),
        )
