"""Conv2D and Pool2D layers.

Inputs are ``[H, W, C]``. A rank-2 input ``[H, W]`` is read as a single
channel. Shorter or unresolved inputs leave the spatial dims unknown.
"""
from .base import BaseLayer, LayerKind, Shape, is_resolved, spatial_out
from .configs import Conv2DConfig, Pool2DConfig
from .registry import LayerRegistry


def _split_spatial(input_shape: Shape | None) -> tuple[int, int, int] | None:
    if not is_resolved(input_shape) or len(input_shape) < 2:
        return None
    channels = input_shape[-1] if len(input_shape) >= 3 else 1
    return input_shape[0], input_shape[1], channels


def _window_out(hwc, window, strides, padding) -> tuple[int, int]:
    h, w, _ = hwc
    return (
        spatial_out(h, window[0], strides[0], padding),
        spatial_out(w, window[1], strides[1], padding),
    )


@LayerRegistry.register(LayerKind.CONV2D)
class Conv2DLayer(BaseLayer):
    CONFIG = Conv2DConfig
    CATEGORY = "Convolutional"
    DISPLAY_NAME = "Conv2D"
    DESCRIPTION = "Convolutional layer for feature extraction"
    ALLOWED_TARGETS = frozenset({LayerKind.CONV2D, LayerKind.POOL2D, LayerKind.DENSE})

    @classmethod
    def output_shape(cls, config: Conv2DConfig, input_shape: Shape | None) -> Shape:
        hwc = _split_spatial(input_shape)
        if hwc is None:
            return (None, None, config.filters)
        out_h, out_w = _window_out(hwc, config.kernel_size, config.strides, config.padding)
        return (out_h, out_w, config.filters)

    @classmethod
    def parameter_count(cls, config: Conv2DConfig, input_shape: Shape | None) -> int | None:
        hwc = _split_spatial(input_shape)
        if hwc is None:
            return None
        kh, kw = config.kernel_size
        weights = kh * kw * hwc[2] * config.filters
        return weights + (config.filters if config.use_bias else 0)

    @classmethod
    def flops(cls, config: Conv2DConfig, input_shape, output_shape) -> int:
        hwc = _split_spatial(input_shape)
        if hwc is None:
            return 0
        out_h, out_w = _window_out(hwc, config.kernel_size, config.strides, config.padding)
        kh, kw = config.kernel_size
        per_point = 2 * kh * kw * hwc[2]
        return out_h * out_w * per_point * config.filters

    @classmethod
    def describe(cls, config: Conv2DConfig) -> str:
        kh, kw = config.kernel_size
        return f"Conv2D: {config.filters} filters, {kh}×{kw} kernel, {config.activation} activation"


@LayerRegistry.register(LayerKind.POOL2D)
class Pool2DLayer(BaseLayer):
    CONFIG = Pool2DConfig
    CATEGORY = "Convolutional"
    DISPLAY_NAME = "Pooling"
    DESCRIPTION = "Pooling layer for spatial downsampling"
    ALLOWED_TARGETS = frozenset({LayerKind.CONV2D, LayerKind.DENSE})

    @classmethod
    def output_shape(cls, config: Pool2DConfig, input_shape: Shape | None) -> Shape:
        hwc = _split_spatial(input_shape)
        if hwc is None:
            return (None, None, None)
        out_h, out_w = _window_out(hwc, config.pool_size, config.strides, config.padding)
        return (out_h, out_w, hwc[2])

    @classmethod
    def parameter_count(cls, config: Pool2DConfig, input_shape: Shape | None) -> int:
        return 0

    @classmethod
    def flops(cls, config: Pool2DConfig, input_shape, output_shape) -> int:
        hwc = _split_spatial(input_shape)
        if hwc is None:
            return 0
        out_h, out_w = _window_out(hwc, config.pool_size, config.strides, config.padding)
        ph, pw = config.pool_size
        # one comparison (or add) per element of each window
        return out_h * out_w * hwc[2] * ph * pw

    @classmethod
    def describe(cls, config: Pool2DConfig) -> str:
        ph, pw = config.pool_size
        prefix = "MaxPooling2D" if config.pool_type == "max" else "AveragePooling2D"
        return f"{prefix}: {ph}×{pw} pool size"
