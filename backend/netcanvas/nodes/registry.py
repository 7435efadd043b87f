"""Layer registry with auto-discovery."""
import importlib
import pkgutil

from .base import BaseLayer, LayerDefinition, LayerKind


class LayerRegistry:
    """Singleton registry mapping layer kinds to BaseLayer subclasses."""

    _layers: dict[LayerKind, type[BaseLayer]] = {}

    @classmethod
    def register(cls, kind: LayerKind):
        """Decorator to register a layer class.

        Usage:
            @LayerRegistry.register(LayerKind.DENSE)
            class DenseLayer(BaseLayer):
                ...
        """
        def decorator(layer_cls: type[BaseLayer]) -> type[BaseLayer]:
            layer_cls.KIND = kind
            cls._layers[kind] = layer_cls
            return layer_cls
        return decorator

    @classmethod
    def get(cls, kind: LayerKind | str) -> type[BaseLayer]:
        try:
            kind = LayerKind(kind)
        except ValueError:
            raise KeyError(f"Unknown layer kind: {kind}") from None
        if kind not in cls._layers:
            raise KeyError(f"Unknown layer kind: {kind.value}")
        return cls._layers[kind]

    @classmethod
    def kinds(cls) -> list[LayerKind]:
        return list(cls._layers)

    @classmethod
    def all_definitions(cls) -> dict[str, LayerDefinition]:
        return {
            kind.value: layer_cls.get_definition()
            for kind, layer_cls in cls._layers.items()
        }

    @classmethod
    def discover(cls, package_name: str) -> None:
        """Import all modules in the given package to trigger @register decorators."""
        try:
            package = importlib.import_module(package_name)
        except ImportError:
            return
        if not hasattr(package, "__path__"):
            return
        for _, module_name, _ in pkgutil.iter_modules(package.__path__):
            if module_name.startswith("_") or module_name in ("base", "registry", "configs"):
                continue
            importlib.import_module(f"{package_name}.{module_name}")
