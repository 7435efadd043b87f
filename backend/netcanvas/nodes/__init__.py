"""Auto-discover all layer modules on import."""
from .registry import LayerRegistry

LayerRegistry.discover("netcanvas.nodes")
