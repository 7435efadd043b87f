"""NetCanvas: layer-graph model with shape and parameter propagation."""
